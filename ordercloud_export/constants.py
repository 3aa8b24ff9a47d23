"""Names shared by the source lookups, the exporters and the run messages."""

from __future__ import annotations


class EntityKinds:
    SHOP = "Shop"
    CUSTOMER = "Customer"
    CATALOG = "Catalog"
    CATEGORY = "Category"
    SELLABLE_ITEM = "SellableItem"
    INVENTORY_SET = "InventorySet"
    INVENTORY_INFORMATION = "InventoryInformation"


class Lists:
    """Source watch lists and relationship lists."""

    CUSTOMERS = "Customers"
    CATALOGS = "Catalogs"
    CATEGORIES = "Categories"
    SELLABLE_ITEMS = "SellableItems"

    @staticmethod
    def category_to_category(category_friendly_id: str) -> str:
        return f"CategoryToCategory-{category_friendly_id}"

    @staticmethod
    def category_to_sellable_item(category_friendly_id: str) -> str:
        return f"CategoryToSellableItem-{category_friendly_id}"

    @staticmethod
    def catalog_to_sellable_item(catalog_name: str) -> str:
        return f"CatalogToSellableItem-{catalog_name}"


class Errors:
    CATALOG_NOT_FOUND = "CatalogNotFound"
    CATEGORY_NOT_FOUND = "CategoryNotFound"
    CATEGORY_NOT_PUBLISHED = "CategoryNotPublished"
    CATEGORY_PENDING_PURGE = "CategoryPendingPurge"
    CUSTOMER_NOT_FOUND = "CustomerNotFound"
    SELLABLE_ITEM_NOT_FOUND = "SellableItemNotFound"
    SELLABLE_ITEM_NOT_PUBLISHED = "SellableItemNotPublished"
    SHOP_NOT_FOUND = "ShopNotFound"

    GET_BUYER_FAILED = "GetBuyerFailed"
    CREATE_BUYER_FAILED = "CreateBuyerFailed"
    CREATE_BUYER_USER_FAILED = "UpdateBuyerUserFailed"
    GET_CATALOG_FAILED = "GetCatalogFailed"
    CREATE_CATALOG_FAILED = "CreateCatalogFailed"
    GET_CATEGORY_FAILED = "GetCategoryFailed"
    CREATE_CATEGORY_FAILED = "CreateCategoryFailed"
    GET_PRODUCT_FAILED = "GetProductFailed"
    CREATE_PRODUCT_FAILED = "CreateProductFailed"
    CREATE_VARIANTS_FAILED = "CreateVariantsFailed"

    UNEXPECTED_ERROR = "UnexpectedExportError"


SHOPPER_ROLES = [
    "MeAddressAdmin",
    "MeAdmin",
    "MeCreditCardAdmin",
    "MeXpAdmin",
    "PasswordReset",
    "Shopper",
]

# Items tagged with any of these are not shipped, so inventory is not tracked.
DIGITAL_ITEM_TAGS = {
    "entitlement",
    "service",
    "installation",
    "subscription",
    "digitalsubscription",
    "onlinetraining",
    "onlinelearning",
    "warranty",
}

VARIANTS_PAGE_SIZE = 100
SOURCE_LIST_PAGE_SIZE = 100
