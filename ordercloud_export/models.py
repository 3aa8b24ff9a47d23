from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from ordercloud_export.identifiers import entity_id


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in (data or {}).items() if k in names}


@dataclass
class Price:
    """A list price in one currency."""

    currency: str
    amount: float


@dataclass
class ItemSpecifications:
    """Shipping measurements carried by items and variations."""

    weight: Optional[float] = None
    height: Optional[float] = None
    width: Optional[float] = None
    length: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ItemSpecifications"]:
        if not data:
            return None
        return cls(**_known_fields(cls, data))


def _prices(data: Optional[List[Dict[str, Any]]]) -> List[Price]:
    return [Price(currency=p["currency"], amount=float(p["amount"])) for p in data or []]


@dataclass
class Shop:
    """A storefront: the source of a buyer's currencies."""

    name: str
    display_name: str = ""
    currencies: List[str] = field(default_factory=list)
    default_currency: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Shop":
        return cls(**_known_fields(cls, data))


@dataclass
class CustomerAddress:
    """An address component on a source customer."""

    address_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_postal_code: Optional[str] = None
    country_code: Optional[str] = None
    phone_number: Optional[str] = None
    is_primary: bool = False


@dataclass
class Customer:
    friendly_id: str
    domain: str
    login_name: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    account_status: Optional[str] = None
    phone_number: Optional[str] = None
    addresses: List[CustomerAddress] = field(default_factory=list)

    @property
    def id(self) -> str:
        return entity_id("Customer", self.friendly_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Customer":
        values = _known_fields(cls, data)
        values["addresses"] = [
            CustomerAddress(**_known_fields(CustomerAddress, a)) for a in data.get("addresses") or []
        ]
        return cls(**values)


@dataclass
class Catalog:
    name: str
    display_name: str = ""

    @property
    def id(self) -> str:
        return entity_id("Catalog", self.name)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        return cls(**_known_fields(cls, data))


@dataclass
class Category:
    """
    A source category. The friendly id is "{catalog name}-{category name}",
    which is how the destination catalog and category ids are derived.
    """

    friendly_id: str
    display_name: str = ""
    description: Optional[str] = None
    published: bool = True
    pending_purge: bool = False

    @property
    def id(self) -> str:
        return entity_id("Category", self.friendly_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(**_known_fields(cls, data))


@dataclass
class InventorySet:
    friendly_id: str
    display_name: str = ""
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InventorySet":
        return cls(**_known_fields(cls, data))


@dataclass
class InventoryInformation:
    """Stock for one item (or variation) in one inventory set."""

    friendly_id: str  # "{inventory set}-{item}-{variation}"
    quantity: int = 0

    @property
    def inventory_set_id(self) -> str:
        return self.friendly_id.partition("-")[0]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InventoryInformation":
        return cls(**_known_fields(cls, data))


@dataclass
class ItemVariation:
    """A concrete variation of a sellable item, with its display properties."""

    id: str
    color: Optional[str] = None
    size: Optional[str] = None
    disambiguating_description: Optional[str] = None
    disabled: bool = False
    tags: List[str] = field(default_factory=list)
    specifications: Optional[ItemSpecifications] = None
    list_prices: List[Price] = field(default_factory=list)
    inventory_information_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemVariation":
        values = _known_fields(cls, data)
        values["specifications"] = ItemSpecifications.from_dict(data.get("specifications"))
        values["list_prices"] = _prices(data.get("list_prices"))
        return cls(**values)


@dataclass
class SellableItem:
    friendly_id: str
    display_name: str = ""
    description: Optional[str] = None
    brand: Optional[str] = None
    manufacturer: Optional[str] = None
    type_of_good: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    specifications: Optional[ItemSpecifications] = None
    list_prices: List[Price] = field(default_factory=list)
    variations: List[ItemVariation] = field(default_factory=list)
    inventory_information_ids: List[str] = field(default_factory=list)
    published: bool = True

    @property
    def id(self) -> str:
        return entity_id("SellableItem", self.friendly_id)

    def get_variation(self, variation_id: str) -> Optional[ItemVariation]:
        for variation in self.variations:
            if variation.id == variation_id:
                return variation
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SellableItem":
        values = _known_fields(cls, data)
        values["specifications"] = ItemSpecifications.from_dict(data.get("specifications"))
        values["list_prices"] = _prices(data.get("list_prices"))
        values["variations"] = [ItemVariation.from_dict(v) for v in data.get("variations") or []]
        return cls(**values)
