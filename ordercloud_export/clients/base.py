from __future__ import annotations

from typing import Any, Dict, Protocol

Payload = Dict[str, Any]


class OrderCloudApi(Protocol):
    """
    Remote operations the exporters need from OrderCloud.

    get_* raises OrderCloudNotFoundError when the resource does not exist and
    OrderCloudError for every other failure. save_* is an idempotent upsert,
    patch_* changes only the given fields, and assignments have no get.
    """

    # Buyers and security
    def get_buyer(self, buyer_id: str) -> Payload:
        ...

    def save_buyer(self, buyer_id: str, buyer: Payload) -> Payload:
        ...

    def patch_buyer(self, buyer_id: str, partial: Payload) -> Payload:
        ...

    def get_security_profile(self, profile_id: str) -> Payload:
        ...

    def save_security_profile(self, profile_id: str, profile: Payload) -> Payload:
        ...

    def save_security_profile_assignment(self, assignment: Payload) -> None:
        ...

    def save_user_group(self, buyer_id: str, group_id: str, group: Payload) -> Payload:
        ...

    def save_user_group_assignment(self, buyer_id: str, assignment: Payload) -> None:
        ...

    def save_user(self, buyer_id: str, user_id: str, user: Payload) -> Payload:
        ...

    def save_address(self, buyer_id: str, address_id: str, address: Payload) -> Payload:
        ...

    def save_address_assignment(self, buyer_id: str, assignment: Payload) -> None:
        ...

    def get_admin_address(self, address_id: str) -> Payload:
        ...

    def save_admin_address(self, address_id: str, address: Payload) -> Payload:
        ...

    def save_locale(self, locale_id: str, locale: Payload) -> Payload:
        ...

    def save_locale_assignment(self, assignment: Payload) -> None:
        ...

    # Catalogs and categories
    def get_catalog(self, catalog_id: str) -> Payload:
        ...

    def save_catalog(self, catalog_id: str, catalog: Payload) -> Payload:
        ...

    def patch_catalog(self, catalog_id: str, partial: Payload) -> Payload:
        ...

    def save_catalog_assignment(self, assignment: Payload) -> None:
        ...

    def save_catalog_product_assignment(self, assignment: Payload) -> None:
        ...

    def get_category(self, catalog_id: str, category_id: str) -> Payload:
        ...

    def save_category(self, catalog_id: str, category_id: str, category: Payload) -> Payload:
        ...

    def patch_category(self, catalog_id: str, category_id: str, partial: Payload) -> Payload:
        ...

    def save_category_product_assignment(self, catalog_id: str, assignment: Payload) -> None:
        ...

    # Products
    def get_product(self, product_id: str) -> Payload:
        ...

    def save_product(self, product_id: str, product: Payload) -> Payload:
        ...

    def patch_product(self, product_id: str, partial: Payload) -> Payload:
        ...

    def save_product_assignment(self, assignment: Payload) -> None:
        ...

    def generate_variants(self, product_id: str, overwrite_existing: bool = True) -> Payload:
        ...

    def list_variants(self, product_id: str, page: int = 1, page_size: int = 100) -> Payload:
        ...

    def patch_variant(self, product_id: str, variant_id: str, partial: Payload) -> Payload:
        ...

    def save_spec(self, spec_id: str, spec: Payload) -> Payload:
        ...

    def save_spec_option(self, spec_id: str, option_id: str, option: Payload) -> Payload:
        ...

    def save_spec_product_assignment(self, assignment: Payload) -> None:
        ...

    def save_price_schedule(self, schedule_id: str, schedule: Payload) -> Payload:
        ...

    def save_inventory_record(self, product_id: str, record_id: str, record: Payload) -> Payload:
        ...

    def save_variant_inventory_record(
        self, product_id: str, variant_id: str, record_id: str, record: Payload
    ) -> Payload:
        ...
