from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

SANDBOX_API_URL = "https://sandboxapi.ordercloud.io"


class ImportMode(str, Enum):
    """How an entity that already exists remotely is treated."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    REPLACE = "REPLACE"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ImportMode":
        if not value:
            return cls.CREATE
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown import type: {value!r}") from None


@dataclass(frozen=True)
class ExportRunSettings:
    """Which entity categories a run processes, and the import mode."""

    import_mode: ImportMode = ImportMode.CREATE
    process_buyers: bool = False
    process_customers: bool = False
    process_catalogs: bool = False
    process_categories: bool = False
    process_products: bool = False
    process_catalog_assignments: bool = False
    process_category_assignments: bool = False
    process_product_relationships: bool = False


@dataclass(frozen=True)
class BuyerExportPolicy:
    """
    Destination identity of one buyer: its id (the source shop/domain name),
    the storefronts it serves, and the currencies its user groups cover.
    """

    id: str
    storefronts: List[str] = field(default_factory=list)
    currencies: List[str] = field(default_factory=list)
    default_currency: Optional[str] = None


@dataclass(frozen=True)
class CatalogExportPolicy:
    catalog_name: str
    default_buyer_id: Optional[str] = None


@dataclass(frozen=True)
class ProductExportPolicy:
    """Pricing and inventory settings for sellable items."""

    multi_inventory: bool = False
    inventory_set_id: Optional[str] = None
    default_currency: Optional[str] = None
    max_quantity: Optional[int] = None
    use_cumulative_quantity: bool = False


@dataclass(frozen=True)
class UserPolicy:
    default_first_name: str = "FirstName"
    default_last_name: str = "LastName"
    active_account_status: str = "ActiveAccount"


@dataclass(frozen=True)
class OrderCloudClientPolicy:
    """Credentials and endpoints for the OrderCloud API."""

    api_url: str = SANDBOX_API_URL
    auth_url: str = SANDBOX_API_URL
    client_id: str = ""
    client_secret: str = ""
    scope: str = "FullAccess"
    timeout: int = 20
    calls_per_second: float = 10.0

    def is_valid(self) -> bool:
        return all([self.api_url, self.auth_url, self.client_id, self.client_secret])

    @classmethod
    def from_env(cls) -> "OrderCloudClientPolicy":
        return cls(
            api_url=os.getenv("ORDERCLOUD_API_URL", SANDBOX_API_URL),
            auth_url=os.getenv("ORDERCLOUD_AUTH_URL", SANDBOX_API_URL),
            client_id=os.getenv("ORDERCLOUD_CLIENT_ID", ""),
            client_secret=os.getenv("ORDERCLOUD_CLIENT_SECRET", ""),
            scope=os.getenv("ORDERCLOUD_SCOPE", "FullAccess"),
        )
