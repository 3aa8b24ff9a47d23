from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ordercloud_export.clients.base import OrderCloudApi
from ordercloud_export.clients.ordercloud import OrderCloudClient
from ordercloud_export.context import RunContext
from ordercloud_export.errors import ConfigurationError
from ordercloud_export.processing import ExportOrchestrator
from ordercloud_export.results import ExportRunResult
from ordercloud_export.settings import (
    BuyerExportPolicy,
    CatalogExportPolicy,
    ExportRunSettings,
    ImportMode,
    OrderCloudClientPolicy,
    ProductExportPolicy,
    UserPolicy,
)
from ordercloud_export.source import SourceRepository

logger = logging.getLogger(__name__)


def _value(data: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Read a PascalCase key, falling back to its camelCase spelling."""
    if key in data:
        return data[key]
    camel = key[0].lower() + key[1:]
    return data.get(camel, default)


def parse_export_request(
    body: Dict[str, Any],
) -> Tuple[ExportRunSettings, List[BuyerExportPolicy], List[CatalogExportPolicy], ProductExportPolicy]:
    """
    Split a run request into settings and policies. The body has four parts:
    processSettings (required), buyerSettings, catalogSettings, productSettings.
    """
    process = body.get("processSettings")
    if not isinstance(process, dict):
        raise ValueError("Export request requires a 'processSettings' object")

    settings = ExportRunSettings(
        import_mode=ImportMode.parse(_value(process, "ImportType")),
        process_buyers=bool(_value(process, "ProcessBuyers", _value(process, "ProcessSites", False))),
        process_customers=bool(_value(process, "ProcessCustomers", False)),
        process_catalogs=bool(_value(process, "ProcessCatalogs", False)),
        process_categories=bool(_value(process, "ProcessCategories", False)),
        process_products=bool(_value(process, "ProcessProducts", False)),
        process_catalog_assignments=bool(_value(process, "ProcessCatalogAssignments", False)),
        process_category_assignments=bool(_value(process, "ProcessCategoryAssignments", False)),
        process_product_relationships=bool(_value(process, "ProcessProductRelationships", False)),
    )

    buyer_policies = [
        BuyerExportPolicy(
            id=_value(b, "Id"),
            storefronts=list(_value(b, "Storefronts", []) or []),
            currencies=list(_value(b, "Currencies", []) or []),
            default_currency=_value(b, "DefaultCurrency"),
        )
        for b in body.get("buyerSettings") or []
    ]

    catalog_policies = [
        CatalogExportPolicy(
            catalog_name=_value(c, "CatalogName"),
            default_buyer_id=_value(c, "DefaultBuyerId"),
        )
        for c in body.get("catalogSettings") or []
    ]

    product = body.get("productSettings") or {}
    max_quantity = _value(product, "MaxQuantity")
    product_policy = ProductExportPolicy(
        multi_inventory=bool(_value(product, "MultiInventory", False)),
        inventory_set_id=_value(product, "InventorySetId"),
        default_currency=_value(product, "DefaultCurrency"),
        max_quantity=int(max_quantity) if max_quantity is not None else None,
        use_cumulative_quantity=bool(_value(product, "UseCumulativeQuantity", False)),
    )

    return settings, buyer_policies, catalog_policies, product_policy


def export_to_ordercloud(
    settings: ExportRunSettings,
    buyer_policies: Optional[Sequence[BuyerExportPolicy]],
    catalog_policies: Optional[Sequence[CatalogExportPolicy]],
    product_policy: Optional[ProductExportPolicy],
    *,
    source: SourceRepository,
    client: Optional[OrderCloudApi] = None,
    client_policy: Optional[OrderCloudClientPolicy] = None,
    user_policy: Optional[UserPolicy] = None,
) -> ExportRunResult:
    """
    Run one export and return its aggregated result.

    Without an explicit client, one is built from client_policy (or the
    environment). An incomplete policy raises ConfigurationError before any
    remote call is made.
    """
    if client is None:
        client_policy = client_policy or OrderCloudClientPolicy.from_env()
        if not client_policy.is_valid():
            logger.error("Invalid OrderCloud client policy; export aborted.")
            raise ConfigurationError(
                "OrderCloud client policy requires api_url, auth_url, client_id and client_secret"
            )
        client = OrderCloudClient(client_policy)

    ctx = RunContext(
        client=client,
        source=source,
        settings=settings,
        buyer_policies=list(buyer_policies or []),
        catalog_policies=list(catalog_policies or []),
        product_policy=product_policy or ProductExportPolicy(),
        user_policy=user_policy or UserPolicy(),
    )

    logger.info(
        "Export to OrderCloud started: import_mode=%s buyers=%d catalogs=%d",
        settings.import_mode.value,
        len(ctx.buyer_policies),
        len(ctx.catalog_policies),
    )
    result = ExportOrchestrator(ctx).run()
    logger.info(
        "Export to OrderCloud finished: aborted=%s stage=%s messages=%d",
        result.aborted,
        result.aborted_stage,
        len(result.messages),
    )
    return result
