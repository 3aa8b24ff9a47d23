from __future__ import annotations

import logging
from typing import Callable, List, Tuple

from ordercloud_export.constants import EntityKinds, Errors, Lists, SOURCE_LIST_PAGE_SIZE
from ordercloud_export.context import RunContext
from ordercloud_export.errors import ExportAbort, RunMessage, Severity
from ordercloud_export.exporters.base import Exporter
from ordercloud_export.exporters.buyers import BuyerExporter
from ordercloud_export.exporters.catalogs import CatalogExporter, CatalogProductAssignmentExporter
from ordercloud_export.exporters.categories import CategoryAssignmentExporter, CategoryExporter
from ordercloud_export.exporters.customers import CustomerExporter
from ordercloud_export.exporters.sellable_items import SellableItemExporter
from ordercloud_export.identifiers import sanitize
from ordercloud_export.results import ExportRunResult
from ordercloud_export.source import iter_list_ids

SubExport = Callable[[RunContext, str], None]


def _exporting(factory: Callable[[RunContext], Exporter]) -> SubExport:
    return lambda ctx, entity_id: factory(ctx).export(entity_id)


class ExportOrchestrator:
    """
    Runs the export stages in dependency order. Each entity is exported in
    its own sub-context; a genuine error in any entity lets the stage finish
    and then halts the stages after it.
    """

    def __init__(self, ctx: RunContext) -> None:
        self.ctx = ctx
        self.logger = logging.getLogger(__name__)

    def stages(self) -> List[Tuple[str, bool, Callable[[], bool]]]:
        settings = self.ctx.settings
        return [
            ("ExportBuyers", settings.process_buyers, self.export_buyers),
            ("ExportBuyersExtended", settings.process_buyers, self.export_buyers_extended),
            ("ExportCustomers", settings.process_customers, self.export_customers),
            ("ExportCatalogs", settings.process_catalogs, self.export_catalogs),
            ("ExportCategories", settings.process_categories, self.export_categories),
            ("ExportSellableItems", settings.process_products, self.export_sellable_items),
            ("ExportAllCategoryAssignments", settings.process_category_assignments, self.export_category_assignments),
            ("ExportAllCatalogAssignments", settings.process_catalog_assignments, self.export_catalog_assignments),
        ]

    def run(self) -> ExportRunResult:
        result = self.ctx.result
        for name, enabled, stage in self.stages():
            if not enabled:
                self.logger.info("Skipping %s - not enabled.", name)
                continue

            self.logger.info("%s started", name)
            failed = stage()
            if failed:
                result.aborted = True
                result.aborted_stage = name
                self.logger.error("%s failed; remaining stages halted.", name)
                break
            self.logger.info("%s completed", name)

        if self.ctx.settings.process_product_relationships and not result.aborted:
            self.logger.warning("Product relationships export is not supported; skipping.")

        for bucket in result.inconsistent_buckets():
            counters = result[bucket]
            self.logger.error(
                "Result bucket %s does not balance: processed=%d outcomes=%d",
                bucket.value,
                counters.processed,
                counters.outcomes,
            )
        return result

    # ------------------------------------------------------------------
    # Sub-runs
    # ------------------------------------------------------------------

    def run_sub_export(self, label: str, entity_id: str, export: SubExport) -> bool:
        """
        Export one entity in a spawned context and merge it back. Returns
        True when the entity hit a genuine error.
        """
        child = self.ctx.spawn()
        error = False
        self.logger.debug("Exporting %s '%s'", label, entity_id)
        try:
            export(child, entity_id)
        except ExportAbort as abort:
            child.result.messages.append(abort.to_message())
            if abort.is_error:
                error = True
                self.logger.error("Export %s '%s' failed: %s", label, entity_id, abort.message)
            else:
                self.logger.info("Export %s '%s' stopped: %s", label, entity_id, abort.message)
        except Exception as e:
            error = True
            self.logger.exception("Unexpected error exporting %s '%s': %s", label, entity_id, e)
            child.result.messages.append(
                RunMessage(Severity.ERROR, Errors.UNEXPECTED_ERROR, f"Export {label} failed. {e}", entity_id)
            )
        finally:
            self.ctx.absorb(child)
        return error

    def _run_all(self, label: str, entity_ids: List[str], export: SubExport) -> bool:
        self.logger.info("Processing %d %s(s)", len(entity_ids), label)
        failed = False
        for entity_id in entity_ids:
            if self.run_sub_export(label, entity_id, export):
                failed = True
        return failed

    def _watch_list(self, kind: str, list_name: str) -> List[str]:
        return iter_list_ids(self.ctx.source, kind, list_name, SOURCE_LIST_PAGE_SIZE)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def export_buyers(self) -> bool:
        ids: List[str] = []
        seen = set()
        for policy in self.ctx.buyer_policies:
            buyer_id = sanitize(policy.id)
            if buyer_id not in seen:
                seen.add(buyer_id)
                ids.append(policy.id)
        return self._run_all("buyer", ids, _exporting(BuyerExporter))

    def export_buyers_extended(self) -> bool:
        storefronts: List[str] = []
        for policy in self.ctx.buyer_policies:
            for storefront in policy.storefronts:
                if storefront not in storefronts:
                    storefronts.append(storefront)
        return self._run_all("storefront", storefronts, lambda c, i: BuyerExporter(c).export_storefront(i))

    def export_customers(self) -> bool:
        ids = self._watch_list(EntityKinds.CUSTOMER, Lists.CUSTOMERS)
        return self._run_all("customer", ids, _exporting(CustomerExporter))

    def export_catalogs(self) -> bool:
        ids = self._watch_list(EntityKinds.CATALOG, Lists.CATALOGS)
        return self._run_all("catalog", ids, _exporting(CatalogExporter))

    def export_categories(self) -> bool:
        ids = self._watch_list(EntityKinds.CATEGORY, Lists.CATEGORIES)
        return self._run_all("category", ids, _exporting(CategoryExporter))

    def export_sellable_items(self) -> bool:
        ids = self._watch_list(EntityKinds.SELLABLE_ITEM, Lists.SELLABLE_ITEMS)
        return self._run_all("sellable item", ids, _exporting(SellableItemExporter))

    def export_category_assignments(self) -> bool:
        ids = self._watch_list(EntityKinds.CATEGORY, Lists.CATEGORIES)
        return self._run_all("category assignment", ids, _exporting(CategoryAssignmentExporter))

    def export_catalog_assignments(self) -> bool:
        ids = self._watch_list(EntityKinds.CATALOG, Lists.CATALOGS)
        return self._run_all(
            "catalog assignment", ids, _exporting(CatalogProductAssignmentExporter)
        )
