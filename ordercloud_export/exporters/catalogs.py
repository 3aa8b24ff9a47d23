from __future__ import annotations

from ordercloud_export.constants import EntityKinds, Errors, Lists, SOURCE_LIST_PAGE_SIZE
from ordercloud_export.exporters.base import EntityExporter
from ordercloud_export.identifiers import remove_id_prefix, sanitize
from ordercloud_export.models import Catalog
from ordercloud_export.results import Bucket, Outcome
from ordercloud_export.source import iter_list_ids


class CatalogExporter(EntityExporter):
    """Get-or-create the catalog, then grant its default buyer full visibility."""

    def export(self, entity_id: str) -> None:
        catalog: Catalog = self._find_source_entity(
            EntityKinds.CATALOG, entity_id, Bucket.CATALOGS, Errors.CATALOG_NOT_FOUND
        )
        catalog_id = sanitize(catalog.name)

        self._get_or_create(
            Bucket.CATALOGS,
            f"catalog; Catalog ID: {catalog_id}",
            get=lambda: self.client.get_catalog(catalog_id),
            build=lambda existing: {
                "ID": catalog_id,
                "Active": True,
                "Name": catalog.display_name or catalog.name,
            },
            save=lambda body: self.client.save_catalog(catalog_id, body),
            patch=lambda body: self.client.patch_catalog(catalog_id, body),
            get_failed_code=Errors.GET_CATALOG_FAILED,
            create_failed_code=Errors.CREATE_CATALOG_FAILED,
            entity_id=catalog.id,
        )

        self.assign_to_buyer(catalog, catalog_id)

    def assign_to_buyer(self, catalog: Catalog, catalog_id: str) -> None:
        policy = self.ctx.catalog_policy(catalog.name)
        label = f"catalog assignment; Catalog ID: {catalog_id}"
        if policy is None or not policy.default_buyer_id:
            self.logger.warning("No default buyer configured for catalog '%s'", catalog.name)
            self._skip_dependent(Bucket.CATALOG_ASSIGNMENTS, label, "no default buyer")
            return

        buyer_id = sanitize(policy.default_buyer_id)
        self._attempt(
            Bucket.CATALOG_ASSIGNMENTS,
            Outcome.CREATED,
            f"{label}, Buyer ID: {buyer_id}",
            lambda: self.client.save_catalog_assignment(
                {
                    "CatalogID": catalog_id,
                    "BuyerID": buyer_id,
                    "ViewAllCategories": True,
                    "ViewAllProducts": True,
                }
            ),
        )


class CatalogProductAssignmentExporter(EntityExporter):
    """Assigns every product on a catalog's product list to the catalog."""

    def export(self, entity_id: str) -> None:
        catalog: Catalog = self._find_source_entity(
            EntityKinds.CATALOG, entity_id, Bucket.CATALOG_PRODUCT_ASSIGNMENTS, Errors.CATALOG_NOT_FOUND
        )
        catalog_id = sanitize(catalog.name)

        product_entity_ids = iter_list_ids(
            self.source,
            EntityKinds.SELLABLE_ITEM,
            Lists.catalog_to_sellable_item(catalog.name),
            SOURCE_LIST_PAGE_SIZE,
        )
        self.logger.info("Catalog '%s' has %d product(s) to assign", catalog.name, len(product_entity_ids))

        for product_entity_id in product_entity_ids:
            product_id = sanitize(remove_id_prefix(product_entity_id))
            label = f"catalog product assignment; Catalog ID: {catalog_id}, Product ID: {product_id}"
            if self.ctx.problem_objects.has_product(product_id):
                self._skip_dependent(Bucket.CATALOG_PRODUCT_ASSIGNMENTS, label, "product failed to export")
                continue
            self._attempt(
                Bucket.CATALOG_PRODUCT_ASSIGNMENTS,
                Outcome.CREATED,
                label,
                lambda: self.client.save_catalog_product_assignment(
                    {"CatalogID": catalog_id, "ProductID": product_id}
                ),
            )
