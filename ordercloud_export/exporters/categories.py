from __future__ import annotations

from typing import Optional

from ordercloud_export.clients.base import Payload
from ordercloud_export.constants import EntityKinds, Errors, Lists, SOURCE_LIST_PAGE_SIZE
from ordercloud_export.exporters.base import EntityExporter
from ordercloud_export.identifiers import remove_id_prefix, sanitize, split_category_friendly_id
from ordercloud_export.models import Category
from ordercloud_export.results import Bucket, Outcome
from ordercloud_export.source import iter_list_ids


class _CategoryValidation(EntityExporter):
    def _load_category(self, entity_id: str, bucket: Bucket) -> Category:
        """Find the category; unpublished or purging categories are skipped."""
        category: Category = self._find_source_entity(
            EntityKinds.CATEGORY, entity_id, bucket, Errors.CATEGORY_NOT_FOUND
        )
        if not category.published:
            self._skip(
                bucket,
                Errors.CATEGORY_NOT_PUBLISHED,
                f"Category '{category.friendly_id}' is not published, skipping.",
                category.id,
            )
        if category.pending_purge:
            self._skip(
                bucket,
                Errors.CATEGORY_PENDING_PURGE,
                f"Category '{category.friendly_id}' is pending purge, skipping.",
                category.id,
            )
        return category


class CategoryExporter(_CategoryValidation):
    """
    Get-or-create a category in its catalog. The parent is not set here
    because the parent may not exist yet; the assignments pass patches it.
    """

    def export(self, entity_id: str) -> None:
        category = self._load_category(entity_id, Bucket.CATEGORIES)
        catalog_id, category_id = split_category_friendly_id(category.friendly_id)

        def build(existing: Optional[Payload]) -> Payload:
            body = {
                "ID": category_id,
                "Active": True,
                "Name": category.display_name,
                "Description": category.description,
            }
            if existing and existing.get("ParentID"):
                body["ParentID"] = existing["ParentID"]
            return body

        self._get_or_create(
            Bucket.CATEGORIES,
            f"category; Catalog ID: {catalog_id}, Category ID: {category_id}",
            get=lambda: self.client.get_category(catalog_id, category_id),
            build=build,
            save=lambda body: self.client.save_category(catalog_id, category_id, body),
            patch=lambda body: self.client.patch_category(catalog_id, category_id, body),
            get_failed_code=Errors.GET_CATEGORY_FAILED,
            create_failed_code=Errors.CREATE_CATEGORY_FAILED,
            entity_id=category.id,
        )


class CategoryAssignmentExporter(_CategoryValidation):
    """Second pass: parent links for child categories and category products."""

    def export(self, entity_id: str) -> None:
        category = self._load_category(entity_id, Bucket.CATEGORY_ASSIGNMENTS)
        catalog_id, category_id = split_category_friendly_id(category.friendly_id)

        self.assign_child_categories(category, catalog_id, category_id)
        self.assign_products(category, catalog_id, category_id)

    def assign_child_categories(self, category: Category, catalog_id: str, category_id: str) -> None:
        child_ids = iter_list_ids(
            self.source,
            EntityKinds.CATEGORY,
            Lists.category_to_category(category.friendly_id),
            SOURCE_LIST_PAGE_SIZE,
        )
        for child_entity_id in child_ids:
            child_catalog_id, child_id = split_category_friendly_id(remove_id_prefix(child_entity_id))
            self._attempt(
                Bucket.CATEGORY_ASSIGNMENTS,
                Outcome.PATCHED,
                f"category parent; Catalog ID: {child_catalog_id}, Category ID: {child_id}, Parent ID: {category_id}",
                lambda: self.client.patch_category(child_catalog_id, child_id, {"ParentID": category_id}),
            )

    def assign_products(self, category: Category, catalog_id: str, category_id: str) -> None:
        product_entity_ids = iter_list_ids(
            self.source,
            EntityKinds.SELLABLE_ITEM,
            Lists.category_to_sellable_item(category.friendly_id),
            SOURCE_LIST_PAGE_SIZE,
        )
        for product_entity_id in product_entity_ids:
            product_id = sanitize(remove_id_prefix(product_entity_id))
            label = f"category product assignment; Category ID: {category_id}, Product ID: {product_id}"
            if self.ctx.problem_objects.has_product(product_id):
                self._skip_dependent(Bucket.CATEGORY_PRODUCT_ASSIGNMENTS, label, "product failed to export")
                continue
            self._attempt(
                Bucket.CATEGORY_PRODUCT_ASSIGNMENTS,
                Outcome.CREATED,
                label,
                lambda: self.client.save_category_product_assignment(
                    catalog_id, {"CategoryID": category_id, "ProductID": product_id}
                ),
            )
