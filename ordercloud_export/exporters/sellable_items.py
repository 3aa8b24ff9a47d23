from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ordercloud_export.clients.base import Payload
from ordercloud_export.constants import (
    DIGITAL_ITEM_TAGS,
    VARIANTS_PAGE_SIZE,
    EntityKinds,
    Errors,
)
from ordercloud_export.errors import ExportAbort, OrderCloudError, OrderCloudNotFoundError
from ordercloud_export.exporters.base import EntityExporter
from ordercloud_export.exporters.buyers import user_group_id
from ordercloud_export.identifiers import remove_id_prefix, sanitize
from ordercloud_export.models import (
    InventoryInformation,
    InventorySet,
    ItemSpecifications,
    ItemVariation,
    Price,
    SellableItem,
)
from ordercloud_export.results import Bucket, Outcome
from ordercloud_export.source import normalize_entity_id
from ordercloud_export.variations import (
    VariationsSummary,
    get_variation_summary,
    get_variations_summary,
    requires_variants,
)


def is_physical_item(tags: List[str]) -> bool:
    return not any((tag or "").lower() in DIGITAL_ITEM_TAGS for tag in tags)


def _apply_specifications(target: Payload, specs: Optional[ItemSpecifications]) -> None:
    if specs is None:
        return
    target["ShipWeight"] = specs.weight
    target["ShipHeight"] = specs.height
    target["ShipWidth"] = specs.width
    target["ShipLength"] = specs.length


class SellableItemExporter(EntityExporter):
    """
    Product export: product, price schedules, inventory, and for items with
    variations the specs, spec options, generated variants and their patches.
    """

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.policy = ctx.product_policy
        self.price_schedules: List[Payload] = []

    def export(self, entity_id: str) -> None:
        try:
            item: SellableItem = self._find_source_entity(
                EntityKinds.SELLABLE_ITEM, entity_id, Bucket.PRODUCTS, Errors.SELLABLE_ITEM_NOT_FOUND
            )
        except ExportAbort:
            self.ctx.problem_objects.add_product(
                sanitize(remove_id_prefix(normalize_entity_id(EntityKinds.SELLABLE_ITEM, entity_id)))
            )
            raise

        if not item.published:
            # Its assignments are skipped for the rest of the run.
            self.ctx.problem_objects.add_product(sanitize(item.friendly_id))
            self._skip(
                Bucket.PRODUCTS,
                Errors.SELLABLE_ITEM_NOT_PUBLISHED,
                f"Sellable item '{item.friendly_id}' is not published, skipping.",
                item.id,
            )

        needs_variants = requires_variants(item)
        product = self.get_or_create_product(item, needs_variants)

        if self.price_schedules:
            self.create_product_assignments(product)

        if not needs_variants:
            if self.policy.multi_inventory:
                self.create_inventory_records(product["ID"], None, item.inventory_information_ids)
            return

        matched = self.get_or_create_variants(item, product)

        if self.policy.multi_inventory:
            for variant_id, variation in matched:
                self.create_inventory_records(product["ID"], variant_id, variation.inventory_information_ids)

    # ------------------------------------------------------------------
    # Product
    # ------------------------------------------------------------------

    def build_product(self, item: SellableItem, needs_variants: bool) -> Payload:
        product_id = sanitize(item.friendly_id)
        product: Dict[str, Any] = {
            "ID": product_id,
            "Active": True,
            "Name": item.display_name,
            "Description": item.description,
            "xp": {
                "Brand": item.brand,
                "Manufacturer": item.manufacturer,
                "TypeOfGood": item.type_of_good,
                "Tags": list(item.tags),
            },
        }
        _apply_specifications(product, item.specifications)

        schedules = self.create_price_schedules(product_id, item.list_prices)
        default = None
        if self.policy.default_currency:
            default = next(
                (s for s in schedules if s["ID"].endswith(f"_{self.policy.default_currency}")),
                None,
            )
        if default is not None:
            product["DefaultPriceScheduleID"] = default["ID"]
            schedules.remove(default)
        self.price_schedules = schedules

        if needs_variants:
            product["Inventory"] = {
                "Enabled": is_physical_item(item.tags),
                "VariantLevelTracking": True,
            }
        elif not self.policy.multi_inventory:
            inventory = self.find_inventory(item.inventory_information_ids, self.policy.inventory_set_id)
            if inventory is not None:
                product["Inventory"] = {"Enabled": True, "QuantityAvailable": inventory.quantity}

        return product

    def get_or_create_product(self, item: SellableItem, needs_variants: bool) -> Payload:
        product_id = sanitize(item.friendly_id)
        try:
            return self._get_or_create(
                Bucket.PRODUCTS,
                f"product; Product ID: {product_id}",
                get=lambda: self.client.get_product(product_id),
                build=lambda existing: self.build_product(item, needs_variants),
                save=lambda body: self.client.save_product(product_id, body),
                patch=lambda body: self.client.patch_product(product_id, body),
                get_failed_code=Errors.GET_PRODUCT_FAILED,
                create_failed_code=Errors.CREATE_PRODUCT_FAILED,
                entity_id=item.id,
            )
        except ExportAbort:
            # Dependent assignments must skip this product for the rest of the run.
            self.ctx.problem_objects.add_product(product_id)
            raise

    def create_price_schedules(self, owner_id: str, prices: List[Price]) -> List[Payload]:
        """One price schedule per list price currency, with a single price break."""
        schedules: List[Payload] = []
        for price in prices:
            schedule_id = f"{owner_id}_{price.currency}"
            schedule = {
                "ID": schedule_id,
                "Name": schedule_id,
                "MaxQuantity": self.policy.max_quantity,
                "UseCumulativeQuantity": self.policy.use_cumulative_quantity,
                "PriceBreaks": [{"Price": price.amount, "Quantity": 1}],
                "Currency": price.currency,
            }
            saved = self._attempt(
                Bucket.PRICE_SCHEDULES,
                Outcome.UPDATED,
                f"price schedule; Price Schedule ID: {schedule_id}",
                lambda: self.client.save_price_schedule(schedule_id, schedule),
            )
            if saved is not None:
                schedules.append(schedule)
        return schedules

    def create_product_assignments(self, product: Payload) -> None:
        """
        Make the product visible to each buyer's currency group at that
        currency's price schedule. Default-currency pricing is carried by the
        product itself.
        """
        for policy in self.ctx.buyer_policies:
            buyer_id = sanitize(policy.id)
            for schedule in self.price_schedules:
                currency = schedule["Currency"]
                if currency not in policy.currencies:
                    continue
                group_id = user_group_id(buyer_id, currency)
                self._attempt(
                    Bucket.PRODUCT_ASSIGNMENTS,
                    Outcome.CREATED,
                    f"product assignment; Product ID: {product['ID']}, Buyer ID: {buyer_id}, "
                    f"User Group ID: {group_id}",
                    lambda: self.client.save_product_assignment(
                        {
                            "ProductID": product["ID"],
                            "BuyerID": buyer_id,
                            "UserGroupID": group_id,
                            "PriceScheduleID": schedule["ID"],
                        }
                    ),
                )

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def get_or_create_variants(self, item: SellableItem, product: Payload) -> List[Tuple[str, ItemVariation]]:
        """
        Specs, options and spec assignments, then variant generation and a
        patch per generated variant. Returns (variant id, variation) for every
        variant matched to a source variation.
        """
        product_id = product["ID"]
        summary = get_variations_summary(item)

        spec_ids = self.save_specs(product_id, summary)
        self.save_spec_options(product_id, summary, spec_ids)
        self.save_spec_product_assignments(product_id, summary, spec_ids)

        try:
            self.logger.info("Generating variants; Product ID: %s", product_id)
            self.client.generate_variants(product_id, overwrite_existing=True)
            variants = self.list_all_variants(product_id)
        except OrderCloudError as e:
            self.result.record(Bucket.VARIANTS, Outcome.ERRORED)
            self.logger.error("Create variants for product '%s' failed: %s", product_id, e.detail)
            raise ExportAbort.info(
                Errors.CREATE_VARIANTS_FAILED,
                f"Create variants for product '{product_id}' failed. {e.detail}",
                item.id,
            ) from e

        matched: List[Tuple[str, ItemVariation]] = []
        for variant in variants:
            match = get_variation_summary(summary, variant)
            if match is None:
                self.disable_variant(product_id, variant)
                continue
            variation = item.get_variation(match.id)
            variant_id = self.update_variant(product_id, variant, variation)
            if variant_id is not None:
                matched.append((variant_id, variation))
        return matched

    def save_specs(self, product_id: str, summary: VariationsSummary) -> Dict[str, str]:
        """Returns property name -> spec id for specs that saved."""
        spec_ids: Dict[str, str] = {}
        for name in summary.unique_properties:
            spec_id = f"{product_id}_{name}"
            saved = self._attempt(
                Bucket.SPECS,
                Outcome.UPDATED,
                f"spec; Spec ID: {spec_id}",
                lambda: self.client.save_spec(
                    spec_id,
                    {"ID": spec_id, "Name": name, "Required": True, "DefinesVariant": True},
                ),
            )
            if saved is not None:
                spec_ids[name] = spec_id
        return spec_ids

    def save_spec_options(self, product_id: str, summary: VariationsSummary, spec_ids: Dict[str, str]) -> None:
        for name in summary.unique_properties:
            spec_id = spec_ids.get(name)
            for value in summary.get_distinct_values(name):
                option_id = sanitize(value)
                label = f"spec option; Spec ID: {spec_id or f'{product_id}_{name}'}, Option ID: {option_id}"
                if spec_id is None:
                    self._skip_dependent(Bucket.SPEC_OPTIONS, label, "spec was not saved")
                    continue
                self._attempt(
                    Bucket.SPEC_OPTIONS,
                    Outcome.UPDATED,
                    label,
                    lambda: self.client.save_spec_option(spec_id, option_id, {"ID": option_id, "Value": value}),
                )

    def save_spec_product_assignments(
        self, product_id: str, summary: VariationsSummary, spec_ids: Dict[str, str]
    ) -> None:
        for name in summary.unique_properties:
            spec_id = spec_ids.get(name)
            label = f"spec product assignment; Spec ID: {spec_id or f'{product_id}_{name}'}, Product ID: {product_id}"
            if spec_id is None:
                self._skip_dependent(Bucket.SPEC_PRODUCT_ASSIGNMENTS, label, "spec was not saved")
                continue
            self._attempt(
                Bucket.SPEC_PRODUCT_ASSIGNMENTS,
                Outcome.CREATED,
                label,
                lambda: self.client.save_spec_product_assignment({"SpecID": spec_id, "ProductID": product_id}),
            )

    def list_all_variants(self, product_id: str) -> List[Payload]:
        variants: List[Payload] = []
        page = 1
        while True:
            response = self.client.list_variants(product_id, page=page, page_size=VARIANTS_PAGE_SIZE)
            variants.extend(response.get("Items") or [])
            meta = response.get("Meta") or {}
            if page >= int(meta.get("TotalPages") or 0):
                break
            page += 1
        return variants

    def update_variant(self, product_id: str, variant: Payload, variation: ItemVariation) -> Optional[str]:
        """Patch a matched variant from its source variation; returns the new id."""
        variant_id = sanitize(variation.id)
        partial: Dict[str, Any] = {
            "ID": variant_id,
            "Active": not variation.disabled,
            "Description": variation.disambiguating_description,
            "xp": {"Tags": list(variation.tags)},
        }
        _apply_specifications(partial, variation.specifications)

        if not self.policy.multi_inventory:
            inventory = self.find_inventory(variation.inventory_information_ids, self.policy.inventory_set_id)
            if inventory is not None:
                partial["Inventory"] = {"QuantityAvailable": inventory.quantity}

        schedule_ids = self.variant_price_schedules(variation)
        if schedule_ids:
            partial["xp"]["PriceSchedules"] = schedule_ids

        saved = self._attempt(
            Bucket.VARIANTS,
            Outcome.PATCHED,
            f"variant; Product ID: {product_id}, Variant ID: {variant['ID']} -> {variant_id}",
            lambda: self.client.patch_variant(product_id, variant["ID"], partial),
        )
        return variant_id if saved is not None else None

    def variant_price_schedules(self, variation: ItemVariation) -> List[str]:
        """
        Price schedule ids for a variant. Only the default currency is priced;
        override to price variants in further currencies.
        """
        currency = self.policy.default_currency
        if not currency:
            return []
        prices = [p for p in variation.list_prices if p.currency == currency]
        schedules = self.create_price_schedules(sanitize(variation.id), prices)
        return [s["ID"] for s in schedules]

    def disable_variant(self, product_id: str, variant: Payload) -> None:
        """Generated combinations with no source variation must not be sellable."""
        self._attempt(
            Bucket.VARIANTS,
            Outcome.PATCHED,
            f"unmatched variant (disabling); Product ID: {product_id}, Variant ID: {variant['ID']}",
            lambda: self.client.patch_variant(product_id, variant["ID"], {"ID": variant["ID"], "Active": False}),
        )

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def _inventory_information(self, information_ids: List[str]) -> List[InventoryInformation]:
        found: List[InventoryInformation] = []
        for information_id in information_ids:
            info = self.source.find_entity(EntityKinds.INVENTORY_INFORMATION, information_id)
            if info is None:
                self.logger.warning("Inventory information '%s' not found", information_id)
                continue
            found.append(info)
        return found

    def find_inventory(self, information_ids: List[str], inventory_set_id: Optional[str]) -> Optional[InventoryInformation]:
        """Inventory held in the configured inventory set, if any."""
        if not inventory_set_id:
            return None
        for info in self._inventory_information(information_ids):
            if info.inventory_set_id == inventory_set_id:
                return info
        return None

    def get_or_create_admin_address(self, inventory_set_id: str) -> Optional[Payload]:
        """Inventory sets become admin addresses (locations), cached per run."""
        address_id = sanitize(inventory_set_id)
        cached = self.ctx.admin_addresses.get(address_id)
        if cached is not None:
            return cached

        try:
            address = self.client.get_admin_address(address_id)
        except OrderCloudNotFoundError:
            inventory_set: Optional[InventorySet] = self.source.find_entity(
                EntityKinds.INVENTORY_SET, inventory_set_id
            )
            if inventory_set is None:
                self.result.record(Bucket.ADMIN_ADDRESSES, Outcome.ERRORED)
                self.logger.error("Inventory set '%s' not found", inventory_set_id)
                return None
            body = {
                "ID": address_id,
                "AddressName": inventory_set.display_name,
                "xp": {"Description": inventory_set.description},
            }
            address = self._attempt(
                Bucket.ADMIN_ADDRESSES,
                Outcome.CREATED,
                f"admin address; Address ID: {address_id}",
                lambda: self.client.save_admin_address(address_id, body),
            )
        except OrderCloudError as e:
            self.result.record(Bucket.ADMIN_ADDRESSES, Outcome.ERRORED)
            self.logger.error("Get admin address '%s' failed: %s", address_id, e.detail)
            return None
        else:
            self.result.record(Bucket.ADMIN_ADDRESSES, Outcome.NOT_CHANGED)

        if address is not None:
            self.ctx.admin_addresses[address_id] = address
        return address

    def create_inventory_records(
        self, product_id: str, variant_id: Optional[str], information_ids: List[str]
    ) -> None:
        """One inventory record per inventory set the item (or variant) is stocked in."""
        for info in self._inventory_information(information_ids):
            record_id = sanitize(info.friendly_id)
            label = f"inventory record; Product ID: {product_id}, Variant ID: {variant_id}, Record ID: {record_id}"
            address = self.get_or_create_admin_address(info.inventory_set_id)
            if address is None:
                self._skip_dependent(Bucket.INVENTORY_RECORDS, label, "location was not saved")
                continue

            record = {
                "ID": record_id,
                "AddressID": address.get("ID", sanitize(info.inventory_set_id)),
                "QuantityAvailable": info.quantity,
            }
            if variant_id is None:
                self._attempt(
                    Bucket.INVENTORY_RECORDS,
                    Outcome.UPDATED,
                    label,
                    lambda: self.client.save_inventory_record(product_id, record_id, record),
                )
            else:
                self._attempt(
                    Bucket.INVENTORY_RECORDS,
                    Outcome.UPDATED,
                    label,
                    lambda: self.client.save_variant_inventory_record(
                        product_id, variant_id, record_id, record
                    ),
                )
