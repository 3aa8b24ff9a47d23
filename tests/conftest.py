"""Shared fixtures: an in-memory OrderCloud and a run context factory."""

import copy
import itertools
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

import pytest

from ordercloud_export.context import RunContext
from ordercloud_export.errors import OrderCloudError, OrderCloudNotFoundError
from ordercloud_export.settings import (
    BuyerExportPolicy,
    CatalogExportPolicy,
    ExportRunSettings,
    ProductExportPolicy,
    UserPolicy,
)
from ordercloud_export.source import JsonSourceRepository


class FakeOrderCloud:
    """
    Get-or-create store that behaves like OrderCloud for the calls the
    exporters make. Failures are injected per method and key with fail().
    """

    def __init__(self) -> None:
        self.store: Dict[str, Dict[Tuple, Dict[str, Any]]] = defaultdict(dict)
        self.assignments: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.calls: List[Tuple[str, Tuple]] = []
        self.failures: Dict[str, Dict[Tuple, int]] = defaultdict(dict)
        self.extra_variants: Dict[str, List[Dict[str, str]]] = defaultdict(list)

    # -- test helpers ---------------------------------------------------

    def fail(self, method: str, *key: str, status: int = 400) -> None:
        """Make method fail for key (no key means every call)."""
        self.failures[method][key or ("*",)] = status

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def seed(self, resource: str, key: Tuple, body: Dict[str, Any]) -> None:
        self.store[resource][key] = copy.deepcopy(body)

    def get_stored(self, resource: str, *key: str) -> Optional[Dict[str, Any]]:
        return self.store[resource].get(key)

    def _check(self, method: str, *key: str) -> None:
        self.calls.append((method, key))
        failures = self.failures.get(method, {})
        status = failures.get(key) or failures.get(("*",))
        if not status:
            return
        errors = [{"ErrorCode": "Fake.Error", "Message": f"{method} rejected"}]
        if status == 404:
            raise OrderCloudNotFoundError(f"{method} not found", 404, errors)
        raise OrderCloudError(f"{method} failed", status, errors)

    def _get(self, resource: str, key: Tuple) -> Dict[str, Any]:
        if key not in self.store[resource]:
            raise OrderCloudNotFoundError(
                f"{resource} {key} not found", 404, [{"ErrorCode": "NotFound", "Message": "Not found"}]
            )
        return copy.deepcopy(self.store[resource][key])

    def _put(self, resource: str, key: Tuple, body: Dict[str, Any]) -> Dict[str, Any]:
        self.store[resource][key] = copy.deepcopy(body)
        return copy.deepcopy(body)

    def _patch(self, resource: str, key: Tuple, partial: Dict[str, Any], new_key: Optional[Tuple] = None) -> Dict[str, Any]:
        current = self._get(resource, key)
        for field, value in partial.items():
            if field == "xp" and isinstance(value, dict):
                current.setdefault("xp", {}).update(value)
            else:
                current[field] = value
        del self.store[resource][key]
        self.store[resource][new_key or key] = current
        return copy.deepcopy(current)

    def _assign(self, resource: str, body: Dict[str, Any]) -> None:
        self.assignments[resource].append(copy.deepcopy(body))

    # -- buyers ---------------------------------------------------------

    def get_buyer(self, buyer_id):
        self._check("get_buyer", buyer_id)
        return self._get("buyers", (buyer_id,))

    def save_buyer(self, buyer_id, buyer):
        self._check("save_buyer", buyer_id)
        return self._put("buyers", (buyer_id,), buyer)

    def patch_buyer(self, buyer_id, partial):
        self._check("patch_buyer", buyer_id)
        return self._patch("buyers", (buyer_id,), partial)

    def get_security_profile(self, profile_id):
        self._check("get_security_profile", profile_id)
        return self._get("security_profiles", (profile_id,))

    def save_security_profile(self, profile_id, profile):
        self._check("save_security_profile", profile_id)
        return self._put("security_profiles", (profile_id,), profile)

    def save_security_profile_assignment(self, assignment):
        self._check("save_security_profile_assignment", assignment["BuyerID"])
        self._assign("security_profile", assignment)

    def save_user_group(self, buyer_id, group_id, group):
        self._check("save_user_group", buyer_id, group_id)
        return self._put("user_groups", (buyer_id, group_id), group)

    def save_user_group_assignment(self, buyer_id, assignment):
        self._check("save_user_group_assignment", buyer_id, assignment["UserID"])
        self._assign("user_group", dict(assignment, BuyerID=buyer_id))

    def save_user(self, buyer_id, user_id, user):
        self._check("save_user", buyer_id, user_id)
        return self._put("users", (buyer_id, user_id), user)

    def save_address(self, buyer_id, address_id, address):
        self._check("save_address", buyer_id, address_id)
        return self._put("addresses", (buyer_id, address_id), address)

    def save_address_assignment(self, buyer_id, assignment):
        self._check("save_address_assignment", buyer_id, assignment["AddressID"])
        self._assign("address", dict(assignment, BuyerID=buyer_id))

    def get_admin_address(self, address_id):
        self._check("get_admin_address", address_id)
        return self._get("admin_addresses", (address_id,))

    def save_admin_address(self, address_id, address):
        self._check("save_admin_address", address_id)
        return self._put("admin_addresses", (address_id,), address)

    def save_locale(self, locale_id, locale):
        self._check("save_locale", locale_id)
        return self._put("locales", (locale_id,), locale)

    def save_locale_assignment(self, assignment):
        self._check("save_locale_assignment", assignment["LocaleID"])
        self._assign("locale", assignment)

    # -- catalogs and categories ------------------------------------------

    def get_catalog(self, catalog_id):
        self._check("get_catalog", catalog_id)
        return self._get("catalogs", (catalog_id,))

    def save_catalog(self, catalog_id, catalog):
        self._check("save_catalog", catalog_id)
        return self._put("catalogs", (catalog_id,), catalog)

    def patch_catalog(self, catalog_id, partial):
        self._check("patch_catalog", catalog_id)
        return self._patch("catalogs", (catalog_id,), partial)

    def save_catalog_assignment(self, assignment):
        self._check("save_catalog_assignment", assignment["CatalogID"])
        self._assign("catalog", assignment)

    def save_catalog_product_assignment(self, assignment):
        self._check("save_catalog_product_assignment", assignment["ProductID"])
        self._assign("catalog_product", assignment)

    def get_category(self, catalog_id, category_id):
        self._check("get_category", catalog_id, category_id)
        return self._get("categories", (catalog_id, category_id))

    def save_category(self, catalog_id, category_id, category):
        self._check("save_category", catalog_id, category_id)
        return self._put("categories", (catalog_id, category_id), category)

    def patch_category(self, catalog_id, category_id, partial):
        self._check("patch_category", catalog_id, category_id)
        return self._patch("categories", (catalog_id, category_id), partial)

    def save_category_product_assignment(self, catalog_id, assignment):
        self._check("save_category_product_assignment", assignment["ProductID"])
        self._assign("category_product", dict(assignment, CatalogID=catalog_id))

    # -- products -----------------------------------------------------------

    def get_product(self, product_id):
        self._check("get_product", product_id)
        return self._get("products", (product_id,))

    def save_product(self, product_id, product):
        self._check("save_product", product_id)
        return self._put("products", (product_id,), product)

    def patch_product(self, product_id, partial):
        self._check("patch_product", product_id)
        return self._patch("products", (product_id,), partial)

    def save_product_assignment(self, assignment):
        self._check("save_product_assignment", assignment["ProductID"])
        self._assign("product", assignment)

    def save_spec(self, spec_id, spec):
        self._check("save_spec", spec_id)
        return self._put("specs", (spec_id,), spec)

    def save_spec_option(self, spec_id, option_id, option):
        self._check("save_spec_option", spec_id, option_id)
        return self._put("spec_options", (spec_id, option_id), option)

    def save_spec_product_assignment(self, assignment):
        self._check("save_spec_product_assignment", assignment["SpecID"])
        if assignment not in self.assignments["spec_product"]:
            self._assign("spec_product", assignment)

    def generate_variants(self, product_id, overwrite_existing=True):
        self._check("generate_variants", product_id)
        if overwrite_existing:
            for key in [k for k in self.store["variants"] if k[0] == product_id]:
                del self.store["variants"][key]

        specs = [a["SpecID"] for a in self.assignments["spec_product"] if a["ProductID"] == product_id]
        option_lists = []
        for spec_id in specs:
            name = self.store["specs"][(spec_id,)]["Name"]
            options = [
                {"SpecID": spec_id, "Name": name, "OptionID": key[1], "Value": body["Value"]}
                for key, body in self.store["spec_options"].items()
                if key[0] == spec_id
            ]
            option_lists.append(options)

        combos = [list(c) for c in itertools.product(*option_lists)] if option_lists else []
        for extra in self.extra_variants.get(product_id, []):
            combos.append(
                [{"SpecID": f"{product_id}_{n}", "Name": n, "OptionID": v, "Value": v} for n, v in extra.items()]
            )

        for combo in combos:
            variant_id = "-".join([product_id] + [s["OptionID"] for s in combo])
            self.store["variants"][(product_id, variant_id)] = {
                "ID": variant_id,
                "Active": False,
                "Specs": combo,
            }
        return self._get("products", (product_id,))

    def list_variants(self, product_id, page=1, page_size=100):
        self._check("list_variants", product_id)
        items = [copy.deepcopy(v) for k, v in self.store["variants"].items() if k[0] == product_id]
        total_pages = (len(items) + page_size - 1) // page_size
        start = (page - 1) * page_size
        return {
            "Meta": {"Page": page, "PageSize": page_size, "TotalCount": len(items), "TotalPages": total_pages},
            "Items": items[start:start + page_size],
        }

    def patch_variant(self, product_id, variant_id, partial):
        self._check("patch_variant", product_id, variant_id)
        new_id = partial.get("ID", variant_id)
        return self._patch("variants", (product_id, variant_id), partial, new_key=(product_id, new_id))

    def save_price_schedule(self, schedule_id, schedule):
        self._check("save_price_schedule", schedule_id)
        return self._put("price_schedules", (schedule_id,), schedule)

    def save_inventory_record(self, product_id, record_id, record):
        self._check("save_inventory_record", product_id, record_id)
        return self._put("inventory_records", (product_id, record_id), record)

    def save_variant_inventory_record(self, product_id, variant_id, record_id, record):
        self._check("save_variant_inventory_record", product_id, variant_id, record_id)
        return self._put("variant_inventory_records", (product_id, variant_id, record_id), record)


@pytest.fixture
def oc():
    return FakeOrderCloud()


@pytest.fixture
def source():
    return JsonSourceRepository()


@pytest.fixture
def make_ctx(oc, source):
    """Build a RunContext over the fake client and source."""

    def _make(
        settings: Optional[ExportRunSettings] = None,
        buyer_policies: Optional[List[BuyerExportPolicy]] = None,
        catalog_policies: Optional[List[CatalogExportPolicy]] = None,
        product_policy: Optional[ProductExportPolicy] = None,
    ) -> RunContext:
        return RunContext(
            client=oc,
            source=source,
            settings=settings or ExportRunSettings(),
            buyer_policies=buyer_policies or [],
            catalog_policies=catalog_policies or [],
            product_policy=product_policy or ProductExportPolicy(),
            user_policy=UserPolicy(),
        )

    return _make
