from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from ordercloud_export.errors import RunMessage


class Outcome(str, Enum):
    """Terminal outcome of one attempt against a destination resource."""

    NOT_CHANGED = "ItemsNotChanged"
    CREATED = "ItemsCreated"
    UPDATED = "ItemsUpdated"
    PATCHED = "ItemsPatched"
    SKIPPED = "ItemsSkipped"
    ERRORED = "ItemsErrored"


class Bucket(str, Enum):
    """Destination resource categories counted by a run."""

    ADMIN_ADDRESSES = "AdminAddresses"
    BUYER_ADDRESS_ASSIGNMENTS = "BuyerAddressAssignments"
    BUYER_ADDRESSES = "BuyerAddresses"
    BUYERS = "Buyers"
    BUYER_GROUP_ASSIGNMENTS = "BuyerGroupAssignments"
    BUYER_GROUPS = "BuyerGroups"
    BUYER_USERS = "BuyerUsers"
    CATALOGS = "Catalogs"
    CATALOG_ASSIGNMENTS = "CatalogAssignments"
    CATALOG_PRODUCT_ASSIGNMENTS = "CatalogProductAssignments"
    CATEGORIES = "Categories"
    CATEGORY_ASSIGNMENTS = "CategoryAssignments"
    CATEGORY_PRODUCT_ASSIGNMENTS = "CategoryProductAssignments"
    LOCALES = "Locales"
    LOCALE_ASSIGNMENTS = "LocaleAssignments"
    PRODUCT_ASSIGNMENTS = "ProductAssignments"
    PRODUCTS = "Products"
    SECURITY_PROFILE_ASSIGNMENTS = "SecurityProfileAssignments"
    SECURITY_PROFILES = "SecurityProfiles"
    SPECS = "Specs"
    SPEC_OPTIONS = "SpecOptions"
    SPEC_PRODUCT_ASSIGNMENTS = "SpecProductAssignments"
    VARIANTS = "Variants"
    PRICE_SCHEDULES = "PriceSchedules"
    INVENTORY_RECORDS = "InventoryRecords"


_OUTCOME_ATTRS = {
    Outcome.NOT_CHANGED: "not_changed",
    Outcome.CREATED: "created",
    Outcome.UPDATED: "updated",
    Outcome.PATCHED: "patched",
    Outcome.SKIPPED: "skipped",
    Outcome.ERRORED: "errored",
}


@dataclass
class ExportObject:
    """Counters for one resource category."""

    processed: int = 0
    not_changed: int = 0
    created: int = 0
    updated: int = 0
    patched: int = 0
    skipped: int = 0
    errored: int = 0

    def record_outcome(self, outcome: Outcome) -> None:
        attr = _OUTCOME_ATTRS[outcome]
        setattr(self, attr, getattr(self, attr) + 1)

    @property
    def outcomes(self) -> int:
        return (
            self.not_changed
            + self.created
            + self.updated
            + self.patched
            + self.skipped
            + self.errored
        )

    def is_consistent(self) -> bool:
        return self.processed == self.outcomes

    def merge(self, other: "ExportObject") -> None:
        self.processed += other.processed
        for attr in _OUTCOME_ATTRS.values():
            setattr(self, attr, getattr(self, attr) + getattr(other, attr))

    def to_dict(self) -> Dict[str, int]:
        data = {"ItemsProcessed": self.processed}
        for outcome, attr in _OUTCOME_ATTRS.items():
            data[outcome.value] = getattr(self, attr)
        return data


def _empty_buckets() -> Dict[Bucket, ExportObject]:
    return {bucket: ExportObject() for bucket in Bucket}


@dataclass
class ExportRunResult:
    """
    Aggregated counters for a run, one ExportObject per Bucket.

    Sub-runs get their own result and are merged into the parent by summing.
    """

    buckets: Dict[Bucket, ExportObject] = field(default_factory=_empty_buckets)
    messages: List[RunMessage] = field(default_factory=list)
    aborted: bool = False
    aborted_stage: Optional[str] = None

    def __getitem__(self, bucket: Bucket) -> ExportObject:
        return self.buckets[bucket]

    def record_processed(self, bucket: Bucket) -> None:
        self.buckets[bucket].processed += 1

    def record_outcome(self, bucket: Bucket, outcome: Outcome) -> None:
        self.buckets[bucket].record_outcome(outcome)

    def record(self, bucket: Bucket, outcome: Outcome) -> None:
        """Count one attempt and its terminal outcome."""
        self.record_processed(bucket)
        self.record_outcome(bucket, outcome)

    def merge(self, other: "ExportRunResult") -> None:
        for bucket, counters in other.buckets.items():
            self.buckets[bucket].merge(counters)
        self.messages.extend(other.messages)

    def inconsistent_buckets(self) -> List[Bucket]:
        return [b for b, counters in self.buckets.items() if not counters.is_consistent()]

    def is_consistent(self) -> bool:
        return not self.inconsistent_buckets()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {b.value: c.to_dict() for b, c in self.buckets.items()}
        data["Messages"] = [m.to_dict() for m in self.messages]
        data["Aborted"] = self.aborted
        data["AbortedStage"] = self.aborted_stage
        return data


@dataclass
class ProblemObjects:
    """Source entities that failed irrecoverably this run."""

    products: Set[str] = field(default_factory=set)

    def add_product(self, product_id: str) -> None:
        self.products.add(product_id)

    def has_product(self, product_id: str) -> bool:
        return product_id in self.products

    def merge(self, other: "ProblemObjects") -> None:
        self.products |= other.products
