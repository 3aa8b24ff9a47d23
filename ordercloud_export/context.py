from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ordercloud_export.clients.base import OrderCloudApi, Payload
from ordercloud_export.identifiers import sanitize
from ordercloud_export.results import ExportRunResult, ProblemObjects
from ordercloud_export.settings import (
    BuyerExportPolicy,
    CatalogExportPolicy,
    ExportRunSettings,
    ProductExportPolicy,
    UserPolicy,
)
from ordercloud_export.source import SourceRepository


@dataclass
class RunContext:
    """
    Everything one export run (or one entity sub-run) works against.

    A sub-run gets its own result and copies of the caches via spawn(); the
    parent takes them back with absorb() once the sub-run has finished.
    """

    client: OrderCloudApi
    source: SourceRepository
    settings: ExportRunSettings = field(default_factory=ExportRunSettings)
    buyer_policies: List[BuyerExportPolicy] = field(default_factory=list)
    catalog_policies: List[CatalogExportPolicy] = field(default_factory=list)
    product_policy: ProductExportPolicy = field(default_factory=ProductExportPolicy)
    user_policy: UserPolicy = field(default_factory=UserPolicy)
    result: ExportRunResult = field(default_factory=ExportRunResult)
    problem_objects: ProblemObjects = field(default_factory=ProblemObjects)
    buyers: Dict[str, Payload] = field(default_factory=dict)
    security_profiles: Dict[str, Payload] = field(default_factory=dict)
    admin_addresses: Dict[str, Payload] = field(default_factory=dict)

    def spawn(self) -> "RunContext":
        return RunContext(
            client=self.client,
            source=self.source,
            settings=self.settings,
            buyer_policies=self.buyer_policies,
            catalog_policies=self.catalog_policies,
            product_policy=self.product_policy,
            user_policy=self.user_policy,
            result=ExportRunResult(),
            problem_objects=ProblemObjects(set(self.problem_objects.products)),
            buyers=dict(self.buyers),
            security_profiles=dict(self.security_profiles),
            admin_addresses=dict(self.admin_addresses),
        )

    def absorb(self, child: "RunContext") -> None:
        self.result.merge(child.result)
        self.problem_objects.merge(child.problem_objects)
        self.buyers.update(child.buyers)
        self.security_profiles.update(child.security_profiles)
        self.admin_addresses.update(child.admin_addresses)

    def buyer_policy(self, buyer_id: str) -> Optional[BuyerExportPolicy]:
        """Policy whose sanitized id is buyer_id."""
        for policy in self.buyer_policies:
            if sanitize(policy.id) == buyer_id:
                return policy
        return None

    def storefront_policy(self, storefront: str) -> Optional[BuyerExportPolicy]:
        for policy in self.buyer_policies:
            if storefront in policy.storefronts:
                return policy
        return None

    def catalog_policy(self, catalog_name: str) -> Optional[CatalogExportPolicy]:
        for policy in self.catalog_policies:
            if policy.catalog_name == catalog_name:
                return policy
        return None
