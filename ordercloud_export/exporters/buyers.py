from __future__ import annotations

from typing import Iterable, List, Optional

from ordercloud_export.clients.base import Payload
from ordercloud_export.constants import SHOPPER_ROLES, EntityKinds, Errors
from ordercloud_export.errors import ExportAbort, OrderCloudError, OrderCloudNotFoundError
from ordercloud_export.exporters.base import EntityExporter
from ordercloud_export.identifiers import sanitize
from ordercloud_export.results import Bucket, Outcome


def user_group_id(buyer_id: str, currency: str) -> str:
    return f"{buyer_id}_{currency}"


def locale_id(currency: str) -> str:
    return f"Locale_{currency}"


class BuyerExporter(EntityExporter):
    """
    Buyer (tenant) export: the buyer, its security profile, one user group
    per currency and one locale per currency bound to that currency's group.
    """

    def export(self, entity_id: str) -> None:
        """Export the buyer declared by the buyer policy with this id."""
        policy = self.ctx.buyer_policy(sanitize(entity_id))
        shop = self.source.find_entity(EntityKinds.SHOP, entity_id)
        if policy is None or shop is None:
            self.result.record(Bucket.BUYERS, Outcome.ERRORED)
            self.logger.error("Shop '%s' not found", entity_id)
            raise ExportAbort.error(Errors.SHOP_NOT_FOUND, f"Shop '{entity_id}' not found.", entity_id)

        buyer_id = sanitize(policy.id)
        self.get_or_create_buyer(buyer_id)

        profile = self.get_or_create_security_profile(buyer_id)
        if profile is not None:
            self.assign_security_profile(buyer_id)

        currencies = policy.currencies or shop.currencies
        groups = self.save_user_groups(buyer_id, currencies)
        self.save_locales(buyer_id, currencies, groups)

    def export_storefront(self, storefront: str) -> None:
        """User groups and locales for the currencies of one storefront."""
        shop = self.source.find_entity(EntityKinds.SHOP, storefront)
        policy = self.ctx.storefront_policy(storefront)
        if shop is None or policy is None:
            self.result.record(Bucket.BUYER_GROUPS, Outcome.ERRORED)
            self.logger.error("Storefront '%s' not found", storefront)
            raise ExportAbort.error(
                Errors.SHOP_NOT_FOUND, f"Storefront '{storefront}' not found.", storefront
            )

        buyer_id = sanitize(policy.id)
        self.get_or_create_buyer(buyer_id)

        groups = self.save_user_groups(buyer_id, shop.currencies)
        self.save_locales(buyer_id, shop.currencies, groups)

    # ------------------------------------------------------------------
    # Buyer and security profile
    # ------------------------------------------------------------------

    def get_or_create_buyer(self, buyer_id: str) -> Payload:
        cached = self.ctx.buyers.get(buyer_id)
        if cached is not None:
            return cached

        buyer = self._get_or_create(
            Bucket.BUYERS,
            f"buyer; Buyer ID: {buyer_id}",
            get=lambda: self.client.get_buyer(buyer_id),
            build=lambda existing: {"ID": buyer_id, "Active": True, "Name": buyer_id},
            save=lambda body: self.client.save_buyer(buyer_id, body),
            patch=lambda body: self.client.patch_buyer(buyer_id, body),
            get_failed_code=Errors.GET_BUYER_FAILED,
            create_failed_code=Errors.CREATE_BUYER_FAILED,
            entity_id=buyer_id,
        )
        self.ctx.buyers[buyer_id] = buyer
        return buyer

    def get_or_create_security_profile(self, profile_id: str) -> Optional[Payload]:
        """
        Security profile with the default shopper roles. A failure is counted
        and returns None; the buyer itself still stands.
        """
        cached = self.ctx.security_profiles.get(profile_id)
        if cached is not None:
            return cached

        try:
            profile = self.client.get_security_profile(profile_id)
        except OrderCloudNotFoundError:
            profile = self._attempt(
                Bucket.SECURITY_PROFILES,
                Outcome.CREATED,
                f"security profile; Profile ID: {profile_id}",
                lambda: self.client.save_security_profile(
                    profile_id,
                    {"ID": profile_id, "Name": profile_id, "Roles": list(SHOPPER_ROLES)},
                ),
            )
        except OrderCloudError as e:
            self.result.record(Bucket.SECURITY_PROFILES, Outcome.ERRORED)
            self.logger.error("Get security profile '%s' failed: %s", profile_id, e.detail)
            return None
        else:
            self.result.record(Bucket.SECURITY_PROFILES, Outcome.NOT_CHANGED)

        if profile is not None:
            self.ctx.security_profiles[profile_id] = profile
        return profile

    def assign_security_profile(self, buyer_id: str) -> None:
        self._attempt(
            Bucket.SECURITY_PROFILE_ASSIGNMENTS,
            Outcome.CREATED,
            f"security profile assignment; Buyer ID: {buyer_id}",
            lambda: self.client.save_security_profile_assignment(
                {"SecurityProfileID": buyer_id, "BuyerID": buyer_id}
            ),
        )

    # ------------------------------------------------------------------
    # User groups and locales
    # ------------------------------------------------------------------

    def save_user_groups(self, buyer_id: str, currencies: Iterable[str]) -> List[str]:
        """Upsert one user group per currency; returns the ids that saved."""
        saved: List[str] = []
        for currency in currencies:
            group_id = user_group_id(buyer_id, currency)
            group = self._attempt(
                Bucket.BUYER_GROUPS,
                Outcome.UPDATED,
                f"user group; Buyer ID: {buyer_id}, User Group ID: {group_id}",
                lambda: self.client.save_user_group(
                    buyer_id, group_id, {"ID": group_id, "Name": group_id}
                ),
            )
            if group is not None:
                saved.append(group_id)
        return saved

    def save_locales(self, buyer_id: str, currencies: Iterable[str], saved_groups: List[str]) -> None:
        """
        One locale per currency, assigned to the buyer for that currency's
        user group. The assignment is skipped if either side failed to save.
        """
        for currency in currencies:
            loc_id = locale_id(currency)
            group_id = user_group_id(buyer_id, currency)
            locale = self._attempt(
                Bucket.LOCALES,
                Outcome.UPDATED,
                f"locale; Locale ID: {loc_id}",
                lambda: self.client.save_locale(loc_id, {"ID": loc_id, "Currency": currency}),
            )

            label = f"locale assignment; Locale ID: {loc_id}, Buyer ID: {buyer_id}, User Group ID: {group_id}"
            if locale is None:
                self._skip_dependent(Bucket.LOCALE_ASSIGNMENTS, label, "locale was not saved")
                continue
            if group_id not in saved_groups:
                self._skip_dependent(Bucket.LOCALE_ASSIGNMENTS, label, "user group was not saved")
                continue

            self._attempt(
                Bucket.LOCALE_ASSIGNMENTS,
                Outcome.CREATED,
                label,
                lambda: self.client.save_locale_assignment(
                    {"LocaleID": loc_id, "BuyerID": buyer_id, "UserGroupID": group_id}
                ),
            )
