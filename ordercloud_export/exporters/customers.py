from __future__ import annotations

from typing import Optional

from ordercloud_export.clients.base import Payload
from ordercloud_export.constants import EntityKinds, Errors
from ordercloud_export.errors import ExportAbort, OrderCloudError
from ordercloud_export.exporters.buyers import BuyerExporter, user_group_id
from ordercloud_export.identifiers import sanitize
from ordercloud_export.models import Customer, CustomerAddress
from ordercloud_export.results import Bucket, Outcome


class CustomerExporter(BuyerExporter):
    """Exports a source customer as a buyer user with addresses."""

    def export(self, entity_id: str) -> None:
        customer: Customer = self._find_source_entity(
            EntityKinds.CUSTOMER, entity_id, Bucket.BUYER_USERS, Errors.CUSTOMER_NOT_FOUND
        )

        buyer_id = sanitize(customer.domain)
        policy = self.ctx.buyer_policy(buyer_id)

        self.get_or_create_buyer(buyer_id)

        default_group_id: Optional[str] = None
        if policy is not None:
            saved_groups = self.save_user_groups(buyer_id, policy.currencies)
            if policy.default_currency:
                candidate = user_group_id(buyer_id, policy.default_currency)
                if candidate in saved_groups:
                    default_group_id = candidate
        else:
            self.logger.warning("No buyer policy for '%s'; user groups not exported", buyer_id)

        if self.get_or_create_security_profile(buyer_id) is not None:
            self.assign_security_profile(buyer_id)

        user = self.save_user(buyer_id, customer)

        for address in customer.addresses:
            self.save_address(buyer_id, customer, address, user)

        if default_group_id is not None:
            self._attempt(
                Bucket.BUYER_GROUP_ASSIGNMENTS,
                Outcome.CREATED,
                f"user group assignment; User Group ID: {default_group_id}, User ID: {user['ID']}",
                lambda: self.client.save_user_group_assignment(
                    buyer_id, {"UserGroupID": default_group_id, "UserID": user["ID"]}
                ),
            )

    def build_user(self, customer: Customer) -> Payload:
        user_policy = self.ctx.user_policy
        first_name = customer.first_name if customer.first_name and customer.first_name.strip() else None
        last_name = customer.last_name if customer.last_name and customer.last_name.strip() else None
        return {
            "ID": sanitize(customer.friendly_id),
            "Username": customer.login_name,
            "FirstName": first_name or user_policy.default_first_name,
            "LastName": last_name or user_policy.default_last_name,
            "Email": customer.email,
            "Active": customer.account_status == user_policy.active_account_status,
            "Phone": customer.phone_number,
        }

    def save_user(self, buyer_id: str, customer: Customer) -> Payload:
        """Upsert the buyer user; without it no dependents can be attached."""
        user = self.build_user(customer)
        self.logger.info("Saving buyer user; Buyer ID: %s, User ID: %s", buyer_id, user["ID"])
        try:
            saved = self.client.save_user(buyer_id, user["ID"], user)
        except OrderCloudError as e:
            self.result.record(Bucket.BUYER_USERS, Outcome.ERRORED)
            self.logger.error("Save buyer user '%s' failed: %s", user["ID"], e.detail)
            raise ExportAbort.info(
                Errors.CREATE_BUYER_USER_FAILED,
                f"Save buyer user '{customer.friendly_id}' failed. {e.detail}",
                customer.id,
            ) from e
        self.result.record(Bucket.BUYER_USERS, Outcome.UPDATED)
        return saved or user

    def save_address(
        self, buyer_id: str, customer: Customer, party: CustomerAddress, user: Payload
    ) -> None:
        address_id = sanitize(f"{customer.friendly_id}_{party.address_name}")
        address = {
            "ID": address_id,
            "FirstName": party.first_name,
            "LastName": party.last_name,
            "Street1": party.address1,
            "Street2": party.address2,
            "City": party.city,
            "State": party.state,
            "Zip": party.zip_postal_code,
            "Country": party.country_code,
            "Phone": party.phone_number,
            "AddressName": party.address_name,
            "xp": {"IsPrimary": party.is_primary},
        }
        saved = self._attempt(
            Bucket.BUYER_ADDRESSES,
            Outcome.CREATED,
            f"buyer address; Buyer ID: {buyer_id}, Address ID: {address_id}",
            lambda: self.client.save_address(buyer_id, address_id, address),
        )

        label = f"address assignment; Address ID: {address_id}, User ID: {user['ID']}"
        if saved is None:
            self._skip_dependent(Bucket.BUYER_ADDRESS_ASSIGNMENTS, label, "address was not saved")
            return

        self._attempt(
            Bucket.BUYER_ADDRESS_ASSIGNMENTS,
            Outcome.CREATED,
            label,
            lambda: self.client.save_address_assignment(
                buyer_id,
                {"AddressID": address_id, "UserID": user["ID"], "IsShipping": True, "IsBilling": True},
            ),
        )
