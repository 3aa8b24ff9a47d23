"""Tests for customer (buyer user) export."""

import pytest

from ordercloud_export.constants import EntityKinds
from ordercloud_export.errors import ExportAbort
from ordercloud_export.exporters.customers import CustomerExporter
from ordercloud_export.models import Customer, CustomerAddress
from ordercloud_export.results import Bucket
from ordercloud_export.settings import BuyerExportPolicy


@pytest.fixture
def customer(source):
    c = Customer(
        friendly_id="c1d2e3",
        domain="Storefront",
        login_name="storefront\\jane@example.com",
        email="jane@example.com",
        first_name="Jane",
        last_name="",
        account_status="ActiveAccount",
        phone_number="555-0100",
        addresses=[
            CustomerAddress(address_name="Home", address1="1 Main St", city="Austin", is_primary=True),
            CustomerAddress(address_name="Work Place", address1="2 Side St", city="Austin"),
        ],
    )
    source.add(EntityKinds.CUSTOMER, c)
    return c


@pytest.fixture
def policies():
    return [BuyerExportPolicy(id="Storefront", currencies=["USD", "EUR"], default_currency="USD")]


def test_customer_becomes_user_with_addresses_and_group(oc, make_ctx, customer, policies):
    ctx = make_ctx(buyer_policies=policies)

    CustomerExporter(ctx).export(customer.id)

    user = oc.get_stored("users", "Storefront", "c1d2e3")
    assert user["Username"] == "storefront\\jane@example.com"
    assert user["FirstName"] == "Jane"
    assert user["LastName"] == "LastName"
    assert user["Active"] is True
    assert user["Phone"] == "555-0100"

    home = oc.get_stored("addresses", "Storefront", "c1d2e3_Home")
    assert home["Street1"] == "1 Main St"
    assert home["xp"] == {"IsPrimary": True}
    assert oc.get_stored("addresses", "Storefront", "c1d2e3_Work_Place") is not None
    assert all(a["IsShipping"] and a["IsBilling"] for a in oc.assignments["address"])

    assert oc.assignments["user_group"] == [
        {"UserGroupID": "Storefront_USD", "UserID": "c1d2e3", "BuyerID": "Storefront"}
    ]

    result = ctx.result
    assert result[Bucket.BUYERS].created == 1
    assert result[Bucket.BUYER_USERS].updated == 1
    assert result[Bucket.BUYER_ADDRESSES].created == 2
    assert result[Bucket.BUYER_ADDRESS_ASSIGNMENTS].created == 2
    assert result[Bucket.BUYER_GROUP_ASSIGNMENTS].created == 1
    assert result.is_consistent()


def test_inactive_account_status(oc, make_ctx, customer, policies):
    customer.account_status = "InactiveAccount"
    ctx = make_ctx(buyer_policies=policies)

    CustomerExporter(ctx).export(customer.id)

    assert oc.get_stored("users", "Storefront", "c1d2e3")["Active"] is False


def test_user_failure_aborts_before_addresses(oc, make_ctx, customer, policies):
    oc.fail("save_user", "Storefront", "c1d2e3")
    ctx = make_ctx(buyer_policies=policies)

    with pytest.raises(ExportAbort) as excinfo:
        CustomerExporter(ctx).export(customer.id)

    assert not excinfo.value.is_error
    assert ctx.result[Bucket.BUYER_USERS].errored == 1
    assert oc.count("save_address") == 0


def test_address_failure_skips_its_assignment_only(oc, make_ctx, customer, policies):
    oc.fail("save_address", "Storefront", "c1d2e3_Home")
    ctx = make_ctx(buyer_policies=policies)

    CustomerExporter(ctx).export(customer.id)

    assert ctx.result[Bucket.BUYER_ADDRESSES].errored == 1
    assert ctx.result[Bucket.BUYER_ADDRESSES].created == 1
    assert ctx.result[Bucket.BUYER_ADDRESS_ASSIGNMENTS].skipped == 1
    assert ctx.result[Bucket.BUYER_ADDRESS_ASSIGNMENTS].created == 1
    assert ctx.result.is_consistent()


def test_no_policy_means_no_group_assignment(oc, make_ctx, customer):
    ctx = make_ctx()

    CustomerExporter(ctx).export(customer.id)

    assert ctx.result[Bucket.BUYER_GROUPS].processed == 0
    assert ctx.result[Bucket.BUYER_GROUP_ASSIGNMENTS].processed == 0
    assert ctx.result[Bucket.BUYER_USERS].updated == 1


def test_missing_customer_is_a_genuine_error(make_ctx):
    ctx = make_ctx()

    with pytest.raises(ExportAbort) as excinfo:
        CustomerExporter(ctx).export("Entity-Customer-missing")

    assert excinfo.value.is_error
    assert ctx.result[Bucket.BUYER_USERS].errored == 1


def test_user_and_address_ids_are_sanitized(oc, make_ctx, source, policies):
    c = Customer(
        friendly_id="a1b2-c3@x",
        domain="Storefront",
        login_name="storefront\\a1b2@example.com",
        account_status="ActiveAccount",
        addresses=[CustomerAddress(address_name="Home")],
    )
    source.add(EntityKinds.CUSTOMER, c)
    ctx = make_ctx(buyer_policies=policies)

    CustomerExporter(ctx).export(c.id)

    user = oc.get_stored("users", "Storefront", "a1b2_c3_x")
    assert user["ID"] == "a1b2_c3_x"
    assert oc.get_stored("users", "Storefront", "a1b2-c3@x") is None
    assert oc.get_stored("addresses", "Storefront", "a1b2_c3_x_Home") is not None
    assert oc.assignments["address"][0]["UserID"] == "a1b2_c3_x"
    assert oc.assignments["user_group"][0]["UserID"] == "a1b2_c3_x"
