"""Tests for the OrderCloud HTTP client with a mocked requests session."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from ordercloud_export.clients.ordercloud import OrderCloudClient
from ordercloud_export.errors import (
    ConfigurationError,
    OrderCloudAuthError,
    OrderCloudError,
    OrderCloudNotFoundError,
)
from ordercloud_export.settings import OrderCloudClientPolicy


def _response(status_code, body=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body if body is not None else {}
    resp.content = b"" if body is None else b"{...}"
    resp.text = "" if body is None else str(body)
    return resp


def _token():
    return _response(200, {"access_token": "tok-1", "expires_in": 600})


@pytest.fixture
def policy():
    return OrderCloudClientPolicy(
        api_url="https://api.example.test",
        auth_url="https://auth.example.test",
        client_id="client",
        client_secret="secret",
        calls_per_second=1000,
    )


@pytest.fixture
def session():
    s = MagicMock()
    s.post.return_value = _token()
    return s


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("ordercloud_export.clients.ordercloud.time.sleep") as sleep:
        yield sleep


def test_invalid_policy_is_rejected_before_any_call(session):
    with pytest.raises(ConfigurationError):
        OrderCloudClient(OrderCloudClientPolicy(client_id=""), session=session)

    session.post.assert_not_called()
    session.request.assert_not_called()


def test_token_is_requested_once_with_client_credentials(policy, session):
    session.request.return_value = _response(200, {"ID": "Storefront"})
    client = OrderCloudClient(policy, session=session)

    assert client.get_buyer("Storefront") == {"ID": "Storefront"}
    client.get_buyer("Storefront")

    session.post.assert_called_once()
    url = session.post.call_args.args[0]
    data = session.post.call_args.kwargs["data"]
    assert url == "https://auth.example.test/oauth/token"
    assert data["grant_type"] == "client_credentials"
    assert data["scope"] == "FullAccess"

    method, request_url = session.request.call_args.args
    assert method == "GET"
    assert request_url == "https://api.example.test/v1/buyers/Storefront"
    assert session.request.call_args.kwargs["headers"]["Authorization"] == "Bearer tok-1"


def test_failed_authentication_raises_auth_error(policy, session):
    session.post.return_value = _response(400, {"error": "invalid_client"})
    client = OrderCloudClient(policy, session=session)

    with pytest.raises(OrderCloudAuthError):
        client.get_buyer("Storefront")


def test_404_maps_to_not_found_with_remote_errors(policy, session):
    session.request.return_value = _response(
        404, {"Errors": [{"ErrorCode": "NotFound", "Message": "Buyer not found"}]}
    )
    client = OrderCloudClient(policy, session=session)

    with pytest.raises(OrderCloudNotFoundError) as excinfo:
        client.get_buyer("Storefront")

    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "NotFound: Buyer not found"


def test_400_is_a_plain_ordercloud_error(policy, session):
    session.request.return_value = _response(
        400, {"Errors": [{"ErrorCode": "IdExists", "Message": "Already exists"}]}
    )
    client = OrderCloudClient(policy, session=session)

    with pytest.raises(OrderCloudError) as excinfo:
        client.save_catalog("Habitat_Master", {"ID": "Habitat_Master"})

    assert not isinstance(excinfo.value, OrderCloudNotFoundError)
    assert excinfo.value.errors[0]["ErrorCode"] == "IdExists"


def test_429_is_retried_with_backoff(policy, session, no_sleep):
    session.request.side_effect = [_response(429, {}), _response(200, {"ID": "Shoes"})]
    client = OrderCloudClient(policy, session=session)

    assert client.get_category("Catalog1", "Shoes") == {"ID": "Shoes"}
    assert session.request.call_count == 2
    no_sleep.assert_any_call(3.0)


def test_server_errors_give_up_after_max_retries(policy, session):
    session.request.return_value = _response(503, {})
    client = OrderCloudClient(policy, session=session, max_retries=2)

    with pytest.raises(OrderCloudError) as excinfo:
        client.get_product("1")

    assert excinfo.value.status_code == 503
    assert session.request.call_count == 3


def test_network_errors_are_retried(policy, session):
    session.request.side_effect = [
        requests.exceptions.ConnectionError("reset"),
        _response(200, {"ID": "1"}),
    ]
    client = OrderCloudClient(policy, session=session)

    assert client.get_product("1") == {"ID": "1"}


def test_401_refreshes_token_once(policy, session):
    session.request.side_effect = [_response(401, {}), _response(200, {"ID": "1"})]
    client = OrderCloudClient(policy, session=session)

    assert client.get_product("1") == {"ID": "1"}
    assert session.post.call_count == 2


def test_assignment_with_empty_body_returns_none(policy, session):
    session.request.return_value = _response(204)
    client = OrderCloudClient(policy, session=session)

    assert client.save_catalog_assignment({"CatalogID": "c", "BuyerID": "b"}) is None
    assert session.request.call_args.kwargs["json"] == {"CatalogID": "c", "BuyerID": "b"}


def test_ids_are_url_quoted(policy, session):
    session.request.return_value = _response(200, {})
    client = OrderCloudClient(policy, session=session)

    client.patch_variant("6042567", "a/b", {"Active": False})

    assert session.request.call_args.args[1] == "https://api.example.test/v1/products/6042567/variants/a%2Fb"


def test_generate_variants_overwrites_existing(policy, session):
    session.request.return_value = _response(200, {"ID": "6042567"})
    client = OrderCloudClient(policy, session=session)

    client.generate_variants("6042567")

    assert session.request.call_args.args[1].endswith("/products/6042567/variants/generate")
    assert session.request.call_args.kwargs["params"] == {"overwriteExisting": "true"}
