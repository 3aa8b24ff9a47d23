from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from ordercloud_export.clients.base import Payload
from ordercloud_export.errors import (
    ConfigurationError,
    OrderCloudAuthError,
    OrderCloudError,
    OrderCloudNotFoundError,
)
from ordercloud_export.settings import OrderCloudClientPolicy

logger = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)


def _q(value: str) -> str:
    return quote(value, safe="")


class OrderCloudClient:
    """OrderCloud REST v1 client using the client-credentials grant."""

    def __init__(
        self,
        policy: OrderCloudClientPolicy,
        session: Optional[requests.Session] = None,
        max_retries: int = 3,
    ) -> None:
        if not policy.is_valid():
            raise ConfigurationError(
                "OrderCloud client policy requires api_url, auth_url, client_id and client_secret"
            )
        self.policy = policy
        self.session = session or requests.Session()
        self.max_retries = max_retries
        self.min_interval = 1.0 / max(0.1, policy.calls_per_second)
        self._last_call_ts = 0.0
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _sleep_for_rate_limit(self) -> None:
        now = time.time()
        elapsed = now - self._last_call_ts
        if elapsed < self.min_interval:
            time.sleep(self.min_interval - elapsed)
        self._last_call_ts = time.time()

    def _url(self, path: str) -> str:
        return f"{self.policy.api_url.rstrip('/')}/v1/{path.lstrip('/')}"

    def authenticate(self) -> str:
        """Fetch (or reuse) an access token."""
        if self._token and time.time() < self._token_expires_at:
            return self._token

        url = f"{self.policy.auth_url.rstrip('/')}/oauth/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": self.policy.client_id,
            "client_secret": self.policy.client_secret,
            "scope": self.policy.scope,
        }
        try:
            resp = self.session.post(url, data=data, timeout=self.policy.timeout)
        except requests.exceptions.RequestException as e:
            raise OrderCloudError(f"OrderCloud authentication failed: {e}") from e

        if resp.status_code != 200:
            raise OrderCloudAuthError(
                f"OrderCloud authentication failed: {resp.status_code}",
                status_code=resp.status_code,
                response_body=resp.text,
            )

        body = resp.json()
        self._token = body["access_token"]
        # Refresh a minute early.
        self._token_expires_at = time.time() + max(0, int(body.get("expires_in", 600)) - 60)
        logger.debug("OrderCloud token acquired for client %s", self.policy.client_id)
        return self._token

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.authenticate()}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _raise_for_status(self, method: str, path: str, resp: requests.Response) -> None:
        try:
            details = resp.json()
        except ValueError:
            details = resp.text
        errors = details.get("Errors") if isinstance(details, dict) else None
        message = f"OrderCloud {method} {path} failed: {resp.status_code} {details}"

        if resp.status_code == 404:
            raise OrderCloudNotFoundError(message, resp.status_code, errors, resp.text)
        if resp.status_code in (401, 403):
            raise OrderCloudAuthError(message, resp.status_code, errors, resp.text)
        raise OrderCloudError(message, resp.status_code, errors, resp.text)

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Payload] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send one API call with throttling and retry on 429/5xx and network
        errors. Returns the decoded body, or None for 204 responses.
        """
        url = self._url(path)
        backoff = 1.0
        refreshed = False
        attempt = 0

        while True:
            attempt += 1
            self._sleep_for_rate_limit()
            try:
                resp = self.session.request(
                    method,
                    url,
                    headers=self._headers(),
                    json=json,
                    params=params,
                    timeout=self.policy.timeout,
                )
            except requests.exceptions.RequestException as e:
                logger.warning(
                    "OrderCloud %s failed (attempt %d/%d) %s: %s",
                    method,
                    attempt,
                    self.max_retries + 1,
                    url,
                    e,
                )
                if attempt > self.max_retries:
                    raise OrderCloudError(f"OrderCloud {method} {path} failed: {e}") from e
                time.sleep(backoff)
                backoff = min(backoff * 2, 10.0)
                continue

            if resp.status_code == 401 and not refreshed:
                # Token may have been revoked; fetch a new one once.
                refreshed = True
                self._token = None
                continue

            if resp.status_code in RETRY_STATUSES and attempt <= self.max_retries:
                logger.warning(
                    "OrderCloud %s %s returned %s (attempt %d/%d)",
                    method,
                    url,
                    resp.status_code,
                    attempt,
                    self.max_retries + 1,
                )
                time.sleep(max(backoff, 3.0) if resp.status_code == 429 else backoff)
                backoff = min(backoff * 2, 10.0)
                continue

            if resp.status_code >= 400:
                self._raise_for_status(method, path, resp)

            if resp.status_code == 204 or not resp.content:
                return None
            return resp.json()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", path, params=params)

    def _put(self, path: str, body: Payload) -> Any:
        return self._request("PUT", path, json=body)

    def _patch(self, path: str, body: Payload) -> Any:
        return self._request("PATCH", path, json=body)

    def _post(self, path: str, body: Optional[Payload] = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("POST", path, json=body, params=params)

    # ------------------------------------------------------------------
    # Buyers and security
    # ------------------------------------------------------------------

    def get_buyer(self, buyer_id: str) -> Payload:
        return self._get(f"buyers/{_q(buyer_id)}")

    def save_buyer(self, buyer_id: str, buyer: Payload) -> Payload:
        return self._put(f"buyers/{_q(buyer_id)}", buyer)

    def patch_buyer(self, buyer_id: str, partial: Payload) -> Payload:
        return self._patch(f"buyers/{_q(buyer_id)}", partial)

    def get_security_profile(self, profile_id: str) -> Payload:
        return self._get(f"securityprofiles/{_q(profile_id)}")

    def save_security_profile(self, profile_id: str, profile: Payload) -> Payload:
        return self._put(f"securityprofiles/{_q(profile_id)}", profile)

    def save_security_profile_assignment(self, assignment: Payload) -> None:
        self._post("securityprofiles/assignments", assignment)

    def save_user_group(self, buyer_id: str, group_id: str, group: Payload) -> Payload:
        return self._put(f"buyers/{_q(buyer_id)}/usergroups/{_q(group_id)}", group)

    def save_user_group_assignment(self, buyer_id: str, assignment: Payload) -> None:
        self._post(f"buyers/{_q(buyer_id)}/usergroups/assignments", assignment)

    def save_user(self, buyer_id: str, user_id: str, user: Payload) -> Payload:
        return self._put(f"buyers/{_q(buyer_id)}/users/{_q(user_id)}", user)

    def save_address(self, buyer_id: str, address_id: str, address: Payload) -> Payload:
        return self._put(f"buyers/{_q(buyer_id)}/addresses/{_q(address_id)}", address)

    def save_address_assignment(self, buyer_id: str, assignment: Payload) -> None:
        self._post(f"buyers/{_q(buyer_id)}/addresses/assignments", assignment)

    def get_admin_address(self, address_id: str) -> Payload:
        return self._get(f"addresses/{_q(address_id)}")

    def save_admin_address(self, address_id: str, address: Payload) -> Payload:
        return self._put(f"addresses/{_q(address_id)}", address)

    def save_locale(self, locale_id: str, locale: Payload) -> Payload:
        return self._put(f"locales/{_q(locale_id)}", locale)

    def save_locale_assignment(self, assignment: Payload) -> None:
        self._post("locales/assignments", assignment)

    # ------------------------------------------------------------------
    # Catalogs and categories
    # ------------------------------------------------------------------

    def get_catalog(self, catalog_id: str) -> Payload:
        return self._get(f"catalogs/{_q(catalog_id)}")

    def save_catalog(self, catalog_id: str, catalog: Payload) -> Payload:
        return self._put(f"catalogs/{_q(catalog_id)}", catalog)

    def patch_catalog(self, catalog_id: str, partial: Payload) -> Payload:
        return self._patch(f"catalogs/{_q(catalog_id)}", partial)

    def save_catalog_assignment(self, assignment: Payload) -> None:
        self._post("catalogs/assignments", assignment)

    def save_catalog_product_assignment(self, assignment: Payload) -> None:
        self._post("catalogs/productassignments", assignment)

    def get_category(self, catalog_id: str, category_id: str) -> Payload:
        return self._get(f"catalogs/{_q(catalog_id)}/categories/{_q(category_id)}")

    def save_category(self, catalog_id: str, category_id: str, category: Payload) -> Payload:
        return self._put(f"catalogs/{_q(catalog_id)}/categories/{_q(category_id)}", category)

    def patch_category(self, catalog_id: str, category_id: str, partial: Payload) -> Payload:
        return self._patch(f"catalogs/{_q(catalog_id)}/categories/{_q(category_id)}", partial)

    def save_category_product_assignment(self, catalog_id: str, assignment: Payload) -> None:
        self._post(f"catalogs/{_q(catalog_id)}/categories/productassignments", assignment)

    # ------------------------------------------------------------------
    # Products, specs, variants
    # ------------------------------------------------------------------

    def get_product(self, product_id: str) -> Payload:
        return self._get(f"products/{_q(product_id)}")

    def save_product(self, product_id: str, product: Payload) -> Payload:
        return self._put(f"products/{_q(product_id)}", product)

    def patch_product(self, product_id: str, partial: Payload) -> Payload:
        return self._patch(f"products/{_q(product_id)}", partial)

    def save_product_assignment(self, assignment: Payload) -> None:
        self._post("products/assignments", assignment)

    def generate_variants(self, product_id: str, overwrite_existing: bool = True) -> Payload:
        return self._post(
            f"products/{_q(product_id)}/variants/generate",
            params={"overwriteExisting": str(overwrite_existing).lower()},
        )

    def list_variants(self, product_id: str, page: int = 1, page_size: int = 100) -> Payload:
        return self._get(
            f"products/{_q(product_id)}/variants",
            params={"page": page, "pageSize": page_size},
        )

    def patch_variant(self, product_id: str, variant_id: str, partial: Payload) -> Payload:
        return self._patch(f"products/{_q(product_id)}/variants/{_q(variant_id)}", partial)

    def save_spec(self, spec_id: str, spec: Payload) -> Payload:
        return self._put(f"specs/{_q(spec_id)}", spec)

    def save_spec_option(self, spec_id: str, option_id: str, option: Payload) -> Payload:
        return self._put(f"specs/{_q(spec_id)}/options/{_q(option_id)}", option)

    def save_spec_product_assignment(self, assignment: Payload) -> None:
        self._post("specs/productassignments", assignment)

    def save_price_schedule(self, schedule_id: str, schedule: Payload) -> Payload:
        return self._put(f"priceschedules/{_q(schedule_id)}", schedule)

    def save_inventory_record(self, product_id: str, record_id: str, record: Payload) -> Payload:
        return self._put(f"products/{_q(product_id)}/inventoryrecords/{_q(record_id)}", record)

    def save_variant_inventory_record(
        self, product_id: str, variant_id: str, record_id: str, record: Payload
    ) -> Payload:
        return self._put(
            f"products/{_q(product_id)}/variants/{_q(variant_id)}/inventoryrecords/{_q(record_id)}",
            record,
        )
