"""Magento 2 admin REST API client.

Thin async wrapper over ``httpx.AsyncClient`` covering the endpoints the
seed and cleanup reconcilers need. Authentication uses an admin bearer token
obtained from ``POST /V1/integration/admin/token``; every call authenticates
lazily if no token is held yet.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .errors import ApiError, AuthenticationError
from .utils.config import DEFAULT_API_TIMEOUT, StorefrontConfig

logger = logging.getLogger("storefront-qa.api-client")


def search_criteria(field: str, value: str, condition: str = "eq") -> dict[str, str]:
    """Build a single-filter ``searchCriteria`` query string mapping."""
    prefix = "searchCriteria[filter_groups][0][filters][0]"
    return {
        f"{prefix}[field]": field,
        f"{prefix}[value]": value,
        f"{prefix}[condition_type]": condition,
    }


def _render_message(body: Any, fallback: str) -> str:
    """Substitute Magento ``%1``/``%name`` placeholders from ``parameters``."""
    if not isinstance(body, dict) or not body.get("message"):
        return fallback
    message = str(body["message"])
    parameters = body.get("parameters")
    if isinstance(parameters, list):
        for index, value in enumerate(parameters, start=1):
            message = message.replace(f"%{index}", str(value))
    elif isinstance(parameters, dict):
        for name, value in parameters.items():
            message = message.replace(f"%{name}", str(value))
    return message


def _api_error(response: httpx.Response) -> ApiError:
    try:
        body = response.json()
    except ValueError:
        body = None
    message = _render_message(body, response.reason_phrase or response.text[:200])
    return ApiError(response.status_code, message, response.request.url.path)


class MagentoApiClient:
    """Admin REST API client for fixture management."""

    def __init__(
        self,
        base_url: str,
        admin_user: str,
        admin_pass: str,
        timeout: float = DEFAULT_API_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._admin_user = admin_user
        self._admin_pass = admin_pass
        self._token: str | None = None
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/V1",
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "MagentoApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def authenticate(self) -> None:
        """Exchange admin credentials for a bearer token."""
        try:
            response = await self._client.post(
                "/integration/admin/token",
                json={"username": self._admin_user, "password": self._admin_pass},
            )
        except httpx.HTTPError as exc:
            logger.error("Failed to reach admin token endpoint: %s", exc)
            raise AuthenticationError(f"Could not reach {self.base_url}: {exc}") from exc

        if response.status_code != 200:
            error = _api_error(response)
            logger.error("Failed to authenticate with Magento API: %s", error.message)
            raise AuthenticationError(f"Admin authentication failed ({error.status_code}): {error.message}")

        try:
            token = response.json()
        except ValueError as exc:
            raise AuthenticationError("Admin token endpoint returned a non-JSON body") from exc
        if not isinstance(token, str) or not token:
            raise AuthenticationError("Admin token endpoint returned no token")

        self._token = token
        self._client.headers["Authorization"] = f"Bearer {token}"
        logger.info("Authenticated with Magento API at %s", self.base_url)

    async def _ensure_auth(self) -> None:
        if self._token is None:
            await self.authenticate()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        await self._ensure_auth()
        response = await self._client.request(method, path, json=json, params=params)
        if response.is_error:
            error = _api_error(response)
            logger.debug("API error %s %s -> %s %s", method, path, error.status_code, error.message)
            raise error
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug("Non-JSON body from %s %s: %.200s", method, path, response.text)
            raise ApiError(response.status_code, "invalid JSON response", response.request.url.path) from None

    async def _get_or_none(self, path: str) -> Any:
        try:
            return await self._request("GET", path)
        except ApiError as exc:
            if exc.status_code == 404:
                return None
            raise

    async def _delete(self, path: str) -> bool:
        try:
            await self._request("DELETE", path)
            return True
        except ApiError as exc:
            if exc.status_code == 404:
                return False
            raise

    async def _search(self, path: str, field: str, value: str, condition: str) -> list[dict[str, Any]]:
        body = await self._request("GET", path, params=search_criteria(field, value, condition))
        return (body or {}).get("items") or []

    async def _find_first(self, path: str, field: str, value: str) -> dict[str, Any] | None:
        """Exact-match lookup; any failure is treated as "not found"."""
        try:
            items = await self._search(path, field, value, "eq")
        except (ApiError, httpx.HTTPError) as exc:
            logger.debug("Lookup %s %s=%s failed: %s", path, field, value, exc)
            return None
        return items[0] if items else None

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def create_product(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/products", json=payload)

    async def get_product(self, sku: str) -> dict[str, Any] | None:
        return await self._get_or_none(f"/products/{quote(sku, safe='')}")

    async def delete_product(self, sku: str) -> bool:
        return await self._delete(f"/products/{quote(sku, safe='')}")

    async def search_products(self, sku_pattern: str) -> list[dict[str, Any]]:
        return await self._search("/products", "sku", sku_pattern, "like")

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def create_customer(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/customers", json=payload)

    async def get_customer_by_email(self, email: str) -> dict[str, Any] | None:
        return await self._find_first("/customers/search", "email", email)

    async def delete_customer(self, customer_id: int) -> bool:
        return await self._delete(f"/customers/{customer_id}")

    async def search_customers(self, email_pattern: str) -> list[dict[str, Any]]:
        return await self._search("/customers/search", "email", email_pattern, "like")

    # ------------------------------------------------------------------
    # Cart price rules and coupon codes
    # ------------------------------------------------------------------

    async def create_sales_rule(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/salesRules", json=payload)

    async def create_coupon(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/coupons", json=payload)

    async def get_coupon_by_code(self, code: str) -> dict[str, Any] | None:
        return await self._find_first("/coupons/search", "code", code)

    async def delete_sales_rule(self, rule_id: int) -> bool:
        return await self._delete(f"/salesRules/{rule_id}")

    async def search_sales_rules(self, name_pattern: str) -> list[dict[str, Any]]:
        return await self._search("/salesRules/search", "name", name_pattern, "like")

    # ------------------------------------------------------------------
    # Orders (read only) and health
    # ------------------------------------------------------------------

    async def get_order_by_increment_id(self, increment_id: str) -> dict[str, Any] | None:
        return await self._find_first("/orders", "increment_id", increment_id)

    async def health_check(self) -> bool:
        """Return True when the store config endpoint answers."""
        try:
            await self._request("GET", "/store/storeConfigs")
            return True
        except (ApiError, AuthenticationError, httpx.HTTPError) as exc:
            logger.warning("Health check failed: %s", exc)
            return False


def create_api_client(config: StorefrontConfig, transport: httpx.AsyncBaseTransport | None = None) -> MagentoApiClient:
    """Build a client from resolved configuration."""
    return MagentoApiClient(
        config.base_url,
        config.admin_user,
        config.admin_pass,
        timeout=config.timeout,
        transport=transport,
    )
