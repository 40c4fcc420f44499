"""Root conftest: shared fixtures available to all test layers.

``FakeMagento`` is a small in-memory stand-in for the Magento admin REST API,
served to :class:`MagentoApiClient` through ``httpx.MockTransport``.  It keeps
a call log so tests can assert exactly which requests were issued.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from storefront_qa.api_client import MagentoApiClient
from storefront_qa.fixture_schema import FixtureKind
from storefront_qa.manifest_store import MANIFEST_FILES, ManifestStore

FAKE_BASE_URL = "https://magento.test"
ADMIN_USER = "admin"
ADMIN_PASS = "admin123"
ADMIN_TOKEN = "fake-admin-token"

_FILTER = "searchCriteria[filter_groups][0][filters][0]"
_ENV_VARS = ("BASE_URL", "url", "ADMIN_USER", "ADMIN_PASS", "TEST_TIER", "API_TIMEOUT", "LOG_LEVEL", "LOG_FORMAT")


def _like(pattern: str) -> re.Pattern[str]:
    """SQL ``LIKE`` pattern as a case-insensitive regex (MySQL collation)."""
    parts = (re.escape(chunk) for chunk in pattern.split("%"))
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE)


def _error(status: int, message: str, parameters: Any = None) -> httpx.Response:
    body: dict[str, Any] = {"message": message}
    if parameters is not None:
        body["parameters"] = parameters
    return httpx.Response(status, json=body)


@dataclass
class FakeMagento:
    """In-memory admin API holding products, customers, sales rules and coupons."""

    products: dict[str, dict[str, Any]] = field(default_factory=dict)
    customers: dict[int, dict[str, Any]] = field(default_factory=dict)
    rules: dict[int, dict[str, Any]] = field(default_factory=dict)
    coupons: dict[str, dict[str, Any]] = field(default_factory=dict)
    orders: list[dict[str, Any]] = field(default_factory=list)
    calls: list[tuple[str, str]] = field(default_factory=list)
    failures: dict[tuple[str, str], tuple[int, str]] = field(default_factory=dict)
    _next_id: int = 100

    # ------------------------------------------------------------------
    # Test setup helpers
    # ------------------------------------------------------------------

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def add_product(self, sku: str, name: str = "Existing product") -> None:
        self.products[sku] = {"id": self._new_id(), "sku": sku, "name": name}

    def add_customer(self, email: str) -> int:
        customer_id = self._new_id()
        self.customers[customer_id] = {"id": customer_id, "email": email}
        return customer_id

    def add_rule(self, name: str, code: str | None = None) -> int:
        rule_id = self._new_id()
        self.rules[rule_id] = {"rule_id": rule_id, "name": name}
        if code:
            self.coupons[code] = {"coupon_id": self._new_id(), "rule_id": rule_id, "code": code}
        return rule_id

    def fail(self, method: str, path: str, status: int = 400, message: str = "Simulated failure") -> None:
        """Make every *method* request on *path* (below ``/rest/V1``) fail."""
        self.failures[(method, path)] = (status, message)

    def count(self, method: str, path_prefix: str = "") -> int:
        return sum(1 for m, p in self.calls if m == method and p.startswith(path_prefix))

    def clear_calls(self) -> None:
        self.calls.clear()

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/rest/V1")
        method = request.method
        self.calls.append((method, path))

        if (method, path) in self.failures:
            status, message = self.failures[(method, path)]
            return _error(status, message)

        if path == "/integration/admin/token":
            return self._token(request)
        if request.headers.get("Authorization") != f"Bearer {ADMIN_TOKEN}":
            return _error(401, 'The consumer isn\'t authorized to access %resources.', {"resources": "Magento_Catalog"})

        body = json.loads(request.content) if request.content else None
        params = request.url.params
        search = (params.get(f"{_FILTER}[field]"), params.get(f"{_FILTER}[value]"), params.get(f"{_FILTER}[condition_type]"))

        if path == "/store/storeConfigs":
            return httpx.Response(200, json=[{"id": 1, "code": "default", "base_currency_code": "GBP"}])
        if path == "/products":
            return self._products(method, body, search)
        if path.startswith("/products/"):
            return self._product(method, path.split("/", 2)[2])
        if path == "/customers":
            return self._create_customer(body)
        if path == "/customers/search":
            return self._search(self.customers.values(), search)
        if path.startswith("/customers/"):
            return self._delete_by_id(self.customers, int(path.rsplit("/", 1)[1]))
        if path == "/salesRules":
            return self._create_rule(body)
        if path == "/salesRules/search":
            return self._search(self.rules.values(), search)
        if path.startswith("/salesRules/"):
            return self._delete_rule(int(path.rsplit("/", 1)[1]))
        if path == "/coupons":
            return self._create_coupon(body)
        if path == "/coupons/search":
            return self._search(self.coupons.values(), search)
        if path == "/orders":
            return self._search(self.orders, search)
        return _error(404, "Request does not match any route.")

    def _token(self, request: httpx.Request) -> httpx.Response:
        credentials = json.loads(request.content)
        if credentials == {"username": ADMIN_USER, "password": ADMIN_PASS}:
            return httpx.Response(200, json=ADMIN_TOKEN)
        return _error(
            401,
            "The account sign-in was incorrect or your account is disabled temporarily. "
            "Please wait and try again later.",
        )

    @staticmethod
    def _search(records, search) -> httpx.Response:
        field_name, value, condition = search
        items = list(records)
        if field_name is not None:
            if condition == "like":
                pattern = _like(value)
                items = [r for r in items if pattern.match(str(r.get(field_name, "")))]
            else:
                items = [r for r in items if str(r.get(field_name)) == value]
        return httpx.Response(200, json={"items": items, "total_count": len(items)})

    def _products(self, method: str, body: Any, search) -> httpx.Response:
        if method == "GET":
            return self._search(self.products.values(), search)
        product = dict(body["product"])
        product["id"] = self._new_id()
        self.products[product["sku"]] = product
        return httpx.Response(200, json=product)

    def _product(self, method: str, sku: str) -> httpx.Response:
        if sku not in self.products:
            return _error(404, "The product that was requested doesn't exist. Verify the product and try again.")
        if method == "DELETE":
            del self.products[sku]
            return httpx.Response(200, json=True)
        return httpx.Response(200, json=self.products[sku])

    def _create_customer(self, body: Any) -> httpx.Response:
        customer = dict(body["customer"])
        if any(c["email"] == customer["email"] for c in self.customers.values()):
            return _error(400, "A customer with the same email address already exists in an associated website.")
        customer["id"] = self._new_id()
        self.customers[customer["id"]] = customer
        return httpx.Response(200, json=customer)

    @staticmethod
    def _delete_by_id(records: dict[int, Any], record_id: int) -> httpx.Response:
        if record_id not in records:
            return _error(404, 'No such entity with %fieldName = %fieldValue', {"fieldName": "id", "fieldValue": record_id})
        del records[record_id]
        return httpx.Response(200, json=True)

    def _create_rule(self, body: Any) -> httpx.Response:
        rule = dict(body["rule"])
        rule["rule_id"] = self._new_id()
        self.rules[rule["rule_id"]] = rule
        return httpx.Response(200, json=rule)

    def _delete_rule(self, rule_id: int) -> httpx.Response:
        response = self._delete_by_id(self.rules, rule_id)
        if response.status_code == 200:
            self.coupons = {code: c for code, c in self.coupons.items() if c["rule_id"] != rule_id}
        return response

    def _create_coupon(self, body: Any) -> httpx.Response:
        coupon = dict(body["coupon"])
        if coupon["rule_id"] not in self.rules:
            return _error(404, "Rule with specified ID \"%1\" not found.", [coupon["rule_id"]])
        if coupon["code"] in self.coupons:
            return _error(400, "Coupon with the same code already exists.")
        coupon["coupon_id"] = self._new_id()
        self.coupons[coupon["code"]] = coupon
        return httpx.Response(200, json=coupon)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def fake_magento() -> FakeMagento:
    return FakeMagento()


@pytest.fixture()
def make_client(fake_magento):
    """Factory for API clients wired to ``fake_magento``."""

    def factory(user: str = ADMIN_USER, password: str = ADMIN_PASS) -> MagentoApiClient:
        return MagentoApiClient(FAKE_BASE_URL, user, password, transport=fake_magento.transport())

    return factory


@pytest.fixture()
def clean_env():
    """Clear storefront env vars for isolation."""
    with patch.dict(os.environ, {}, clear=False):
        for name in _ENV_VARS:
            os.environ.pop(name, None)
        yield


@pytest.fixture()
def admin_env(clean_env):
    """Provide a complete, fake admin configuration."""
    values = {"BASE_URL": FAKE_BASE_URL + "/", "ADMIN_USER": ADMIN_USER, "ADMIN_PASS": ADMIN_PASS}
    with patch.dict(os.environ, values):
        yield values


@pytest.fixture()
def manifest_dir(tmp_path: Path) -> Path:
    """Write a small, valid manifest set and return its directory."""
    documents = {
        FixtureKind.PRODUCT: {
            "fixtures": [
                {"id": "p_smoke", "sku": "TEST_SMOKE_1", "name": "Smoke", "price": 10, "qty": 5, "tier": ["A", "B", "C"]},
                {"id": "p_oos", "sku": "TEST_OOS_1", "name": "Gone", "price": 12.5, "qty": 0, "tier": ["B", "C"]},
                {"id": "p_full", "sku": "TEST_FULL_1", "name": "Full", "price": 99, "qty": 1, "tier": ["C"]},
            ]
        },
        FixtureKind.CUSTOMER: {
            "fixtures": [
                {
                    "id": "c_basic",
                    "email": "basic@qbdigital.test",
                    "password": "Secret123!",
                    "firstname": "Basic",
                    "lastname": "Buyer",
                    "tier": ["A", "B", "C"],
                    "addresses": [
                        {
                            "type": "shipping_billing",
                            "street": "1 Test Street",
                            "city": "London",
                            "postcode": "SW1A 1AA",
                            "country": "GB",
                            "telephone": "07700900000",
                        }
                    ],
                }
            ]
        },
        FixtureKind.COUPON: {
            "fixtures": [
                {"id": "k_pct", "code": "TESTPCT", "name": "Test Pct", "type": "percentage",
                 "discount_amount": 10, "tier": ["A", "B", "C"]},
                {"id": "k_fix", "code": "TESTFIX", "name": "Test Fix", "type": "fixed",
                 "discount_amount": 5, "minimum_order": 20, "tier": ["B", "C"]},
            ]
        },
    }
    for kind, document in documents.items():
        (tmp_path / MANIFEST_FILES[kind]).write_text(json.dumps(document))
    return tmp_path


@pytest.fixture()
def sample_store(manifest_dir: Path) -> ManifestStore:
    return ManifestStore.from_directory(manifest_dir)
