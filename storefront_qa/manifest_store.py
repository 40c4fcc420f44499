"""Read-only access to the product, customer and coupon manifests.

Manifests are JSON documents of the form ``{"fixtures": [...]}``. They are
validated once at load time: natural keys and ids must be unique within a
manifest and every fixture must carry a non-empty set of known tiers. A
violation is a configuration error and is raised immediately.
"""

from __future__ import annotations

import functools
import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from .errors import ConfigurationError, NotFoundError
from .fixture_schema import (
    FIXTURE_TYPES,
    CouponFixture,
    CustomerFixture,
    Fixture,
    FixtureKind,
    ProductFixture,
    Tier,
)
from .tiers import select_for_tier

logger = logging.getLogger("storefront-qa.manifest")

MANIFEST_FILES = {
    FixtureKind.PRODUCT: "products.manifest.json",
    FixtureKind.CUSTOMER: "customers.manifest.json",
    FixtureKind.COUPON: "coupons.manifest.json",
}


def _validate(kind: FixtureKind, fixtures: list[Fixture], source: str) -> None:
    seen_ids: set[str] = set()
    seen_keys: set[str] = set()
    for fixture in fixtures:
        if fixture.id in seen_ids:
            raise ConfigurationError(f"{source}: duplicate {kind.value} id '{fixture.id}'")
        if fixture.natural_key in seen_keys:
            raise ConfigurationError(f"{source}: duplicate {kind.value} key '{fixture.natural_key}'")
        if not fixture.tier:
            raise ConfigurationError(f"{source}: {kind.value} '{fixture.id}' has no tier")
        seen_ids.add(fixture.id)
        seen_keys.add(fixture.natural_key)


def parse_manifest(kind: FixtureKind, document: dict[str, Any], source: str = "<memory>") -> list[Fixture]:
    """Build fixture records from a decoded manifest document."""
    fixture_type = FIXTURE_TYPES[kind]
    entries = document.get("fixtures")
    if not isinstance(entries, list):
        raise ConfigurationError(f"{source}: expected a 'fixtures' list")

    fixtures: list[Fixture] = []
    for index, entry in enumerate(entries):
        try:
            fixtures.append(fixture_type.from_dict(entry))
        except (KeyError, ValueError, TypeError, ArithmeticError) as exc:
            raise ConfigurationError(f"{source}: invalid {kind.value} entry #{index}: {exc!r}") from exc

    _validate(kind, fixtures, source)
    return fixtures


class ManifestStore:
    """Immutable, manifest-ordered view of every declared fixture."""

    def __init__(
        self,
        products: list[ProductFixture],
        customers: list[CustomerFixture],
        coupons: list[CouponFixture],
    ) -> None:
        self._fixtures: dict[FixtureKind, tuple[Fixture, ...]] = {
            FixtureKind.PRODUCT: tuple(products),
            FixtureKind.CUSTOMER: tuple(customers),
            FixtureKind.COUPON: tuple(coupons),
        }
        for kind, fixtures in self._fixtures.items():
            _validate(kind, list(fixtures), "<store>")

    @classmethod
    def from_documents(cls, documents: dict[FixtureKind, dict[str, Any]]) -> "ManifestStore":
        parsed = {
            kind: parse_manifest(kind, documents.get(kind, {"fixtures": []}), MANIFEST_FILES[kind])
            for kind in FixtureKind
        }
        return cls(parsed[FixtureKind.PRODUCT], parsed[FixtureKind.CUSTOMER], parsed[FixtureKind.COUPON])

    @classmethod
    def from_directory(cls, directory: str | Path) -> "ManifestStore":
        """Load the three manifest files from *directory*."""
        root = Path(directory)
        documents: dict[FixtureKind, dict[str, Any]] = {}
        for kind, filename in MANIFEST_FILES.items():
            path = root / filename
            if not path.exists():
                raise ConfigurationError(f"Manifest not found: {path}")
            try:
                documents[kind] = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Manifest {path} is not valid JSON: {exc}") from exc
        logger.debug("Loaded manifests from %s", root)
        return cls.from_documents(documents)

    @classmethod
    def bundled(cls) -> "ManifestStore":
        """Load the manifests shipped inside the package."""
        package_dir = resources.files("storefront_qa") / "manifest"
        documents: dict[FixtureKind, dict[str, Any]] = {}
        for kind, filename in MANIFEST_FILES.items():
            try:
                documents[kind] = json.loads((package_dir / filename).read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise ConfigurationError(f"Bundled manifest not found: {filename}") from exc
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Bundled manifest {filename} is not valid JSON: {exc}") from exc
        return cls.from_documents(documents)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def all_fixtures_of(self, kind: FixtureKind) -> list[Fixture]:
        return list(self._fixtures[kind])

    def by_id(self, kind: FixtureKind, fixture_id: str) -> Fixture | None:
        return next((f for f in self._fixtures[kind] if f.id == fixture_id), None)

    def by_natural_key(self, kind: FixtureKind, key: str) -> Fixture | None:
        return next((f for f in self._fixtures[kind] if f.natural_key == key), None)

    def select_for_tier(self, kind: FixtureKind, tier: Tier) -> list[Fixture]:
        return select_for_tier(self._fixtures[kind], tier)

    @property
    def products(self) -> list[ProductFixture]:
        return self.all_fixtures_of(FixtureKind.PRODUCT)  # type: ignore[return-value]

    @property
    def customers(self) -> list[CustomerFixture]:
        return self.all_fixtures_of(FixtureKind.CUSTOMER)  # type: ignore[return-value]

    @property
    def coupons(self) -> list[CouponFixture]:
        return self.all_fixtures_of(FixtureKind.COUPON)  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Well-known fixtures used by the browser suites
    # ------------------------------------------------------------------

    def require(self, kind: FixtureKind, fixture_id: str, label: str) -> Fixture:
        fixture = self.by_id(kind, fixture_id)
        if fixture is None:
            raise NotFoundError(f"{label} ('{fixture_id}') not found in manifest")
        return fixture

    def simple_product(self) -> ProductFixture:
        return self.require(FixtureKind.PRODUCT, "simple_product_basic", "Basic simple product")  # type: ignore[return-value]

    def out_of_stock_product(self) -> ProductFixture:
        return self.require(FixtureKind.PRODUCT, "simple_product_oos", "Out of stock product")  # type: ignore[return-value]

    def low_stock_product(self) -> ProductFixture:
        return self.require(FixtureKind.PRODUCT, "simple_product_low_stock", "Low stock product")  # type: ignore[return-value]

    def test_customer(self) -> CustomerFixture:
        return self.require(FixtureKind.CUSTOMER, "test_customer_basic", "Basic test customer")  # type: ignore[return-value]

    def multi_address_customer(self) -> CustomerFixture:
        return self.require(
            FixtureKind.CUSTOMER, "test_customer_multi_address", "Multi-address customer"
        )  # type: ignore[return-value]

    def eu_customer(self) -> CustomerFixture:
        return self.require(FixtureKind.CUSTOMER, "test_customer_eu", "EU customer")  # type: ignore[return-value]

    def percentage_coupon(self) -> CouponFixture:
        return self.require(FixtureKind.COUPON, "coupon_10_percent", "Percentage coupon")  # type: ignore[return-value]

    def fixed_coupon(self) -> CouponFixture:
        return self.require(FixtureKind.COUPON, "coupon_5_fixed", "Fixed coupon")  # type: ignore[return-value]

    def free_shipping_coupon(self) -> CouponFixture:
        return self.require(FixtureKind.COUPON, "coupon_free_shipping", "Free shipping coupon")  # type: ignore[return-value]


@functools.lru_cache(maxsize=1)
def default_store() -> ManifestStore:
    """Bundled manifests, parsed once per process."""
    return ManifestStore.bundled()
