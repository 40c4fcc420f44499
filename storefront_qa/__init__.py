"""Fixture toolkit for the storefront end-to-end suites."""

from .api_client import MagentoApiClient, create_api_client
from .cleanup import sweep_all, teardown_manifest
from .errors import ApiError, AuthenticationError, ConfigurationError, NotFoundError, StorefrontQAError
from .fixture_schema import CouponFixture, CustomerAddress, CustomerFixture, FixtureKind, ProductFixture, Tier
from .manifest_store import ManifestStore, default_store
from .outcomes import CleanupReport, CleanupStats, FixtureResult, Outcome, SeedReport
from .seeding import seed_all
from .tiers import fixtures_for_current_tier, fixtures_for_tier, get_current_tier, parse_tier, select_for_tier

__all__ = [
    "ApiError",
    "AuthenticationError",
    "CleanupReport",
    "CleanupStats",
    "ConfigurationError",
    "CouponFixture",
    "CustomerAddress",
    "CustomerFixture",
    "FixtureKind",
    "FixtureResult",
    "MagentoApiClient",
    "ManifestStore",
    "NotFoundError",
    "Outcome",
    "ProductFixture",
    "SeedReport",
    "StorefrontQAError",
    "Tier",
    "create_api_client",
    "default_store",
    "fixtures_for_current_tier",
    "fixtures_for_tier",
    "get_current_tier",
    "parse_tier",
    "seed_all",
    "select_for_tier",
    "sweep_all",
    "teardown_manifest",
]
