"""Seed reconciler: create manifest fixtures that are absent remotely.

Existence is checked by natural key (SKU, email, coupon code) before every
create. Records that already exist are skipped, never updated, so a second
run against the same environment creates nothing. Per-fixture failures are
logged and recorded; they never abort the batch.
"""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from .api_client import MagentoApiClient
from .errors import ApiError
from .fixture_schema import DEFAULT_TIER, CouponFixture, CustomerFixture, FixtureKind, ProductFixture, Tier
from .manifest_store import ManifestStore
from .outcomes import FixtureResult, Outcome, SeedReport
from .tiers import fixtures_for_tier

logger = logging.getLogger("storefront-qa.seed")

# Phrases in the platform's duplicate-key create errors.
_ALREADY_EXISTS_MARKERS = ("already exists", "already registered")


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ApiError):
        return exc.message
    return str(exc) or exc.__class__.__name__


def _is_already_exists(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _ALREADY_EXISTS_MARKERS)


def _exists(kind: FixtureKind, key: str) -> FixtureResult:
    logger.warning("%s already exists: %s", kind.value.capitalize(), key)
    return FixtureResult(kind, key, Outcome.EXISTS, "already exists")


def _failed(kind: FixtureKind, key: str, message: str) -> FixtureResult:
    logger.error("Failed to create %s %s: %s", kind.value, key, message)
    return FixtureResult(kind, key, Outcome.FAILED, message)


async def seed_product(client: MagentoApiClient, product: ProductFixture) -> FixtureResult:
    kind = FixtureKind.PRODUCT
    try:
        if await client.get_product(product.sku):
            return _exists(kind, product.sku)
        await client.create_product(product.to_payload())
    except (ApiError, httpx.HTTPError) as exc:
        return _failed(kind, product.sku, _error_message(exc))

    logger.info("Created product: %s (%s)", product.sku, product.name)
    return FixtureResult(kind, product.sku, Outcome.CREATED)


async def seed_customer(client: MagentoApiClient, customer: CustomerFixture) -> FixtureResult:
    kind = FixtureKind.CUSTOMER
    try:
        if await client.get_customer_by_email(customer.email):
            return _exists(kind, customer.email)
        await client.create_customer(customer.to_payload())
    except (ApiError, httpx.HTTPError) as exc:
        message = _error_message(exc)
        if _is_already_exists(message):
            return _exists(kind, customer.email)
        return _failed(kind, customer.email, message)

    logger.info("Created customer: %s", customer.email)
    return FixtureResult(kind, customer.email, Outcome.CREATED)


async def seed_coupon(client: MagentoApiClient, coupon: CouponFixture) -> FixtureResult:
    """Create the cart price rule, then its coupon code.

    The code create references the rule id returned by the rule create. If
    the code create fails the rule is deleted again so no orphan rule is
    left behind; if that undo fails too, the orphan's id is reported.
    """
    kind = FixtureKind.COUPON
    try:
        if await client.get_coupon_by_code(coupon.code):
            return _exists(kind, coupon.code)
        rule = await client.create_sales_rule(coupon.to_rule_payload())
    except (ApiError, httpx.HTTPError) as exc:
        message = _error_message(exc)
        if _is_already_exists(message):
            return _exists(kind, coupon.code)
        return _failed(kind, coupon.code, message)

    rule_id = (rule or {}).get("rule_id")
    if rule_id is None:
        return _failed(kind, coupon.code, "rule create response carried no rule_id")

    try:
        await client.create_coupon(coupon.to_coupon_payload(rule_id))
    except (ApiError, httpx.HTTPError) as exc:
        message = _error_message(exc)
        return _failed(kind, coupon.code, await _undo_rule(client, rule_id, message))

    logger.info("Created coupon: %s (%s, rule %s)", coupon.code, coupon.name, rule_id)
    return FixtureResult(kind, coupon.code, Outcome.CREATED)


async def _undo_rule(client: MagentoApiClient, rule_id: int, reason: str) -> str:
    try:
        await client.delete_sales_rule(rule_id)
    except (ApiError, httpx.HTTPError) as exc:
        logger.error("Could not roll back sales rule %s: %s", rule_id, _error_message(exc))
        return f"{reason} (orphaned sales rule {rule_id})"
    logger.warning("Rolled back sales rule %s after coupon code failure", rule_id)
    return f"{reason} (sales rule {rule_id} rolled back)"


async def seed_products(client: MagentoApiClient, products: Sequence[ProductFixture]) -> list[FixtureResult]:
    logger.info("Seeding %d product(s)", len(products))
    return [await seed_product(client, product) for product in products]


async def seed_customers(client: MagentoApiClient, customers: Sequence[CustomerFixture]) -> list[FixtureResult]:
    logger.info("Seeding %d customer(s)", len(customers))
    return [await seed_customer(client, customer) for customer in customers]


async def seed_coupons(client: MagentoApiClient, coupons: Sequence[CouponFixture]) -> list[FixtureResult]:
    logger.info("Seeding %d coupon(s)", len(coupons))
    return [await seed_coupon(client, coupon) for coupon in coupons]


async def seed_all(client: MagentoApiClient, store: ManifestStore, tier: Tier = DEFAULT_TIER) -> SeedReport:
    """Seed every product, customer and coupon selected for *tier*, in that order."""
    selection = fixtures_for_tier(store, tier)
    report = SeedReport(tier=tier.value)
    report.extend(await seed_products(client, selection.products))
    report.extend(await seed_customers(client, selection.customers))
    report.extend(await seed_coupons(client, selection.coupons))
    return report
