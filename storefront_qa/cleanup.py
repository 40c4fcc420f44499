"""Cleanup reconciler: remove fixtures from the remote platform.

Two operations are offered:

* **sweep** searches the platform by fixture naming pattern (``TEST_%`` SKUs,
  ``%@qbdigital.test`` emails, ``Test%`` rule names) and deletes every match,
  including orphans left by earlier runs that no manifest mentions any more;
* **manifest teardown** deletes, by natural key, only the fixtures the
  manifest selects for a tier, when they are present.

Coupons are removed by deleting their cart price rule; the platform removes
the rule's coupon codes with it. A dry run makes no delete calls and counts
each match as a would-delete.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import httpx

from .api_client import MagentoApiClient
from .errors import ApiError
from .fixture_schema import DEFAULT_TIER, FixtureKind, Tier
from .manifest_store import ManifestStore
from .outcomes import CleanupReport, CleanupStats, FixtureResult, Outcome
from .tiers import fixtures_for_tier

logger = logging.getLogger("storefront-qa.cleanup")

TEST_SKU_PATTERN = "TEST_%"
TEST_EMAIL_PATTERN = "%@qbdigital.test"
TEST_COUPON_PATTERN = "Test%"


def _message(exc: Exception) -> str:
    return exc.message if isinstance(exc, ApiError) else str(exc)


async def _delete_one(
    stats: CleanupStats,
    kind: FixtureKind,
    label: str,
    delete: Callable[[], Awaitable[bool]],
    dry_run: bool,
) -> None:
    if dry_run:
        logger.info("[DRY RUN] Would delete %s: %s", kind.value, label)
        stats.record(FixtureResult(kind, label, Outcome.WOULD_DELETE))
        return

    try:
        deleted = await delete()
    except (ApiError, httpx.HTTPError) as exc:
        logger.error("Failed to delete %s %s: %s", kind.value, label, _message(exc))
        stats.record(FixtureResult(kind, label, Outcome.FAILED, _message(exc)))
        return

    if deleted:
        logger.info("Deleted %s: %s", kind.value, label)
        stats.record(FixtureResult(kind, label, Outcome.DELETED))
    else:
        logger.warning("%s not found: %s", kind.value.capitalize(), label)
        stats.record(FixtureResult(kind, label, Outcome.NOT_FOUND))


async def _sweep(
    kind: FixtureKind,
    search: Callable[[], Awaitable[list[dict[str, Any]]]],
    describe: Callable[[dict[str, Any]], str],
    delete_for: Callable[[dict[str, Any]], Callable[[], Awaitable[bool]]],
    dry_run: bool,
) -> CleanupStats:
    stats = CleanupStats()
    try:
        records = await search()
    except (ApiError, httpx.HTTPError) as exc:
        logger.error("Failed to search %ss: %s", kind.value, _message(exc))
        return stats

    stats.found = len(records)
    if not records:
        logger.info("No test %ss found", kind.value)
        return stats

    for record in records:
        await _delete_one(stats, kind, describe(record), delete_for(record), dry_run)
    return stats


async def sweep_products(client: MagentoApiClient, dry_run: bool = False) -> CleanupStats:
    return await _sweep(
        FixtureKind.PRODUCT,
        lambda: client.search_products(TEST_SKU_PATTERN),
        lambda record: record["sku"],
        lambda record: lambda: client.delete_product(record["sku"]),
        dry_run,
    )


async def sweep_customers(client: MagentoApiClient, dry_run: bool = False) -> CleanupStats:
    return await _sweep(
        FixtureKind.CUSTOMER,
        lambda: client.search_customers(TEST_EMAIL_PATTERN),
        lambda record: record["email"],
        lambda record: lambda: client.delete_customer(record["id"]),
        dry_run,
    )


async def sweep_coupons(client: MagentoApiClient, dry_run: bool = False) -> CleanupStats:
    return await _sweep(
        FixtureKind.COUPON,
        lambda: client.search_sales_rules(TEST_COUPON_PATTERN),
        lambda record: f"{record['name']} (rule {record['rule_id']})",
        lambda record: lambda: client.delete_sales_rule(record["rule_id"]),
        dry_run,
    )


async def sweep_all(client: MagentoApiClient, dry_run: bool = False) -> CleanupReport:
    """Delete every remote record matching the fixture naming patterns."""
    return CleanupReport(
        dry_run=dry_run,
        products=await sweep_products(client, dry_run),
        customers=await sweep_customers(client, dry_run),
        coupons=await sweep_coupons(client, dry_run),
    )


async def _teardown_kind(
    kind: FixtureKind,
    keys: list[str],
    lookup: Callable[[str], Awaitable[dict[str, Any] | None]],
    delete_for: Callable[[dict[str, Any]], Callable[[], Awaitable[bool]]],
    dry_run: bool,
) -> CleanupStats:
    stats = CleanupStats()
    for key in keys:
        try:
            record = await lookup(key)
        except (ApiError, httpx.HTTPError) as exc:
            logger.error("Failed to look up %s %s: %s", kind.value, key, _message(exc))
            stats.record(FixtureResult(kind, key, Outcome.FAILED, _message(exc)))
            continue
        if record is None:
            logger.debug("%s not present remotely: %s", kind.value.capitalize(), key)
            continue
        stats.found += 1
        await _delete_one(stats, kind, key, delete_for(record), dry_run)
    return stats


async def teardown_manifest(
    client: MagentoApiClient,
    store: ManifestStore,
    tier: Tier = DEFAULT_TIER,
    dry_run: bool = False,
) -> CleanupReport:
    """Delete-if-present for each fixture the manifest selects for *tier*."""
    selection = fixtures_for_tier(store, tier)
    return CleanupReport(
        dry_run=dry_run,
        products=await _teardown_kind(
            FixtureKind.PRODUCT,
            [product.sku for product in selection.products],
            client.get_product,
            lambda record: lambda: client.delete_product(record["sku"]),
            dry_run,
        ),
        customers=await _teardown_kind(
            FixtureKind.CUSTOMER,
            [customer.email for customer in selection.customers],
            client.get_customer_by_email,
            lambda record: lambda: client.delete_customer(record["id"]),
            dry_run,
        ),
        coupons=await _teardown_kind(
            FixtureKind.COUPON,
            [coupon.code for coupon in selection.coupons],
            client.get_coupon_by_code,
            lambda record: lambda: client.delete_sales_rule(record["rule_id"]),
            dry_run,
        ),
    )
