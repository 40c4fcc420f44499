"""Console entry points: ``seed-all`` and ``delete-fixtures``.

Usage::

    seed-all             # seed fixtures for the default tier (B)
    seed-all A           # Tier A only
    delete-fixtures      # sweep every test fixture from the platform
    delete-fixtures --dry
    delete-fixtures --tier B   # delete only manifest fixtures for Tier B

Both scripts read ``BASE_URL`` (or ``url``), ``ADMIN_USER`` and ``ADMIN_PASS``
from the environment or a ``.env`` file and exit with status 1 when these
are missing or admin authentication fails.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Sequence

from .api_client import MagentoApiClient, create_api_client
from .cleanup import sweep_all, teardown_manifest
from .errors import AuthenticationError, ConfigurationError
from .fixture_schema import FixtureKind, Tier
from .manifest_store import ManifestStore, default_store
from .outcomes import CleanupReport, SeedReport
from .seeding import seed_all
from .tiers import parse_tier
from .utils.config import StorefrontConfig, load_config, load_env_file
from .utils.logging_utils import configure_logging

logger = logging.getLogger("storefront-qa.cli")

RULE = "=" * 60
CACHE_REMINDER = "Remember to flush Magento cache: bin/magento cache:flush"


def _banner(text: str) -> None:
    logger.info(RULE)
    logger.info(text)
    logger.info(RULE)


def _prepare(verbose: bool) -> StorefrontConfig:
    load_env_file()
    configure_logging("DEBUG" if verbose else None)
    return load_config(require_admin=True)


def log_seed_summary(report: SeedReport) -> None:
    _banner(f"Seed summary - Tier {report.tier}")
    for kind, counts in report.summary().items():
        logger.info(
            "  %-9s created=%d exists=%d failed=%d",
            kind + "s:",
            counts["created"],
            counts["exists"],
            counts["failed"],
        )
    if report.failed:
        logger.warning("%d fixture(s) failed to seed", report.failed)


def log_cleanup_summary(report: CleanupReport) -> None:
    _banner("Cleanup summary" + (" (DRY RUN)" if report.dry_run else ""))
    for kind in FixtureKind:
        stats = report.stats_for(kind)
        logger.info("  %-10s %d/%d deleted", kind.value + "s:", stats.deleted, stats.found)
    if report.total_failed:
        logger.warning("%d item(s) failed to delete", report.total_failed)


async def run_seed(
    config: StorefrontConfig,
    tier: Tier,
    store: ManifestStore | None = None,
    client: MagentoApiClient | None = None,
) -> SeedReport:
    """Authenticate, then seed every fixture for *tier*."""
    store = store or default_store()
    async with client or create_api_client(config) as api:
        await api.authenticate()
        return await seed_all(api, store, tier)


async def run_cleanup(
    config: StorefrontConfig,
    dry_run: bool = False,
    tier: Tier | None = None,
    store: ManifestStore | None = None,
    client: MagentoApiClient | None = None,
) -> CleanupReport:
    """Authenticate, then sweep (or, with *tier*, tear down manifest fixtures)."""
    async with client or create_api_client(config) as api:
        await api.authenticate()
        if tier is None:
            return await sweep_all(api, dry_run)
        return await teardown_manifest(api, store or default_store(), tier, dry_run)


def build_seed_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seed-all",
        description="Create test fixtures (products, customers, coupons) via the Magento REST API.",
    )
    parser.add_argument("tier", nargs="?", default="B", help="Tier to seed: A, B or C (default: B)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every API request")
    return parser


def build_cleanup_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="delete-fixtures",
        description="Delete test fixtures created by seed-all.",
    )
    parser.add_argument("--dry", "-d", action="store_true", help="Show what would be deleted without deleting")
    parser.add_argument(
        "--tier",
        "-t",
        default=None,
        type=str.upper,
        choices=[tier.value for tier in Tier],
        help="Only delete manifest fixtures of this tier instead of sweeping by naming pattern",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every API request")
    return parser


def seed_main(argv: Sequence[str] | None = None) -> int:
    args = build_seed_parser().parse_args(argv)
    tier = parse_tier(args.tier)

    try:
        config = _prepare(args.verbose)
        _banner(f"Fixture Seeding - Tier {tier.value}")
        report = asyncio.run(run_seed(config, tier))
    except (ConfigurationError, AuthenticationError) as exc:
        logger.error("Seeding failed: %s", exc)
        return 1

    log_seed_summary(report)
    logger.info("Fixture seeding complete for Tier %s", tier.value)
    logger.warning(CACHE_REMINDER)
    return 0


def cleanup_main(argv: Sequence[str] | None = None) -> int:
    args = build_cleanup_parser().parse_args(argv)
    tier = Tier(args.tier) if args.tier else None

    try:
        config = _prepare(args.verbose)
        _banner("Fixture Cleanup" + (" (DRY RUN)" if args.dry else ""))
        if args.dry:
            logger.warning("DRY RUN MODE - no changes will be made")
        report = asyncio.run(run_cleanup(config, dry_run=args.dry, tier=tier))
    except (ConfigurationError, AuthenticationError) as exc:
        logger.error("Cleanup failed: %s", exc)
        return 1

    log_cleanup_summary(report)
    if args.dry:
        logger.info("This was a dry run. Run without --dry to actually delete.")
    else:
        logger.warning(CACHE_REMINDER)
    return 0
