"""Tier selection over manifest fixtures."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, TypeVar

from .fixture_schema import (
    DEFAULT_TIER,
    CouponFixture,
    CustomerFixture,
    FixtureKind,
    ProductFixture,
    Tier,
)

if TYPE_CHECKING:
    from .manifest_store import ManifestStore

F = TypeVar("F", ProductFixture, CustomerFixture, CouponFixture)


def parse_tier(value: str | Tier | None, default: Tier = DEFAULT_TIER) -> Tier:
    """Parse a tier name leniently; unknown or empty values give *default*."""
    if isinstance(value, Tier):
        return value
    if not value:
        return default
    try:
        return Tier(value.strip().upper())
    except ValueError:
        return default


def get_current_tier() -> Tier:
    """Return the tier named by ``TEST_TIER``, or B."""
    return parse_tier(os.environ.get("TEST_TIER"))


def select_for_tier(fixtures: Iterable[F], tier: Tier) -> list[F]:
    """Return the manifest-ordered sub-sequence of fixtures tagged with *tier*."""
    return [fixture for fixture in fixtures if tier in fixture.tier]


@dataclass(frozen=True)
class TierSelection:
    tier: Tier
    products: list[ProductFixture]
    customers: list[CustomerFixture]
    coupons: list[CouponFixture]


def fixtures_for_tier(store: "ManifestStore", tier: Tier) -> TierSelection:
    return TierSelection(
        tier=tier,
        products=store.select_for_tier(FixtureKind.PRODUCT, tier),
        customers=store.select_for_tier(FixtureKind.CUSTOMER, tier),
        coupons=store.select_for_tier(FixtureKind.COUPON, tier),
    )


def fixtures_for_current_tier(store: "ManifestStore") -> TierSelection:
    return fixtures_for_tier(store, get_current_tier())
