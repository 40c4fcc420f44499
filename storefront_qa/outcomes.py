"""Per-fixture outcomes and run summaries for the seed and cleanup reconcilers."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .fixture_schema import FixtureKind


class Outcome(str, Enum):
    CREATED = "created"
    EXISTS = "exists"
    FAILED = "failed"
    DELETED = "deleted"
    WOULD_DELETE = "would_delete"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class FixtureResult:
    """What happened to one fixture (or one remote record) during a run."""

    kind: FixtureKind
    key: str
    outcome: Outcome
    message: str = ""


@dataclass
class SeedReport:
    """Ordered record of every seed decision, grouped by fixture kind."""

    tier: str
    results: list[FixtureResult] = field(default_factory=list)

    def add(self, result: FixtureResult) -> FixtureResult:
        self.results.append(result)
        return result

    def extend(self, results: list[FixtureResult]) -> None:
        self.results.extend(results)

    def for_kind(self, kind: FixtureKind) -> list[FixtureResult]:
        return [result for result in self.results if result.kind == kind]

    def count(self, kind: FixtureKind | None = None, outcome: Outcome | None = None) -> int:
        return sum(
            1
            for result in self.results
            if (kind is None or result.kind == kind) and (outcome is None or result.outcome == outcome)
        )

    @property
    def created(self) -> int:
        return self.count(outcome=Outcome.CREATED)

    @property
    def existing(self) -> int:
        return self.count(outcome=Outcome.EXISTS)

    @property
    def failed(self) -> int:
        return self.count(outcome=Outcome.FAILED)

    def summary(self) -> dict[str, dict[str, int]]:
        table: dict[str, dict[str, int]] = {}
        for kind in FixtureKind:
            counts = Counter(result.outcome.value for result in self.for_kind(kind))
            table[kind.value] = {
                Outcome.CREATED.value: counts[Outcome.CREATED.value],
                Outcome.EXISTS.value: counts[Outcome.EXISTS.value],
                Outcome.FAILED.value: counts[Outcome.FAILED.value],
            }
        return table


@dataclass
class CleanupStats:
    """Counts for one fixture kind; dry runs count would-deletes as deleted."""

    found: int = 0
    deleted: int = 0
    failed: int = 0
    results: list[FixtureResult] = field(default_factory=list)

    def record(self, result: FixtureResult) -> None:
        self.results.append(result)
        if result.outcome in (Outcome.DELETED, Outcome.WOULD_DELETE):
            self.deleted += 1
        elif result.outcome == Outcome.FAILED:
            self.failed += 1


@dataclass
class CleanupReport:
    dry_run: bool
    products: CleanupStats = field(default_factory=CleanupStats)
    customers: CleanupStats = field(default_factory=CleanupStats)
    coupons: CleanupStats = field(default_factory=CleanupStats)

    def stats_for(self, kind: FixtureKind) -> CleanupStats:
        return {
            FixtureKind.PRODUCT: self.products,
            FixtureKind.CUSTOMER: self.customers,
            FixtureKind.COUPON: self.coupons,
        }[kind]

    @property
    def total_deleted(self) -> int:
        return self.products.deleted + self.customers.deleted + self.coupons.deleted

    @property
    def total_failed(self) -> int:
        return self.products.failed + self.customers.failed + self.coupons.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            **{
                kind.value: {
                    "found": self.stats_for(kind).found,
                    "deleted": self.stats_for(kind).deleted,
                    "failed": self.stats_for(kind).failed,
                }
                for kind in FixtureKind
            },
        }
