"""Domain models for persisted daily summaries."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from nutricoach.domain.nutrients import NutrientTotals


@dataclass(frozen=True)
class DailySummary:
    """Per-day snapshot of a user's nutrient totals."""

    id: UUID
    user_id: UUID
    date: date
    totals: NutrientTotals
    meal_count: int
    summary: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class UpsertResult:
    """Identifier and outcome of a summary upsert."""

    id: UUID
    action: str


@dataclass(frozen=True)
class SummaryPage:
    """One page of summaries with an offset cursor."""

    items: list[DailySummary]
    next_cursor: str | None


@dataclass(frozen=True)
class SummaryStats:
    """Summaries in a range with their per-day averages."""

    summaries: list[DailySummary]
    averages: dict[str, float]
    total_days: int
