"""Daily summary snapshots built from logged meals."""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from nutricoach.domain.nutrients import (
    TOTAL_FIELDS,
    DailyStats,
    NutrientTotals,
    fold_daily,
)
from nutricoach.domain.summaries import (
    DailySummary,
    SummaryPage,
    SummaryStats,
    UpsertResult,
)
from nutricoach.errors import NotFoundError
from nutricoach.services.days import day_bounds
from nutricoach.services.pagination import paginate, parse_cursor

_logger = logging.getLogger(__name__)


class MealTotalsRepository(Protocol):
    """Read access to the stored totals of meals."""

    def list_meal_totals(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[NutrientTotals]:
        """Return totals of meals logged in [start, end)."""


class SummaryRepository(Protocol):
    """Persistence interface for daily summaries."""

    def get_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        """Return the summary for a user and date."""

    def list_summaries(
        self,
        user_id: UUID,
        start: date | None,
        end: date | None,
        limit: int,
        offset: int,
    ) -> list[DailySummary]:
        """Return summaries newest date first."""

    def list_summaries_between(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailySummary]:
        """Return summaries in an inclusive date range, oldest first."""

    def upsert_summary(  # noqa: PLR0913
        self,
        user_id: UUID,
        day: date,
        totals: NutrientTotals,
        meal_count: int,
        summary: str | None,
    ) -> UUID:
        """Insert or update the row keyed by (user_id, day) and return its id.

        A None summary keeps the stored text.
        """

    def update_summary_text(self, summary_id: UUID, summary: str) -> None:
        """Replace the feedback text of a summary."""

    def delete_summary(self, summary_id: UUID) -> None:
        """Delete a summary row."""


def collect_daily_stats(
    meals: MealTotalsRepository, user_id: UUID, day: date, timezone_name: str
) -> DailyStats:
    """Fold the stored totals of a day's meals into one aggregate."""
    start, end = day_bounds(day, timezone_name)
    return fold_daily(meals.list_meal_totals(user_id, start, end))


@dataclass
class SummaryService:
    """Service that maintains per-day nutrition snapshots."""

    repository: SummaryRepository
    meals: MealTotalsRepository

    def get_by_date(self, user_id: UUID, day: date) -> DailySummary | None:
        """Return the stored summary for a date, if any."""
        return self.repository.get_summary(user_id, day)

    def list_summaries(  # noqa: PLR0913
        self,
        user_id: UUID,
        limit: int = 30,
        cursor: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> SummaryPage:
        """Return a page of summaries, newest date first."""
        offset = parse_cursor(cursor)
        rows = self.repository.list_summaries(user_id, start, end, limit + 1, offset)
        items, next_cursor = paginate(rows, limit, offset)
        return SummaryPage(items=items, next_cursor=next_cursor)

    def upsert(
        self,
        user_id: UUID,
        day: date,
        timezone_name: str,
        summary: str | None = None,
    ) -> UpsertResult:
        """Recompute a day's totals from its meals and store the snapshot."""
        existing = self.repository.get_summary(user_id, day)
        stats = collect_daily_stats(self.meals, user_id, day, timezone_name)
        summary_id = self.repository.upsert_summary(
            user_id=user_id,
            day=day,
            totals=stats.totals,
            meal_count=stats.meal_count,
            summary=summary or None,
        )
        action = "updated" if existing else "created"
        _logger.info("Daily summary %s for %s", action, day.isoformat())
        return UpsertResult(id=summary_id, action=action)

    def refresh_existing(self, user_id: UUID, day: date, timezone_name: str) -> bool:
        """Re-upsert the snapshot for a day only when one is already stored."""
        if self.repository.get_summary(user_id, day) is None:
            return False
        stats = collect_daily_stats(self.meals, user_id, day, timezone_name)
        self.repository.upsert_summary(
            user_id=user_id,
            day=day,
            totals=stats.totals,
            meal_count=stats.meal_count,
            summary=None,
        )
        return True

    def update_text(self, user_id: UUID, day: date, summary: str) -> None:
        """Replace the feedback text for an existing summary."""
        existing = self.repository.get_summary(user_id, day)
        if existing is None:
            raise NotFoundError("Summary not found for this date")
        self.repository.update_summary_text(existing.id, summary)

    def delete(self, user_id: UUID, day: date) -> None:
        """Delete the summary for a date."""
        existing = self.repository.get_summary(user_id, day)
        if existing is None:
            raise NotFoundError("Summary not found")
        self.repository.delete_summary(existing.id)

    def stats(self, user_id: UUID, start: date, end: date) -> SummaryStats:
        """Return summaries in a range with their daily averages."""
        summaries = self.repository.list_summaries_between(user_id, start, end)
        count = len(summaries)
        if count == 0:
            return SummaryStats(
                summaries=[],
                averages=dict.fromkeys(TOTAL_FIELDS, 0),
                total_days=0,
            )
        averages: dict[str, float] = {}
        for name in TOTAL_FIELDS:
            mean = sum(getattr(entry.totals, name) for entry in summaries) / count
            digits = 0 if name == "calories" else 1
            averages[name] = _round_half_up(mean, digits)
        return SummaryStats(summaries=summaries, averages=averages, total_days=count)


def _round_half_up(value: float, digits: int) -> float:
    factor = 10**digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded
