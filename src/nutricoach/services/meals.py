"""Meal logging service."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol
from uuid import UUID

from nutricoach.domain.meals import (
    FoodItemDraft,
    MealChanges,
    MealDraft,
    MealFilters,
    MealPage,
    MealRecord,
)
from nutricoach.domain.nutrients import DailyStats, NutrientTotals, sum_nutrients
from nutricoach.errors import NotFoundError
from nutricoach.services.days import local_day
from nutricoach.services.pagination import paginate, parse_cursor
from nutricoach.services.summaries import (
    MealTotalsRepository,
    SummaryService,
    collect_daily_stats,
)

_logger = logging.getLogger(__name__)


class MealRepository(MealTotalsRepository, Protocol):
    """Persistence interface for meals and their food items."""

    def create_meal(
        self, user_id: UUID, draft: MealDraft, totals: NutrientTotals
    ) -> UUID:
        """Insert a meal and all of its food items in one transaction."""

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealRecord | None:
        """Return a meal with items when it exists and belongs to the user."""

    def list_meals(
        self, user_id: UUID, filters: MealFilters, limit: int, offset: int
    ) -> list[MealRecord]:
        """Return meals with items, newest first."""

    def search_meals(self, user_id: UUID, query: str, limit: int) -> list[MealRecord]:
        """Return meals whose name contains the query, newest first."""

    def update_meal(
        self,
        meal_id: UUID,
        fields: dict[str, object],
        totals: NutrientTotals | None,
        items: list[FoodItemDraft] | None,
    ) -> None:
        """Apply field changes and, when items are given, replace them all.

        Runs in one transaction.
        """

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        """Delete a meal; food items cascade."""


def meal_totals(items: list[FoodItemDraft]) -> NutrientTotals:
    """Compute meal totals from its food items."""
    return sum_nutrients(item.nutrients for item in items)


@dataclass
class MealService:
    """Service that validates ownership, computes totals and persists meals."""

    repository: MealRepository
    summaries: SummaryService

    def list_meals(
        self,
        user_id: UUID,
        limit: int = 10,
        cursor: str | None = None,
        filters: MealFilters | None = None,
    ) -> MealPage:
        """Return a page of the user's meals."""
        offset = parse_cursor(cursor)
        rows = self.repository.list_meals(
            user_id, filters or MealFilters(), limit + 1, offset
        )
        items, next_cursor = paginate(rows, limit, offset)
        return MealPage(items=items, next_cursor=next_cursor)

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealRecord:
        """Return a meal owned by the user."""
        meal = self.repository.get_meal(user_id, meal_id)
        if meal is None:
            raise NotFoundError("Meal not found")
        return meal

    def create_meal(self, user_id: UUID, draft: MealDraft, timezone_name: str) -> UUID:
        """Persist a meal with totals computed from its food items."""
        totals = meal_totals(draft.food_items)
        meal_id = self.repository.create_meal(user_id, draft, totals)
        _logger.info(
            "Meal created: meal_id=%s items=%s", meal_id, len(draft.food_items)
        )
        self._refresh_summaries(
            user_id, {local_day(draft.logged_at, timezone_name)}, timezone_name
        )
        return meal_id

    def update_meal(
        self,
        user_id: UUID,
        meal_id: UUID,
        changes: MealChanges,
        timezone_name: str,
    ) -> None:
        """Update a meal, replacing its food items when new ones are supplied."""
        existing = self.get_meal(user_id, meal_id)
        totals = None
        if changes.food_items is not None:
            totals = meal_totals(changes.food_items)
        fields = changes.field_values()
        if not fields and changes.food_items is None:
            return
        self.repository.update_meal(meal_id, fields, totals, changes.food_items)
        days = {local_day(existing.logged_at, timezone_name)}
        if changes.logged_at is not None:
            days.add(local_day(changes.logged_at, timezone_name))
        self._refresh_summaries(user_id, days, timezone_name)

    def delete_meal(self, user_id: UUID, meal_id: UUID, timezone_name: str) -> None:
        """Delete a meal owned by the user."""
        existing = self.get_meal(user_id, meal_id)
        self.repository.delete_meal(user_id, meal_id)
        _logger.info("Meal deleted: meal_id=%s", meal_id)
        self._refresh_summaries(
            user_id, {local_day(existing.logged_at, timezone_name)}, timezone_name
        )

    def search_recent(
        self, user_id: UUID, query: str, limit: int = 5
    ) -> list[MealRecord]:
        """Return recent meals matching a name fragment."""
        return self.repository.search_meals(user_id, query.strip(), limit)

    def daily_stats(self, user_id: UUID, day: date, timezone_name: str) -> DailyStats:
        """Return live totals for a calendar day."""
        return collect_daily_stats(self.repository, user_id, day, timezone_name)

    def _refresh_summaries(
        self, user_id: UUID, days: set[date], timezone_name: str
    ) -> None:
        for day in sorted(days):
            self.summaries.refresh_existing(user_id, day, timezone_name)
