"""Meal procedures."""

from __future__ import annotations

from datetime import UTC, date, datetime
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query

from nutricoach.api.context import RequestContext, get_user_context
from nutricoach.api.models import CreateMealInput, MealIdInput, UpdateMealInput
from nutricoach.domain.meals import MealFilters, MealRecord, MealType
from nutricoach.services.days import day_bounds, local_day

router = APIRouter(prefix="/api/meals", tags=["meals"])


@router.get("/list")
def list_meals(  # noqa: PLR0913
    limit: int = Query(default=10, ge=1, le=100),
    cursor: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    type: MealType | None = None,  # noqa: A002
    context: RequestContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return the caller's meals, newest first."""
    timezone = context.timezone()
    filters = MealFilters(
        start=day_bounds(start_date, timezone)[0] if start_date else None,
        end=day_bounds(end_date, timezone)[1] if end_date else None,
        type=type,
    )
    page = context.container.meal_service.list_meals(
        context.user_id, limit=limit, cursor=cursor, filters=filters
    )
    return {"items": page.items, "next_cursor": page.next_cursor}


@router.get("/get")
def get_meal(
    id: UUID,  # noqa: A002
    context: RequestContext = Depends(get_user_context),
) -> MealRecord:
    """Return one meal with its food items."""
    return context.container.meal_service.get_meal(context.user_id, id)


@router.post("/create")
def create_meal(
    payload: CreateMealInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, UUID]:
    """Log a meal and its food items."""
    draft = payload.to_draft(datetime.now(tz=UTC))
    meal_id = context.container.meal_service.create_meal(
        context.user_id, draft, context.timezone()
    )
    return {"id": meal_id}


@router.post("/update")
def update_meal(
    payload: UpdateMealInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Update a meal; supplied food items replace the existing ones."""
    context.container.meal_service.update_meal(
        context.user_id, payload.id, payload.to_changes(), context.timezone()
    )
    return {"success": True}


@router.post("/delete")
def delete_meal(
    payload: MealIdInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Delete a meal and its food items."""
    context.container.meal_service.delete_meal(
        context.user_id, payload.id, context.timezone()
    )
    return {"success": True}


@router.get("/search")
def search_meals(
    query: str = Query(min_length=1, max_length=100),
    limit: int = Query(default=5, ge=1, le=20),
    context: RequestContext = Depends(get_user_context),
) -> list[MealRecord]:
    """Return recent meals whose name contains the query."""
    return context.container.meal_service.search_recent(
        context.user_id, query, limit=limit
    )


@router.get("/daily-stats")
def daily_stats(
    day: date | None = Query(default=None, alias="date"),
    context: RequestContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return live totals for a calendar day; defaults to today."""
    timezone = context.timezone()
    resolved_day = day or local_day(datetime.now(tz=UTC), timezone)
    stats = context.container.meal_service.daily_stats(
        context.user_id, resolved_day, timezone
    )
    return {
        "date": resolved_day,
        "totals": stats.totals,
        "meal_count": stats.meal_count,
    }
