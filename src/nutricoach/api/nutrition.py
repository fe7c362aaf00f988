"""Nutrition lookup and analysis procedures."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool

from nutricoach.api.context import RequestContext, get_user_context
from nutricoach.api.models import AnalyzeInput
from nutricoach.domain.nutrition import (
    FoodSearchPage,
    FoodSearchResult,
    NutritionAnalysis,
)
from nutricoach.domain.users import GoalType

router = APIRouter(prefix="/api/nutrition", tags=["nutrition"])


@router.get("/search-foods")
async def search_foods(
    query: str = Query(min_length=2, max_length=100),
    limit: int = Query(default=10, ge=1, le=50),
    context: RequestContext = Depends(get_user_context),
) -> FoodSearchPage:
    """Search the food catalog."""
    return await context.container.nutrition_service.search_foods(query, limit=limit)


@router.get("/food-details")
async def food_details(
    id: str = Query(min_length=1),  # noqa: A002
    context: RequestContext = Depends(get_user_context),
) -> FoodSearchResult:
    """Return one food from the catalog."""
    return await context.container.nutrition_service.get_food_details(id)


@router.post("/analyze")
async def analyze(
    payload: AnalyzeInput,
    context: RequestContext = Depends(get_user_context),
) -> NutritionAnalysis:
    """Parse a free-text meal description into food items."""
    return await context.container.nutrition_service.analyze(
        payload.text, payload.meal_type
    )


@router.get("/recommendations")
async def recommendations(
    context: RequestContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return daily and per-meal targets for the active goal."""
    goal = await run_in_threadpool(
        context.container.user_service.get_active_goal, context.user_id
    )
    return context.container.nutrition_service.recommendations(goal)


@router.get("/macro-distribution")
async def macro_distribution(
    goal_type: GoalType = GoalType.MAINTAIN,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return the suggested macro split for a goal type."""
    return context.container.nutrition_service.macro_distribution(goal_type)
