"""User profile, goal and weight procedures."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query

from nutricoach.api.context import RequestContext, get_user_context
from nutricoach.api.models import CreateGoalInput, LogWeightInput, UpdateProfileInput
from nutricoach.domain.users import Goal, WeightEntry
from nutricoach.services.days import day_bounds

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/get-profile")
def get_profile(
    context: RequestContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return the user row and the profile, which may be null."""
    service = context.container.user_service
    session_user = context.session.user
    account = service.get_account(context.user_id)
    return {
        "user": {
            "id": session_user.id,
            "email": account.email if account else session_user.email,
            "name": account.name if account else session_user.name,
            "role": account.role if account else session_user.role,
        },
        "profile": service.get_profile(context.user_id),
    }


@router.post("/update-profile")
def update_profile(
    payload: UpdateProfileInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Apply the supplied profile fields."""
    context.container.user_service.update_profile(
        context.user_id, payload.model_dump(exclude_unset=True)
    )
    return {"success": True}


@router.post("/complete-onboarding")
def complete_onboarding(
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Mark onboarding as finished."""
    context.container.user_service.complete_onboarding(context.user_id)
    return {"success": True}


@router.get("/goals")
def list_goals(
    context: RequestContext = Depends(get_user_context),
) -> list[Goal]:
    """Return active goals, newest first."""
    return context.container.user_service.list_goals(context.user_id)


@router.get("/active-goal")
def active_goal(
    context: RequestContext = Depends(get_user_context),
) -> Goal | None:
    """Return the current goal, or null."""
    return context.container.user_service.get_active_goal(context.user_id)


@router.post("/create-goal")
def create_goal(
    payload: CreateGoalInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, UUID]:
    """Create a goal and deactivate the previous one."""
    goal_id = context.container.user_service.create_goal(
        context.user_id, payload.to_draft()
    )
    return {"id": goal_id}


@router.post("/log-weight")
def log_weight(
    payload: LogWeightInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, UUID]:
    """Record a weight entry."""
    entry_id = context.container.user_service.log_weight(
        context.user_id,
        payload.weight,
        notes=payload.notes,
        logged_at=payload.logged_at,
    )
    return {"id": entry_id}


@router.get("/weight-history")
def weight_history(
    limit: int = Query(default=30, ge=1, le=100),
    start_date: date | None = None,
    end_date: date | None = None,
    context: RequestContext = Depends(get_user_context),
) -> list[WeightEntry]:
    """Return weight entries, newest first."""
    timezone = context.timezone()
    return context.container.user_service.weight_history(
        context.user_id,
        limit=limit,
        start=day_bounds(start_date, timezone)[0] if start_date else None,
        end=day_bounds(end_date, timezone)[1] if end_date else None,
    )
