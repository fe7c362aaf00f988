"""Daily summary procedures."""

from __future__ import annotations

from datetime import date  # noqa: TC003

from fastapi import APIRouter, Depends, Query

from nutricoach.api.context import RequestContext, get_user_context
from nutricoach.api.models import (
    SummaryDateInput,
    UpdateSummaryTextInput,
    UpsertSummaryInput,
)
from nutricoach.domain.summaries import DailySummary, SummaryStats, UpsertResult

router = APIRouter(prefix="/api/summaries", tags=["summaries"])


@router.get("/get-by-date")
def get_by_date(
    day: date = Query(alias="date"),
    context: RequestContext = Depends(get_user_context),
) -> DailySummary | None:
    """Return the stored summary for a date, or null."""
    return context.container.summary_service.get_by_date(context.user_id, day)


@router.get("/list")
def list_summaries(
    limit: int = Query(default=30, ge=1, le=100),
    cursor: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return summaries newest date first."""
    page = context.container.summary_service.list_summaries(
        context.user_id,
        limit=limit,
        cursor=cursor,
        start=start_date,
        end=end_date,
    )
    return {"items": page.items, "next_cursor": page.next_cursor}


@router.post("/upsert")
def upsert_summary(
    payload: UpsertSummaryInput,
    context: RequestContext = Depends(get_user_context),
) -> UpsertResult:
    """Recompute and store the snapshot for a date."""
    return context.container.summary_service.upsert(
        context.user_id, payload.date, context.timezone(), summary=payload.summary
    )


@router.post("/update-text")
def update_text(
    payload: UpdateSummaryTextInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Replace the feedback text of a stored summary."""
    context.container.summary_service.update_text(
        context.user_id, payload.date, payload.summary
    )
    return {"success": True}


@router.post("/delete")
def delete_summary(
    payload: SummaryDateInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Delete the summary for a date."""
    context.container.summary_service.delete(context.user_id, payload.date)
    return {"success": True}


@router.get("/stats")
def stats(
    start_date: date,
    end_date: date,
    context: RequestContext = Depends(get_user_context),
) -> SummaryStats:
    """Return summaries in a range with their daily averages."""
    return context.container.summary_service.stats(
        context.user_id, start_date, end_date
    )
