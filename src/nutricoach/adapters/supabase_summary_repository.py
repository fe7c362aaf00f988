"""Supabase repository for daily summaries."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from nutricoach.adapters.supabase_meal_repository import parse_totals
from nutricoach.domain.nutrients import NutrientTotals
from nutricoach.domain.summaries import DailySummary
from nutricoach.services.summaries import SummaryRepository


@dataclass
class SupabaseSummaryRepository(SummaryRepository):
    """Supabase implementation keyed by the (user_id, date) unique index."""

    client: Client

    def get_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        """Return the summary for a user and date."""
        response = (
            self.client.table("daily_summaries")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_summary(response.data[0])

    def list_summaries(
        self,
        user_id: UUID,
        start: date | None,
        end: date | None,
        limit: int,
        offset: int,
    ) -> list[DailySummary]:
        """Return summaries newest date first."""
        query = (
            self.client.table("daily_summaries")
            .select("*")
            .eq("user_id", str(user_id))
        )
        if start is not None:
            query = query.gte("date", start.isoformat())
        if end is not None:
            query = query.lte("date", end.isoformat())
        response = (
            query.order("date", desc=True).range(offset, offset + limit - 1).execute()
        )
        return [_parse_summary(row) for row in response.data or []]

    def list_summaries_between(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailySummary]:
        """Return summaries in an inclusive date range, oldest first."""
        response = (
            self.client.table("daily_summaries")
            .select("*")
            .eq("user_id", str(user_id))
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("date", desc=False)
            .execute()
        )
        return [_parse_summary(row) for row in response.data or []]

    def upsert_summary(  # noqa: PLR0913
        self,
        user_id: UUID,
        day: date,
        totals: NutrientTotals,
        meal_count: int,
        summary: str | None,
    ) -> UUID:
        """Insert or update the row for (user_id, day)."""
        payload: dict[str, object] = {
            "user_id": str(user_id),
            "date": day.isoformat(),
            "meal_count": meal_count,
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        payload.update(
            {f"total_{name}": value for name, value in totals.as_dict().items()}
        )
        if summary is not None:
            payload["summary"] = summary
        response = (
            self.client.table("daily_summaries")
            .upsert(payload, on_conflict="user_id,date")
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to upsert daily summary")
        return UUID(response.data[0]["id"])

    def update_summary_text(self, summary_id: UUID, summary: str) -> None:
        """Replace the feedback text of a summary."""
        self.client.table("daily_summaries").update(
            {"summary": summary, "updated_at": datetime.now(tz=UTC).isoformat()}
        ).eq("id", str(summary_id)).execute()

    def delete_summary(self, summary_id: UUID) -> None:
        """Delete a summary row."""
        self.client.table("daily_summaries").delete().eq(
            "id", str(summary_id)
        ).execute()


def _parse_timestamp(value: object) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value))


def _parse_summary(row: dict[str, object]) -> DailySummary:
    return DailySummary(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        date=date.fromisoformat(str(row["date"])),
        totals=parse_totals(row),
        meal_count=int(row.get("meal_count") or 0),
        summary=row.get("summary"),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )
