"""Supabase-backed repository for users, profiles, goals and weight."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from supabase import Client, PostgrestAPIError

from nutricoach.domain.users import (
    ActivityLevel,
    Goal,
    GoalDraft,
    GoalType,
    UserAccount,
    UserProfile,
    WeightEntry,
)
from nutricoach.errors import ConflictError
from nutricoach.services.users import UserRepository

_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user-owned profile data."""

    client: Client

    def get_user(self, user_id: UUID) -> UserAccount | None:
        """Return the public user row."""
        response = (
            self.client.table("users")
            .select("id, email, name, role, created_at")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        created_at = row.get("created_at")
        return UserAccount(
            id=UUID(row["id"]),
            email=str(row.get("email", "")),
            name=row.get("name"),
            role=str(row.get("role") or "user"),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user, if present."""
        response = (
            self.client.table("user_profiles")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def update_user_name(self, user_id: UUID, name: str) -> None:
        """Update the display name on the user row."""
        self.client.table("users").update(
            {"name": name, "updated_at": datetime.now(tz=UTC).isoformat()}
        ).eq("id", str(user_id)).execute()

    def upsert_profile(self, user_id: UUID, values: dict[str, object]) -> None:
        """Create the profile or update only the supplied columns."""
        payload = {key: _to_json(value) for key, value in values.items()}
        payload["user_id"] = str(user_id)
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        self.client.table("user_profiles").upsert(
            payload, on_conflict="user_id"
        ).execute()

    def list_active_goals(self, user_id: UUID) -> list[Goal]:
        """Return active goals, newest first."""
        response = (
            self.client.table("goals")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("active", True)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_goal(row) for row in response.data or []]

    def activate_goal(self, user_id: UUID, draft: GoalDraft) -> UUID:
        """Deactivate other goals and insert the new one in one transaction."""
        try:
            response = self.client.rpc(
                "activate_goal",
                {
                    "p_user_id": str(user_id),
                    "p_goal": {
                        "type": draft.type.value,
                        "target_weight": draft.target_weight,
                        "target_date": _to_json(draft.target_date),
                        "daily_calories": draft.daily_calories,
                        "daily_protein": draft.daily_protein,
                        "daily_carbs": draft.daily_carbs,
                        "daily_fat": draft.daily_fat,
                    },
                },
            ).execute()
        except PostgrestAPIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                message = "Another goal was activated at the same time"
                raise ConflictError(message) from exc
            raise
        data = response.data
        if isinstance(data, list):
            data = data[0] if data else None
        if not data:
            raise RuntimeError("Failed to create goal")
        return UUID(str(data))

    def create_weight_entry(
        self, user_id: UUID, weight: float, notes: str | None, logged_at: datetime
    ) -> UUID:
        """Insert a weight entry and return its id."""
        response = (
            self.client.table("weight_entries")
            .insert(
                {
                    "user_id": str(user_id),
                    "weight": weight,
                    "notes": notes,
                    "logged_at": logged_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create weight entry")
        return UUID(response.data[0]["id"])

    def list_weight_entries(
        self,
        user_id: UUID,
        start: datetime | None,
        end: datetime | None,
        limit: int,
    ) -> list[WeightEntry]:
        """Return weight entries, newest first."""
        query = (
            self.client.table("weight_entries")
            .select("*")
            .eq("user_id", str(user_id))
        )
        if start is not None:
            query = query.gte("logged_at", start.isoformat())
        if end is not None:
            query = query.lt("logged_at", end.isoformat())
        response = query.order("logged_at", desc=True).limit(limit).execute()
        return [
            WeightEntry(
                id=UUID(row["id"]),
                user_id=UUID(row["user_id"]),
                weight=float(row["weight"]),
                logged_at=datetime.fromisoformat(row["logged_at"]),
                notes=row.get("notes"),
            )
            for row in response.data or []
        ]

    def email_exists(self, email: str) -> bool:
        """Return True when a user row already uses the email."""
        response = (
            self.client.table("users")
            .select("id")
            .eq("email", email)
            .limit(1)
            .execute()
        )
        return bool(response.data)


def _to_json(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None


def _parse_profile(row: dict[str, object]) -> UserProfile:
    activity_level = row.get("activity_level")
    return UserProfile(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        age=row.get("age"),
        gender=row.get("gender"),
        height=_optional_float(row.get("height")),
        weight=_optional_float(row.get("weight")),
        activity_level=ActivityLevel(activity_level) if activity_level else None,
        dietary_restrictions=row.get("dietary_restrictions"),
        timezone=str(row.get("timezone") or "UTC"),
        locale=str(row.get("locale") or "en"),
        onboarding_completed=bool(row.get("onboarding_completed", False)),
    )


def _parse_goal(row: dict[str, object]) -> Goal:
    target_date = row.get("target_date")
    return Goal(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        type=GoalType(row["type"]),
        target_weight=_optional_float(row.get("target_weight")),
        target_date=datetime.fromisoformat(target_date) if target_date else None,
        daily_calories=row.get("daily_calories"),
        daily_protein=row.get("daily_protein"),
        daily_carbs=row.get("daily_carbs"),
        daily_fat=row.get("daily_fat"),
        active=bool(row.get("active", False)),
        created_at=datetime.fromisoformat(row["created_at"]),
    )
