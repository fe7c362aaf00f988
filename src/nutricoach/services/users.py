"""Profile, goal and weight tracking logic."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from nutricoach.domain.users import (
    Goal,
    GoalDraft,
    UserAccount,
    UserProfile,
    WeightEntry,
)
from nutricoach.errors import BadRequestError
from nutricoach.services.days import is_valid_timezone


class UserRepository(Protocol):
    """Persistence interface for user-owned profile data."""

    def get_user(self, user_id: UUID) -> UserAccount | None:
        """Return the public user row."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user, if present."""

    def update_user_name(self, user_id: UUID, name: str) -> None:
        """Update the display name on the user row."""

    def upsert_profile(self, user_id: UUID, values: dict[str, object]) -> None:
        """Create the profile or update the supplied columns."""

    def list_active_goals(self, user_id: UUID) -> list[Goal]:
        """Return active goals, newest first."""

    def activate_goal(self, user_id: UUID, draft: GoalDraft) -> UUID:
        """Deactivate other goals and insert a new active one atomically."""

    def create_weight_entry(
        self, user_id: UUID, weight: float, notes: str | None, logged_at: datetime
    ) -> UUID:
        """Insert a weight entry and return its id."""

    def list_weight_entries(
        self,
        user_id: UUID,
        start: datetime | None,
        end: datetime | None,
        limit: int,
    ) -> list[WeightEntry]:
        """Return weight entries, newest first."""

    def email_exists(self, email: str) -> bool:
        """Return True when a user already uses the email."""


@dataclass
class UserService:
    """Application service for profile, goals and weight history."""

    repository: UserRepository
    default_timezone: str = "UTC"

    def get_account(self, user_id: UUID) -> UserAccount | None:
        """Return the public user row."""
        return self.repository.get_user(user_id)

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the user's profile, if one was created."""
        return self.repository.get_profile(user_id)

    def update_profile(self, user_id: UUID, changes: dict[str, object]) -> None:
        """Apply supplied profile fields; the name lives on the user row."""
        values = {key: value for key, value in changes.items() if value is not None}
        timezone = values.get("timezone")
        if isinstance(timezone, str) and not is_valid_timezone(timezone):
            raise BadRequestError(f"Unknown timezone: {timezone}")
        name = values.pop("name", None)
        if isinstance(name, str):
            self.repository.update_user_name(user_id, name)
        if values:
            self.repository.upsert_profile(user_id, values)

    def complete_onboarding(self, user_id: UUID) -> None:
        """Mark onboarding as finished."""
        self.repository.upsert_profile(user_id, {"onboarding_completed": True})

    def get_timezone(self, user_id: UUID) -> str:
        """Return the profile timezone or the configured default."""
        profile = self.repository.get_profile(user_id)
        if profile and profile.timezone:
            return profile.timezone
        return self.default_timezone

    def list_goals(self, user_id: UUID) -> list[Goal]:
        """Return active goals, newest first; empty when none exist."""
        return self.repository.list_active_goals(user_id)

    def get_active_goal(self, user_id: UUID) -> Goal | None:
        """Return the current goal, preferring the newest active one."""
        goals = self.repository.list_active_goals(user_id)
        return goals[0] if goals else None

    def create_goal(self, user_id: UUID, draft: GoalDraft) -> UUID:
        """Create a goal and make it the only active one."""
        return self.repository.activate_goal(user_id, draft)

    def log_weight(
        self,
        user_id: UUID,
        weight: float,
        notes: str | None = None,
        logged_at: datetime | None = None,
    ) -> UUID:
        """Record a weight entry and copy it onto the profile."""
        entry_id = self.repository.create_weight_entry(
            user_id=user_id,
            weight=weight,
            notes=notes,
            logged_at=logged_at or datetime.now(tz=UTC),
        )
        if self.repository.get_profile(user_id) is not None:
            self.repository.upsert_profile(user_id, {"weight": weight})
        return entry_id

    def weight_history(
        self,
        user_id: UUID,
        limit: int = 30,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[WeightEntry]:
        """Return weight entries, newest first."""
        return self.repository.list_weight_entries(user_id, start, end, limit)

    def is_email_available(self, email: str) -> bool:
        """Return True when no account uses the email."""
        return not self.repository.email_exists(email.strip().lower())
