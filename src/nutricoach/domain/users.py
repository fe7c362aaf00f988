"""Domain models for profiles, goals and weight tracking."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class ActivityLevel(StrEnum):
    """Self-reported activity level."""

    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    VERY_ACTIVE = "very_active"
    EXTRA_ACTIVE = "extra_active"


class GoalType(StrEnum):
    """Nutrition goal categories."""

    WEIGHT_LOSS = "weight_loss"
    WEIGHT_GAIN = "weight_gain"
    MAINTAIN = "maintain"
    MUSCLE_GAIN = "muscle_gain"


@dataclass(frozen=True)
class UserAccount:
    """Public user row mirrored from the auth service."""

    id: UUID
    email: str
    name: str | None
    role: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class UserProfile:
    """Profile row for a user."""

    id: UUID
    user_id: UUID
    age: int | None
    gender: str | None
    height: float | None
    weight: float | None
    activity_level: ActivityLevel | None
    dietary_restrictions: list[str] | None
    timezone: str
    locale: str
    onboarding_completed: bool


@dataclass(frozen=True)
class GoalDraft:
    """Goal values submitted by a user."""

    type: GoalType
    target_weight: float | None = None
    target_date: datetime | None = None
    daily_calories: int | None = None
    daily_protein: int | None = None
    daily_carbs: int | None = None
    daily_fat: int | None = None


@dataclass(frozen=True)
class Goal:
    """Stored goal row."""

    id: UUID
    user_id: UUID
    type: GoalType
    target_weight: float | None
    target_date: datetime | None
    daily_calories: int | None
    daily_protein: int | None
    daily_carbs: int | None
    daily_fat: int | None
    active: bool
    created_at: datetime


@dataclass(frozen=True)
class WeightEntry:
    """Logged body weight."""

    id: UUID
    user_id: UUID
    weight: float
    logged_at: datetime
    notes: str | None
