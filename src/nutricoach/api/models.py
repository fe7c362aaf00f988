"""Pydantic models for API request payloads."""

import re
from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from nutricoach.domain.meals import FoodItemDraft, MealChanges, MealDraft, MealType
from nutricoach.domain.nutrients import FoodItemNutrients
from nutricoach.domain.users import ActivityLevel, GoalDraft, GoalType

_NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")
_PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (
        re.compile(r"[^A-Za-z0-9]"),
        "Password must contain at least one special character",
    ),
)


def _check_password(value: str) -> str:
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(value):
            raise ValueError(message)
    return value


class SignUpInput(BaseModel):
    """Registration form."""

    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8, max_length=100)
    confirm_password: str
    accept_terms: bool

    @field_validator("name")
    @classmethod
    def _name_characters(cls, value: str) -> str:
        if not _NAME_PATTERN.match(value):
            raise ValueError(
                "Name can only contain letters, spaces, hyphens, and apostrophes"
            )
        return value

    @field_validator("password")
    @classmethod
    def _password_strength(cls, value: str) -> str:
        return _check_password(value)

    @field_validator("accept_terms")
    @classmethod
    def _terms_accepted(cls, value: bool) -> bool:
        if not value:
            raise ValueError("You must accept the terms and conditions")
        return value

    @model_validator(mode="after")
    def _passwords_match(self) -> "SignUpInput":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class SignInInput(BaseModel):
    """Credential sign-in form."""

    email: EmailStr
    password: str = Field(min_length=1)
    device_fingerprint: str | None = Field(default=None, max_length=200)


class DeleteAccountInput(BaseModel):
    confirmation: str


class UpdateEmailInput(BaseModel):
    new_email: EmailStr


class UpdatePasswordInput(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def _password_strength(cls, value: str) -> str:
        return _check_password(value)


class UpdateProfileInput(BaseModel):
    """Profile fields; omitted fields are left untouched."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=1, le=150)
    gender: Literal["male", "female", "other"] | None = None
    height: float | None = Field(default=None, ge=50, le=300)
    weight: float | None = Field(default=None, ge=20, le=500)
    activity_level: ActivityLevel | None = None
    dietary_restrictions: list[str] | None = None
    timezone: str | None = None
    locale: str | None = Field(default=None, max_length=10)


class CreateGoalInput(BaseModel):
    type: GoalType
    target_weight: float | None = Field(default=None, ge=20, le=500)
    target_date: datetime | None = None
    daily_calories: int | None = Field(default=None, ge=500, le=10000)
    daily_protein: int | None = Field(default=None, ge=0, le=1000)
    daily_carbs: int | None = Field(default=None, ge=0, le=1000)
    daily_fat: int | None = Field(default=None, ge=0, le=1000)

    def to_draft(self) -> GoalDraft:
        return GoalDraft(**self.model_dump())


class LogWeightInput(BaseModel):
    weight: float = Field(ge=20, le=500)
    notes: str | None = Field(default=None, max_length=500)
    logged_at: datetime | None = None


class FoodItemInput(BaseModel):
    """Food item within a meal write."""

    name: str = Field(min_length=1, max_length=200)
    brand: str | None = Field(default=None, max_length=100)
    quantity: float = Field(gt=0)
    unit: str = Field(min_length=1, max_length=50)
    calories: float | None = Field(default=None, ge=0)
    protein: float | None = Field(default=None, ge=0)
    carbs: float | None = Field(default=None, ge=0)
    fat: float | None = Field(default=None, ge=0)
    fiber: float | None = Field(default=None, ge=0)
    sodium: float | None = Field(default=None, ge=0)
    sugar: float | None = Field(default=None, ge=0)
    iron: float | None = Field(default=None, ge=0)
    magnesium: float | None = Field(default=None, ge=0)
    calcium: float | None = Field(default=None, ge=0)
    zinc: float | None = Field(default=None, ge=0)
    potassium: float | None = Field(default=None, ge=0)

    def to_draft(self) -> FoodItemDraft:
        nutrients = self.model_dump(exclude={"name", "brand", "quantity", "unit"})
        return FoodItemDraft(
            name=self.name,
            brand=self.brand,
            quantity=self.quantity,
            unit=self.unit,
            nutrients=FoodItemNutrients(**nutrients),
        )


class CreateMealInput(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    type: MealType | None = None
    logged_at: datetime | None = None
    ai_parsed: bool = False
    food_items: list[FoodItemInput] = Field(default_factory=list)

    def to_draft(self, now: datetime) -> MealDraft:
        return MealDraft(
            name=self.name,
            description=self.description,
            type=self.type,
            logged_at=self.logged_at or now,
            ai_parsed=self.ai_parsed,
            food_items=[item.to_draft() for item in self.food_items],
        )


class UpdateMealInput(BaseModel):
    id: UUID
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    type: MealType | None = None
    logged_at: datetime | None = None
    food_items: list[FoodItemInput] | None = None

    def to_changes(self) -> MealChanges:
        return MealChanges(
            name=self.name,
            description=self.description,
            type=self.type,
            logged_at=self.logged_at,
            food_items=(
                [item.to_draft() for item in self.food_items]
                if self.food_items is not None
                else None
            ),
        )


class MealIdInput(BaseModel):
    id: UUID


class AnalyzeInput(BaseModel):
    text: str = Field(min_length=1, max_length=1000)
    meal_type: MealType | None = None


class SummaryDateInput(BaseModel):
    date: date


class UpsertSummaryInput(BaseModel):
    date: date
    summary: str | None = Field(default=None, max_length=5000)


class UpdateSummaryTextInput(BaseModel):
    date: date
    summary: str = Field(max_length=5000)
