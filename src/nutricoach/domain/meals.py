"""Domain models for meal logging."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from nutricoach.domain.nutrients import FoodItemNutrients, NutrientTotals


class MealType(StrEnum):
    """Kinds of meals a user can log."""

    BREAKFAST = "breakfast"
    BRUNCH = "brunch"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"
    DESSERT = "dessert"


@dataclass(frozen=True)
class FoodItemDraft:
    """Food item as submitted for a meal write."""

    name: str
    quantity: float
    unit: str
    brand: str | None = None
    nutrients: FoodItemNutrients = field(default_factory=FoodItemNutrients)


@dataclass(frozen=True)
class FoodItemRecord:
    """Stored food item row."""

    id: UUID
    meal_id: UUID
    name: str
    brand: str | None
    quantity: float
    unit: str
    nutrients: FoodItemNutrients


@dataclass(frozen=True)
class MealDraft:
    """New meal before persistence."""

    name: str
    logged_at: datetime
    description: str | None = None
    type: MealType | None = None
    ai_parsed: bool = False
    food_items: list[FoodItemDraft] = field(default_factory=list)


@dataclass(frozen=True)
class MealChanges:
    """Partial meal update; None leaves a field untouched."""

    name: str | None = None
    description: str | None = None
    type: MealType | None = None
    logged_at: datetime | None = None
    food_items: list[FoodItemDraft] | None = None

    def field_values(self) -> dict[str, object]:
        """Return the scalar fields that were supplied."""
        values: dict[str, object] = {}
        if self.name is not None:
            values["name"] = self.name
        if self.description is not None:
            values["description"] = self.description
        if self.type is not None:
            values["type"] = self.type
        if self.logged_at is not None:
            values["logged_at"] = self.logged_at
        return values


@dataclass(frozen=True)
class MealRecord:
    """Stored meal with its denormalised totals and food items."""

    id: UUID
    user_id: UUID
    name: str
    description: str | None
    type: MealType | None
    logged_at: datetime
    ai_parsed: bool
    totals: NutrientTotals
    food_items: list[FoodItemRecord] = field(default_factory=list)


@dataclass(frozen=True)
class MealFilters:
    """Optional filters for listing meals."""

    start: datetime | None = None
    end: datetime | None = None
    type: MealType | None = None


@dataclass(frozen=True)
class MealPage:
    """One page of meals with an offset cursor."""

    items: list[MealRecord]
    next_cursor: str | None
