"""Nutrient totals and aggregation."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields

TOTAL_FIELDS = (
    "calories",
    "protein",
    "carbs",
    "fat",
    "fiber",
    "iron",
    "magnesium",
    "calcium",
    "zinc",
    "potassium",
)

ITEM_FIELDS = (*TOTAL_FIELDS[:5], "sodium", "sugar", *TOTAL_FIELDS[5:])

# Matches the numeric(10, 2) scale of the stored totals.
_PRECISION = 2


@dataclass(frozen=True)
class NutrientTotals:
    """Aggregated nutrient totals for a meal or a day."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    iron: float = 0.0
    magnesium: float = 0.0
    calcium: float = 0.0
    zinc: float = 0.0
    potassium: float = 0.0

    def as_dict(self) -> dict[str, float]:
        """Return totals keyed by nutrient name."""
        return {field.name: getattr(self, field.name) for field in fields(self)}


@dataclass(frozen=True)
class FoodItemNutrients:
    """Per-item nutrient values; unknown values stay None."""

    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    sodium: float | None = None
    sugar: float | None = None
    iron: float | None = None
    magnesium: float | None = None
    calcium: float | None = None
    zinc: float | None = None
    potassium: float | None = None


@dataclass(frozen=True)
class DailyStats:
    """Live totals for one calendar day."""

    totals: NutrientTotals
    meal_count: int


def sum_nutrients(items: Iterable[object]) -> NutrientTotals:
    """Sum each nutrient field across items, treating missing values as zero.

    Items may be mappings or objects exposing nutrient attributes. The result
    does not depend on item order.
    """
    sums = dict.fromkeys(TOTAL_FIELDS, 0.0)
    for item in items:
        for name in TOTAL_FIELDS:
            sums[name] += _nutrient_value(item, name)
    return NutrientTotals(
        **{name: round(value, _PRECISION) for name, value in sums.items()}
    )


def add_totals(left: NutrientTotals, right: NutrientTotals) -> NutrientTotals:
    """Return the field-wise sum of two totals."""
    return NutrientTotals(
        **{
            name: round(getattr(left, name) + getattr(right, name), _PRECISION)
            for name in TOTAL_FIELDS
        }
    )


def fold_daily(meal_totals: Iterable[NutrientTotals]) -> DailyStats:
    """Fold already computed meal totals into a daily aggregate."""
    total = NutrientTotals()
    count = 0
    for entry in meal_totals:
        total = add_totals(total, entry)
        count += 1
    return DailyStats(totals=total, meal_count=count)


def _nutrient_value(item: object, name: str) -> float:
    if isinstance(item, Mapping):
        value = item.get(name)
    else:
        value = getattr(item, name, None)
    if value is None:
        return 0.0
    return float(value)
