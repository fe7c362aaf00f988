"""Nutrition lookup domain models."""

from dataclasses import dataclass

from nutricoach.domain.nutrients import FoodItemNutrients, NutrientTotals


@dataclass(frozen=True)
class Serving:
    """Reference serving for a food."""

    size: float
    unit: str


@dataclass(frozen=True)
class FoodSearchResult:
    """Food found by a catalog or FoodData Central search."""

    id: str
    name: str
    serving: Serving
    nutrients: FoodItemNutrients
    brand: str | None = None


@dataclass(frozen=True)
class FoodSearchPage:
    """Search results plus the number of matches before the limit."""

    results: list[FoodSearchResult]
    total: int


@dataclass(frozen=True)
class AnalyzedFoodItem:
    """Food item recognised in a free-text meal description."""

    name: str
    quantity: float
    unit: str
    nutrients: FoodItemNutrients


@dataclass(frozen=True)
class NutritionAnalysis:
    """Structured result of a meal description analysis."""

    recognized: bool
    items: list[AnalyzedFoodItem]
    total_nutrients: NutrientTotals
