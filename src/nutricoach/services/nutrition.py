"""Food search, meal text analysis and intake recommendations."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from nutricoach.adapters.fdc_client import FdcClient
from nutricoach.domain.analysis import AnalysisExtract
from nutricoach.domain.nutrients import FoodItemNutrients, sum_nutrients
from nutricoach.domain.nutrition import (
    AnalyzedFoodItem,
    FoodSearchPage,
    FoodSearchResult,
    NutritionAnalysis,
    Serving,
)
from nutricoach.domain.users import Goal, GoalType
from nutricoach.errors import FeatureNotImplementedError, NotFoundError
from nutricoach.services.cache import Cache

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)

_NUTRIENT_IDS = {
    1008: "calories",
    1003: "protein",
    1005: "carbs",
    1004: "fat",
    1079: "fiber",
    1093: "sodium",
    2000: "sugar",
    1089: "iron",
    1090: "magnesium",
    1087: "calcium",
    1095: "zinc",
    1092: "potassium",
}

STUB_FOODS = (
    FoodSearchResult(
        id="1",
        name="Apple",
        serving=Serving(size=182, unit="g"),
        nutrients=FoodItemNutrients(
            calories=95,
            protein=0.5,
            carbs=25,
            fat=0.3,
            fiber=4.4,
            sodium=2,
            sugar=19,
        ),
    ),
    FoodSearchResult(
        id="2",
        name="Chicken Breast",
        brand="Generic",
        serving=Serving(size=100, unit="g"),
        nutrients=FoodItemNutrients(
            calories=165,
            protein=31,
            carbs=0,
            fat=3.6,
            fiber=0,
            sodium=74,
            sugar=0,
        ),
    ),
)

STUB_ANALYSIS_ITEMS = (
    AnalyzedFoodItem(
        name="Scrambled Eggs",
        quantity=2,
        unit="large",
        nutrients=FoodItemNutrients(calories=180, protein=12, carbs=2, fat=14),
    ),
    AnalyzedFoodItem(
        name="Whole Wheat Toast",
        quantity=1,
        unit="slice",
        nutrients=FoodItemNutrients(calories=70, protein=3, carbs=12, fat=1),
    ),
)

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "quantity": {"type": "number", "exclusiveMinimum": 0},
                    "unit": {"type": "string"},
                    "calories": {"type": "number", "minimum": 0},
                    "protein": {"type": "number", "minimum": 0},
                    "carbs": {"type": "number", "minimum": 0},
                    "fat": {"type": "number", "minimum": 0},
                },
                "required": [
                    "name",
                    "quantity",
                    "unit",
                    "calories",
                    "protein",
                    "carbs",
                    "fat",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

MACRO_DISTRIBUTIONS: dict[GoalType, dict[str, int]] = {
    GoalType.WEIGHT_LOSS: {"protein": 30, "carbs": 35, "fat": 35},
    GoalType.WEIGHT_GAIN: {"protein": 25, "carbs": 50, "fat": 25},
    GoalType.MAINTAIN: {"protein": 25, "carbs": 45, "fat": 30},
    GoalType.MUSCLE_GAIN: {"protein": 35, "carbs": 40, "fat": 25},
}

MACRO_DESCRIPTIONS: dict[GoalType, str] = {
    GoalType.WEIGHT_LOSS: "Higher protein for satiety, moderate carbs and fat",
    GoalType.WEIGHT_GAIN: "Higher carbs for energy, balanced protein and fat",
    GoalType.MAINTAIN: "Balanced distribution for general health",
    GoalType.MUSCLE_GAIN: "Higher protein for muscle synthesis, moderate carbs",
}

BASE_CALORIES = 2000
BASE_PROTEIN = 50
MEAL_SHARES = {"breakfast": 0.25, "lunch": 0.35, "dinner": 0.3, "snack": 0.1}


class AnalysisClient(Protocol):
    """Interface for LLM-backed meal text parsing."""

    async def extract(
        self,
        *,
        model: str,
        text: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured food items parsed from free text."""


@dataclass
class NutritionService:
    """Nutrition lookups backed by a stub catalog or USDA FoodData Central."""

    cache: Cache
    fdc_client: FdcClient | None = None
    analysis_client: AnalysisClient | None = None
    analysis_model: str = "gpt-5.2"
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    stub_foods: tuple[FoodSearchResult, ...] = field(default=STUB_FOODS)

    async def search_foods(self, query: str, limit: int = 10) -> FoodSearchPage:
        """Search foods by name."""
        if self.fdc_client is None:
            needle = query.lower()
            matches = [food for food in self.stub_foods if needle in food.name.lower()]
            return FoodSearchPage(results=matches[:limit], total=len(matches))

        cache_key = f"fdc:search:{query.lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, FoodSearchPage):
            return cached

        client = self.fdc_client
        payload = await self._call_with_retry(
            lambda: client.search_foods(query, page_size=limit),
            action="search",
        )
        results = [_food_from_fdc(food) for food in payload.get("foods", [])]
        total = payload.get("totalHits")
        page = FoodSearchPage(
            results=results[:limit],
            total=total if isinstance(total, int) else len(results),
        )
        self.cache.set(cache_key, page, ttl_seconds=self.search_ttl_seconds)
        _logger.info("FDC search: query=%s results=%s", query, len(results))
        return page

    async def get_food_details(self, food_id: str) -> FoodSearchResult:
        """Return one food by id; only available with FoodData Central."""
        if self.fdc_client is None:
            raise FeatureNotImplementedError(
                "Food details endpoint not yet implemented"
            )
        if not food_id.isdigit():
            raise NotFoundError("Food not found")

        cache_key = f"fdc:food:{food_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, FoodSearchResult):
            return cached

        client = self.fdc_client
        payload = await self._call_with_retry(
            lambda: client.get_food(int(food_id)),
            action=f"get_food:{food_id}",
        )
        details = _food_from_fdc(payload)
        self.cache.set(cache_key, details, ttl_seconds=self.food_ttl_seconds)
        return details

    async def analyze(
        self, text: str, meal_type: str | None = None
    ) -> NutritionAnalysis:
        """Turn a free-text meal description into food items."""
        if self.analysis_client is None:
            items = list(STUB_ANALYSIS_ITEMS)
        else:
            prompt = (
                "List every food in the meal description with a quantity, a unit "
                "and estimated calories, protein, carbs and fat in grams for that "
                "quantity."
            )
            if meal_type:
                prompt = f"{prompt} The meal is a {meal_type}."
            raw = await self.analysis_client.extract(
                model=self.analysis_model,
                text=text,
                schema=ANALYSIS_SCHEMA,
                prompt=prompt,
            )
            extract = AnalysisExtract.model_validate(raw)
            items = [
                AnalyzedFoodItem(
                    name=entry.name,
                    quantity=entry.quantity,
                    unit=entry.unit,
                    nutrients=FoodItemNutrients(
                        calories=entry.calories,
                        protein=entry.protein,
                        carbs=entry.carbs,
                        fat=entry.fat,
                    ),
                )
                for entry in extract.items
            ]
        return NutritionAnalysis(
            recognized=bool(items),
            items=items,
            total_nutrients=sum_nutrients(item.nutrients for item in items),
        )

    def recommendations(self, goal: Goal | None) -> dict[str, object]:
        """Return daily and per-meal targets for the active goal."""
        calories = (goal.daily_calories if goal else None) or BASE_CALORIES
        daily_protein = goal.daily_protein if goal else None
        daily_carbs = goal.daily_carbs if goal else None
        daily_fat = goal.daily_fat if goal else None
        protein_base = daily_protein or BASE_PROTEIN
        return {
            "daily": {
                "calories": calories,
                "protein": daily_protein or round(BASE_CALORIES * 0.25 / 4),
                "carbs": daily_carbs or round(BASE_CALORIES * 0.45 / 4),
                "fat": daily_fat or round(BASE_CALORIES * 0.3 / 9),
                "fiber": 25,
                "water": 2000,
            },
            "meal": {
                meal: {
                    "calories": round(calories * share),
                    "protein": round(protein_base * share),
                }
                for meal, share in MEAL_SHARES.items()
            },
        }

    def macro_distribution(
        self, goal_type: GoalType | None = None
    ) -> dict[str, object]:
        """Return the suggested macro split in percent for a goal type."""
        resolved = goal_type or GoalType.MAINTAIN
        return {
            "distribution": dict(MACRO_DISTRIBUTIONS[resolved]),
            "description": MACRO_DESCRIPTIONS[resolved],
        }

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "FDC %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def _food_from_fdc(payload: dict[str, object]) -> FoodSearchResult:
    """Map an FDC search hit or food document onto a search result."""
    serving_size = payload.get("servingSize")
    serving_unit = payload.get("servingSizeUnit")
    return FoodSearchResult(
        id=str(payload.get("fdcId", "")),
        name=str(payload.get("description", "")),
        brand=payload.get("brandName") or payload.get("brandOwner"),
        serving=Serving(
            size=float(serving_size) if isinstance(serving_size, int | float) else 100,
            unit=str(serving_unit or "g").lower(),
        ),
        nutrients=_extract_nutrients(payload.get("foodNutrients") or []),
    )


def _extract_nutrients(food_nutrients: list[dict[str, object]]) -> FoodItemNutrients:
    """Collect known nutrients from FDC search hits or food documents."""
    values: dict[str, float] = {}
    for nutrient in food_nutrients:
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or nutrient.get("nutrientId")
        amount = nutrient.get("amount", nutrient.get("value"))
        name = _NUTRIENT_IDS.get(nutrient_id)
        if name and isinstance(amount, int | float):
            values[name] = float(amount)
    return FoodItemNutrients(**values)
