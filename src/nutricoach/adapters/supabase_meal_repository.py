"""Supabase repository for meals and food items."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutricoach.domain.meals import (
    FoodItemDraft,
    FoodItemRecord,
    MealDraft,
    MealFilters,
    MealRecord,
    MealType,
)
from nutricoach.domain.nutrients import (
    ITEM_FIELDS,
    TOTAL_FIELDS,
    FoodItemNutrients,
    NutrientTotals,
)
from nutricoach.services.meals import MealRepository

_MEAL_COLUMNS = "*, food_items(*)"
_TOTAL_COLUMNS = ", ".join(f"total_{name}" for name in TOTAL_FIELDS)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meals; writes go through database functions."""

    client: Client

    def create_meal(
        self, user_id: UUID, draft: MealDraft, totals: NutrientTotals
    ) -> UUID:
        """Insert the meal and its items in one transaction."""
        response = self.client.rpc(
            "create_meal_with_items",
            {
                "p_user_id": str(user_id),
                "p_meal": {
                    "name": draft.name,
                    "description": draft.description,
                    "type": draft.type.value if draft.type else None,
                    "logged_at": draft.logged_at.isoformat(),
                    "ai_parsed": draft.ai_parsed,
                    **_totals_payload(totals),
                },
                "p_items": [_item_payload(item) for item in draft.food_items],
            },
        ).execute()
        return _scalar_uuid(response.data, "Failed to create meal")

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealRecord | None:
        """Return a meal only when it belongs to the user."""
        response = (
            self.client.table("meals")
            .select(_MEAL_COLUMNS)
            .eq("id", str(meal_id))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def list_meals(
        self, user_id: UUID, filters: MealFilters, limit: int, offset: int
    ) -> list[MealRecord]:
        """Return meals newest first."""
        query = (
            self.client.table("meals")
            .select(_MEAL_COLUMNS)
            .eq("user_id", str(user_id))
        )
        if filters.start is not None:
            query = query.gte("logged_at", filters.start.isoformat())
        if filters.end is not None:
            query = query.lt("logged_at", filters.end.isoformat())
        if filters.type is not None:
            query = query.eq("type", filters.type.value)
        response = (
            query.order("logged_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]

    def search_meals(self, user_id: UUID, query: str, limit: int) -> list[MealRecord]:
        """Return meals whose name contains the query, ignoring case."""
        response = (
            self.client.table("meals")
            .select(_MEAL_COLUMNS)
            .eq("user_id", str(user_id))
            .ilike("name", f"%{query}%")
            .order("logged_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]

    def update_meal(
        self,
        meal_id: UUID,
        fields: dict[str, object],
        totals: NutrientTotals | None,
        items: list[FoodItemDraft] | None,
    ) -> None:
        """Apply field changes and replace the items in one transaction."""
        payload: dict[str, object] = {}
        for key, value in fields.items():
            if isinstance(value, datetime):
                payload[key] = value.isoformat()
            elif isinstance(value, MealType):
                payload[key] = value.value
            else:
                payload[key] = value
        if totals is not None:
            payload.update(_totals_payload(totals))
        self.client.rpc(
            "update_meal_with_items",
            {
                "p_meal_id": str(meal_id),
                "p_fields": payload,
                "p_items": (
                    [_item_payload(item) for item in items]
                    if items is not None
                    else None
                ),
            },
        ).execute()

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        """Delete a meal; food items cascade."""
        self.client.table("meals").delete().eq("id", str(meal_id)).eq(
            "user_id", str(user_id)
        ).execute()

    def list_meal_totals(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[NutrientTotals]:
        """Return stored totals of meals logged in [start, end)."""
        response = (
            self.client.table("meals")
            .select(_TOTAL_COLUMNS)
            .eq("user_id", str(user_id))
            .gte("logged_at", start.isoformat())
            .lt("logged_at", end.isoformat())
            .execute()
        )
        return [parse_totals(row) for row in response.data or []]


def parse_totals(row: dict[str, object]) -> NutrientTotals:
    """Read total_* columns into NutrientTotals."""
    return NutrientTotals(
        **{name: float(row.get(f"total_{name}") or 0.0) for name in TOTAL_FIELDS}
    )


def _totals_payload(totals: NutrientTotals) -> dict[str, float]:
    return {f"total_{name}": value for name, value in totals.as_dict().items()}


def _item_payload(item: FoodItemDraft) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": item.name,
        "brand": item.brand,
        "quantity": item.quantity,
        "unit": item.unit,
    }
    for name in ITEM_FIELDS:
        payload[name] = getattr(item.nutrients, name)
    return payload


def _parse_item(row: dict[str, object]) -> FoodItemRecord:
    values = {
        name: float(row[name]) if row.get(name) is not None else None
        for name in ITEM_FIELDS
    }
    return FoodItemRecord(
        id=UUID(row["id"]),
        meal_id=UUID(row["meal_id"]),
        name=str(row.get("name", "")),
        brand=row.get("brand"),
        quantity=float(row.get("quantity", 0.0)),
        unit=str(row.get("unit", "")),
        nutrients=FoodItemNutrients(**values),
    )


def _parse_meal(row: dict[str, object]) -> MealRecord:
    item_rows = sorted(
        row.get("food_items") or [], key=lambda item: item.get("position", 0)
    )
    meal_type = row.get("type")
    return MealRecord(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        name=str(row.get("name", "")),
        description=row.get("description"),
        type=MealType(meal_type) if meal_type else None,
        logged_at=datetime.fromisoformat(row["logged_at"]),
        ai_parsed=bool(row.get("ai_parsed", False)),
        totals=parse_totals(row),
        food_items=[_parse_item(item) for item in item_rows],
    )


def _scalar_uuid(data: object, message: str) -> UUID:
    """Read the uuid returned by a database function."""
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        data = next(iter(data.values()), None)
    if not data:
        raise RuntimeError(message)
    return UUID(str(data))
