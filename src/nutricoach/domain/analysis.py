"""Models for text analysis results."""

from pydantic import BaseModel, Field


class AnalysisItem(BaseModel):
    """Single food item parsed from a meal description."""

    name: str
    quantity: float = Field(gt=0)
    unit: str
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)


class AnalysisExtract(BaseModel):
    """Structured output for meal description analysis."""

    items: list[AnalysisItem]
