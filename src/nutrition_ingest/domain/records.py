"""Canonical reference-data records."""

from dataclasses import dataclass
from enum import Enum

DEFAULT_SERVING_SIZE = "100g"


class Intensity(str, Enum):
    """Exercise intensity buckets derived from MET values."""

    LIGHT = "LIGHT"
    MODERATE = "MODERATE"
    VIGOROUS = "VIGOROUS"


def intensity_for_met(met: float) -> Intensity:
    """Bucket a MET value into an intensity level."""
    if met < 3.0:
        return Intensity.LIGHT
    if met < 6.0:
        return Intensity.MODERATE
    return Intensity.VIGOROUS


@dataclass(frozen=True)
class NutritionFacts:
    """Per-100g nutrition values, all non-negative."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0
    cholesterol: float = 0.0
    saturated_fat: float = 0.0
    monounsaturated_fat: float = 0.0
    polyunsaturated_fat: float = 0.0
    trans_fat: float = 0.0

    @property
    def net_carbs(self) -> float:
        return self.carbs - self.fiber

    def has_macros(self) -> bool:
        """Return True when any of calories, protein, carbs or fat is positive."""
        return any(
            value > 0 for value in (self.calories, self.protein, self.carbs, self.fat)
        )


@dataclass(frozen=True)
class NormalizedIngredient:
    """Canonical ingredient row, keyed by its lower-cased name."""

    name: str
    description: str
    nutrition: NutritionFacts
    category: str
    aisle: str
    serving_size: str = DEFAULT_SERVING_SIZE
    is_active: bool = True

    @property
    def key(self) -> str:
        return self.name

    def to_row(self) -> dict[str, object]:
        """Return the store columns for this ingredient."""
        facts = self.nutrition
        return {
            "name": self.name,
            "description": self.description,
            "servingSize": self.serving_size,
            "calories": facts.calories,
            "protein": facts.protein,
            "carbs": facts.carbs,
            "fat": facts.fat,
            "fiber": facts.fiber,
            "sugar": facts.sugar,
            "sodium": facts.sodium,
            "cholesterol": facts.cholesterol,
            "saturatedFat": facts.saturated_fat,
            "monounsaturatedFat": facts.monounsaturated_fat,
            "polyunsaturatedFat": facts.polyunsaturated_fat,
            "transFat": facts.trans_fat,
            "netCarbs": facts.net_carbs,
            "category": self.category,
            "aisle": self.aisle,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class NormalizedExercise:
    """Canonical exercise row, keyed by its code."""

    activity: str
    code: str
    met: float
    description: str
    category: str
    is_active: bool = True

    @property
    def key(self) -> str:
        return self.code

    @property
    def intensity(self) -> Intensity:
        return intensity_for_met(self.met)

    def to_row(self) -> dict[str, object]:
        """Return the store columns for this exercise."""
        return {
            "activity": self.activity,
            "code": self.code,
            "met": self.met,
            "description": self.description,
            "category": self.category,
            "intensity": self.intensity.value,
            "isActive": self.is_active,
        }


NormalizedRecord = NormalizedIngredient | NormalizedExercise
