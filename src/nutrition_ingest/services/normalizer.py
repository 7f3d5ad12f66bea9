"""Normalization of raw source records into canonical records."""

import math
import re
from collections.abc import Callable, Sequence

from nutrition_ingest.domain.records import NormalizedExercise, NormalizedIngredient
from nutrition_ingest.domain.results import StageResult
from nutrition_ingest.domain.sources import SourceKind
from nutrition_ingest.services.classifier import classify
from nutrition_ingest.services.nutrients import (
    FDC_NUTRIENTS,
    SURVEY_NUTRIENTS,
    NutrientTable,
    extract_nutrients,
)

UNKNOWN_FOOD = "Unknown Food"
ACTIVITY_COLUMN = "Actvitiy"
CODE_MAX_LENGTH = 32

RawRecord = dict[str, object]
Getter = Callable[[RawRecord], object]

_NUTRIENT_TABLES: dict[SourceKind, NutrientTable] = {
    SourceKind.FOUNDATION: FDC_NUTRIENTS,
    SourceKind.LEGACY: FDC_NUTRIENTS,
    SourceKind.BRANDED: FDC_NUTRIENTS,
    SourceKind.SURVEY: SURVEY_NUTRIENTS,
}


def nutrient_table_for(kind: SourceKind) -> NutrientTable:
    """Return the nutrient id table used by a food source."""
    try:
        return _NUTRIENT_TABLES[kind]
    except KeyError:
        raise ValueError(f"No nutrient table for source {kind.value}") from None


def path(*keys: str) -> Getter:
    """Build a getter that walks nested dict keys."""

    def getter(record: RawRecord) -> object:
        value: object = record
        for key in keys:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
        return value

    return getter


def coalesce(record: RawRecord, getters: Sequence[Getter]) -> str | None:
    """Return the first non-blank string produced by the getters, in order."""
    for getter in getters:
        value = getter(record)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


# Field precedence. Order matters: earlier schemas take priority.
NAME_FIELDS: tuple[Getter, ...] = (path("description"), path("foodDescription"))
DESCRIPTION_FIELDS: tuple[Getter, ...] = NAME_FIELDS
CATEGORY_FIELDS: tuple[Getter, ...] = (
    path("foodCategory", "description"),
    path("wweiaFoodCategory", "wweiaFoodCategoryDescription"),
    path("brandedFoodCategory"),
)
ACTIVITY_FIELDS: tuple[Getter, ...] = (path(ACTIVITY_COLUMN), path("Activity"))


def normalize_ingredient(
    raw: RawRecord, table: NutrientTable
) -> StageResult[NormalizedIngredient]:
    """Convert an FDC food record into a canonical ingredient."""
    food_nutrients = raw.get("foodNutrients")
    if not isinstance(food_nutrients, list):
        return StageResult.skipped("no foodNutrients list")

    nutrition = extract_nutrients(food_nutrients, table)
    if not nutrition.has_macros():
        return StageResult.skipped("no calories, protein, carbs or fat")

    description = coalesce(raw, DESCRIPTION_FIELDS) or UNKNOWN_FOOD
    name = (coalesce(raw, NAME_FIELDS) or UNKNOWN_FOOD).lower()
    classification = classify(coalesce(raw, CATEGORY_FIELDS), description)
    return StageResult.ok(
        NormalizedIngredient(
            name=name,
            description=description,
            nutrition=nutrition,
            category=classification.category,
            aisle=classification.aisle,
        )
    )


def normalize_exercise(row: RawRecord) -> StageResult[NormalizedExercise]:
    """Convert a MET table row into a canonical exercise."""
    activity = coalesce(row, ACTIVITY_FIELDS)
    if activity is None:
        return StageResult.skipped("missing activity")

    raw_met = row.get("MET")
    if raw_met is None or (isinstance(raw_met, str) and not raw_met.strip()):
        return StageResult.skipped("missing MET")
    description = coalesce(row, (path("Description"),))
    if description is None:
        return StageResult.skipped("missing description")
    try:
        met = float(raw_met)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return StageResult.errored(f"unparseable MET {raw_met!r}")
    if math.isnan(met) or met <= 0:
        return StageResult.skipped(f"non-positive MET {met}")

    code = coalesce(row, (path("Code"),)) or derive_exercise_code(activity)
    return StageResult.ok(
        NormalizedExercise(
            activity=activity,
            code=code,
            met=met,
            description=description,
            category=activity,
        )
    )


def derive_exercise_code(activity: str) -> str:
    """Derive a stable short code from an activity name."""
    slug = re.sub(r"[^A-Za-z0-9]+", "-", activity).strip("-").upper()
    return slug[:CODE_MAX_LENGTH].rstrip("-") or "EXERCISE"
