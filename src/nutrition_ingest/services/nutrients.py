"""Nutrient id tables and extraction from FDC nutrient lists."""

import math
from dataclasses import dataclass

from nutrition_ingest.domain.records import NutritionFacts

KCAL_PER_KJ = 4.184
ENERGY_KJ = "energy_kj"


@dataclass(frozen=True)
class NutrientTable:
    """Mapping of numeric nutrient ids onto NutritionFacts fields.

    ``id_paths`` lists where a nutrient entry carries its id, in the order they
    are tried. Each path is a tuple of keys walked from the entry.
    """

    name: str
    id_paths: tuple[tuple[str, ...], ...]
    fields: dict[int, str]

    def resolve_id(self, entry: dict[str, object]) -> int | None:
        """Return the numeric nutrient id of an entry, if present."""
        for path in self.id_paths:
            value: object = entry
            for key in path:
                value = value.get(key) if isinstance(value, dict) else None
            if value is None or value == "":
                continue
            try:
                return int(value)
            except (TypeError, ValueError):
                continue
        return None

    def field_for(self, entry: dict[str, object]) -> str | None:
        nutrient_id = self.resolve_id(entry)
        if nutrient_id is None:
            return None
        return self.fields.get(nutrient_id)


# Foundation, SR Legacy and Branded exports use the FDC nutrient ids.
FDC_NUTRIENTS = NutrientTable(
    name="fdc",
    id_paths=(("nutrient", "id"), ("nutrientId",)),
    fields={
        1008: "calories",
        1062: ENERGY_KJ,
        1003: "protein",
        1005: "carbs",
        1004: "fat",
        1079: "fiber",
        2000: "sugar",
        1063: "sugar",
        1093: "sodium",
        1253: "cholesterol",
        1258: "saturated_fat",
        1292: "monounsaturated_fat",
        1293: "polyunsaturated_fat",
        1257: "trans_fat",
    },
)

# Survey (FNDDS) exports are keyed by the legacy nutrient number.
SURVEY_NUTRIENTS = NutrientTable(
    name="survey",
    id_paths=(("nutrient", "number"),),
    fields={
        208: "calories",
        268: ENERGY_KJ,
        203: "protein",
        205: "carbs",
        204: "fat",
        291: "fiber",
        269: "sugar",
        307: "sodium",
        601: "cholesterol",
        606: "saturated_fat",
        645: "monounsaturated_fat",
        646: "polyunsaturated_fat",
        605: "trans_fat",
    },
)


def round_half_up(value: float) -> float:
    """Round to the nearest integer with halves rounded up."""
    return float(math.floor(value + 0.5))


def extract_nutrients(
    food_nutrients: list[dict[str, object]], table: NutrientTable
) -> NutritionFacts:
    """Map a nutrient list onto nutrition facts using the given table.

    Later entries for the same id overwrite earlier ones. When no positive kcal
    value is present, calories are derived from a kJ entry.
    """
    values: dict[str, float] = {}
    kilojoules: float | None = None
    for entry in food_nutrients:
        if not isinstance(entry, dict):
            continue
        field_name = table.field_for(entry)
        if field_name is None:
            continue
        amount = _amount(entry)
        if amount is None:
            continue
        if field_name == ENERGY_KJ:
            kilojoules = amount
        else:
            values[field_name] = amount

    if not values.get("calories") and kilojoules is not None:
        values["calories"] = round_half_up(kilojoules / KCAL_PER_KJ)

    return NutritionFacts(**values)


def _amount(entry: dict[str, object]) -> float | None:
    """Return the non-negative amount of a nutrient entry, if numeric."""
    raw = entry.get("amount")
    if raw is None:
        raw = entry.get("median")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(amount):
        return None
    return max(amount, 0.0)
