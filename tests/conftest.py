"""Shared test fixtures."""

import json
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from nutrition_ingest.adapters.sqlite_reference_repository import (
    NAME_MAX_LENGTH,
    SqliteReferenceRepository,
)
from nutrition_ingest.config import Settings
from nutrition_ingest.domain.errors import DuplicateKeyError, StoreWriteError
from nutrition_ingest.domain.records import NormalizedExercise, NormalizedIngredient
from nutrition_ingest.services.store import ReferenceRepository

EXERCISE_CSV = (
    "Actvitiy,Code,MET,Description\n"
    "Bicycling,01003,14,bicycling mountain uphill vigorous\n"
    "Walking,17151,2.0,walking less than 2.0 mph\n"
    "Running,12020\n"
    "Yoga,02150,abc,Hatha\n"
)


@dataclass
class InMemoryReferenceRepository(ReferenceRepository):
    """In-memory reference store with the same key constraints as the tables."""

    ingredients: dict[str, NormalizedIngredient] = field(default_factory=dict)
    exercises: dict[str, NormalizedExercise] = field(default_factory=dict)
    insert_batches: list[int] = field(default_factory=list)
    schema_ready: bool = False
    closed: bool = False

    def ensure_schema(self) -> None:
        self.schema_ready = True

    def ingredient_exists(self, name: str) -> bool:
        return name in self.ingredients

    def exercise_exists(self, code: str) -> bool:
        return code in self.exercises

    def insert_ingredients(self, records: list[NormalizedIngredient]) -> None:
        self._insert(self.ingredients, records)

    def insert_exercises(self, records: list[NormalizedExercise]) -> None:
        self._insert(self.exercises, records)

    def count_ingredients(self) -> int:
        return len(self.ingredients)

    def count_exercises(self) -> int:
        return len(self.exercises)

    def close(self) -> None:
        self.closed = True

    def _insert(self, table: dict, records: list) -> None:
        keys = [record.key for record in records]
        if len(set(keys)) != len(keys) or any(key in table for key in keys):
            raise DuplicateKeyError(f"duplicate key in {keys}")
        if any(len(key) > NAME_MAX_LENGTH for key in keys):
            raise StoreWriteError("value too long for name")
        self.insert_batches.append(len(records))
        table.update({record.key: record for record in records})


def _fdc_food(
    description: str,
    nutrients: dict[int, float],
    category: str | None = None,
) -> dict[str, object]:
    """Build a Foundation/SR Legacy style food record."""
    food: dict[str, object] = {
        "description": description,
        "foodNutrients": [
            {"nutrient": {"id": nutrient_id}, "amount": amount}
            for nutrient_id, amount in nutrients.items()
        ],
    }
    if category is not None:
        food["foodCategory"] = {"description": category}
    return food


@pytest.fixture
def repository() -> InMemoryReferenceRepository:
    return InMemoryReferenceRepository()


@pytest.fixture
def sqlite_repository():  # type: ignore[no-untyped-def]
    repository = SqliteReferenceRepository.open(":memory:")
    yield repository
    repository.close()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'store' / 'dev.db'}",
        data_dir=tmp_path / "ingredientData",
        exercise_file=tmp_path / "excerciseData" / "met.csv",
        probe_report_path=tmp_path / "reports" / "usda-schema-analysis.json",
        portable_db_path=tmp_path / "data" / "health-tracker-data.db",
        dist_dir=tmp_path / "dist",
        runtime_db_path=Path("prisma/dev.db"),
        chunk_size=2,
    )


@pytest.fixture
def sample_sources(settings: Settings) -> Settings:
    """Write a small dataset for every source except SR Legacy."""
    data_dir = settings.data_dir
    data_dir.mkdir(parents=True)
    foundation = {
        "FoundationFoods": [
            _fdc_food(
                "Apples, raw",
                {1008: 52, 1003: 0.3, 1005: 14, 1004: 0.2, 1079: 2.4},
                category="Fruits and Fruit Juices",
            ),
            _fdc_food("Fiber supplement", {1079: 5}),
            _fdc_food("Lentil flour", {1062: 418.4, 1003: 2}),
        ]
    }
    survey = {
        "SurveyFoods": [
            {
                "description": "Milk, whole",
                "wweiaFoodCategory": {"wweiaFoodCategoryDescription": "Milk, whole"},
                "foodNutrients": [
                    {"nutrient": {"number": "208"}, "amount": 61},
                    {"nutrient": {"number": "203"}, "amount": 3.2},
                ],
            },
            {
                "description": "Apples, raw",
                "foodNutrients": [{"nutrient": {"number": "208"}, "amount": 52}],
            },
        ]
    }
    branded = {
        "BrandedFoods": [
            {
                "description": "Chocolate Chip Cookies",
                "brandedFoodCategory": "Exotic Category XYZ",
                "foodNutrients": [
                    {"nutrient": {"id": 1008}, "amount": 480},
                    {"nutrient": {"id": 1003}, "amount": 5},
                ],
            }
        ]
    }
    for name, document in (
        (settings.foundation_file, foundation),
        (settings.survey_file, survey),
        (settings.branded_file, branded),
    ):
        (data_dir / name).write_text(json.dumps(document), encoding="utf-8")
    settings.exercise_file.parent.mkdir(parents=True)
    settings.exercise_file.write_text(EXERCISE_CSV, encoding="utf-8")
    return settings
