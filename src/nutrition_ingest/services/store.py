"""Persistence interface for the reference-data store."""

from typing import Protocol

from nutrition_ingest.domain.records import NormalizedExercise, NormalizedIngredient


class ReferenceRepository(Protocol):
    """Persistence interface for the Ingredient and Exercise tables.

    Insert methods write all given rows in one transaction. They raise
    ``DuplicateKeyError`` when a unique key already exists and
    ``StoreWriteError`` for any other rejection; nothing is written on error.
    """

    def ensure_schema(self) -> None:
        """Create or verify the reference tables."""

    def ingredient_exists(self, name: str) -> bool:
        """Return True if an ingredient with exactly this name exists."""

    def exercise_exists(self, code: str) -> bool:
        """Return True if an exercise with this code exists."""

    def insert_ingredients(self, records: list[NormalizedIngredient]) -> None:
        """Insert ingredient rows."""

    def insert_exercises(self, records: list[NormalizedExercise]) -> None:
        """Insert exercise rows."""

    def count_ingredients(self) -> int:
        """Return the number of stored ingredients."""

    def count_exercises(self) -> int:
        """Return the number of stored exercises."""

    def close(self) -> None:
        """Release the store connection."""
