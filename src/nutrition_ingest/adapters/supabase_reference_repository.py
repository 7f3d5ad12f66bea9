"""Supabase implementation of the reference-data store."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from postgrest.exceptions import APIError
from supabase import Client

from nutrition_ingest.domain.errors import (
    DuplicateKeyError,
    SetupError,
    StoreWriteError,
)
from nutrition_ingest.domain.records import NormalizedExercise, NormalizedIngredient
from nutrition_ingest.services.store import ReferenceRepository

UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseReferenceRepository(ReferenceRepository):
    """Supabase-backed repository for the Ingredient and Exercise tables."""

    client: Client
    ingredient_table: str = "Ingredient"
    exercise_table: str = "Exercise"

    def ensure_schema(self) -> None:
        """Verify both tables are reachable; the schema is managed by migrations."""
        for table in (self.ingredient_table, self.exercise_table):
            try:
                self.client.table(table).select("id").limit(1).execute()
            except APIError as exc:
                raise SetupError(f"Table {table} is not available: {exc}") from exc

    def ingredient_exists(self, name: str) -> bool:
        """Return True if an ingredient with exactly this name exists."""
        return self._exists(self.ingredient_table, "name", name)

    def exercise_exists(self, code: str) -> bool:
        """Return True if an exercise with this code exists."""
        return self._exists(self.exercise_table, "code", code)

    def insert_ingredients(self, records: list[NormalizedIngredient]) -> None:
        """Insert ingredient rows with a single bulk request."""
        self._insert(self.ingredient_table, [record.to_row() for record in records])

    def insert_exercises(self, records: list[NormalizedExercise]) -> None:
        """Insert exercise rows with a single bulk request."""
        self._insert(self.exercise_table, [record.to_row() for record in records])

    def count_ingredients(self) -> int:
        return self._count(self.ingredient_table)

    def count_exercises(self) -> int:
        return self._count(self.exercise_table)

    def close(self) -> None:
        """Supabase clients hold no connection that needs closing."""

    def _exists(self, table: str, column: str, value: str) -> bool:
        response = (
            self.client.table(table).select("id").eq(column, value).limit(1).execute()
        )
        return bool(response.data)

    def _count(self, table: str) -> int:
        response = (
            self.client.table(table).select("id", count="exact").limit(1).execute()
        )
        return int(response.count or 0)

    def _insert(self, table: str, rows: list[dict[str, object]]) -> None:
        if not rows:
            return
        now = datetime.now(tz=UTC).isoformat()
        payload = [
            {"id": uuid4().hex, **row, "createdAt": now, "updatedAt": now}
            for row in rows
        ]
        try:
            response = self.client.table(table).insert(payload).execute()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateKeyError(exc.message or str(exc)) from exc
            raise StoreWriteError(exc.message or str(exc)) from exc
        if not response.data:
            raise StoreWriteError(f"Failed to insert rows into {table}")
