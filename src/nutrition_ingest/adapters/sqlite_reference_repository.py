"""SQLite implementation of the reference-data store."""

import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

from nutrition_ingest.domain.errors import DuplicateKeyError, StoreWriteError
from nutrition_ingest.domain.records import NormalizedExercise, NormalizedIngredient
from nutrition_ingest.services.store import ReferenceRepository

NAME_MAX_LENGTH = 255

_INGREDIENT_SCHEMA = """
CREATE TABLE IF NOT EXISTS "{table}" (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE CHECK (length(name) <= {name_max}),
    description TEXT,
    servingSize TEXT,
    calories REAL NOT NULL DEFAULT 0,
    protein REAL NOT NULL DEFAULT 0,
    carbs REAL NOT NULL DEFAULT 0,
    fat REAL NOT NULL DEFAULT 0,
    fiber REAL NOT NULL DEFAULT 0,
    sugar REAL NOT NULL DEFAULT 0,
    sodium REAL NOT NULL DEFAULT 0,
    cholesterol REAL NOT NULL DEFAULT 0,
    saturatedFat REAL NOT NULL DEFAULT 0,
    monounsaturatedFat REAL NOT NULL DEFAULT 0,
    polyunsaturatedFat REAL NOT NULL DEFAULT 0,
    transFat REAL NOT NULL DEFAULT 0,
    netCarbs REAL NOT NULL DEFAULT 0,
    category TEXT,
    aisle TEXT,
    isActive BOOLEAN NOT NULL DEFAULT 1,
    createdAt TEXT NOT NULL,
    updatedAt TEXT NOT NULL
)
"""

_EXERCISE_SCHEMA = """
CREATE TABLE IF NOT EXISTS "{table}" (
    id TEXT PRIMARY KEY,
    activity TEXT NOT NULL,
    code TEXT NOT NULL UNIQUE,
    met REAL NOT NULL CHECK (met > 0),
    description TEXT,
    category TEXT,
    intensity TEXT NOT NULL,
    isActive BOOLEAN NOT NULL DEFAULT 1,
    createdAt TEXT NOT NULL,
    updatedAt TEXT NOT NULL
)
"""


@dataclass
class SqliteReferenceRepository(ReferenceRepository):
    """SQLite-backed repository; also the format of the portable store."""

    connection: sqlite3.Connection
    ingredient_table: str = "Ingredient"
    exercise_table: str = "Exercise"

    @classmethod
    def open(
        cls,
        path: str | Path,
        ingredient_table: str = "Ingredient",
        exercise_table: str = "Exercise",
    ) -> "SqliteReferenceRepository":
        """Connect to a database file (or ``:memory:``) and create the schema."""
        repository = cls(
            connection=sqlite3.connect(str(path)),
            ingredient_table=ingredient_table,
            exercise_table=exercise_table,
        )
        repository.ensure_schema()
        return repository

    def ensure_schema(self) -> None:
        """Create the reference tables if they are missing."""
        with self.connection:
            self.connection.execute(
                _INGREDIENT_SCHEMA.format(
                    table=self.ingredient_table, name_max=NAME_MAX_LENGTH
                )
            )
            self.connection.execute(_EXERCISE_SCHEMA.format(table=self.exercise_table))

    def ingredient_exists(self, name: str) -> bool:
        """Return True if an ingredient with exactly this name exists."""
        return self._exists(self.ingredient_table, "name", name)

    def exercise_exists(self, code: str) -> bool:
        """Return True if an exercise with this code exists."""
        return self._exists(self.exercise_table, "code", code)

    def insert_ingredients(self, records: list[NormalizedIngredient]) -> None:
        """Insert ingredient rows in one transaction."""
        self._insert(self.ingredient_table, [record.to_row() for record in records])

    def insert_exercises(self, records: list[NormalizedExercise]) -> None:
        """Insert exercise rows in one transaction."""
        self._insert(self.exercise_table, [record.to_row() for record in records])

    def count_ingredients(self) -> int:
        return self._count(self.ingredient_table)

    def count_exercises(self) -> int:
        return self._count(self.exercise_table)

    def close(self) -> None:
        self.connection.close()

    def _exists(self, table: str, column: str, value: str) -> bool:
        cursor = self.connection.execute(
            f'SELECT 1 FROM "{table}" WHERE {column} = ? LIMIT 1', (value,)
        )
        return cursor.fetchone() is not None

    def _count(self, table: str) -> int:
        cursor = self.connection.execute(f'SELECT COUNT(*) FROM "{table}"')
        return int(cursor.fetchone()[0])

    def _insert(self, table: str, rows: Sequence[dict[str, object]]) -> None:
        if not rows:
            return
        stamped = [_with_metadata(row) for row in rows]
        columns = list(stamped[0])
        statement = 'INSERT INTO "{}" ({}) VALUES ({})'.format(
            table,
            ", ".join(columns),
            ", ".join("?" for _ in columns),
        )
        try:
            with self.connection:
                self.connection.executemany(
                    statement, [tuple(row[c] for c in columns) for row in stamped]
                )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE constraint failed" in str(exc):
                raise DuplicateKeyError(str(exc)) from exc
            raise StoreWriteError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise StoreWriteError(str(exc)) from exc


def _with_metadata(row: dict[str, object]) -> dict[str, object]:
    """Add the generated id and timestamps the application schema expects."""
    now = datetime.now(tz=UTC).isoformat()
    return {"id": uuid4().hex, **row, "createdAt": now, "updatedAt": now}
