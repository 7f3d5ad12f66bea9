"""Existence checks against the reference store."""

from collections.abc import Container
from dataclasses import dataclass

from nutrition_ingest.domain.records import NormalizedIngredient, NormalizedRecord
from nutrition_ingest.services.store import ReferenceRepository


@dataclass
class Deduplicator:
    """Point-lookup duplicate detection, one query per record.

    The store's unique constraint remains the final arbiter; this check only
    avoids sending rows that are known to collide.
    """

    repository: ReferenceRepository

    def is_duplicate(
        self, record: NormalizedRecord, pending: Container[str] = ()
    ) -> bool:
        """Return True if the record's key is pending or already stored."""
        if record.key in pending:
            return True
        if isinstance(record, NormalizedIngredient):
            return self.repository.ingredient_exists(record.key)
        return self.repository.exercise_exists(record.key)
