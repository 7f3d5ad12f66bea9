"""Tests for chunked loading and deduplication."""

import pytest

from nutrition_ingest.domain.records import (
    NormalizedExercise,
    NormalizedIngredient,
    NutritionFacts,
)
from nutrition_ingest.domain.results import LoadDelta
from nutrition_ingest.services.dedup import Deduplicator
from nutrition_ingest.services.loader import BatchLoader


def _ingredient(name: str) -> NormalizedIngredient:
    return NormalizedIngredient(
        name=name,
        description=name.title(),
        nutrition=NutritionFacts(calories=10, protein=1),
        category="Snacks",
        aisle="Snacks",
    )


def _exercise(code: str) -> NormalizedExercise:
    return NormalizedExercise(
        activity="Walking",
        code=code,
        met=3.5,
        description="walking",
        category="Walking",
    )


def test_loader_writes_full_chunks(repository) -> None:
    loader = BatchLoader(repository, chunk_size=2)
    deltas = [loader.add(_ingredient(name)) for name in ("a", "b", "c")]
    assert deltas == [LoadDelta(), LoadDelta(inserted=2), LoadDelta()]
    assert loader.pending_keys == {"c"}
    assert loader.flush() == LoadDelta(inserted=1)
    assert loader.flush() == LoadDelta()
    assert repository.insert_batches == [2, 1]


def test_loader_routes_exercises(repository) -> None:
    loader = BatchLoader(repository, chunk_size=10)
    loader.add(_exercise("01003"))
    loader.flush()
    assert repository.count_exercises() == 1
    assert repository.count_ingredients() == 0


def test_overlong_name_fails_only_its_chunk(repository) -> None:
    loader = BatchLoader(repository, chunk_size=2)
    delta = LoadDelta()
    for name in ("a", "x" * 300, "c", "d"):
        delta += loader.add(_ingredient(name))
    delta += loader.flush()
    assert delta == LoadDelta(inserted=2, errored=2)
    assert set(repository.ingredients) == {"c", "d"}


def test_chunk_isolation_in_sqlite(sqlite_repository) -> None:
    loader = BatchLoader(sqlite_repository, chunk_size=2)
    delta = LoadDelta()
    for name in ("a", "b", "x" * 300, "d", "e"):
        delta += loader.add(_ingredient(name))
    delta += loader.flush()
    assert delta == LoadDelta(inserted=3, errored=2)
    assert sqlite_repository.count_ingredients() == 3


def test_unique_violation_retries_per_record(repository) -> None:
    repository.insert_ingredients([_ingredient("b")])
    loader = BatchLoader(repository, chunk_size=3)
    for name in ("a", "b", "c"):
        loader.add(_ingredient(name))
    assert loader.flush() == LoadDelta(inserted=2, duplicate=1)
    assert set(repository.ingredients) == {"a", "b", "c"}


def test_chunk_size_must_be_positive(repository) -> None:
    with pytest.raises(ValueError):
        BatchLoader(repository, chunk_size=0)


def test_deduplicator_checks_pending_and_store(repository) -> None:
    repository.insert_ingredients([_ingredient("stored")])
    repository.insert_exercises([_exercise("01003")])
    deduplicator = Deduplicator(repository)
    assert deduplicator.is_duplicate(_ingredient("stored"))
    assert deduplicator.is_duplicate(_ingredient("queued"), {"queued"})
    assert not deduplicator.is_duplicate(_ingredient("new"), {"queued"})
    assert deduplicator.is_duplicate(_exercise("01003"))
    assert not deduplicator.is_duplicate(_exercise("02150"))
