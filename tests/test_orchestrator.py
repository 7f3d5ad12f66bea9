"""Tests for the ingestion orchestrator."""

import pytest

from nutrition_ingest.adapters.sqlite_reference_repository import (
    SqliteReferenceRepository,
)
from nutrition_ingest.config import Settings
from nutrition_ingest.containers import build_orchestrator
from nutrition_ingest.domain.results import SourceCounters, StageResult
from nutrition_ingest.domain.sources import SourceKind
from nutrition_ingest.services.normalizer import normalize_exercise
from nutrition_ingest.services.orchestrator import Orchestrator


def test_run_reports_every_source(sample_sources: Settings, repository) -> None:
    report = build_orchestrator(sample_sources, repository).run()

    assert list(report.sources) == list(SourceKind)
    assert report.sources[SourceKind.FOUNDATION] == SourceCounters(
        processed=3, valid=2, inserted=2, skipped=1
    )
    assert report.sources[SourceKind.SURVEY] == SourceCounters(
        processed=2, valid=2, inserted=1, duplicate=1
    )
    assert report.sources[SourceKind.BRANDED] == SourceCounters(
        processed=1, valid=1, inserted=1
    )
    assert report.sources[SourceKind.EXERCISES] == SourceCounters(
        processed=4, valid=2, inserted=2, skipped=1, errored=1
    )
    assert report.sources[SourceKind.LEGACY] == SourceCounters()
    assert SourceKind.LEGACY in report.failures
    assert "legacy" in report.render()


def test_stored_values(sample_sources: Settings, repository) -> None:
    build_orchestrator(sample_sources, repository).run()

    flour = repository.ingredients["lentil flour"]
    assert flour.nutrition.calories == 100
    cookies = repository.ingredients["chocolate chip cookies"]
    assert cookies.category == "Snacks"
    assert repository.ingredients["milk, whole"].category == "Dairy"
    assert "fiber supplement" not in repository.ingredients
    assert repository.exercises["17151"].intensity.value == "LIGHT"
    assert "02150" not in repository.exercises


def test_second_run_is_idempotent(sample_sources: Settings) -> None:
    repository = SqliteReferenceRepository.open(":memory:")
    orchestrator = build_orchestrator(sample_sources, repository)
    first = orchestrator.run()
    second = orchestrator.run()

    for kind, counters in first.sources.items():
        assert second.sources[kind].inserted == 0
        assert second.sources[kind].duplicate == (
            counters.inserted + counters.duplicate
        )
    assert repository.count_ingredients() == 4
    assert repository.count_exercises() == 2
    repository.close()


def test_duplicates_within_a_chunk(repository) -> None:
    orchestrator = Orchestrator(repository=repository, sources={}, chunk_size=10)
    row = {"Actvitiy": "Walking", "Code": "17151", "MET": "2", "Description": "x"}
    counters = orchestrator.ingest(
        SourceKind.EXERCISES,
        [StageResult.ok(row), StageResult.ok(dict(row))],
        normalize_exercise,
    )
    assert counters == SourceCounters(processed=2, valid=2, inserted=1, duplicate=1)


def test_reader_errors_are_counted(repository) -> None:
    orchestrator = Orchestrator(repository=repository, sources={})
    counters = orchestrator.ingest(
        SourceKind.EXERCISES,
        [StageResult.errored("bad line"), StageResult.skipped("short row")],
        normalize_exercise,
    )
    assert counters == SourceCounters(processed=2, skipped=1, errored=1)


def test_normalizer_exceptions_become_errors(repository) -> None:
    def broken(raw):  # type: ignore[no-untyped-def]
        raise TypeError("unexpected shape")

    orchestrator = Orchestrator(repository=repository, sources={})
    counters = orchestrator.ingest(
        SourceKind.FOUNDATION, [StageResult.ok({"description": 1})], broken
    )
    assert counters.errored == 1


def test_unconfigured_source_is_reported(repository) -> None:
    report = Orchestrator(repository=repository, sources={}).run()
    assert set(report.failures) == set(SourceKind)
    assert report.totals == SourceCounters()


def test_invalid_bytes_in_csv_do_not_stop_the_run(
    sample_sources: Settings, repository
) -> None:
    good_rows = b"".join(
        f"Activity {i},{i:05d},3.0,row {i}\n".encode() for i in range(50)
    )
    sample_sources.exercise_file.write_bytes(
        b"Actvitiy,Code,MET,Description\n"
        + good_rows
        + b"Bad\xff\xfe,99999,3.0,broken bytes\n"
        + b"Last,99998,4.0,last row\n"
    )

    report = build_orchestrator(sample_sources, repository).run()

    assert report.sources[SourceKind.EXERCISES] == SourceCounters(
        processed=52, valid=51, inserted=51, errored=1
    )
    assert repository.count_exercises() == 51


def test_buffered_records_are_written_when_reading_fails(repository) -> None:
    def rows():  # type: ignore[no-untyped-def]
        yield StageResult.ok(
            {"Actvitiy": "Walking", "Code": "17151", "MET": "2", "Description": "x"}
        )
        raise OSError("disk went away")

    orchestrator = Orchestrator(repository=repository, sources={}, chunk_size=10)
    with pytest.raises(OSError):
        orchestrator.ingest(SourceKind.EXERCISES, rows(), normalize_exercise)
    assert repository.count_exercises() == 1
