"""Command-line entry point for the reference-data ingestion pipeline."""

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from nutrition_ingest.app_logging import configure_logging
from nutrition_ingest.config import Settings
from nutrition_ingest.containers import (
    build_container,
    build_orchestrator,
    build_portable_builder,
    build_probe,
    open_sqlite_repository,
    source_specs,
)
from nutrition_ingest.domain.errors import (
    SetupError,
    SourceUnavailableError,
    UnrecognizedSchemaError,
)
from nutrition_ingest.domain.results import RunReport, SourceCounters
from nutrition_ingest.domain.sources import SourceKind
from nutrition_ingest.services.orchestrator import Orchestrator

_logger = logging.getLogger("nutrition_ingest.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nutrition-ingest",
        description="Load USDA FoodData Central and MET reference data.",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="ingest sources into the store")
    run_parser.add_argument(
        "--source",
        choices=[kind.value for kind in SourceKind],
        help="ingest a single source instead of all of them",
    )

    probe_parser = subparsers.add_parser("probe", help="inspect source file shapes")
    probe_parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="files to probe (defaults to the configured sources)",
    )

    subparsers.add_parser("portable", help="build the portable SQLite store")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the requested command and return the process exit code."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level)

    try:
        if args.command == "probe":
            run_probe(settings, args.paths)
        elif args.command == "portable":
            run_portable(settings)
        else:
            run_ingest(settings, getattr(args, "source", None))
    except SetupError as exc:
        _logger.error("Setup failed: %s", exc)
        return 1
    return 0


def run_ingest(settings: Settings, source: str | None = None) -> RunReport:
    """Ingest all sources, or one, into the configured store."""
    container = build_container(settings)
    try:
        if source is None:
            report = container.orchestrator.run()
        else:
            report = _run_single(container.orchestrator, SourceKind(source))
        _logger.info(
            "Store holds %s ingredients and %s exercises",
            container.repository.count_ingredients(),
            container.repository.count_exercises(),
        )
    finally:
        container.close_resources()
    print(report.render())
    return report


def run_probe(settings: Settings, paths: Sequence[Path] = ()) -> None:
    """Probe the given files, or every configured source file."""
    targets = list(paths) or [spec.path for spec in source_specs(settings).values()]
    build_probe(settings).probe_files(targets, settings.probe_report_path)


def run_portable(settings: Settings) -> None:
    """Ingest everything into the portable SQLite file and package it."""

    def ingest(database_path: Path) -> RunReport:
        repository = open_sqlite_repository(database_path, settings)
        try:
            report = build_orchestrator(settings, repository).run()
            _logger.info(
                "Portable store holds %s ingredients and %s exercises",
                repository.count_ingredients(),
                repository.count_exercises(),
            )
            return report
        finally:
            repository.close()

    result = build_portable_builder(settings).build(ingest)
    print(result.report.render())
    print(f"Portable store: {result.distributed_path}")


def _run_single(orchestrator: Orchestrator, kind: SourceKind) -> RunReport:
    report = RunReport()
    try:
        report.sources[kind] = orchestrator.run_source(kind)
    except (SourceUnavailableError, UnrecognizedSchemaError) as exc:
        _logger.warning("Skipping %s source: %s", kind.value, exc)
        report.sources[kind] = SourceCounters()
        report.failures[kind] = str(exc)
    return report


if __name__ == "__main__":
    sys.exit(main())
