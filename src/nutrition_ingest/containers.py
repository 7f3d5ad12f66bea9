"""Dependency container wiring for the ingestion pipeline."""

import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import SupabaseException, create_client

from nutrition_ingest.adapters.sqlite_reference_repository import (
    SqliteReferenceRepository,
)
from nutrition_ingest.adapters.supabase_reference_repository import (
    SupabaseReferenceRepository,
)
from nutrition_ingest.config import Settings, sqlite_path
from nutrition_ingest.domain.errors import SetupError
from nutrition_ingest.domain.sources import SourceFormat, SourceKind, SourceSpec
from nutrition_ingest.services.orchestrator import Orchestrator
from nutrition_ingest.services.portable import PortableBuilder
from nutrition_ingest.services.probe import FormatProbe
from nutrition_ingest.services.store import ReferenceRepository


@dataclass
class IngestContainer:
    """Holds the dependencies of one ingestion run."""

    settings: Settings
    repository: ReferenceRepository
    orchestrator: Orchestrator
    close_resources: Callable[[], None]


def source_specs(settings: Settings) -> dict[SourceKind, SourceSpec]:
    """Return the configured source files keyed by source."""
    data_dir = settings.data_dir
    return {
        SourceKind.FOUNDATION: SourceSpec(
            SourceKind.FOUNDATION,
            data_dir / settings.foundation_file,
            SourceFormat.JSON_DOCUMENT,
        ),
        SourceKind.SURVEY: SourceSpec(
            SourceKind.SURVEY,
            data_dir / settings.survey_file,
            SourceFormat.JSON_DOCUMENT,
        ),
        SourceKind.LEGACY: SourceSpec(
            SourceKind.LEGACY,
            data_dir / settings.legacy_file,
            SourceFormat.JSON_DOCUMENT,
        ),
        SourceKind.BRANDED: SourceSpec(
            SourceKind.BRANDED,
            data_dir / settings.branded_file,
            SourceFormat.JSON_STREAM,
        ),
        SourceKind.EXERCISES: SourceSpec(
            SourceKind.EXERCISES,
            settings.exercise_file,
            SourceFormat.CSV,
        ),
    }


def open_sqlite_repository(
    path: Path, settings: Settings
) -> SqliteReferenceRepository:
    """Open (creating if needed) a SQLite store file."""
    try:
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        return SqliteReferenceRepository.open(
            path,
            ingredient_table=settings.ingredient_table,
            exercise_table=settings.exercise_table,
        )
    except (OSError, sqlite3.Error) as exc:
        raise SetupError(f"Cannot open SQLite store {path}: {exc}") from exc


def build_repository(settings: Settings) -> ReferenceRepository:
    """Create the store named by DATABASE_URL."""
    path = sqlite_path(settings.database_url)
    if path is not None:
        return open_sqlite_repository(path, settings)
    if not settings.supabase_service_key:
        raise SetupError("SUPABASE_SERVICE_KEY is required for a Supabase store")
    try:
        client = create_client(settings.database_url, settings.supabase_service_key)
    except SupabaseException as exc:
        raise SetupError(f"Cannot create Supabase client: {exc}") from exc
    repository = SupabaseReferenceRepository(
        client,
        ingredient_table=settings.ingredient_table,
        exercise_table=settings.exercise_table,
    )
    repository.ensure_schema()
    return repository


def build_orchestrator(
    settings: Settings, repository: ReferenceRepository
) -> Orchestrator:
    return Orchestrator(
        repository=repository,
        sources=source_specs(settings),
        chunk_size=settings.chunk_size,
        progress_every=settings.progress_every,
    )


def build_container(
    settings: Settings | None = None,
    repository: ReferenceRepository | None = None,
) -> IngestContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_repository = repository or build_repository(resolved_settings)
    return IngestContainer(
        settings=resolved_settings,
        repository=resolved_repository,
        orchestrator=build_orchestrator(resolved_settings, resolved_repository),
        close_resources=resolved_repository.close,
    )


def build_probe(settings: Settings) -> FormatProbe:
    return FormatProbe(
        prefix_bytes=settings.probe_prefix_bytes,
        max_depth=settings.probe_max_depth,
    )


def build_portable_builder(settings: Settings) -> PortableBuilder:
    return PortableBuilder(
        database_path=settings.portable_db_path,
        dist_dir=settings.dist_dir,
        runtime_db_path=settings.runtime_db_path,
    )
