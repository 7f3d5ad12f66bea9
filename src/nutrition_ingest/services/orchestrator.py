"""Sequencing of all sources into the reference store."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from nutrition_ingest.domain.errors import (
    SourceUnavailableError,
    UnrecognizedSchemaError,
)
from nutrition_ingest.domain.records import NormalizedRecord
from nutrition_ingest.domain.results import (
    LoadDelta,
    Outcome,
    RunReport,
    SourceCounters,
    StageResult,
)
from nutrition_ingest.domain.sources import RUN_ORDER, SourceKind, SourceSpec
from nutrition_ingest.services.dedup import Deduplicator
from nutrition_ingest.services.loader import DEFAULT_CHUNK_SIZE, BatchLoader
from nutrition_ingest.services.normalizer import (
    RawRecord,
    normalize_exercise,
    normalize_ingredient,
    nutrient_table_for,
)
from nutrition_ingest.services.readers import ReadResult, open_source
from nutrition_ingest.services.store import ReferenceRepository

Normalize = Callable[[RawRecord], StageResult[NormalizedRecord]]

_logger = logging.getLogger(__name__)


@dataclass
class Orchestrator:
    """Runs every configured source in the fixed order and reports counters."""

    repository: ReferenceRepository
    sources: dict[SourceKind, SourceSpec]
    chunk_size: int = DEFAULT_CHUNK_SIZE
    progress_every: int = 1000

    def run(self) -> RunReport:
        """Ingest all sources; a failing source is logged and left at zero."""
        report = RunReport()
        for kind in RUN_ORDER:
            _logger.info("=== %s ===", kind.value)
            try:
                report.sources[kind] = self.run_source(kind)
            except (SourceUnavailableError, UnrecognizedSchemaError) as exc:
                _logger.warning("Skipping %s source: %s", kind.value, exc)
                report.sources[kind] = SourceCounters()
                report.failures[kind] = str(exc)
        _logger.info("Ingestion finished:\n%s", report.render())
        return report

    def run_source(self, kind: SourceKind) -> SourceCounters:
        """Ingest a single source."""
        spec = self.sources.get(kind)
        if spec is None:
            raise SourceUnavailableError(f"No file configured for {kind.value}")
        reader = open_source(spec.path, spec.format)
        counters = self.ingest(kind, reader, _normalizer_for(kind))
        _logger.info(
            "%s: processed=%s valid=%s inserted=%s duplicate=%s skipped=%s errored=%s",
            kind.value,
            counters.processed,
            counters.valid,
            counters.inserted,
            counters.duplicate,
            counters.skipped,
            counters.errored,
        )
        return counters

    def ingest(
        self, kind: SourceKind, records: Iterable[ReadResult], normalize: Normalize
    ) -> SourceCounters:
        """Run parse, normalize, dedupe and insert over a record sequence."""
        counters = SourceCounters()
        deduplicator = Deduplicator(self.repository)
        loader = BatchLoader(self.repository, self.chunk_size, label=kind.value)
        every = self.progress_every

        try:
            for read in records:
                counters.processed += 1
                if every and counters.processed % every == 0:
                    _logger.info(
                        "%s: processed %s (valid %s, inserted %s, duplicates %s)",
                        kind.value,
                        counters.processed,
                        counters.valid,
                        counters.inserted,
                        counters.duplicate,
                    )
                result = _then(read, normalize)
                if result.outcome is not Outcome.OK or result.value is None:
                    _count_reject(counters, result)
                    continue
                counters.valid += 1
                record = result.value
                if deduplicator.is_duplicate(record, loader.pending_keys):
                    counters.duplicate += 1
                    continue
                _apply(counters, loader.add(record))
        finally:
            _apply(counters, loader.flush())
        return counters


def _normalizer_for(kind: SourceKind) -> Normalize:
    if not kind.is_food:
        return normalize_exercise
    table = nutrient_table_for(kind)
    return lambda raw: normalize_ingredient(raw, table)


def _then(read: ReadResult, normalize: Normalize) -> StageResult[NormalizedRecord]:
    if read.outcome is not Outcome.OK or read.value is None:
        return StageResult(read.outcome, reason=read.reason)
    try:
        return normalize(read.value)
    except (TypeError, ValueError, AttributeError) as exc:
        return StageResult.errored(f"{type(exc).__name__}: {exc}")


def _count_reject(counters: SourceCounters, result: StageResult) -> None:
    if result.outcome is Outcome.SKIPPED:
        counters.skipped += 1
    else:
        counters.errored += 1
    _logger.debug("Rejected record (%s): %s", result.outcome.value, result.reason)


def _apply(counters: SourceCounters, delta: LoadDelta) -> None:
    counters.inserted += delta.inserted
    counters.duplicate += delta.duplicate
    counters.errored += delta.errored
