"""Format-aware readers yielding raw source records."""

import csv
import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import ijson

from nutrition_ingest.domain.errors import (
    SourceUnavailableError,
    UnrecognizedSchemaError,
)
from nutrition_ingest.domain.results import StageResult
from nutrition_ingest.domain.sources import SourceFormat

KNOWN_ROOT_KEYS = ("FoundationFoods", "SRLegacyFoods", "BrandedFoods", "SurveyFoods")
REQUIRED_CSV_COLUMNS = ("Actvitiy", "Code", "MET", "Description")

RawRecord = dict[str, object]
ReadResult = StageResult[RawRecord]

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceReader:
    """Lazy sequence of raw records; every iteration re-reads the file."""

    path: Path
    format: SourceFormat

    def __iter__(self) -> Iterator[ReadResult]:
        if not self.path.is_file():
            raise SourceUnavailableError(f"Source file not found: {self.path}")
        if self.format is SourceFormat.CSV:
            yield from _read_csv(self.path)
        elif self.format is SourceFormat.JSON_STREAM:
            yield from _read_json_stream(self.path)
        else:
            yield from _read_json_document(self.path)


def open_source(path: Path, format_hint: SourceFormat) -> SourceReader:
    """Return a reader for a source file."""
    return SourceReader(path=path, format=format_hint)


def select_records(document: object, path: Path) -> list[object]:
    """Pick the record array out of a parsed JSON document."""
    if isinstance(document, dict):
        for key in document:
            if key in KNOWN_ROOT_KEYS and isinstance(document[key], list):
                _logger.debug("Found %s array in %s", key, path.name)
                return document[key]
        raise UnrecognizedSchemaError(
            f"No known top-level key in {path.name}: {sorted(document)[:5]}"
        )
    if isinstance(document, list):
        return document
    raise UnrecognizedSchemaError(
        f"Top-level value of {path.name} is {type(document).__name__}"
    )


def detect_stream_prefix(path: Path) -> str:
    """Return the ijson prefix of the record array without loading the file."""
    with path.open("rb") as handle:
        try:
            for prefix, event, value in ijson.parse(handle):
                if prefix:
                    continue
                if event == "start_array":
                    return "item"
                if event == "map_key" and value in KNOWN_ROOT_KEYS:
                    return f"{value}.item"
                if event not in ("start_map", "map_key"):
                    break
        except ijson.JSONError as exc:
            message = f"Invalid JSON in {path.name}: {exc}"
            raise UnrecognizedSchemaError(message) from exc
    raise UnrecognizedSchemaError(f"No known top-level array in {path.name}")


def _read_json_document(path: Path) -> Iterator[ReadResult]:
    with path.open("rb") as handle:
        try:
            document = json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            message = f"Invalid JSON in {path.name}: {exc}"
            raise UnrecognizedSchemaError(message) from exc
    for index, item in enumerate(select_records(document, path)):
        yield _as_record(item, index)


def _read_json_stream(path: Path) -> Iterator[ReadResult]:
    prefix = detect_stream_prefix(path)
    _logger.info("Streaming %s records from %s", prefix, path.name)
    with path.open("rb") as handle:
        items = ijson.items(handle, prefix, use_float=True)
        index = 0
        while True:
            try:
                item = next(items)
            except StopIteration:
                return
            except (ijson.JSONError, UnicodeDecodeError) as exc:
                _logger.error(
                    "Stopped reading %s after %s records: %s", path.name, index, exc
                )
                yield StageResult.errored(f"record {index}: {exc}")
                return
            yield _as_record(item, index)
            index += 1


def _as_record(item: object, index: int) -> ReadResult:
    if isinstance(item, dict):
        return StageResult.ok(item)
    return StageResult.errored(f"record {index} is {type(item).__name__}, not object")


def _read_csv(path: Path) -> Iterator[ReadResult]:
    with path.open(
        newline="", encoding="utf-8-sig", errors="surrogateescape"
    ) as handle:
        reader = csv.DictReader(handle)
        header = reader.fieldnames or []
        missing = [column for column in REQUIRED_CSV_COLUMNS if column not in header]
        if missing:
            raise UnrecognizedSchemaError(
                f"{path.name} header lacks columns: {', '.join(missing)}"
            )
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as exc:
                yield StageResult.errored(f"line {reader.line_num}: {exc}")
                continue
            absent = [
                column for column in REQUIRED_CSV_COLUMNS if row.get(column) is None
            ]
            if absent:
                yield StageResult.skipped(
                    f"line {reader.line_num}: missing {', '.join(absent)}"
                )
                continue
            if not _is_valid_text(row):
                yield StageResult.errored(f"line {reader.line_num}: invalid UTF-8")
                continue
            yield StageResult.ok(dict(row))


def _is_valid_text(row: dict[str, object]) -> bool:
    """Return False if any cell holds bytes that did not decode as UTF-8."""
    for value in row.values():
        if not isinstance(value, str):
            continue
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            return False
    return True
