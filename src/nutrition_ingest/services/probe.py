"""Prefix-based schema diagnostics for source files."""

import json
import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from pathlib import Path

DEFAULT_PREFIX_BYTES = 1024 * 1024
DEFAULT_MAX_DEPTH = 4
SAMPLE_ITEMS = 3

_WHITESPACE = " \t\r\n"
_decoder = json.JSONDecoder()
_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeReport:
    """What the probe learned about one file.

    ``status`` is ``ok`` when a whole top-level object (or the first element of
    a bare array) was parsed, ``partial`` when only the first element of a
    wrapped array fit in the prefix, ``unanalyzable`` or ``missing`` otherwise.
    """

    path: str
    status: str
    size_bytes: int | None = None
    container: str | None = None
    root_key: str | None = None
    array_length: int | None = None
    record_schema: dict[str, object] | None = None
    root_schema: dict[str, object] | None = None
    reason: str | None = None

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


def find_object_end(text: str, start: int) -> int | None:
    """Return the index just past the object opened at ``start``.

    Braces inside strings are ignored, and escapes inside strings are honoured.
    Returns None when the object is not closed within ``text``.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def describe_schema(
    value: object, max_depth: int = DEFAULT_MAX_DEPTH, depth: int = 0
) -> dict[str, object]:
    """Summarize the type structure of a JSON value, truncated at max_depth."""
    if depth >= max_depth:
        return {"type": _type_name(value), "truncated": True}
    if isinstance(value, list):
        if not value:
            return {"type": "array", "items": "empty"}
        return {
            "type": "array",
            "length": len(value),
            "sampleItems": [
                describe_schema(item, max_depth, depth + 1)
                for item in value[:SAMPLE_ITEMS]
            ],
        }
    if isinstance(value, dict):
        return {
            "type": "object",
            "properties": {
                str(key): describe_schema(item, max_depth, depth + 1)
                for key, item in value.items()
            },
        }
    return {"type": _type_name(value)}


@dataclass
class FormatProbe:
    """Inspects file prefixes and records their container shape and schema."""

    prefix_bytes: int = DEFAULT_PREFIX_BYTES
    max_depth: int = DEFAULT_MAX_DEPTH

    def probe_file(self, path: Path) -> ProbeReport:
        """Probe one file; problems are reported, never raised."""
        if not path.is_file():
            return ProbeReport(path=str(path), status="missing")
        try:
            size = path.stat().st_size
            with path.open("rb") as handle:
                prefix = handle.read(self.prefix_bytes)
        except OSError as exc:
            return ProbeReport(path=str(path), status="unanalyzable", reason=str(exc))
        text = prefix.decode("utf-8", errors="ignore")
        try:
            return self._analyze(path, size, text)
        except (ValueError, _ProbeFailure) as exc:
            return ProbeReport(
                path=str(path), status="unanalyzable", size_bytes=size, reason=str(exc)
            )

    def probe_files(
        self, paths: Iterable[Path], output_path: Path
    ) -> dict[str, ProbeReport]:
        """Probe several files and write all reports as JSON to output_path."""
        reports = {str(path): self.probe_file(path) for path in paths}
        for report in reports.values():
            if report.status in {"ok", "partial"}:
                _logger.info(
                    "%s: %s %s",
                    Path(report.path).name,
                    report.container,
                    report.root_key or "",
                )
            else:
                _logger.warning(
                    "%s: %s %s",
                    Path(report.path).name,
                    report.status,
                    report.reason or "",
                )
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(
                json.dumps(
                    {key: report.as_dict() for key, report in reports.items()},
                    indent=2,
                ),
                encoding="utf-8",
            )
        except OSError as exc:
            _logger.error("Could not write probe report to %s: %s", output_path, exc)
        else:
            _logger.info("Probe report saved to %s", output_path)
        return reports

    def _analyze(self, path: Path, size: int, text: str) -> ProbeReport:
        start = _skip_whitespace(text, 0)
        if start >= len(text):
            raise _ProbeFailure("file is empty")
        if text[start] == "[":
            element = self._first_element(text, start)
            return ProbeReport(
                path=str(path),
                status="ok",
                size_bytes=size,
                container="array",
                record_schema=describe_schema(element, self.max_depth),
            )
        if text[start] != "{":
            raise _ProbeFailure(f"unexpected leading character {text[start]!r}")

        end = find_object_end(text, start)
        if end is None:
            return self._probe_wrapped_prefix(path, size, text, start)

        document = json.loads(text[start:end])
        root_key = _single_array_key(document)
        if root_key is None:
            return ProbeReport(
                path=str(path),
                status="ok",
                size_bytes=size,
                container="object",
                root_schema=describe_schema(document, self.max_depth),
            )
        records = document[root_key]
        return ProbeReport(
            path=str(path),
            status="ok",
            size_bytes=size,
            container="wrapped-array",
            root_key=root_key,
            array_length=len(records),
            record_schema=(
                describe_schema(records[0], self.max_depth) if records else None
            ),
        )

    def _probe_wrapped_prefix(
        self, path: Path, size: int, text: str, start: int
    ) -> ProbeReport:
        key_start = _skip_whitespace(text, start + 1)
        key, position = _decoder.raw_decode(text, key_start)
        if not isinstance(key, str):
            raise _ProbeFailure("top-level object has no leading key")
        position = _skip_whitespace(text, position)
        if text[position : position + 1] != ":":
            raise _ProbeFailure(f"no value after key {key!r}")
        position = _skip_whitespace(text, position + 1)
        if text[position : position + 1] != "[":
            raise _ProbeFailure(
                f"no balanced object within the first {len(text)} characters"
            )
        element = self._first_element(text, position)
        return ProbeReport(
            path=str(path),
            status="partial",
            size_bytes=size,
            container="wrapped-array",
            root_key=key,
            record_schema=describe_schema(element, self.max_depth),
        )

    def _first_element(self, text: str, array_start: int) -> object:
        element_start = _skip_whitespace(text, array_start + 1)
        if text[element_start : element_start + 1] != "{":
            raise _ProbeFailure("array does not start with an object")
        end = find_object_end(text, element_start)
        if end is None:
            raise _ProbeFailure(
                f"no balanced object within the first {len(text)} characters"
            )
        return json.loads(text[element_start:end])


class _ProbeFailure(Exception):
    pass


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index] in _WHITESPACE:
        index += 1
    return index


def _single_array_key(document: object) -> str | None:
    if isinstance(document, dict) and len(document) == 1:
        key, value = next(iter(document.items()))
        if isinstance(value, list):
            return str(key)
    return None


def _type_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
