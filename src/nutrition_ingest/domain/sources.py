"""Source descriptors for the ingestion run."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class SourceKind(str, Enum):
    """Known reference-data sources, declared in run order."""

    FOUNDATION = "foundation"
    SURVEY = "survey"
    LEGACY = "legacy"
    BRANDED = "branded"
    EXERCISES = "exercises"

    @property
    def is_food(self) -> bool:
        return self is not SourceKind.EXERCISES


RUN_ORDER: tuple[SourceKind, ...] = tuple(SourceKind)


class SourceFormat(str, Enum):
    """Format hints understood by the source readers."""

    JSON_DOCUMENT = "json-document"
    JSON_STREAM = "json-stream"
    CSV = "csv"


@dataclass(frozen=True)
class SourceSpec:
    """Location and format of one source file."""

    kind: SourceKind
    path: Path
    format: SourceFormat
