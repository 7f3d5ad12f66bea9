"""Tagged stage results and run counters."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Generic, TypeVar

from nutrition_ingest.domain.sources import SourceKind

T = TypeVar("T")


class Outcome(str, Enum):
    """Outcome of a single pipeline stage for one record."""

    OK = "ok"
    SKIPPED = "skipped"
    ERRORED = "errored"


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """A value tagged with the outcome of the stage that produced it."""

    outcome: Outcome
    value: T | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, value: T) -> "StageResult[T]":
        return cls(Outcome.OK, value=value)

    @classmethod
    def skipped(cls, reason: str) -> "StageResult[T]":
        return cls(Outcome.SKIPPED, reason=reason)

    @classmethod
    def errored(cls, reason: str) -> "StageResult[T]":
        return cls(Outcome.ERRORED, reason=reason)


@dataclass
class SourceCounters:
    """Counters for one source, or for the whole run when summed."""

    processed: int = 0
    valid: int = 0
    inserted: int = 0
    duplicate: int = 0
    skipped: int = 0
    errored: int = 0

    def __add__(self, other: "SourceCounters") -> "SourceCounters":
        return SourceCounters(
            **{
                f.name: getattr(self, f.name) + getattr(other, f.name)
                for f in fields(self)
            }
        )

    def as_dict(self) -> dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class LoadDelta:
    """Counter changes produced by one BatchLoader call."""

    inserted: int = 0
    duplicate: int = 0
    errored: int = 0

    def __add__(self, other: "LoadDelta") -> "LoadDelta":
        return LoadDelta(
            inserted=self.inserted + other.inserted,
            duplicate=self.duplicate + other.duplicate,
            errored=self.errored + other.errored,
        )


@dataclass
class RunReport:
    """Per-source counters for a completed run."""

    sources: dict[SourceKind, SourceCounters] = field(default_factory=dict)
    failures: dict[SourceKind, str] = field(default_factory=dict)

    @property
    def totals(self) -> SourceCounters:
        total = SourceCounters()
        for counters in self.sources.values():
            total = total + counters
        return total

    def render(self) -> str:
        """Render the report as a fixed-width table."""
        columns = [f.name for f in fields(SourceCounters)]
        header = f"{'source':<10}" + "".join(f"{name:>11}" for name in columns)
        lines = [header, "-" * len(header)]
        for kind, counters in self.sources.items():
            values = counters.as_dict()
            line = f"{kind.value:<10}" + "".join(
                f"{values[c]:>11,}" for c in columns
            )
            if kind in self.failures:
                line += f"  ({self.failures[kind]})"
            lines.append(line)
        lines.append("-" * len(header))
        totals = self.totals.as_dict()
        lines.append(
            f"{'total':<10}" + "".join(f"{totals[c]:>11,}" for c in columns)
        )
        return "\n".join(lines)
