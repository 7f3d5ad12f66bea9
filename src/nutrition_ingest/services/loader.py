"""Chunked inserts into the reference store."""

import logging
from dataclasses import dataclass, field

from nutrition_ingest.domain.errors import DuplicateKeyError, StoreWriteError
from nutrition_ingest.domain.records import (
    NormalizedExercise,
    NormalizedIngredient,
    NormalizedRecord,
)
from nutrition_ingest.domain.results import LoadDelta
from nutrition_ingest.services.store import ReferenceRepository

DEFAULT_CHUNK_SIZE = 100

_logger = logging.getLogger(__name__)


@dataclass
class BatchLoader:
    """Buffers records and writes them one transactional chunk at a time.

    A chunk rejected by a unique constraint is retried record by record so the
    colliding rows count as duplicates. Any other rejection marks every record
    of the chunk as errored and the run moves on to the next chunk.
    """

    repository: ReferenceRepository
    chunk_size: int = DEFAULT_CHUNK_SIZE
    label: str = "records"
    _buffer: list[NormalizedRecord] = field(default_factory=list, init=False)
    _keys: set[str] = field(default_factory=set, init=False)
    _chunk_index: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be positive")

    @property
    def pending_keys(self) -> set[str]:
        """Keys of buffered records not yet written."""
        return self._keys

    def add(self, record: NormalizedRecord) -> LoadDelta:
        """Buffer a record, writing the chunk once it is full."""
        self._buffer.append(record)
        self._keys.add(record.key)
        if len(self._buffer) >= self.chunk_size:
            return self.flush()
        return LoadDelta()

    def flush(self) -> LoadDelta:
        """Write any buffered records."""
        if not self._buffer:
            return LoadDelta()
        chunk = self._buffer
        self._buffer = []
        self._keys = set()
        index = self._chunk_index
        self._chunk_index += 1
        return self._write_chunk(index, chunk)

    def _write_chunk(self, index: int, chunk: list[NormalizedRecord]) -> LoadDelta:
        try:
            self._insert(chunk)
        except DuplicateKeyError as exc:
            _logger.warning(
                "Chunk %s of %s hit a unique key, retrying per record: %s",
                index,
                self.label,
                exc,
            )
            return self._write_each(chunk)
        except StoreWriteError as exc:
            _logger.error(
                "Chunk %s of %s failed, %s records not inserted: %s",
                index,
                self.label,
                len(chunk),
                exc,
            )
            return LoadDelta(errored=len(chunk))
        return LoadDelta(inserted=len(chunk))

    def _write_each(self, chunk: list[NormalizedRecord]) -> LoadDelta:
        delta = LoadDelta()
        for record in chunk:
            try:
                self._insert([record])
            except DuplicateKeyError:
                delta += LoadDelta(duplicate=1)
            except StoreWriteError as exc:
                _logger.error("Insert of %r failed: %s", record.key, exc)
                delta += LoadDelta(errored=1)
            else:
                delta += LoadDelta(inserted=1)
        return delta

    def _insert(self, chunk: list[NormalizedRecord]) -> None:
        if isinstance(chunk[0], NormalizedIngredient):
            self.repository.insert_ingredients(
                [r for r in chunk if isinstance(r, NormalizedIngredient)]
            )
        else:
            self.repository.insert_exercises(
                [r for r in chunk if isinstance(r, NormalizedExercise)]
            )
