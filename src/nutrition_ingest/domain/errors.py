"""Error taxonomy for the ingestion pipeline."""


class IngestError(Exception):
    """Base class for ingestion errors."""


class SetupError(IngestError):
    """Raised when the run cannot start at all (store or output unavailable)."""


class SourceUnavailableError(IngestError):
    """Raised when a source file does not exist."""


class UnrecognizedSchemaError(IngestError):
    """Raised when a source's top-level shape matches no known container."""


class RecordParseError(IngestError):
    """Raised when a single record cannot be decoded."""


class RecordInvalidError(IngestError):
    """Raised when a record fails validation."""


class StoreWriteError(IngestError):
    """Raised by repositories when an insert is rejected by the store."""


class DuplicateKeyError(StoreWriteError):
    """Raised by repositories when an insert violates a unique constraint."""
