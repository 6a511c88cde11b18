class PersistenceError(Exception):
    """Base exception for all persistence-layer errors."""


class TransactionError(PersistenceError):
    """Raised when a transaction cannot be started, committed or rolled back."""


class TransactionStateError(TransactionError):
    """Raised when a transaction is used after it has been closed."""


class ConstraintViolationError(PersistenceError):
    """Raised by the in-memory store where PostgreSQL would reject a row."""


class RecordNotFoundError(PersistenceError):
    """Raised when an update targets a row that does not exist."""


class DocumentNotFoundError(RecordNotFoundError):
    """Raised when a document cannot be found in the database."""


class DocumentTypeNotFoundError(RecordNotFoundError):
    """Raised when a document type cannot be found in the database."""


class MetadataNotFoundError(RecordNotFoundError):
    """Raised when a metadata row cannot be found in the database."""
