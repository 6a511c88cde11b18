import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

CLASSIFICATION_RESULT_KEY = "ClassificationResult"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_type_name(name: str) -> str:
    """Derive the machine type name: lowercased, all spaces removed."""
    return name.replace(" ", "").lower()


@dataclass
class DocumentMetadataRecord:
    """Represents a row from the document_metadata table."""

    document_id: uuid.UUID
    key: str
    value: str
    data_type: str = "string"
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_date: datetime = field(default_factory=utcnow)
    last_modified_date: datetime = field(default_factory=utcnow)


@dataclass
class DocumentRecord:
    """Represents a row from the documents table.

    ``metadata`` is populated only by repository calls that load it
    explicitly; it is never written back through ``update``.
    """

    name: str
    uploaded_by_id: uuid.UUID
    file_type: str
    file_path: str
    file_size_bytes: int
    content_hash: str
    description: str | None = None
    document_type_id: uuid.UUID | None = None
    classification_confidence: float | None = None
    is_deleted: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_date: datetime = field(default_factory=utcnow)
    last_modified_date: datetime = field(default_factory=utcnow)
    metadata: list[DocumentMetadataRecord] = field(default_factory=list)


@dataclass
class DocumentTypeRecord:
    """Represents a row from the document_types table."""

    name: str
    type_name: str
    description: str | None = None
    is_active: bool = True
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_date: datetime = field(default_factory=utcnow)
    last_modified_date: datetime = field(default_factory=utcnow)


@dataclass
class UserRecord:
    """Represents a row from the users table."""

    username: str
    email: str
    password_hash: str = ""
    password_salt: str = ""
    first_name: str | None = None
    last_name: str | None = None
    is_active: bool = True
    is_admin: bool = False
    last_login_date: datetime | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_date: datetime = field(default_factory=utcnow)
    last_modified_date: datetime = field(default_factory=utcnow)
