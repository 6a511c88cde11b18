import uuid
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoredVersion:
    version_number: int
    path: str


@dataclass(frozen=True)
class VersionInfo:
    """One entry of a document's version index."""

    document_id: uuid.UUID
    version_number: int
    path: str
    file_name: str
    file_size_bytes: int
    content_type: str
    content_hash: str
    created_by_id: uuid.UUID
    created_date: datetime


@dataclass(frozen=True)
class VersionContent:
    version_number: int
    file_name: str
    content: bytes
    content_type: str
