"""Repository contracts shared by the PostgreSQL and in-memory stores.

Lifecycle differs per entity: documents are only ever soft-deleted through
these contracts, document types are hard-deleted (callers must check
references first), metadata rows are deleted with their owner's explicit
request.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime

from docmanager.database.models import (
    DocumentMetadataRecord,
    DocumentRecord,
    DocumentTypeRecord,
    UserRecord,
)


class BaseDocumentRepository(ABC):
    """Contract for the documents table."""

    @abstractmethod
    def get_by_id(
        self, document_id: uuid.UUID, include_deleted: bool = False
    ) -> DocumentRecord | None:
        """Find a document by ID; soft-deleted rows only when asked for."""

    @abstractmethod
    def get_with_metadata(self, document_id: uuid.UUID) -> DocumentRecord | None:
        """Find a non-deleted document with its metadata rows loaded."""

    @abstractmethod
    def get_active(self, skip: int, limit: int) -> list[DocumentRecord]:
        """Page through non-deleted documents, newest first."""

    @abstractmethod
    def get_by_type(
        self, document_type_id: uuid.UUID, skip: int, limit: int
    ) -> list[DocumentRecord]:
        """Page through non-deleted documents of one type, newest first."""

    @abstractmethod
    def get_by_uploader(
        self, user_id: uuid.UUID, skip: int, limit: int
    ) -> list[DocumentRecord]:
        """Page through non-deleted documents uploaded by one user."""

    @abstractmethod
    def search(
        self,
        term: str,
        document_type_id: uuid.UUID | None,
        skip: int,
        limit: int,
    ) -> list[DocumentRecord]:
        """Case-insensitive substring search over name and description."""

    @abstractmethod
    def count(self, document_type_id: uuid.UUID | None = None) -> int:
        """Count non-deleted documents, optionally of one type."""

    @abstractmethod
    def count_search(self, term: str, document_type_id: uuid.UUID | None = None) -> int:
        """Count the rows ``search`` would return without pagination."""

    @abstractmethod
    def count_by_type(self, document_type_id: uuid.UUID) -> int:
        """Count non-deleted documents referencing a type."""

    @abstractmethod
    def get_recent(self, count: int) -> list[DocumentRecord]:
        """Most recently created non-deleted documents."""

    @abstractmethod
    def add(self, document: DocumentRecord) -> DocumentRecord:
        """Insert a new document row."""

    @abstractmethod
    def update(self, document: DocumentRecord) -> DocumentRecord:
        """Write back every mutable column of an existing row.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """

    @abstractmethod
    def soft_delete(self, document_id: uuid.UUID) -> bool:
        """Mark a document deleted. False if missing or already deleted."""


class BaseDocumentTypeRepository(ABC):
    """Contract for the document_types table."""

    @abstractmethod
    def get_by_id(self, document_type_id: uuid.UUID) -> DocumentTypeRecord | None:
        """Find a document type by ID."""

    @abstractmethod
    def get_by_name(self, name: str) -> DocumentTypeRecord | None:
        """Find a document type by exact (case-sensitive) display name."""

    @abstractmethod
    def get_by_type_name(self, type_name: str) -> DocumentTypeRecord | None:
        """Find a document type by normalized type name, active rows first."""

    @abstractmethod
    def get_all(self) -> list[DocumentTypeRecord]:
        """All document types ordered by name."""

    @abstractmethod
    def get_active(self, skip: int = 0, limit: int | None = None) -> list[DocumentTypeRecord]:
        """Active document types ordered by name."""

    @abstractmethod
    def get_paged(self, skip: int, limit: int) -> list[DocumentTypeRecord]:
        """Page through all document types ordered by name."""

    @abstractmethod
    def count(self, active_only: bool = False) -> int:
        """Count document types."""

    @abstractmethod
    def add(self, document_type: DocumentTypeRecord) -> DocumentTypeRecord:
        """Insert a new document type row."""

    @abstractmethod
    def update(self, document_type: DocumentTypeRecord) -> DocumentTypeRecord:
        """Write back every mutable column of an existing row."""

    @abstractmethod
    def delete(self, document_type_id: uuid.UUID) -> bool:
        """Hard-delete a document type. False if it does not exist."""


class BaseDocumentMetadataRepository(ABC):
    """Contract for the document_metadata table."""

    @abstractmethod
    def get_by_document_id(self, document_id: uuid.UUID) -> list[DocumentMetadataRecord]:
        """All metadata rows of a document ordered by key."""

    @abstractmethod
    def get_by_key(self, document_id: uuid.UUID, key: str) -> DocumentMetadataRecord | None:
        """The metadata row for a key, or None."""

    @abstractmethod
    def get_all_by_key(self, document_id: uuid.UUID, key: str) -> list[DocumentMetadataRecord]:
        """Every row stored under a key, newest first."""

    @abstractmethod
    def add(self, metadata: DocumentMetadataRecord) -> DocumentMetadataRecord:
        """Insert a row without checking for an existing key."""

    @abstractmethod
    def upsert(
        self, document_id: uuid.UUID, key: str, value: str, data_type: str
    ) -> DocumentMetadataRecord:
        """Update the row for (document_id, key) if present, else insert it."""

    @abstractmethod
    def delete_by_document_id(self, document_id: uuid.UUID) -> int:
        """Delete every metadata row of a document; returns rows removed."""

    @abstractmethod
    def delete_by_key(self, document_id: uuid.UUID, key: str) -> int:
        """Delete every row of a document stored under a key."""


class BaseUserRepository(ABC):
    """Contract for the users table."""

    @abstractmethod
    def get_by_id(self, user_id: uuid.UUID) -> UserRecord | None:
        """Find a user by ID."""

    @abstractmethod
    def get_by_username(self, username: str) -> UserRecord | None:
        """Find a user by username."""

    @abstractmethod
    def get_by_email(self, email: str) -> UserRecord | None:
        """Find a user by email."""

    @abstractmethod
    def add(self, user: UserRecord) -> UserRecord:
        """Insert a new user row."""

    @abstractmethod
    def update_last_login(self, user_id: uuid.UUID, when: datetime) -> bool:
        """Stamp the last login time. False if the user does not exist."""
