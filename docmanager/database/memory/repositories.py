import copy
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TypeVar

from docmanager.database.exceptions import (
    ConstraintViolationError,
    DocumentNotFoundError,
    DocumentTypeNotFoundError,
)
from docmanager.database.memory.store import InMemoryStore
from docmanager.database.models import (
    CLASSIFICATION_RESULT_KEY,
    DocumentMetadataRecord,
    DocumentRecord,
    DocumentTypeRecord,
    UserRecord,
    utcnow,
)
from docmanager.database.repositories.base import (
    BaseDocumentMetadataRepository,
    BaseDocumentRepository,
    BaseDocumentTypeRepository,
    BaseUserRepository,
)


T = TypeVar("T")


def _page(rows: list[T], skip: int, limit: int | None) -> list[T]:
    if limit is None:
        return rows[skip:]
    return rows[skip : skip + limit]


def _copies(rows: Iterable[T]) -> list[T]:
    return [copy.deepcopy(row) for row in rows]


class InMemoryDocumentRepository(BaseDocumentRepository):
    """Document rows held by an InMemoryStore."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    @property
    def _rows(self) -> dict[uuid.UUID, DocumentRecord]:
        return self._store.tables.documents

    def _active(self) -> list[DocumentRecord]:
        # Newest first; rows created in the same instant keep newest-first too.
        rows = [row for row in reversed(self._rows.values()) if not row.is_deleted]
        return sorted(rows, key=lambda row: row.created_date, reverse=True)

    def get_by_id(
        self, document_id: uuid.UUID, include_deleted: bool = False
    ) -> DocumentRecord | None:
        row = self._rows.get(document_id)
        if row is None or (row.is_deleted and not include_deleted):
            return None
        document = copy.deepcopy(row)
        document.metadata = []
        return document

    def get_with_metadata(self, document_id: uuid.UUID) -> DocumentRecord | None:
        document = self.get_by_id(document_id)
        if document is None:
            return None
        document.metadata = InMemoryDocumentMetadataRepository(self._store).get_by_document_id(
            document_id
        )
        return document

    def get_active(self, skip: int, limit: int) -> list[DocumentRecord]:
        return _copies(_page(self._active(), skip, limit))

    def get_by_type(
        self, document_type_id: uuid.UUID, skip: int, limit: int
    ) -> list[DocumentRecord]:
        rows = [row for row in self._active() if row.document_type_id == document_type_id]
        return _copies(_page(rows, skip, limit))

    def get_by_uploader(
        self, user_id: uuid.UUID, skip: int, limit: int
    ) -> list[DocumentRecord]:
        rows = [row for row in self._active() if row.uploaded_by_id == user_id]
        return _copies(_page(rows, skip, limit))

    def search(
        self,
        term: str,
        document_type_id: uuid.UUID | None,
        skip: int,
        limit: int,
    ) -> list[DocumentRecord]:
        return _copies(_page(self._matching(term, document_type_id), skip, limit))

    def count(self, document_type_id: uuid.UUID | None = None) -> int:
        if document_type_id is None:
            return len(self._active())
        return self.count_by_type(document_type_id)

    def count_search(self, term: str, document_type_id: uuid.UUID | None = None) -> int:
        return len(self._matching(term, document_type_id))

    def count_by_type(self, document_type_id: uuid.UUID) -> int:
        return sum(1 for row in self._active() if row.document_type_id == document_type_id)

    def get_recent(self, count: int) -> list[DocumentRecord]:
        return self.get_active(0, count)

    def add(self, document: DocumentRecord) -> DocumentRecord:
        if document.id in self._rows:
            raise ConstraintViolationError(f"Duplicate document id {document.id}")
        self._check_references(document)
        row = copy.deepcopy(document)
        row.metadata = []
        self._rows[document.id] = row
        return document

    def update(self, document: DocumentRecord) -> DocumentRecord:
        if document.id not in self._rows:
            raise DocumentNotFoundError(f"Document {document.id} not found")
        self._check_references(document)
        row = copy.deepcopy(document)
        row.metadata = []
        row.created_date = self._rows[document.id].created_date
        self._rows[document.id] = row
        return document

    def soft_delete(self, document_id: uuid.UUID) -> bool:
        row = self._rows.get(document_id)
        if row is None or row.is_deleted:
            return False
        row.is_deleted = True
        row.last_modified_date = utcnow()
        return True

    def _matching(self, term: str, document_type_id: uuid.UUID | None) -> list[DocumentRecord]:
        needle = term.casefold()
        rows = []
        for row in self._active():
            if document_type_id is not None and row.document_type_id != document_type_id:
                continue
            haystacks = (row.name.casefold(), (row.description or "").casefold())
            if needle and not any(needle in haystack for haystack in haystacks):
                continue
            rows.append(row)
        return rows

    def _check_references(self, document: DocumentRecord) -> None:
        tables = self._store.tables
        if document.uploaded_by_id not in tables.users:
            raise ConstraintViolationError(f"Unknown uploader {document.uploaded_by_id}")
        if (
            document.document_type_id is not None
            and document.document_type_id not in tables.document_types
        ):
            raise ConstraintViolationError(
                f"Unknown document type {document.document_type_id}"
            )


class InMemoryDocumentTypeRepository(BaseDocumentTypeRepository):
    """Document type rows held by an InMemoryStore."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    @property
    def _rows(self) -> dict[uuid.UUID, DocumentTypeRecord]:
        return self._store.tables.document_types

    def _sorted(self) -> list[DocumentTypeRecord]:
        return sorted(self._rows.values(), key=lambda row: row.name)

    def get_by_id(self, document_type_id: uuid.UUID) -> DocumentTypeRecord | None:
        row = self._rows.get(document_type_id)
        return copy.deepcopy(row) if row is not None else None

    def get_by_name(self, name: str) -> DocumentTypeRecord | None:
        for row in self._rows.values():
            if row.name == name:
                return copy.deepcopy(row)
        return None

    def get_by_type_name(self, type_name: str) -> DocumentTypeRecord | None:
        candidates = [row for row in self._rows.values() if row.type_name == type_name]
        if not candidates:
            return None
        candidates.sort(key=lambda row: (not row.is_active, row.created_date))
        return copy.deepcopy(candidates[0])

    def get_all(self) -> list[DocumentTypeRecord]:
        return _copies(self._sorted())

    def get_active(self, skip: int = 0, limit: int | None = None) -> list[DocumentTypeRecord]:
        rows = [row for row in self._sorted() if row.is_active]
        return _copies(_page(rows, skip, limit))

    def get_paged(self, skip: int, limit: int) -> list[DocumentTypeRecord]:
        return _copies(_page(self._sorted(), skip, limit))

    def count(self, active_only: bool = False) -> int:
        if active_only:
            return sum(1 for row in self._rows.values() if row.is_active)
        return len(self._rows)

    def add(self, document_type: DocumentTypeRecord) -> DocumentTypeRecord:
        if document_type.id in self._rows:
            raise ConstraintViolationError(f"Duplicate document type id {document_type.id}")
        self._check_unique_name(document_type)
        self._rows[document_type.id] = copy.deepcopy(document_type)
        return document_type

    def update(self, document_type: DocumentTypeRecord) -> DocumentTypeRecord:
        existing = self._rows.get(document_type.id)
        if existing is None:
            raise DocumentTypeNotFoundError(f"Document type {document_type.id} not found")
        self._check_unique_name(document_type)
        row = copy.deepcopy(document_type)
        row.created_date = existing.created_date
        self._rows[document_type.id] = row
        return document_type

    def delete(self, document_type_id: uuid.UUID) -> bool:
        if self._rows.pop(document_type_id, None) is None:
            return False
        for document in self._store.tables.documents.values():
            if document.document_type_id == document_type_id:
                document.document_type_id = None
        return True

    def _check_unique_name(self, document_type: DocumentTypeRecord) -> None:
        for row in self._rows.values():
            if row.name == document_type.name and row.id != document_type.id:
                raise ConstraintViolationError(
                    f"Duplicate document type name '{document_type.name}'"
                )


class InMemoryDocumentMetadataRepository(BaseDocumentMetadataRepository):
    """Metadata rows held by an InMemoryStore."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    @property
    def _rows(self) -> dict[uuid.UUID, DocumentMetadataRecord]:
        return self._store.tables.document_metadata

    def _of_document(self, document_id: uuid.UUID) -> list[DocumentMetadataRecord]:
        return [row for row in self._rows.values() if row.document_id == document_id]

    def get_by_document_id(self, document_id: uuid.UUID) -> list[DocumentMetadataRecord]:
        rows = sorted(self._of_document(document_id), key=lambda row: (row.key, row.created_date))
        return _copies(rows)

    def get_by_key(self, document_id: uuid.UUID, key: str) -> DocumentMetadataRecord | None:
        rows = self.get_all_by_key(document_id, key)
        return rows[0] if rows else None

    def get_all_by_key(self, document_id: uuid.UUID, key: str) -> list[DocumentMetadataRecord]:
        rows = [row for row in self._of_document(document_id) if row.key == key][::-1]
        rows.sort(key=lambda row: row.created_date, reverse=True)
        return _copies(rows)

    def add(self, metadata: DocumentMetadataRecord) -> DocumentMetadataRecord:
        if metadata.document_id not in self._store.tables.documents:
            raise ConstraintViolationError(f"Unknown document {metadata.document_id}")
        if metadata.key != CLASSIFICATION_RESULT_KEY and any(
            row.key == metadata.key for row in self._of_document(metadata.document_id)
        ):
            raise ConstraintViolationError(
                f"Duplicate metadata key '{metadata.key}' for document {metadata.document_id}"
            )
        self._rows[metadata.id] = copy.deepcopy(metadata)
        return metadata

    def upsert(
        self, document_id: uuid.UUID, key: str, value: str, data_type: str
    ) -> DocumentMetadataRecord:
        existing = self.get_by_key(document_id, key)
        now = utcnow()
        if existing is None:
            return self.add(
                DocumentMetadataRecord(
                    document_id=document_id,
                    key=key,
                    value=value,
                    data_type=data_type,
                    created_date=now,
                    last_modified_date=now,
                )
            )
        row = self._rows[existing.id]
        row.value = value
        row.data_type = data_type
        row.last_modified_date = now
        return copy.deepcopy(row)

    def delete_by_document_id(self, document_id: uuid.UUID) -> int:
        return self._delete(row.id for row in self._of_document(document_id))

    def delete_by_key(self, document_id: uuid.UUID, key: str) -> int:
        return self._delete(row.id for row in self._of_document(document_id) if row.key == key)

    def _delete(self, ids: Iterable[uuid.UUID]) -> int:
        removed = 0
        for row_id in list(ids):
            del self._rows[row_id]
            removed += 1
        return removed


class InMemoryUserRepository(BaseUserRepository):
    """User rows held by an InMemoryStore."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    @property
    def _rows(self) -> dict[uuid.UUID, UserRecord]:
        return self._store.tables.users

    def get_by_id(self, user_id: uuid.UUID) -> UserRecord | None:
        row = self._rows.get(user_id)
        return copy.deepcopy(row) if row is not None else None

    def get_by_username(self, username: str) -> UserRecord | None:
        return self._find(lambda row: row.username == username)

    def get_by_email(self, email: str) -> UserRecord | None:
        return self._find(lambda row: row.email == email)

    def add(self, user: UserRecord) -> UserRecord:
        for row in self._rows.values():
            if row.id == user.id or row.username == user.username or row.email == user.email:
                raise ConstraintViolationError(f"Duplicate user '{user.username}'")
        self._rows[user.id] = copy.deepcopy(user)
        return user

    def update_last_login(self, user_id: uuid.UUID, when: datetime) -> bool:
        row = self._rows.get(user_id)
        if row is None:
            return False
        row.last_login_date = when
        return True

    def _find(self, predicate: Callable[[UserRecord], bool]) -> UserRecord | None:
        for row in self._rows.values():
            if predicate(row):
                return copy.deepcopy(row)
        return None
