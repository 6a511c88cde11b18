import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from docmanager.database.exceptions import DocumentNotFoundError
from docmanager.database.models import DocumentRecord
from docmanager.database.repositories.base import BaseDocumentRepository
from docmanager.database.repositories.document_metadata_repository import (
    DocumentMetadataRepository,
)

_COLUMNS = """
    id, name, description, document_type_id, uploaded_by_id, file_type,
    file_path, file_size_bytes, content_hash, classification_confidence,
    is_deleted, created_date, last_modified_date
"""


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_record(row: dict[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        document_type_id=row["document_type_id"],
        uploaded_by_id=row["uploaded_by_id"],
        file_type=row["file_type"],
        file_path=row["file_path"],
        file_size_bytes=row["file_size_bytes"],
        content_hash=row["content_hash"],
        classification_confidence=row["classification_confidence"],
        is_deleted=row["is_deleted"],
        created_date=row["created_date"],
        last_modified_date=row["last_modified_date"],
    )


class DocumentRepository(BaseDocumentRepository):
    """Database operations for the documents table."""

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        self._conn = conn

    def get_by_id(
        self, document_id: uuid.UUID, include_deleted: bool = False
    ) -> DocumentRecord | None:
        query = f"SELECT {_COLUMNS} FROM documents WHERE id = %s"
        if not include_deleted:
            query += " AND NOT is_deleted"
        rows = self._fetch_all(query, (document_id,))
        return rows[0] if rows else None

    def get_with_metadata(self, document_id: uuid.UUID) -> DocumentRecord | None:
        document = self.get_by_id(document_id)
        if document is None:
            return None
        document.metadata = DocumentMetadataRepository(self._conn).get_by_document_id(
            document_id
        )
        return document

    def get_active(self, skip: int, limit: int) -> list[DocumentRecord]:
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM documents
            WHERE NOT is_deleted
            ORDER BY created_date DESC
            OFFSET %s LIMIT %s
            """,
            (skip, limit),
        )

    def get_by_type(
        self, document_type_id: uuid.UUID, skip: int, limit: int
    ) -> list[DocumentRecord]:
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM documents
            WHERE document_type_id = %s AND NOT is_deleted
            ORDER BY created_date DESC
            OFFSET %s LIMIT %s
            """,
            (document_type_id, skip, limit),
        )

    def get_by_uploader(
        self, user_id: uuid.UUID, skip: int, limit: int
    ) -> list[DocumentRecord]:
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM documents
            WHERE uploaded_by_id = %s AND NOT is_deleted
            ORDER BY created_date DESC
            OFFSET %s LIMIT %s
            """,
            (user_id, skip, limit),
        )

    def search(
        self,
        term: str,
        document_type_id: uuid.UUID | None,
        skip: int,
        limit: int,
    ) -> list[DocumentRecord]:
        where, params = self._search_filter(term, document_type_id)
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM documents
            WHERE {where}
            ORDER BY created_date DESC
            OFFSET %s LIMIT %s
            """,
            (*params, skip, limit),
        )

    def count(self, document_type_id: uuid.UUID | None = None) -> int:
        if document_type_id is None:
            return self._scalar("SELECT COUNT(*) FROM documents WHERE NOT is_deleted", ())
        return self.count_by_type(document_type_id)

    def count_search(self, term: str, document_type_id: uuid.UUID | None = None) -> int:
        where, params = self._search_filter(term, document_type_id)
        return self._scalar(f"SELECT COUNT(*) FROM documents WHERE {where}", params)

    def count_by_type(self, document_type_id: uuid.UUID) -> int:
        return self._scalar(
            """
            SELECT COUNT(*) FROM documents
            WHERE document_type_id = %s AND NOT is_deleted
            """,
            (document_type_id,),
        )

    def get_recent(self, count: int) -> list[DocumentRecord]:
        return self.get_active(0, count)

    def add(self, document: DocumentRecord) -> DocumentRecord:
        self._conn.execute(
            """
            INSERT INTO documents (
                id, name, description, document_type_id, uploaded_by_id, file_type,
                file_path, file_size_bytes, content_hash, classification_confidence,
                is_deleted, created_date, last_modified_date
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                document.id,
                document.name,
                document.description,
                document.document_type_id,
                document.uploaded_by_id,
                document.file_type,
                document.file_path,
                document.file_size_bytes,
                document.content_hash,
                document.classification_confidence,
                document.is_deleted,
                document.created_date,
                document.last_modified_date,
            ),
        )
        return document

    def update(self, document: DocumentRecord) -> DocumentRecord:
        with self._conn.cursor() as cur:
            cur.execute(
                """
                UPDATE documents
                SET name = %s,
                    description = %s,
                    document_type_id = %s,
                    file_type = %s,
                    file_path = %s,
                    file_size_bytes = %s,
                    content_hash = %s,
                    classification_confidence = %s,
                    is_deleted = %s,
                    last_modified_date = %s
                WHERE id = %s
                """,
                (
                    document.name,
                    document.description,
                    document.document_type_id,
                    document.file_type,
                    document.file_path,
                    document.file_size_bytes,
                    document.content_hash,
                    document.classification_confidence,
                    document.is_deleted,
                    document.last_modified_date,
                    document.id,
                ),
            )
            if cur.rowcount == 0:
                raise DocumentNotFoundError(f"Document {document.id} not found")
        return document

    def soft_delete(self, document_id: uuid.UUID) -> bool:
        with self._conn.cursor() as cur:
            cur.execute(
                """
                UPDATE documents
                SET is_deleted = TRUE, last_modified_date = NOW()
                WHERE id = %s AND NOT is_deleted
                """,
                (document_id,),
            )
            return cur.rowcount > 0

    @staticmethod
    def _search_filter(
        term: str, document_type_id: uuid.UUID | None
    ) -> tuple[str, tuple[object, ...]]:
        clauses = ["NOT is_deleted"]
        params: list[object] = []
        if term:
            pattern = f"%{escape_like(term)}%"
            clauses.append("(name ILIKE %s OR COALESCE(description, '') ILIKE %s)")
            params.extend([pattern, pattern])
        if document_type_id is not None:
            clauses.append("document_type_id = %s")
            params.append(document_type_id)
        return " AND ".join(clauses), tuple(params)

    def _fetch_all(self, query: str, params: tuple[object, ...]) -> list[DocumentRecord]:
        with self._conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)  # type: ignore[arg-type]
            rows = cur.fetchall()
        return [_to_record(row) for row in rows]

    def _scalar(self, query: str, params: tuple[object, ...]) -> int:
        with self._conn.cursor() as cur:
            cur.execute(query, params)  # type: ignore[arg-type]
            row = cur.fetchone()
        return int(row[0]) if row is not None else 0
