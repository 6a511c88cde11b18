import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from docmanager.database.exceptions import DocumentTypeNotFoundError
from docmanager.database.models import DocumentTypeRecord
from docmanager.database.repositories.base import BaseDocumentTypeRepository

_COLUMNS = "id, name, type_name, description, is_active, created_date, last_modified_date"


def _to_record(row: dict[str, Any]) -> DocumentTypeRecord:
    return DocumentTypeRecord(
        id=row["id"],
        name=row["name"],
        type_name=row["type_name"],
        description=row["description"],
        is_active=row["is_active"],
        created_date=row["created_date"],
        last_modified_date=row["last_modified_date"],
    )


class DocumentTypeRepository(BaseDocumentTypeRepository):
    """Database operations for the document_types table."""

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        self._conn = conn

    def get_by_id(self, document_type_id: uuid.UUID) -> DocumentTypeRecord | None:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM document_types WHERE id = %s", (document_type_id,)
        )
        return rows[0] if rows else None

    def get_by_name(self, name: str) -> DocumentTypeRecord | None:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM document_types WHERE name = %s", (name,)
        )
        return rows[0] if rows else None

    def get_by_type_name(self, type_name: str) -> DocumentTypeRecord | None:
        rows = self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM document_types
            WHERE type_name = %s
            ORDER BY is_active DESC, created_date
            LIMIT 1
            """,
            (type_name,),
        )
        return rows[0] if rows else None

    def get_all(self) -> list[DocumentTypeRecord]:
        return self._fetch_all(f"SELECT {_COLUMNS} FROM document_types ORDER BY name", ())

    def get_active(self, skip: int = 0, limit: int | None = None) -> list[DocumentTypeRecord]:
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM document_types
            WHERE is_active
            ORDER BY name
            OFFSET %s LIMIT %s
            """,
            (skip, limit),
        )

    def get_paged(self, skip: int, limit: int) -> list[DocumentTypeRecord]:
        return self._fetch_all(
            f"SELECT {_COLUMNS} FROM document_types ORDER BY name OFFSET %s LIMIT %s",
            (skip, limit),
        )

    def count(self, active_only: bool = False) -> int:
        query = "SELECT COUNT(*) FROM document_types"
        if active_only:
            query += " WHERE is_active"
        with self._conn.cursor() as cur:
            cur.execute(query)  # type: ignore[arg-type]
            row = cur.fetchone()
        return int(row[0]) if row is not None else 0

    def add(self, document_type: DocumentTypeRecord) -> DocumentTypeRecord:
        self._conn.execute(
            """
            INSERT INTO document_types (
                id, name, type_name, description, is_active, created_date, last_modified_date
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                document_type.id,
                document_type.name,
                document_type.type_name,
                document_type.description,
                document_type.is_active,
                document_type.created_date,
                document_type.last_modified_date,
            ),
        )
        return document_type

    def update(self, document_type: DocumentTypeRecord) -> DocumentTypeRecord:
        with self._conn.cursor() as cur:
            cur.execute(
                """
                UPDATE document_types
                SET name = %s,
                    type_name = %s,
                    description = %s,
                    is_active = %s,
                    last_modified_date = %s
                WHERE id = %s
                """,
                (
                    document_type.name,
                    document_type.type_name,
                    document_type.description,
                    document_type.is_active,
                    document_type.last_modified_date,
                    document_type.id,
                ),
            )
            if cur.rowcount == 0:
                raise DocumentTypeNotFoundError(
                    f"Document type {document_type.id} not found"
                )
        return document_type

    def delete(self, document_type_id: uuid.UUID) -> bool:
        with self._conn.cursor() as cur:
            cur.execute("DELETE FROM document_types WHERE id = %s", (document_type_id,))
            return cur.rowcount > 0

    def _fetch_all(self, query: str, params: tuple[object, ...]) -> list[DocumentTypeRecord]:
        with self._conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)  # type: ignore[arg-type]
            rows = cur.fetchall()
        return [_to_record(row) for row in rows]
