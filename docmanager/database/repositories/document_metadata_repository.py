import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from docmanager.database.models import DocumentMetadataRecord, utcnow
from docmanager.database.repositories.base import BaseDocumentMetadataRepository

_COLUMNS = """
    id, document_id, metadata_key, metadata_value, data_type,
    created_date, last_modified_date
"""


def _to_record(row: dict[str, Any]) -> DocumentMetadataRecord:
    return DocumentMetadataRecord(
        id=row["id"],
        document_id=row["document_id"],
        key=row["metadata_key"],
        value=row["metadata_value"],
        data_type=row["data_type"],
        created_date=row["created_date"],
        last_modified_date=row["last_modified_date"],
    )


class DocumentMetadataRepository(BaseDocumentMetadataRepository):
    """Database operations for the document_metadata table."""

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        self._conn = conn

    def get_by_document_id(self, document_id: uuid.UUID) -> list[DocumentMetadataRecord]:
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM document_metadata
            WHERE document_id = %s
            ORDER BY metadata_key, created_date
            """,
            (document_id,),
        )

    def get_by_key(self, document_id: uuid.UUID, key: str) -> DocumentMetadataRecord | None:
        rows = self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM document_metadata
            WHERE document_id = %s AND metadata_key = %s
            ORDER BY created_date DESC
            LIMIT 1
            """,
            (document_id, key),
        )
        return rows[0] if rows else None

    def get_all_by_key(self, document_id: uuid.UUID, key: str) -> list[DocumentMetadataRecord]:
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM document_metadata
            WHERE document_id = %s AND metadata_key = %s
            ORDER BY created_date DESC
            """,
            (document_id, key),
        )

    def add(self, metadata: DocumentMetadataRecord) -> DocumentMetadataRecord:
        self._conn.execute(
            """
            INSERT INTO document_metadata (
                id, document_id, metadata_key, metadata_value, data_type,
                created_date, last_modified_date
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                metadata.id,
                metadata.document_id,
                metadata.key,
                metadata.value,
                metadata.data_type,
                metadata.created_date,
                metadata.last_modified_date,
            ),
        )
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
        self._conn.execute(
            """
            UPDATE document_metadata
            SET metadata_value = %s, data_type = %s, last_modified_date = %s
            WHERE id = %s
            """,
            (value, data_type, now, existing.id),
        )
        existing.value = value
        existing.data_type = data_type
        existing.last_modified_date = now
        return existing

    def delete_by_document_id(self, document_id: uuid.UUID) -> int:
        with self._conn.cursor() as cur:
            cur.execute("DELETE FROM document_metadata WHERE document_id = %s", (document_id,))
            return cur.rowcount

    def delete_by_key(self, document_id: uuid.UUID, key: str) -> int:
        with self._conn.cursor() as cur:
            cur.execute(
                "DELETE FROM document_metadata WHERE document_id = %s AND metadata_key = %s",
                (document_id, key),
            )
            return cur.rowcount

    def _fetch_all(
        self, query: str, params: tuple[object, ...]
    ) -> list[DocumentMetadataRecord]:
        with self._conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)  # type: ignore[arg-type]
            rows = cur.fetchall()
        return [_to_record(row) for row in rows]
