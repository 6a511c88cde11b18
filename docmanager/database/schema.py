from pathlib import Path
from typing import Any

import psycopg

from docmanager.database.exceptions import PersistenceError
from docmanager.logging.logger import Log

_SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def load_schema(path: Path | None = None) -> str:
    """Load the DDL script.

    Raises:
        PersistenceError: if the file cannot be read.
    """
    if path is None:
        path = _SCHEMA_PATH
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Failed to load schema: {exc}") from exc


def apply_schema(conn: psycopg.Connection[Any], path: Path | None = None) -> None:
    """Create tables and indexes if they do not exist yet."""
    ddl = load_schema(path)
    with conn.transaction():
        conn.execute(ddl)
    Log.info("Database schema applied")
