import uuid
from datetime import datetime
from typing import Any

import psycopg
from psycopg.rows import dict_row

from docmanager.database.models import UserRecord
from docmanager.database.repositories.base import BaseUserRepository

_COLUMNS = """
    id, username, email, password_hash, password_salt, first_name, last_name,
    is_active, is_admin, last_login_date, created_date, last_modified_date
"""


class UserRepository(BaseUserRepository):
    """Database operations for the users table.

    Users are owned by the identity provider; the core only needs them as
    the source of ``uploaded_by_id`` references.
    """

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        self._conn = conn

    def get_by_id(self, user_id: uuid.UUID) -> UserRecord | None:
        return self._fetch_one(f"SELECT {_COLUMNS} FROM users WHERE id = %s", (user_id,))

    def get_by_username(self, username: str) -> UserRecord | None:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM users WHERE username = %s", (username,)
        )

    def get_by_email(self, email: str) -> UserRecord | None:
        return self._fetch_one(f"SELECT {_COLUMNS} FROM users WHERE email = %s", (email,))

    def add(self, user: UserRecord) -> UserRecord:
        self._conn.execute(
            """
            INSERT INTO users (
                id, username, email, password_hash, password_salt, first_name,
                last_name, is_active, is_admin, last_login_date, created_date,
                last_modified_date
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                user.id,
                user.username,
                user.email,
                user.password_hash,
                user.password_salt,
                user.first_name,
                user.last_name,
                user.is_active,
                user.is_admin,
                user.last_login_date,
                user.created_date,
                user.last_modified_date,
            ),
        )
        return user

    def update_last_login(self, user_id: uuid.UUID, when: datetime) -> bool:
        with self._conn.cursor() as cur:
            cur.execute(
                "UPDATE users SET last_login_date = %s WHERE id = %s",
                (when, user_id),
            )
            return cur.rowcount > 0

    def _fetch_one(self, query: str, params: tuple[object, ...]) -> UserRecord | None:
        with self._conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)  # type: ignore[arg-type]
            row = cur.fetchone()

        if row is None:
            return None

        return UserRecord(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            password_salt=row["password_salt"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            is_active=row["is_active"],
            is_admin=row["is_admin"],
            last_login_date=row["last_login_date"],
            created_date=row["created_date"],
            last_modified_date=row["last_modified_date"],
        )
