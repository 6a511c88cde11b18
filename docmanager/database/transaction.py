"""Transaction handles shared by every unit-of-work implementation.

A transaction is owned by exactly one ``execute_in_transaction`` call. It is
passed explicitly into the operation closure; nothing is kept in ambient or
thread-local state.
"""

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any

import psycopg
from psycopg.pq import TransactionStatus

from docmanager.database.exceptions import TransactionError, TransactionStateError


class BaseTransaction(ABC):
    """Contract for a scoped transaction.

    ``commit`` and ``rollback`` complete the transaction; calling either one
    after completion is a no-op. ``close`` releases the transaction and rolls
    back anything left uncommitted.
    """

    def __init__(self) -> None:
        self._completed = False
        self._closed = False

    @property
    def is_active(self) -> bool:
        return not self._completed and not self._closed

    def commit(self) -> None:
        self._ensure_open()
        if self._completed:
            return
        self._do_commit()
        self._completed = True

    def rollback(self) -> None:
        self._ensure_open()
        if self._completed:
            return
        try:
            self._do_rollback()
        finally:
            self._completed = True

    def close(self) -> None:
        if self._closed:
            return
        try:
            if not self._completed:
                self.rollback()
        finally:
            self._closed = True

    def __enter__(self) -> "BaseTransaction":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None and self.is_active:
            self.commit()
        self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise TransactionStateError("The transaction has been closed")

    @abstractmethod
    def _do_commit(self) -> None:
        """Make the transaction's writes durable."""

    @abstractmethod
    def _do_rollback(self) -> None:
        """Discard the transaction's writes."""


class ConnectionTransaction(BaseTransaction):
    """Explicit BEGIN/COMMIT/ROLLBACK on an autocommit psycopg connection."""

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        super().__init__()
        self._conn = conn
        self._begin()

    def _begin(self) -> None:
        status = self._conn.info.transaction_status
        if status != TransactionStatus.IDLE:
            raise TransactionError(
                f"Cannot begin a transaction: connection is {status.name}"
            )
        try:
            self._conn.execute("BEGIN")
        except psycopg.Error as exc:
            raise TransactionError(f"Failed to begin transaction: {exc}") from exc

    def _do_commit(self) -> None:
        try:
            self._conn.execute("COMMIT")
        except psycopg.Error as exc:
            raise TransactionError(f"Failed to commit transaction: {exc}") from exc

    def _do_rollback(self) -> None:
        try:
            self._conn.execute("ROLLBACK")
        except psycopg.Error as exc:
            raise TransactionError(f"Failed to roll back transaction: {exc}") from exc


class NoOpTransaction(BaseTransaction):
    """Transaction for stores that do not support transactions.

    Commit and rollback do nothing, so business logic stays store-agnostic.
    """

    def _do_commit(self) -> None:
        pass

    def _do_rollback(self) -> None:
        pass
