from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from types import TracebackType
from typing import Any

import psycopg
from psycopg.pq import TransactionStatus

from docmanager.database.connection import get_connection
from docmanager.database.exceptions import TransactionError
from docmanager.database.repositories.base import (
    BaseDocumentMetadataRepository,
    BaseDocumentRepository,
    BaseDocumentTypeRepository,
    BaseUserRepository,
)
from docmanager.database.repositories.document_metadata_repository import (
    DocumentMetadataRepository,
)
from docmanager.database.repositories.document_repository import DocumentRepository
from docmanager.database.repositories.document_type_repository import DocumentTypeRepository
from docmanager.database.repositories.user_repository import UserRepository
from docmanager.database.transaction import BaseTransaction, ConnectionTransaction
from docmanager.logging.logger import Log


class BaseUnitOfWork(ABC):
    """Coordinates repositories that share one connection and transaction.

    Repositories are created on first access and cached, so every write made
    through one unit of work participates in the same transaction. A unit of
    work belongs to a single request and is never shared between concurrent
    callers.
    """

    def __init__(self) -> None:
        self._documents: BaseDocumentRepository | None = None
        self._document_types: BaseDocumentTypeRepository | None = None
        self._document_metadata: BaseDocumentMetadataRepository | None = None
        self._users: BaseUserRepository | None = None
        self._closed = False

    @property
    def documents(self) -> BaseDocumentRepository:
        if self._documents is None:
            self._documents = self._create_documents()
        return self._documents

    @property
    def document_types(self) -> BaseDocumentTypeRepository:
        if self._document_types is None:
            self._document_types = self._create_document_types()
        return self._document_types

    @property
    def document_metadata(self) -> BaseDocumentMetadataRepository:
        if self._document_metadata is None:
            self._document_metadata = self._create_document_metadata()
        return self._document_metadata

    @property
    def users(self) -> BaseUserRepository:
        if self._users is None:
            self._users = self._create_users()
        return self._users

    @property
    def is_closed(self) -> bool:
        return self._closed

    @abstractmethod
    def begin_transaction(self) -> BaseTransaction:
        """Start a transaction on the shared connection.

        Raises:
            TransactionError: if the transaction cannot be started.
        """

    def commit_transaction(self, transaction: BaseTransaction) -> None:
        """Commit a transaction started by this unit of work.

        Raises:
            TransactionError: if the commit fails.
        """
        try:
            transaction.commit()
        except TransactionError:
            raise
        except Exception as exc:
            raise TransactionError(f"Failed to commit transaction: {exc}") from exc

    def rollback_transaction(self, transaction: BaseTransaction) -> None:
        """Roll back a transaction. Failures are logged, never raised.

        Rollback runs while another error is already propagating; raising
        here would hide that error.
        """
        try:
            transaction.rollback()
        except Exception as exc:
            Log.error("Failed to roll back transaction", exc)

    @abstractmethod
    def save_changes(self) -> None:
        """Flush pending writes for callers that do not use a transaction."""

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._release()

    def __enter__(self) -> "BaseUnitOfWork":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _release(self) -> None:
        """Release the underlying connection or store."""

    @abstractmethod
    def _create_documents(self) -> BaseDocumentRepository: ...

    @abstractmethod
    def _create_document_types(self) -> BaseDocumentTypeRepository: ...

    @abstractmethod
    def _create_document_metadata(self) -> BaseDocumentMetadataRepository: ...

    @abstractmethod
    def _create_users(self) -> BaseUserRepository: ...


class UnitOfWork(BaseUnitOfWork):
    """PostgreSQL unit of work over a single autocommit connection.

    With ``owns_connection`` the connection is closed together with the unit
    of work; pooled connections are returned to the pool by ``open`` instead.
    """

    def __init__(self, conn: psycopg.Connection[Any], owns_connection: bool = False) -> None:
        super().__init__()
        self._conn = conn
        self._owns_connection = owns_connection
        self._conn.autocommit = True

    @classmethod
    @contextmanager
    def open(cls) -> Generator["UnitOfWork", None, None]:
        """Check a connection out of the pool for the lifetime of one unit of work."""
        with get_connection() as conn:
            uow = cls(conn)
            try:
                yield uow
            finally:
                uow.close()

    def begin_transaction(self) -> BaseTransaction:
        try:
            return ConnectionTransaction(self._conn)
        except TransactionError:
            raise
        except Exception as exc:
            raise TransactionError(f"Failed to begin a new transaction: {exc}") from exc

    def save_changes(self) -> None:
        # Autocommit: statements outside a transaction are already durable.
        pass

    def _release(self) -> None:
        if self._conn.closed:
            return
        if self._conn.info.transaction_status != TransactionStatus.IDLE:
            Log.warning("Unit of work closed with an open transaction, rolling back")
            self._conn.execute("ROLLBACK")
        if self._owns_connection:
            self._conn.close()

    def _create_documents(self) -> BaseDocumentRepository:
        return DocumentRepository(self._conn)

    def _create_document_types(self) -> BaseDocumentTypeRepository:
        return DocumentTypeRepository(self._conn)

    def _create_document_metadata(self) -> BaseDocumentMetadataRepository:
        return DocumentMetadataRepository(self._conn)

    def _create_users(self) -> BaseUserRepository:
        return UserRepository(self._conn)
