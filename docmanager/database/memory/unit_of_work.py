from docmanager.database.exceptions import TransactionError
from docmanager.database.memory.repositories import (
    InMemoryDocumentMetadataRepository,
    InMemoryDocumentRepository,
    InMemoryDocumentTypeRepository,
    InMemoryUserRepository,
)
from docmanager.database.memory.store import InMemoryStore
from docmanager.database.repositories.base import (
    BaseDocumentMetadataRepository,
    BaseDocumentRepository,
    BaseDocumentTypeRepository,
    BaseUserRepository,
)
from docmanager.database.transaction import BaseTransaction, NoOpTransaction
from docmanager.database.unit_of_work import BaseUnitOfWork


class SnapshotTransaction(BaseTransaction):
    """Transaction over an InMemoryStore: rollback restores the tables as
    they were when the transaction began."""

    def __init__(self, store: InMemoryStore) -> None:
        super().__init__()
        if store.in_transaction:
            raise TransactionError("Cannot begin a transaction: store is already in one")
        self._store = store
        self._snapshot = store.snapshot()
        store.in_transaction = True

    def _do_commit(self) -> None:
        self._store.in_transaction = False

    def _do_rollback(self) -> None:
        self._store.restore(self._snapshot)
        self._store.in_transaction = False


class InMemoryUnitOfWork(BaseUnitOfWork):
    """Unit of work over a process-local store, used by tests and tooling."""

    def __init__(self, store: InMemoryStore | None = None) -> None:
        super().__init__()
        self.store = store if store is not None else InMemoryStore()

    def begin_transaction(self) -> BaseTransaction:
        if not self.store.supports_transactions:
            return NoOpTransaction()
        return SnapshotTransaction(self.store)

    def save_changes(self) -> None:
        # Writes land in the store immediately.
        pass

    def _create_documents(self) -> BaseDocumentRepository:
        return InMemoryDocumentRepository(self.store)

    def _create_document_types(self) -> BaseDocumentTypeRepository:
        return InMemoryDocumentTypeRepository(self.store)

    def _create_document_metadata(self) -> BaseDocumentMetadataRepository:
        return InMemoryDocumentMetadataRepository(self.store)

    def _create_users(self) -> BaseUserRepository:
        return InMemoryUserRepository(self.store)
