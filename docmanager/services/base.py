from collections.abc import Callable
from typing import TypeVar

from docmanager.database.transaction import BaseTransaction
from docmanager.database.unit_of_work import BaseUnitOfWork
from docmanager.logging.logger import Log
from docmanager.services.exceptions import InfrastructureError, ServiceError

T = TypeVar("T")

DEFAULT_MAX_PAGE_SIZE = 100


class BaseApplicationService:
    """Shared plumbing for services bound to one unit of work.

    Every multi-step write goes through ``execute_in_transaction``; the
    transaction it opens is handed to the operation explicitly and never
    outlives the call.
    """

    def __init__(self, uow: BaseUnitOfWork, max_page_size: int = DEFAULT_MAX_PAGE_SIZE) -> None:
        self._uow = uow
        self._max_page_size = max_page_size

    def execute_in_transaction(
        self, operation: Callable[[BaseTransaction], T], error_context: str
    ) -> T:
        """Run ``operation`` in a transaction: commit on success, roll back on any error.

        Service errors are re-raised unchanged after rollback. Any other
        exception is logged and re-raised as InfrastructureError. Cancellation
        (KeyboardInterrupt, SystemExit) rolls back and propagates as is.
        Operations without a result simply return None.
        """
        try:
            transaction = self._uow.begin_transaction()
        except Exception as exc:
            Log.error(f"{error_context}: could not begin transaction", exc)
            raise InfrastructureError(f"{error_context}: could not begin transaction") from exc

        try:
            result = operation(transaction)
            self._uow.commit_transaction(transaction)
            return result
        except InfrastructureError as exc:
            self._uow.rollback_transaction(transaction)
            Log.error(error_context, exc)
            raise
        except ServiceError as exc:
            self._uow.rollback_transaction(transaction)
            Log.warning(error_context, exc)
            raise
        except Exception as exc:
            self._uow.rollback_transaction(transaction)
            Log.error(error_context, exc)
            raise InfrastructureError(f"{error_context}: {exc}") from exc
        except BaseException:
            self._uow.rollback_transaction(transaction)
            Log.warning(f"{error_context}: interrupted, transaction rolled back")
            raise
        finally:
            transaction.close()

    def run_query(self, query: Callable[[], T], error_context: str) -> T:
        """Run a read outside any transaction, reporting store failures like writes do."""
        try:
            return query()
        except ServiceError:
            raise
        except Exception as exc:
            Log.error(error_context, exc)
            raise InfrastructureError(f"{error_context}: {exc}") from exc

    def page(self, skip: int, limit: int) -> tuple[int, int]:
        """Clamp pagination to ``skip >= 0`` and ``1 <= limit <= max_page_size``."""
        return max(skip, 0), min(max(limit, 1), self._max_page_size)
