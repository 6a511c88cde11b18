from collections.abc import Sequence
from pathlib import Path

import pytest

from docmanager.classification.base import BaseClassifier
from docmanager.classification.models import ClassifierOutput
from docmanager.database.memory.store import InMemoryStore
from docmanager.database.memory.unit_of_work import InMemoryUnitOfWork
from docmanager.database.models import UserRecord
from docmanager.extraction.base import BaseTextExtractor
from docmanager.services.classification_service import ClassificationService
from docmanager.services.document_service import DocumentService
from docmanager.services.document_type_service import DocumentTypeService
from docmanager.storage.local_blob_store import LocalBlobStore


class StubTextExtractor(BaseTextExtractor):
    """Returns fixed text regardless of input."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.calls: list[tuple[bytes, str]] = []

    def extract_text(self, content: bytes, file_extension: str) -> str:
        self.calls.append((content, file_extension))
        return self.text


class StubClassifier(BaseClassifier):
    """Returns a fixed output, or raises the configured error."""

    def __init__(
        self, output: ClassifierOutput | None = None, error: Exception | None = None
    ) -> None:
        self.output = output or ClassifierOutput(is_successful=False, error_message="stub")
        self.error = error
        self.calls: list[tuple[str, str, list[str]]] = []

    def classify(
        self, text: str, file_extension: str = "", candidate_labels: Sequence[str] = ()
    ) -> ClassifierOutput:
        self.calls.append((text, file_extension, list(candidate_labels)))
        if self.error is not None:
            raise self.error
        return self.output


def invoice_output(confidence: float = 0.9) -> ClassifierOutput:
    return ClassifierOutput(
        is_successful=True,
        document_type="Invoice",
        confidence=confidence,
        all_predictions={"Invoice": confidence, "Receipt": round(1 - confidence, 2)},
    )


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def uow(store: InMemoryStore) -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(store)


@pytest.fixture()
def user(uow: InMemoryUnitOfWork) -> UserRecord:
    return uow.users.add(UserRecord(username="alice", email="alice@example.com"))


@pytest.fixture()
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture()
def extractor() -> StubTextExtractor:
    return StubTextExtractor("Invoice number INV-001, total amount due")


@pytest.fixture()
def classifier() -> StubClassifier:
    return StubClassifier(invoice_output())


@pytest.fixture()
def classification_service(
    uow: InMemoryUnitOfWork,
    extractor: StubTextExtractor,
    classifier: StubClassifier,
    blob_store: LocalBlobStore,
) -> ClassificationService:
    return ClassificationService(
        uow, text_extractor=extractor, classifier=classifier, blob_store=blob_store
    )


@pytest.fixture()
def document_service(
    uow: InMemoryUnitOfWork,
    blob_store: LocalBlobStore,
    classification_service: ClassificationService,
) -> DocumentService:
    return DocumentService(
        uow, blob_store=blob_store, classification_service=classification_service
    )


@pytest.fixture()
def type_service(uow: InMemoryUnitOfWork) -> DocumentTypeService:
    return DocumentTypeService(uow)
