import uuid

import pytest

from docmanager.classification.base import BaseClassifier
from docmanager.classification.keyword_classifier import KeywordClassifier
from docmanager.classification.models import ClassifierOutput
from docmanager.database.memory.unit_of_work import InMemoryUnitOfWork
from docmanager.database.models import (
    CLASSIFICATION_RESULT_KEY,
    DocumentMetadataRecord,
    DocumentRecord,
    UserRecord,
)
from docmanager.extraction.base import BaseTextExtractor
from docmanager.services.classification_service import ClassificationService
from docmanager.services.document_type_service import DocumentTypeService
from docmanager.services.exceptions import NotFoundError, ValidationError
from docmanager.services.models import (
    ClassificationResult,
    ClassificationStage,
    DocumentTypeCreate,
    DocumentTypeResult,
)
from docmanager.storage.local_blob_store import LocalBlobStore

CONTENT = b"Invoice number INV-001, total amount due"


@pytest.fixture()
def invoice_type(type_service: DocumentTypeService) -> DocumentTypeResult:
    return type_service.create_document_type(DocumentTypeCreate(name="Invoice"))


@pytest.fixture()
def stored_document(
    uow: InMemoryUnitOfWork, user: UserRecord, blob_store: LocalBlobStore
) -> DocumentRecord:
    path = blob_store.store(CONTENT, "march.txt", ".txt")
    return uow.documents.add(
        DocumentRecord(
            name="March",
            uploaded_by_id=user.id,
            file_type=".txt",
            file_path=path,
            file_size_bytes=len(CONTENT),
            content_hash="0" * 64,
        )
    )


def _successful(predicted_type_id: uuid.UUID | None = None) -> ClassificationResult:
    return ClassificationResult(
        is_successful=True,
        predicted_type="Invoice",
        confidence=0.9,
        predicted_type_id=predicted_type_id,
        stage=ClassificationStage.CLASSIFIED,
    )


class TestClassifyDocument:
    def test_maps_label_to_document_type(
        self,
        classification_service: ClassificationService,
        invoice_type: DocumentTypeResult,
        classifier: BaseClassifier,
    ) -> None:
        result = classification_service.classify_document(CONTENT, "March.TXT")

        assert result.is_successful is True
        assert result.predicted_type == "Invoice"
        assert result.predicted_type_id == invoice_type.id
        assert result.stage == ClassificationStage.CLASSIFIED
        assert result.classified_at is not None
        assert classifier.calls == [  # type: ignore[attr-defined]
            ("Invoice number INV-001, total amount due", ".txt", ["Invoice"])
        ]

    def test_predictions_are_ranked(
        self, classification_service: ClassificationService, invoice_type: DocumentTypeResult
    ) -> None:
        result = classification_service.classify_document(CONTENT, "march.txt")

        assert [(p.name, p.rank) for p in result.predictions] == [("Invoice", 1), ("Receipt", 2)]
        assert result.predictions[0].document_type_id == invoice_type.id
        assert result.predictions[1].document_type_id is None

    def test_label_matching_ignores_case_and_spaces(
        self,
        classification_service: ClassificationService,
        type_service: DocumentTypeService,
        classifier: BaseClassifier,
    ) -> None:
        po = type_service.create_document_type(DocumentTypeCreate(name="Purchase Order"))
        classifier.output = ClassifierOutput(  # type: ignore[attr-defined]
            is_successful=True, document_type="purchase order", confidence=0.7
        )

        result = classification_service.classify_document(CONTENT, "po.txt")

        assert result.predicted_type == "Purchase Order"
        assert result.predicted_type_id == po.id

    def test_unmapped_label_keeps_raw_name(
        self, classification_service: ClassificationService
    ) -> None:
        result = classification_service.classify_document(CONTENT, "march.txt")

        assert result.is_successful is True
        assert result.predicted_type == "Invoice"
        assert result.predicted_type_id is None

    def test_empty_text_fails_without_calling_classifier(
        self,
        classification_service: ClassificationService,
        extractor: BaseTextExtractor,
        classifier: BaseClassifier,
    ) -> None:
        extractor.text = "   "  # type: ignore[attr-defined]

        result = classification_service.classify_document(b"\x00\x01", "scan.bin")

        assert result.is_successful is False
        assert result.stage == ClassificationStage.FAILED
        assert result.failed_after == ClassificationStage.REQUESTED
        assert "No text" in (result.error_message or "")
        assert classifier.calls == []  # type: ignore[attr-defined]

    def test_extractor_exception_becomes_failed_result(
        self, uow: InMemoryUnitOfWork, classifier: BaseClassifier
    ) -> None:
        class BrokenExtractor(BaseTextExtractor):
            def extract_text(self, content: bytes, file_extension: str) -> str:
                raise RuntimeError("corrupt file")

        service = ClassificationService(
            uow, text_extractor=BrokenExtractor(), classifier=classifier
        )

        result = service.classify_document(CONTENT, "march.txt")

        assert result.is_successful is False
        assert "corrupt file" in (result.error_message or "")
        assert result.failed_after == ClassificationStage.REQUESTED

    def test_classifier_exception_becomes_failed_result(
        self, classification_service: ClassificationService, classifier: BaseClassifier
    ) -> None:
        classifier.error = RuntimeError("rate limited")  # type: ignore[attr-defined]

        result = classification_service.classify_document(CONTENT, "march.txt")

        assert result.is_successful is False
        assert result.error_message == "rate limited"
        assert result.stage == ClassificationStage.FAILED
        assert result.failed_after == ClassificationStage.TEXT_EXTRACTED

    def test_fallback_runs_when_primary_fails(
        self,
        uow: InMemoryUnitOfWork,
        extractor: BaseTextExtractor,
        classifier: BaseClassifier,
        invoice_type: DocumentTypeResult,
    ) -> None:
        classifier.error = RuntimeError("provider down")  # type: ignore[attr-defined]
        service = ClassificationService(
            uow,
            text_extractor=extractor,
            classifier=classifier,
            fallback_classifier=KeywordClassifier(),
        )

        result = service.classify_document(CONTENT, "march.txt")

        assert result.is_successful is True
        assert result.predicted_type_id == invoice_type.id
        assert result.confidence == pytest.approx(1.0)


class TestClassifyStoredDocument:
    def test_reads_stored_file(
        self,
        classification_service: ClassificationService,
        stored_document: DocumentRecord,
        extractor: BaseTextExtractor,
    ) -> None:
        result = classification_service.classify_stored_document(stored_document.id)

        assert result.is_successful is True
        assert extractor.calls == [(CONTENT, ".txt")]  # type: ignore[attr-defined]

    def test_missing_document_raises(self, classification_service: ClassificationService) -> None:
        with pytest.raises(NotFoundError):
            classification_service.classify_stored_document(uuid.uuid4())

    def test_missing_file_becomes_failed_result(
        self,
        classification_service: ClassificationService,
        stored_document: DocumentRecord,
        blob_store: LocalBlobStore,
    ) -> None:
        blob_store.delete(stored_document.file_path)

        result = classification_service.classify_stored_document(stored_document.id)

        assert result.is_successful is False
        assert "Could not read document file" in (result.error_message or "")

    def test_without_blob_store(
        self,
        uow: InMemoryUnitOfWork,
        extractor: BaseTextExtractor,
        classifier: BaseClassifier,
        stored_document: DocumentRecord,
    ) -> None:
        service = ClassificationService(uow, text_extractor=extractor, classifier=classifier)

        result = service.classify_stored_document(stored_document.id)

        assert result.is_successful is False
        assert result.error_message == "No blob store configured"


class TestClassifyDocuments:
    def test_batch_continues_past_missing_documents(
        self,
        classification_service: ClassificationService,
        stored_document: DocumentRecord,
        invoice_type: DocumentTypeResult,
        uow: InMemoryUnitOfWork,
    ) -> None:
        results = classification_service.classify_documents(
            [uuid.uuid4(), stored_document.id], apply=True
        )

        assert [r.is_successful for r in results] == [False, True]
        assert results[1].stage == ClassificationStage.APPLIED
        document = uow.documents.get_by_id(stored_document.id)
        assert document is not None
        assert document.document_type_id == invoice_type.id


class TestApplyClassification:
    def test_assigns_type_and_records_history(
        self,
        classification_service: ClassificationService,
        stored_document: DocumentRecord,
        invoice_type: DocumentTypeResult,
        uow: InMemoryUnitOfWork,
    ) -> None:
        applied = classification_service.apply_classification(
            stored_document.id, _successful(invoice_type.id)
        )

        assert applied is True
        document = uow.documents.get_by_id(stored_document.id)
        assert document is not None
        assert document.document_type_id == invoice_type.id
        assert document.classification_confidence == pytest.approx(0.9)
        history = classification_service.get_classification_history(stored_document.id)
        assert [h.stage for h in history] == [ClassificationStage.APPLIED]

    def test_history_only_when_not_assigning(
        self,
        classification_service: ClassificationService,
        stored_document: DocumentRecord,
        invoice_type: DocumentTypeResult,
        uow: InMemoryUnitOfWork,
    ) -> None:
        classification_service.apply_classification(
            stored_document.id, _successful(invoice_type.id), assign_type=False
        )

        document = uow.documents.get_by_id(stored_document.id)
        assert document is not None
        assert document.document_type_id is None
        assert document.classification_confidence is None
        history = classification_service.get_classification_history(stored_document.id)
        assert [h.stage for h in history] == [ClassificationStage.CLASSIFIED]

    def test_unmapped_prediction_is_recorded_as_classified(
        self,
        classification_service: ClassificationService,
        stored_document: DocumentRecord,
        uow: InMemoryUnitOfWork,
    ) -> None:
        applied = classification_service.apply_classification(stored_document.id, _successful())

        assert applied is True
        document = uow.documents.get_by_id(stored_document.id)
        assert document is not None
        assert document.classification_confidence is None
        history = classification_service.get_classification_history(stored_document.id)
        assert [h.stage for h in history] == [ClassificationStage.CLASSIFIED]

    def test_unsuccessful_result_is_not_applied(
        self, classification_service: ClassificationService, stored_document: DocumentRecord
    ) -> None:
        failed = ClassificationResult.failed("nope")

        assert classification_service.apply_classification(stored_document.id, failed) is False
        assert classification_service.get_classification_history(stored_document.id) == []

    def test_missing_document_returns_false(
        self, classification_service: ClassificationService
    ) -> None:
        assert classification_service.apply_classification(uuid.uuid4(), _successful()) is False

    def test_vanished_type_rolls_back(
        self,
        classification_service: ClassificationService,
        stored_document: DocumentRecord,
        uow: InMemoryUnitOfWork,
    ) -> None:
        with pytest.raises(ValidationError):
            classification_service.apply_classification(
                stored_document.id, _successful(uuid.uuid4())
            )

        assert classification_service.get_classification_history(stored_document.id) == []
        assert uow.documents.get_by_id(stored_document.id).classification_confidence is None  # type: ignore[union-attr]


class TestClassificationHistory:
    def test_newest_first_and_malformed_entries_skipped(
        self,
        classification_service: ClassificationService,
        stored_document: DocumentRecord,
        uow: InMemoryUnitOfWork,
    ) -> None:
        classification_service.apply_classification(
            stored_document.id, _successful(), assign_type=False
        )
        uow.document_metadata.add(
            DocumentMetadataRecord(
                stored_document.id, CLASSIFICATION_RESULT_KEY, "{broken", "json"
            )
        )
        second = ClassificationResult(
            is_successful=True, predicted_type="Receipt", confidence=0.6
        )
        classification_service.apply_classification(
            stored_document.id, second, assign_type=False
        )

        history = classification_service.get_classification_history(stored_document.id)

        assert [h.predicted_type for h in history] == ["Receipt", "Invoice"]

    def test_reset_clears_type_and_history(
        self,
        classification_service: ClassificationService,
        stored_document: DocumentRecord,
        invoice_type: DocumentTypeResult,
        uow: InMemoryUnitOfWork,
    ) -> None:
        classification_service.apply_classification(
            stored_document.id, _successful(invoice_type.id)
        )

        assert classification_service.reset_classification(stored_document.id) is True

        document = uow.documents.get_by_id(stored_document.id)
        assert document is not None
        assert document.document_type_id is None
        assert document.classification_confidence is None
        assert classification_service.get_classification_history(stored_document.id) == []

    def test_reset_missing_document(self, classification_service: ClassificationService) -> None:
        assert classification_service.reset_classification(uuid.uuid4()) is False
