"""Classification orchestration: extract text, classify, map, optionally apply.

A request moves through REQUESTED, TEXT_EXTRACTED and CLASSIFIED, ending in
APPLIED or FAILED. Extraction and classifier failures never raise; they come
back as results with ``is_successful=False`` that name the last stage reached.
"""

import dataclasses
import uuid
from collections.abc import Iterable
from pathlib import Path

from docmanager.classification.base import BaseClassifier
from docmanager.classification.models import ClassifierOutput
from docmanager.database.models import (
    CLASSIFICATION_RESULT_KEY,
    DocumentMetadataRecord,
    DocumentTypeRecord,
    normalize_type_name,
    utcnow,
)
from docmanager.database.transaction import BaseTransaction
from docmanager.database.unit_of_work import BaseUnitOfWork
from docmanager.extraction.base import BaseTextExtractor
from docmanager.logging.logger import Log
from docmanager.services import data_types
from docmanager.services.base import DEFAULT_MAX_PAGE_SIZE, BaseApplicationService
from docmanager.services.exceptions import NotFoundError, ServiceError
from docmanager.services.guards import require_document_type
from docmanager.services.models import (
    ClassificationResult,
    ClassificationStage,
    DocumentTypeScore,
)
from docmanager.services.serialization import (
    MalformedClassificationError,
    classification_from_json,
    classification_to_json,
)
from docmanager.storage.base import BaseBlobStore
from docmanager.storage.exceptions import BlobStoreError


class ClassificationService(BaseApplicationService):
    def __init__(
        self,
        uow: BaseUnitOfWork,
        *,
        text_extractor: BaseTextExtractor,
        classifier: BaseClassifier,
        fallback_classifier: BaseClassifier | None = None,
        blob_store: BaseBlobStore | None = None,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
    ) -> None:
        super().__init__(uow, max_page_size)
        self._text_extractor = text_extractor
        self._classifier = classifier
        self._fallback_classifier = fallback_classifier
        self._blob_store = blob_store

    def classify_document(self, content: bytes, file_name: str) -> ClassificationResult:
        """Classify raw file bytes without touching any stored document."""
        return self._classify(content, Path(file_name).suffix.lower())

    def classify_stored_document(self, document_id: uuid.UUID) -> ClassificationResult:
        """Classify a stored document's current file.

        Raises:
            NotFoundError: if the document does not exist.
            InfrastructureError: if the document cannot be loaded.
        """
        document = self.run_query(
            lambda: self._uow.documents.get_by_id(document_id),
            f"Error loading document {document_id} for classification",
        )
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        if self._blob_store is None:
            return ClassificationResult.failed("No blob store configured", utcnow())

        try:
            content = self._blob_store.retrieve(document.file_path)
        except BlobStoreError as exc:
            Log.warning(f"Could not read file of document {document_id} for classification", exc)
            return ClassificationResult.failed(f"Could not read document file: {exc}", utcnow())
        return self._classify(content, document.file_type)

    def classify_documents(
        self, document_ids: Iterable[uuid.UUID], apply: bool = False
    ) -> list[ClassificationResult]:
        """Classify many stored documents; one failure never stops the batch."""
        results: list[ClassificationResult] = []
        for document_id in document_ids:
            try:
                result = self.classify_stored_document(document_id)
                if (
                    apply
                    and result.is_successful
                    and self.apply_classification(document_id, result)
                    and result.predicted_type_id is not None
                ):
                    result = dataclasses.replace(result, stage=ClassificationStage.APPLIED)
            except ServiceError as exc:
                Log.warning(f"Batch classification of document {document_id} failed", exc)
                result = ClassificationResult.failed(str(exc), utcnow())
            results.append(result)
        return results

    def apply_classification(
        self, document_id: uuid.UUID, result: ClassificationResult, assign_type: bool = True
    ) -> bool:
        """Record a successful result on a document, in one transaction.

        With ``assign_type`` and a predicted type that maps to a stored type,
        the type and confidence are written to the document row and the
        result is recorded as APPLIED. Otherwise the document row is left
        alone and the result is recorded as CLASSIFIED. Either way it is
        appended to the document's classification history. Returns False when
        the document does not exist or the result is unsuccessful.

        Raises:
            ValidationError: if the predicted type no longer exists.
        """
        if not result.is_successful:
            Log.warning(f"Not applying unsuccessful classification to document {document_id}")
            return False
        type_id = result.predicted_type_id if assign_type else None
        stage = ClassificationStage.CLASSIFIED if type_id is None else ClassificationStage.APPLIED
        recorded = dataclasses.replace(result, stage=stage)

        def apply(_: BaseTransaction) -> bool:
            document = self._uow.documents.get_by_id(document_id)
            if document is None:
                return False
            if type_id is not None:
                require_document_type(self._uow, type_id)
                document.document_type_id = type_id
                document.classification_confidence = recorded.confidence
                document.last_modified_date = utcnow()
                self._uow.documents.update(document)
            self._uow.document_metadata.add(
                DocumentMetadataRecord(
                    document_id=document_id,
                    key=CLASSIFICATION_RESULT_KEY,
                    value=classification_to_json(recorded),
                    data_type=data_types.JSON,
                )
            )
            return True

        done = self.execute_in_transaction(
            apply, f"Error applying classification to document {document_id}"
        )
        if not done:
            Log.warning(f"Document {document_id} not found, classification not applied")
        elif type_id is not None:
            Log.info(
                f"Applied classification '{recorded.predicted_type}' "
                f"({recorded.confidence:.2f}) to document {document_id}"
            )
        else:
            Log.info(
                f"Recorded classification '{recorded.predicted_type}' for document {document_id}"
            )
        return done

    def get_classification_history(self, document_id: uuid.UUID) -> list[ClassificationResult]:
        """Every recorded result for a document, newest first; malformed entries are skipped."""
        rows = self.run_query(
            lambda: self._uow.document_metadata.get_all_by_key(
                document_id, CLASSIFICATION_RESULT_KEY
            ),
            f"Error loading classification history of document {document_id}",
        )
        history: list[ClassificationResult] = []
        for row in rows:
            try:
                history.append(classification_from_json(row.value))
            except MalformedClassificationError as exc:
                Log.warning(f"Skipping malformed classification entry {row.id}", exc)
        return history

    def reset_classification(self, document_id: uuid.UUID) -> bool:
        """Clear a document's type and confidence and drop its classification history.

        Returns False when the document does not exist.
        """

        def reset(_: BaseTransaction) -> bool:
            document = self._uow.documents.get_by_id(document_id)
            if document is None:
                return False
            document.document_type_id = None
            document.classification_confidence = None
            document.last_modified_date = utcnow()
            self._uow.documents.update(document)
            removed = self._uow.document_metadata.delete_by_key(
                document_id, CLASSIFICATION_RESULT_KEY
            )
            Log.info(f"Reset classification of document {document_id}, {removed} entries removed")
            return True

        return self.execute_in_transaction(
            reset, f"Error resetting classification of document {document_id}"
        )

    def _classify(self, content: bytes, extension: str) -> ClassificationResult:
        try:
            text = self._text_extractor.extract_text(content, extension)
        except Exception as exc:
            Log.warning("Text extraction failed", exc)
            return ClassificationResult.failed(f"Text extraction failed: {exc}", utcnow())

        if not text.strip():
            return ClassificationResult.failed(
                "No text could be extracted from the document", utcnow()
            )

        try:
            candidates = self._uow.document_types.get_active()
        except Exception as exc:
            Log.warning("Could not load document types for classification", exc)
            return ClassificationResult.failed(
                f"Could not load document types: {exc}",
                utcnow(),
                failed_after=ClassificationStage.TEXT_EXTRACTED,
            )

        output = self._run_classifiers(text, extension, [c.name for c in candidates])
        if not output.is_successful:
            return ClassificationResult.failed(
                output.error_message or "Classification failed",
                utcnow(),
                failed_after=ClassificationStage.TEXT_EXTRACTED,
            )
        return self._to_result(output, candidates)

    def _run_classifiers(
        self, text: str, extension: str, candidate_labels: list[str]
    ) -> ClassifierOutput:
        output = self._try_classifier(self._classifier, text, extension, candidate_labels)
        if output.is_successful or self._fallback_classifier is None:
            return output
        Log.warning(f"Classifier failed ({output.error_message}), using fallback classifier")
        return self._try_classifier(self._fallback_classifier, text, extension, candidate_labels)

    @staticmethod
    def _try_classifier(
        classifier: BaseClassifier, text: str, extension: str, candidate_labels: list[str]
    ) -> ClassifierOutput:
        try:
            return classifier.classify(text, extension, candidate_labels)
        except Exception as exc:
            Log.warning(f"{type(classifier).__name__} raised", exc)
            return ClassifierOutput(is_successful=False, error_message=str(exc))

    def _to_result(
        self, output: ClassifierOutput, candidates: list[DocumentTypeRecord]
    ) -> ClassificationResult:
        by_type_name = {c.type_name: c for c in candidates}
        predicted = self._lookup_type(output.document_type, by_type_name)
        ranked = sorted(output.all_predictions.items(), key=lambda item: (-item[1], item[0]))
        scores = []
        for rank, (label, score) in enumerate(ranked, start=1):
            match = by_type_name.get(normalize_type_name(label))
            scores.append(
                DocumentTypeScore(
                    name=label,
                    score=score,
                    rank=rank,
                    document_type_id=match.id if match is not None else None,
                )
            )
        return ClassificationResult(
            is_successful=True,
            predicted_type=predicted.name if predicted is not None else output.document_type,
            confidence=output.confidence,
            predicted_type_id=predicted.id if predicted is not None else None,
            predictions=scores,
            stage=ClassificationStage.CLASSIFIED,
            classified_at=utcnow(),
        )

    def _lookup_type(
        self, label: str, by_type_name: dict[str, DocumentTypeRecord]
    ) -> DocumentTypeRecord | None:
        type_name = normalize_type_name(label)
        if type_name in by_type_name:
            return by_type_name[type_name]
        try:
            return self._uow.document_types.get_by_type_name(type_name)
        except Exception as exc:
            Log.warning(f"Could not map label '{label}' to a document type", exc)
            return None
