"""Document write path and read queries.

Creation runs in two phases. ``_persist_document`` stores the file and
commits the document with its metadata; ``_classify_after_create`` then
classifies it on a best-effort basis. A phase-two failure is logged and
reported on the result, never undone into phase one.
"""

import dataclasses
import hashlib
import uuid
from collections.abc import Callable
from pathlib import Path

from docmanager.database.models import (
    CLASSIFICATION_RESULT_KEY,
    DocumentRecord,
    utcnow,
)
from docmanager.database.transaction import BaseTransaction
from docmanager.database.unit_of_work import BaseUnitOfWork
from docmanager.logging.logger import Log
from docmanager.services.base import DEFAULT_MAX_PAGE_SIZE, BaseApplicationService
from docmanager.services.classification_service import ClassificationService
from docmanager.services.data_types import infer_data_type
from docmanager.services.exceptions import InfrastructureError, ValidationError
from docmanager.services.guards import require_document_type, require_user
from docmanager.services.models import (
    ClassificationResult,
    ClassificationStage,
    DocumentContent,
    DocumentCreate,
    DocumentResult,
    DocumentUpdate,
    MetadataEntry,
)
from docmanager.storage.base import BaseBlobStore
from docmanager.storage.exceptions import BlobNotFoundError, BlobStoreError
from docmanager.storage.local_blob_store import content_type_for
from docmanager.storage.models import VersionInfo


def content_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def _validate_metadata(metadata: dict[str, str]) -> None:
    for key in metadata:
        if not key.strip():
            raise ValidationError("metadata", "Metadata keys must not be empty")
        if key == CLASSIFICATION_RESULT_KEY:
            raise ValidationError("metadata", f"'{CLASSIFICATION_RESULT_KEY}' is a reserved key")


def _require_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError("name", "Document name must not be empty")
    return cleaned


class DocumentService(BaseApplicationService):
    def __init__(
        self,
        uow: BaseUnitOfWork,
        *,
        blob_store: BaseBlobStore,
        classification_service: ClassificationService | None = None,
        auto_classify: bool = True,
        confidence_threshold: float = 0.0,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
    ) -> None:
        super().__init__(uow, max_page_size)
        self._blob_store = blob_store
        self._classification = classification_service
        self._auto_classify = auto_classify
        self._confidence_threshold = confidence_threshold

    def create_document(
        self, dto: DocumentCreate, content: bytes, file_name: str
    ) -> DocumentResult:
        """Store a file and create its document, then classify it best effort.

        A predicted type is assigned only when the caller gave no type and its
        confidence reaches the configured threshold (0.0 by default, so any
        successful prediction is assigned).

        Raises:
            ValidationError: on an empty file or name, an unknown uploader or
                type, or an invalid metadata key. Nothing is persisted.
            InfrastructureError: if storage or the database fails. Nothing is
                persisted.
        """
        document = self._persist_document(dto, content, file_name)
        classification = self._classify_after_create(
            document, content, file_name, type_given=dto.document_type_id is not None
        )
        result = self.get_document(document.id)
        if result is None:
            raise InfrastructureError(f"Document {document.id} vanished after creation")
        return dataclasses.replace(result, classification=classification)

    def _persist_document(
        self, dto: DocumentCreate, content: bytes, file_name: str
    ) -> DocumentRecord:
        if not content:
            raise ValidationError("file", "File content is required")
        name = _require_name(dto.name or Path(file_name).stem)
        _validate_metadata(dto.metadata)
        digest = content_hash(content)
        file_type = Path(file_name).suffix.lower()
        stored_paths: list[str] = []

        def persist(_: BaseTransaction) -> DocumentRecord:
            require_user(self._uow, dto.uploaded_by_id)
            if dto.document_type_id is not None:
                require_document_type(self._uow, dto.document_type_id)

            path = self._blob_store.store(content, file_name, file_type)
            stored_paths.append(path)

            now = utcnow()
            document = DocumentRecord(
                name=name,
                description=dto.description,
                document_type_id=dto.document_type_id,
                uploaded_by_id=dto.uploaded_by_id,
                file_type=file_type,
                file_path=path,
                file_size_bytes=len(content),
                content_hash=digest,
                created_date=now,
                last_modified_date=now,
            )
            self._uow.documents.add(document)
            for key, value in dto.metadata.items():
                self._uow.document_metadata.upsert(
                    document.id, key, value, infer_data_type(value)
                )
            return document

        try:
            document = self.execute_in_transaction(persist, f"Error creating document '{name}'")
        except Exception:
            for path in stored_paths:
                self._discard_blob(path)
            raise

        Log.info(f"Created document '{document.name}' ({document.id}), {len(content)} bytes")
        return document

    def _classify_after_create(
        self, document: DocumentRecord, content: bytes, file_name: str, type_given: bool
    ) -> ClassificationResult | None:
        if not self._auto_classify or self._classification is None:
            return None
        try:
            result = self._classification.classify_document(content, file_name)
            if not result.is_successful:
                Log.info(f"Document {document.id} left unclassified: {result.error_message}")
                return result
            assign = (
                not type_given
                and result.predicted_type_id is not None
                and result.confidence >= self._confidence_threshold
            )
            applied = self._classification.apply_classification(
                document.id, result, assign_type=assign
            )
            if applied and assign:
                result = dataclasses.replace(result, stage=ClassificationStage.APPLIED)
            return result
        except Exception as exc:
            Log.warning(f"Classification after creating document {document.id} failed", exc)
            return ClassificationResult.failed(f"Classification failed: {exc}", utcnow())

    def update_document(self, document_id: uuid.UUID, dto: DocumentUpdate) -> DocumentResult | None:
        """Apply a partial update; returns None when the document does not exist.

        A supplied ``metadata`` dict replaces every user metadata entry;
        classification history is kept.

        Raises:
            ValidationError: on an empty name, unknown type or invalid metadata
                key. Nothing is changed.
        """
        if dto.metadata is not None:
            _validate_metadata(dto.metadata)

        def update(_: BaseTransaction) -> bool:
            document = self._uow.documents.get_with_metadata(document_id)
            if document is None:
                return False
            if dto.name is not None:
                document.name = _require_name(dto.name)
            if dto.description is not None:
                document.description = dto.description
            if dto.clear_document_type:
                document.document_type_id = None
            elif dto.document_type_id is not None:
                require_document_type(self._uow, dto.document_type_id)
                document.document_type_id = dto.document_type_id
            document.last_modified_date = utcnow()
            self._uow.documents.update(document)

            if dto.metadata is not None:
                for key in {m.key for m in document.metadata} - {CLASSIFICATION_RESULT_KEY}:
                    self._uow.document_metadata.delete_by_key(document_id, key)
                for key, value in dto.metadata.items():
                    self._uow.document_metadata.upsert(
                        document_id, key, value, infer_data_type(value)
                    )
            return True

        found = self.execute_in_transaction(update, f"Error updating document {document_id}")
        if not found:
            Log.warning(f"Document {document_id} not found for update")
            return None
        return self.get_document(document_id)

    def delete_document(self, document_id: uuid.UUID) -> bool:
        """Soft-delete a document; its metadata and stored file stay in place.

        Returns False when the document is missing or already deleted.
        """
        deleted = self.execute_in_transaction(
            lambda _: self._uow.documents.soft_delete(document_id),
            f"Error deleting document {document_id}",
        )
        if deleted:
            Log.info(f"Soft-deleted document {document_id}")
        return deleted

    def upload_new_version(
        self, document_id: uuid.UUID, content: bytes, file_name: str, user_id: uuid.UUID
    ) -> DocumentResult | None:
        """Store a new file version and point the document at it.

        The first upload of a new version also records the original file as
        version 1. Returns None when the document does not exist.
        """
        if not content:
            raise ValidationError("file", "File content is required")
        document = self.run_query(
            lambda: self._uow.documents.get_by_id(document_id),
            f"Error loading document {document_id}",
        )
        if document is None:
            return None
        self.run_query(lambda: require_user(self._uow, user_id), f"Error loading user {user_id}")

        try:
            if not self._blob_store.get_version_history(document_id):
                original = self._blob_store.retrieve(document.file_path)
                self._blob_store.save_version(
                    document_id,
                    original,
                    f"{document.name}{document.file_type}",
                    document.uploaded_by_id,
                )
            stored = self._blob_store.save_version(document_id, content, file_name, user_id)
        except BlobStoreError as exc:
            Log.error(f"Error storing new version of document {document_id}", exc)
            raise InfrastructureError(f"Could not store new version: {exc}") from exc

        def repoint(_: BaseTransaction) -> bool:
            current = self._uow.documents.get_by_id(document_id)
            if current is None:
                return False
            current.file_path = stored.path
            current.file_type = Path(file_name).suffix.lower()
            current.file_size_bytes = len(content)
            current.content_hash = content_hash(content)
            current.last_modified_date = utcnow()
            self._uow.documents.update(current)
            return True

        if not self.execute_in_transaction(
            repoint, f"Error recording version {stored.version_number} of document {document_id}"
        ):
            return None
        Log.info(f"Document {document_id} now at version {stored.version_number}")
        return self.get_document(document_id)

    def get_version_history(self, document_id: uuid.UUID) -> list[VersionInfo]:
        return self.run_query(
            lambda: self._blob_store.get_version_history(document_id),
            f"Error loading version history of document {document_id}",
        )

    def get_version_content(
        self, document_id: uuid.UUID, version_number: int = 0
    ) -> DocumentContent | None:
        """Bytes of one version; ``0`` selects the latest. None when it does not exist."""
        try:
            version = self._blob_store.get_version(document_id, version_number)
        except BlobNotFoundError:
            return None
        except BlobStoreError as exc:
            Log.error(f"Error reading version {version_number} of document {document_id}", exc)
            raise InfrastructureError(f"Could not read document version: {exc}") from exc
        return DocumentContent(
            file_name=version.file_name,
            content=version.content,
            content_type=version.content_type,
        )

    def get_document(self, document_id: uuid.UUID) -> DocumentResult | None:
        document = self.run_query(
            lambda: self._uow.documents.get_with_metadata(document_id),
            f"Error loading document {document_id}",
        )
        if document is None:
            return None
        return self._to_results([document])[0]

    def get_document_content(self, document_id: uuid.UUID) -> DocumentContent | None:
        document = self.run_query(
            lambda: self._uow.documents.get_by_id(document_id),
            f"Error loading document {document_id}",
        )
        if document is None:
            return None
        file_name = f"{document.name}{document.file_type}"
        try:
            content = self._blob_store.retrieve(document.file_path)
        except BlobNotFoundError:
            Log.warning(f"File of document {document_id} is missing at {document.file_path}")
            return None
        except BlobStoreError as exc:
            Log.error(f"Error reading file of document {document_id}", exc)
            raise InfrastructureError(f"Could not read document file: {exc}") from exc
        return DocumentContent(
            file_name=file_name, content=content, content_type=content_type_for(file_name)
        )

    def list_documents(self, skip: int, limit: int) -> list[DocumentResult]:
        skip, limit = self.page(skip, limit)
        return self._list(
            lambda: self._uow.documents.get_active(skip, limit), "Error listing documents"
        )

    def search_documents(
        self, term: str, document_type_id: uuid.UUID | None, skip: int, limit: int
    ) -> list[DocumentResult]:
        skip, limit = self.page(skip, limit)
        return self._list(
            lambda: self._uow.documents.search(term.strip(), document_type_id, skip, limit),
            f"Error searching documents for '{term}'",
        )

    def get_documents_by_type(
        self, document_type_id: uuid.UUID, skip: int, limit: int
    ) -> list[DocumentResult]:
        skip, limit = self.page(skip, limit)
        return self._list(
            lambda: self._uow.documents.get_by_type(document_type_id, skip, limit),
            f"Error listing documents of type {document_type_id}",
        )

    def get_documents_by_uploader(
        self, user_id: uuid.UUID, skip: int, limit: int
    ) -> list[DocumentResult]:
        skip, limit = self.page(skip, limit)
        return self._list(
            lambda: self._uow.documents.get_by_uploader(user_id, skip, limit),
            f"Error listing documents uploaded by {user_id}",
        )

    def get_recent_documents(self, count: int) -> list[DocumentResult]:
        _, count = self.page(0, count)
        return self._list(
            lambda: self._uow.documents.get_recent(count), "Error listing recent documents"
        )

    def get_document_count(self, document_type_id: uuid.UUID | None = None) -> int:
        return self.run_query(
            lambda: self._uow.documents.count(document_type_id), "Error counting documents"
        )

    def get_search_result_count(
        self, term: str, document_type_id: uuid.UUID | None = None
    ) -> int:
        return self.run_query(
            lambda: self._uow.documents.count_search(term.strip(), document_type_id),
            f"Error counting documents matching '{term}'",
        )

    def _list(
        self, query: Callable[[], list[DocumentRecord]], error_context: str
    ) -> list[DocumentResult]:
        return self._to_results(self.run_query(query, error_context))

    def _to_results(self, documents: list[DocumentRecord]) -> list[DocumentResult]:
        type_names = self.run_query(
            lambda: self._type_names(documents), "Error loading document type names"
        )
        return [
            DocumentResult(
                id=d.id,
                name=d.name,
                description=d.description,
                document_type_id=d.document_type_id,
                document_type_name=type_names.get(d.document_type_id),
                uploaded_by_id=d.uploaded_by_id,
                file_type=d.file_type,
                file_path=d.file_path,
                file_size_bytes=d.file_size_bytes,
                content_hash=d.content_hash,
                classification_confidence=d.classification_confidence,
                created_date=d.created_date,
                last_modified_date=d.last_modified_date,
                metadata=[
                    MetadataEntry(key=m.key, value=m.value, data_type=m.data_type)
                    for m in d.metadata
                    if m.key != CLASSIFICATION_RESULT_KEY
                ],
            )
            for d in documents
        ]

    def _type_names(self, documents: list[DocumentRecord]) -> dict[uuid.UUID | None, str]:
        names: dict[uuid.UUID | None, str] = {}
        for type_id in {d.document_type_id for d in documents if d.document_type_id}:
            record = self._uow.document_types.get_by_id(type_id)
            if record is not None:
                names[type_id] = record.name
        return names

    def _discard_blob(self, path: str) -> None:
        try:
            self._blob_store.delete(path)
        except BlobStoreError as exc:
            Log.warning(f"Could not remove orphaned file {path}", exc)
