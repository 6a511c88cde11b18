import uuid

from docmanager.database.models import DocumentTypeRecord, normalize_type_name, utcnow
from docmanager.database.transaction import BaseTransaction
from docmanager.logging.logger import Log
from docmanager.services.base import BaseApplicationService
from docmanager.services.exceptions import NotFoundError, ValidationError
from docmanager.services.guards import require_type_unreferenced, require_unique_type_name
from docmanager.services.models import (
    DocumentTypeCreate,
    DocumentTypeResult,
    DocumentTypeUpdate,
)


def to_document_type_result(record: DocumentTypeRecord) -> DocumentTypeResult:
    return DocumentTypeResult(
        id=record.id,
        name=record.name,
        type_name=record.type_name,
        description=record.description,
        is_active=record.is_active,
        created_date=record.created_date,
        last_modified_date=record.last_modified_date,
    )


def _require_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError("name", "Document type name must not be empty")
    return cleaned


class DocumentTypeService(BaseApplicationService):
    """Document type lifecycle: unique names, hard delete only when unreferenced."""

    def create_document_type(self, dto: DocumentTypeCreate) -> DocumentTypeResult:
        """Create a type; its ``type_name`` is derived from ``name``.

        Raises:
            ValidationError: if the name is empty or already taken.
            InfrastructureError: if the store fails.
        """
        name = _require_name(dto.name)

        def create(_: BaseTransaction) -> DocumentTypeRecord:
            require_unique_type_name(self._uow, name)
            now = utcnow()
            record = DocumentTypeRecord(
                name=name,
                type_name=normalize_type_name(name),
                description=dto.description,
                is_active=dto.is_active,
                created_date=now,
                last_modified_date=now,
            )
            return self._uow.document_types.add(record)

        record = self.execute_in_transaction(create, f"Error creating document type '{name}'")
        Log.info(f"Created document type '{record.name}' ({record.id})")
        return to_document_type_result(record)

    def update_document_type(
        self, document_type_id: uuid.UUID, dto: DocumentTypeUpdate
    ) -> DocumentTypeResult | None:
        """Apply a partial update; returns None when the type does not exist.

        Raises:
            ValidationError: if the new name is empty or used by another type.
        """

        def update(_: BaseTransaction) -> DocumentTypeRecord | None:
            record = self._uow.document_types.get_by_id(document_type_id)
            if record is None:
                return None
            if dto.name is not None:
                name = _require_name(dto.name)
                if name != record.name:
                    require_unique_type_name(self._uow, name, exclude_id=document_type_id)
                    record.name = name
                    record.type_name = normalize_type_name(name)
            if dto.description is not None:
                record.description = dto.description
            if dto.is_active is not None:
                record.is_active = dto.is_active
            record.last_modified_date = utcnow()
            return self._uow.document_types.update(record)

        record = self.execute_in_transaction(
            update, f"Error updating document type {document_type_id}"
        )
        if record is None:
            Log.warning(f"Document type {document_type_id} not found for update")
            return None
        return to_document_type_result(record)

    def delete_document_type(self, document_type_id: uuid.UUID) -> bool:
        """Hard-delete a type no non-deleted document references.

        Returns False when the type does not exist.

        Raises:
            ValidationError: if the type is still in use.
        """

        def delete(_: BaseTransaction) -> bool:
            if self._uow.document_types.get_by_id(document_type_id) is None:
                return False
            require_type_unreferenced(self._uow, document_type_id)
            return self._uow.document_types.delete(document_type_id)

        deleted = self.execute_in_transaction(
            delete, f"Error deleting document type {document_type_id}"
        )
        if deleted:
            Log.info(f"Deleted document type {document_type_id}")
        return deleted

    def deactivate_document_type(self, document_type_id: uuid.UUID) -> DocumentTypeResult:
        """Mark a type inactive; it stays referenced by existing documents.

        Raises:
            NotFoundError: if the type does not exist.
        """

        def deactivate(_: BaseTransaction) -> DocumentTypeRecord:
            record = self._uow.document_types.get_by_id(document_type_id)
            if record is None:
                raise NotFoundError(f"Document type {document_type_id} not found")
            record.is_active = False
            record.last_modified_date = utcnow()
            return self._uow.document_types.update(record)

        record = self.execute_in_transaction(
            deactivate, f"Error deactivating document type {document_type_id}"
        )
        return to_document_type_result(record)

    def get_document_type(self, document_type_id: uuid.UUID) -> DocumentTypeResult | None:
        record = self.run_query(
            lambda: self._uow.document_types.get_by_id(document_type_id),
            f"Error loading document type {document_type_id}",
        )
        return to_document_type_result(record) if record is not None else None

    def get_document_type_by_name(self, name: str) -> DocumentTypeResult | None:
        record = self.run_query(
            lambda: self._uow.document_types.get_by_name(name),
            f"Error loading document type '{name}'",
        )
        return to_document_type_result(record) if record is not None else None

    def get_all_document_types(self) -> list[DocumentTypeResult]:
        records = self.run_query(
            self._uow.document_types.get_all, "Error listing document types"
        )
        return [to_document_type_result(r) for r in records]

    def get_document_types(self, skip: int, limit: int) -> list[DocumentTypeResult]:
        skip, limit = self.page(skip, limit)
        records = self.run_query(
            lambda: self._uow.document_types.get_paged(skip, limit),
            "Error listing document types",
        )
        return [to_document_type_result(r) for r in records]

    def get_active_document_types(self, skip: int, limit: int) -> list[DocumentTypeResult]:
        skip, limit = self.page(skip, limit)
        records = self.run_query(
            lambda: self._uow.document_types.get_active(skip, limit),
            "Error listing active document types",
        )
        return [to_document_type_result(r) for r in records]

    def get_document_type_count(self, active_only: bool = False) -> int:
        return self.run_query(
            lambda: self._uow.document_types.count(active_only),
            "Error counting document types",
        )
