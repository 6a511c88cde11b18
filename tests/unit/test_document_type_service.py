import uuid

import pytest

from docmanager.database.models import UserRecord
from docmanager.services.document_service import DocumentService
from docmanager.services.document_type_service import DocumentTypeService
from docmanager.services.exceptions import NotFoundError, ValidationError
from docmanager.services.models import (
    DocumentCreate,
    DocumentTypeCreate,
    DocumentTypeUpdate,
)


class TestCreateDocumentType:
    def test_derives_type_name(self, type_service: DocumentTypeService) -> None:
        result = type_service.create_document_type(
            DocumentTypeCreate(name="Purchase Order", description="POs")
        )

        assert result.name == "Purchase Order"
        assert result.type_name == "purchaseorder"
        assert result.description == "POs"
        assert result.is_active is True

    def test_duplicate_name_is_rejected(self, type_service: DocumentTypeService) -> None:
        type_service.create_document_type(DocumentTypeCreate(name="Invoice"))

        with pytest.raises(ValidationError) as exc_info:
            type_service.create_document_type(DocumentTypeCreate(name="Invoice"))

        assert exc_info.value.field == "name"
        assert type_service.get_document_type_count() == 1

    def test_name_comparison_is_case_sensitive(self, type_service: DocumentTypeService) -> None:
        type_service.create_document_type(DocumentTypeCreate(name="Invoice"))
        type_service.create_document_type(DocumentTypeCreate(name="INVOICE"))

        assert type_service.get_document_type_count() == 2

    def test_blank_name_is_rejected(self, type_service: DocumentTypeService) -> None:
        with pytest.raises(ValidationError, match="must not be empty"):
            type_service.create_document_type(DocumentTypeCreate(name="   "))


class TestUpdateDocumentType:
    def test_rename_updates_type_name(self, type_service: DocumentTypeService) -> None:
        created = type_service.create_document_type(DocumentTypeCreate(name="Bill"))

        updated = type_service.update_document_type(
            created.id, DocumentTypeUpdate(name="Utility Bill")
        )

        assert updated is not None
        assert updated.type_name == "utilitybill"
        assert updated.created_date == created.created_date

    def test_rename_to_taken_name_is_rejected(self, type_service: DocumentTypeService) -> None:
        type_service.create_document_type(DocumentTypeCreate(name="Invoice"))
        bill = type_service.create_document_type(DocumentTypeCreate(name="Bill"))

        with pytest.raises(ValidationError):
            type_service.update_document_type(bill.id, DocumentTypeUpdate(name="Invoice"))

        assert type_service.get_document_type(bill.id).name == "Bill"  # type: ignore[union-attr]

    def test_keeping_own_name_is_allowed(self, type_service: DocumentTypeService) -> None:
        bill = type_service.create_document_type(DocumentTypeCreate(name="Bill"))

        updated = type_service.update_document_type(
            bill.id, DocumentTypeUpdate(name="Bill", description="Utility bills")
        )

        assert updated is not None
        assert updated.description == "Utility bills"

    def test_missing_type_returns_none(self, type_service: DocumentTypeService) -> None:
        assert type_service.update_document_type(uuid.uuid4(), DocumentTypeUpdate()) is None


class TestDeleteDocumentType:
    def test_unreferenced_type_is_deleted(self, type_service: DocumentTypeService) -> None:
        bill = type_service.create_document_type(DocumentTypeCreate(name="Bill"))

        assert type_service.delete_document_type(bill.id) is True
        assert type_service.get_document_type(bill.id) is None

    def test_missing_type_returns_false(self, type_service: DocumentTypeService) -> None:
        assert type_service.delete_document_type(uuid.uuid4()) is False

    def test_referenced_type_is_kept(
        self,
        type_service: DocumentTypeService,
        document_service: DocumentService,
        user: UserRecord,
    ) -> None:
        report = type_service.create_document_type(DocumentTypeCreate(name="Report"))
        document_service.create_document(
            DocumentCreate(name="Q1", uploaded_by_id=user.id, document_type_id=report.id),
            b"Quarterly figures",
            "q1.txt",
        )

        with pytest.raises(ValidationError, match="in use by 1 document"):
            type_service.delete_document_type(report.id)

        assert type_service.get_document_type(report.id) is not None

    def test_type_used_only_by_deleted_documents_can_go(
        self,
        type_service: DocumentTypeService,
        document_service: DocumentService,
        user: UserRecord,
    ) -> None:
        report = type_service.create_document_type(DocumentTypeCreate(name="Report"))
        document = document_service.create_document(
            DocumentCreate(name="Q1", uploaded_by_id=user.id, document_type_id=report.id),
            b"Quarterly figures",
            "q1.txt",
        )
        document_service.delete_document(document.id)

        assert type_service.delete_document_type(report.id) is True


class TestDeactivateDocumentType:
    def test_deactivated_type_leaves_active_list(self, type_service: DocumentTypeService) -> None:
        bill = type_service.create_document_type(DocumentTypeCreate(name="Bill"))
        type_service.create_document_type(DocumentTypeCreate(name="Invoice"))

        result = type_service.deactivate_document_type(bill.id)

        assert result.is_active is False
        assert [t.name for t in type_service.get_active_document_types(0, 10)] == ["Invoice"]
        assert type_service.get_document_type_count(active_only=True) == 1
        assert type_service.get_document_type_count() == 2

    def test_missing_type_raises(self, type_service: DocumentTypeService) -> None:
        with pytest.raises(NotFoundError):
            type_service.deactivate_document_type(uuid.uuid4())


class TestDocumentTypeQueries:
    def test_lookup_by_name(self, type_service: DocumentTypeService) -> None:
        type_service.create_document_type(DocumentTypeCreate(name="Invoice"))

        assert type_service.get_document_type_by_name("Invoice") is not None
        assert type_service.get_document_type_by_name("invoice") is None

    def test_listing_is_sorted_and_paged(self, type_service: DocumentTypeService) -> None:
        for name in ("Receipt", "Contract", "Invoice"):
            type_service.create_document_type(DocumentTypeCreate(name=name))

        assert [t.name for t in type_service.get_all_document_types()] == [
            "Contract",
            "Invoice",
            "Receipt",
        ]
        assert [t.name for t in type_service.get_document_types(1, 1)] == ["Invoice"]
