from pathlib import Path
from unittest.mock import MagicMock

import pytest

from docmanager.classification.keyword_classifier import KeywordClassifier
from docmanager.config.settings import Settings
from docmanager.database.memory.unit_of_work import InMemoryUnitOfWork
from docmanager.database.models import UserRecord
from docmanager.services.builder import build_services
from docmanager.services.models import ClassificationStage, DocumentCreate, DocumentTypeCreate


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        storage_root=str(tmp_path / "storage"),
        classifier_provider="keyword",
        classification_confidence_threshold=0.5,
        max_page_size=3,
    )


class TestBuildServices:
    def test_services_share_the_unit_of_work(
        self, uow: InMemoryUnitOfWork, settings: Settings
    ) -> None:
        services = build_services(uow, settings)

        created = services.document_types.create_document_type(DocumentTypeCreate(name="Letter"))

        assert services.documents._uow is uow
        assert uow.document_types.get_by_id(created.id) is not None

    def test_configured_stack_classifies_on_upload(
        self, uow: InMemoryUnitOfWork, user: UserRecord, settings: Settings, tmp_path: Path
    ) -> None:
        services = build_services(uow, settings)
        letter = services.document_types.create_document_type(DocumentTypeCreate(name="Letter"))
        services.document_types.create_document_type(DocumentTypeCreate(name="Invoice"))

        result = services.documents.create_document(
            DocumentCreate(name="Note", uploaded_by_id=user.id),
            b"Dear Anna, kind regards and yours sincerely",
            "note.txt",
        )

        assert result.document_type_id == letter.id
        assert Path(result.file_path).is_relative_to(tmp_path / "storage")

    def test_page_size_comes_from_settings(
        self, uow: InMemoryUnitOfWork, settings: Settings
    ) -> None:
        services = build_services(uow, settings)
        assert services.documents.page(0, 50) == (0, 3)
        assert services.document_types.page(0, 50) == (0, 3)

    def test_explicit_collaborators_win(
        self, uow: InMemoryUnitOfWork, settings: Settings
    ) -> None:
        blob_store = MagicMock()
        classifier = KeywordClassifier({"Memo": ["memo"]})

        services = build_services(uow, settings, blob_store=blob_store, classifier=classifier)

        assert services.documents._blob_store is blob_store
        assert services.classification._classifier is classifier


class TestDefaultSettingsWiring:
    def test_successful_prediction_is_assigned_without_a_threshold(
        self, uow: InMemoryUnitOfWork, user: UserRecord, tmp_path: Path
    ) -> None:
        services = build_services(
            uow, Settings(_env_file=None, storage_root=str(tmp_path / "storage"))
        )
        invoice = services.document_types.create_document_type(DocumentTypeCreate(name="Invoice"))
        services.document_types.create_document_type(DocumentTypeCreate(name="Receipt"))

        result = services.documents.create_document(
            DocumentCreate(
                name="March invoice",
                uploaded_by_id=user.id,
                metadata={"invoiceNumber": "INV-001"},
            ),
            b"Invoice number INV-001. Total amount due. Thank you for your purchase.",
            "march.txt",
        )

        assert result.classification is not None
        assert result.classification.confidence == pytest.approx(4 / 6)
        assert result.classification.stage == ClassificationStage.APPLIED
        assert result.document_type_id == invoice.id
