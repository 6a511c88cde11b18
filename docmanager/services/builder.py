from dataclasses import dataclass
from pathlib import Path

from docmanager.classification.base import BaseClassifier
from docmanager.classification.factory import ClassifierFactory
from docmanager.config.settings import Settings
from docmanager.database.unit_of_work import BaseUnitOfWork
from docmanager.extraction.base import BaseTextExtractor
from docmanager.extraction.factory import TextExtractorFactory
from docmanager.services.classification_service import ClassificationService
from docmanager.services.document_service import DocumentService
from docmanager.services.document_type_service import DocumentTypeService
from docmanager.storage.base import BaseBlobStore
from docmanager.storage.local_blob_store import LocalBlobStore


@dataclass(frozen=True)
class Services:
    """The services of one request, all bound to the same unit of work."""

    documents: DocumentService
    document_types: DocumentTypeService
    classification: ClassificationService


def build_services(
    uow: BaseUnitOfWork,
    settings: Settings,
    *,
    blob_store: BaseBlobStore | None = None,
    text_extractor: BaseTextExtractor | None = None,
    classifier: BaseClassifier | None = None,
) -> Services:
    """Wire the services for one unit of work; collaborators default to the configured ones."""
    blob_store = blob_store or LocalBlobStore(Path(settings.storage_root))
    classification = ClassificationService(
        uow,
        text_extractor=text_extractor or TextExtractorFactory.create(settings),
        classifier=classifier or ClassifierFactory.create(settings),
        fallback_classifier=ClassifierFactory.create_fallback(),
        blob_store=blob_store,
        max_page_size=settings.max_page_size,
    )
    documents = DocumentService(
        uow,
        blob_store=blob_store,
        classification_service=classification,
        auto_classify=settings.auto_classify_on_upload,
        confidence_threshold=settings.classification_confidence_threshold,
        max_page_size=settings.max_page_size,
    )
    document_types = DocumentTypeService(uow, max_page_size=settings.max_page_size)
    return Services(
        documents=documents, document_types=document_types, classification=classification
    )
