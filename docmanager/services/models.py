import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

UNKNOWN_TYPE = "Unknown"


class ClassificationStage(str, Enum):
    """Stages of a classification request.

    A result's ``stage`` is where it ended up: CLASSIFIED, APPLIED or FAILED.
    A failed result also names the last stage it completed in ``failed_after``:
    REQUESTED when no text was extracted, TEXT_EXTRACTED when classifying failed.
    """

    REQUESTED = "requested"
    TEXT_EXTRACTED = "text_extracted"
    CLASSIFIED = "classified"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass(frozen=True)
class DocumentTypeScore:
    """One ranked entry of a classifier's per-class scores."""

    name: str
    score: float
    rank: int
    document_type_id: uuid.UUID | None = None


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of one classification request.

    Failures are ordinary results with ``is_successful=False``; callers check
    the flag instead of catching exceptions.
    """

    is_successful: bool
    predicted_type: str = UNKNOWN_TYPE
    confidence: float = 0.0
    predicted_type_id: uuid.UUID | None = None
    predictions: list[DocumentTypeScore] = field(default_factory=list)
    error_message: str | None = None
    stage: ClassificationStage = ClassificationStage.REQUESTED
    classified_at: datetime | None = None
    failed_after: ClassificationStage | None = None

    @classmethod
    def failed(
        cls,
        error_message: str,
        classified_at: datetime | None = None,
        failed_after: ClassificationStage = ClassificationStage.REQUESTED,
    ) -> "ClassificationResult":
        return cls(
            is_successful=False,
            error_message=error_message,
            stage=ClassificationStage.FAILED,
            classified_at=classified_at,
            failed_after=failed_after,
        )


@dataclass(frozen=True)
class MetadataEntry:
    key: str
    value: str
    data_type: str


@dataclass(frozen=True)
class DocumentCreate:
    """Input for creating a document; the file bytes travel separately."""

    name: str
    uploaded_by_id: uuid.UUID
    description: str | None = None
    document_type_id: uuid.UUID | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DocumentUpdate:
    """Partial update: ``None`` leaves a field unchanged.

    ``metadata`` replaces the whole metadata set when given, including with an
    empty dict. ``clear_document_type`` detaches the document from its type.
    """

    name: str | None = None
    description: str | None = None
    document_type_id: uuid.UUID | None = None
    clear_document_type: bool = False
    metadata: dict[str, str] | None = None


@dataclass(frozen=True)
class DocumentResult:
    id: uuid.UUID
    name: str
    description: str | None
    document_type_id: uuid.UUID | None
    document_type_name: str | None
    uploaded_by_id: uuid.UUID
    file_type: str
    file_path: str
    file_size_bytes: int
    content_hash: str
    classification_confidence: float | None
    created_date: datetime
    last_modified_date: datetime
    metadata: list[MetadataEntry] = field(default_factory=list)
    classification: ClassificationResult | None = None


@dataclass(frozen=True)
class DocumentContent:
    file_name: str
    content: bytes
    content_type: str


@dataclass(frozen=True)
class DocumentTypeCreate:
    name: str
    description: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class DocumentTypeUpdate:
    """Partial update: ``None`` leaves a field unchanged."""

    name: str | None = None
    description: str | None = None
    is_active: bool | None = None


@dataclass(frozen=True)
class DocumentTypeResult:
    id: uuid.UUID
    name: str
    type_name: str
    description: str | None
    is_active: bool
    created_date: datetime
    last_modified_date: datetime
