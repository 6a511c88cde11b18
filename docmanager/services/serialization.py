"""JSON form of ClassificationResult as stored in document metadata."""

import json
import uuid
from datetime import datetime
from typing import Any

from docmanager.services.models import (
    ClassificationResult,
    ClassificationStage,
    DocumentTypeScore,
)


class MalformedClassificationError(ValueError):
    """Raised when a stored classification entry cannot be read back."""


def classification_to_json(result: ClassificationResult) -> str:
    payload = {
        "is_successful": result.is_successful,
        "predicted_type": result.predicted_type,
        "predicted_type_id": _uuid_str(result.predicted_type_id),
        "confidence": result.confidence,
        "predictions": [
            {
                "name": score.name,
                "score": score.score,
                "rank": score.rank,
                "document_type_id": _uuid_str(score.document_type_id),
            }
            for score in result.predictions
        ],
        "error_message": result.error_message,
        "stage": result.stage.value,
        "classified_at": result.classified_at.isoformat() if result.classified_at else None,
        "failed_after": result.failed_after.value if result.failed_after else None,
    }
    return json.dumps(payload)


def classification_from_json(raw: str) -> ClassificationResult:
    """Parse a stored classification entry.

    Raises:
        MalformedClassificationError: on invalid JSON or a missing/ill-typed field.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedClassificationError(f"Invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedClassificationError("Classification entry must be an object")

    is_successful = data.get("is_successful")
    if not isinstance(is_successful, bool):
        raise MalformedClassificationError("'is_successful' must be a boolean")

    predicted_type = data.get("predicted_type")
    if not isinstance(predicted_type, str):
        raise MalformedClassificationError("'predicted_type' must be a string")

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise MalformedClassificationError("'confidence' must be a number")

    error_message = data.get("error_message")
    if error_message is not None and not isinstance(error_message, str):
        raise MalformedClassificationError("'error_message' must be a string or null")

    return ClassificationResult(
        is_successful=is_successful,
        predicted_type=predicted_type,
        confidence=float(confidence),
        predicted_type_id=_parse_uuid(data.get("predicted_type_id"), "predicted_type_id"),
        predictions=_build_predictions(data.get("predictions", [])),
        error_message=error_message,
        stage=_build_stage(data.get("stage", ClassificationStage.CLASSIFIED.value)),
        classified_at=_build_timestamp(data.get("classified_at")),
        failed_after=_build_optional_stage(data.get("failed_after")),
    )


def _build_predictions(raw: Any) -> list[DocumentTypeScore]:
    if not isinstance(raw, list):
        raise MalformedClassificationError("'predictions' must be a list")
    scores: list[DocumentTypeScore] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise MalformedClassificationError(f"Prediction at index {i} must be an object")
        name = item.get("name")
        score = item.get("score")
        rank = item.get("rank")
        prefix = f"Prediction at index {i}"
        if not isinstance(name, str):
            raise MalformedClassificationError(f"{prefix}: 'name' must be a string")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise MalformedClassificationError(f"{prefix}: 'score' must be a number")
        if isinstance(rank, bool) or not isinstance(rank, int):
            raise MalformedClassificationError(f"{prefix}: 'rank' must be an integer")
        scores.append(
            DocumentTypeScore(
                name=name,
                score=float(score),
                rank=rank,
                document_type_id=_parse_uuid(item.get("document_type_id"), "document_type_id"),
            )
        )
    return scores


def _build_stage(raw: Any) -> ClassificationStage:
    try:
        return ClassificationStage(raw)
    except ValueError as exc:
        raise MalformedClassificationError(f"Unknown classification stage: {raw!r}") from exc


def _build_optional_stage(raw: Any) -> ClassificationStage | None:
    return None if raw is None else _build_stage(raw)


def _build_timestamp(raw: Any) -> datetime | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise MalformedClassificationError("'classified_at' must be a string or null")
    try:
        return datetime.fromisoformat(raw)
    except ValueError as exc:
        raise MalformedClassificationError(f"Invalid 'classified_at': {raw!r}") from exc


def _parse_uuid(raw: Any, name: str) -> uuid.UUID | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise MalformedClassificationError(f"'{name}' must be a string or null")
    try:
        return uuid.UUID(raw)
    except ValueError as exc:
        raise MalformedClassificationError(f"Invalid '{name}': {raw!r}") from exc


def _uuid_str(value: uuid.UUID | None) -> str | None:
    return str(value) if value is not None else None
