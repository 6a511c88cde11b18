import json
import uuid
from datetime import datetime, timezone

import pytest

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


def _result() -> ClassificationResult:
    invoice_id = uuid.uuid4()
    return ClassificationResult(
        is_successful=True,
        predicted_type="Invoice",
        confidence=0.82,
        predicted_type_id=invoice_id,
        predictions=[
            DocumentTypeScore(name="Invoice", score=0.82, rank=1, document_type_id=invoice_id),
            DocumentTypeScore(name="Receipt", score=0.18, rank=2),
        ],
        stage=ClassificationStage.APPLIED,
        classified_at=datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc),
    )


class TestClassificationToJson:
    def test_writes_plain_json_types(self) -> None:
        result = _result()

        data = json.loads(classification_to_json(result))

        assert data["predicted_type_id"] == str(result.predicted_type_id)
        assert data["stage"] == "applied"
        assert data["classified_at"] == "2024-03-15T10:30:00+00:00"
        assert data["predictions"][1]["document_type_id"] is None

    def test_reads_back_what_it_writes(self) -> None:
        result = _result()
        assert classification_from_json(classification_to_json(result)) == result


class TestClassificationFromJson:
    def test_minimal_entry_defaults(self) -> None:
        result = classification_from_json(
            '{"is_successful": true, "predicted_type": "Invoice", "confidence": 1}'
        )

        assert result.confidence == 1.0
        assert result.predictions == []
        assert result.stage == ClassificationStage.CLASSIFIED
        assert result.classified_at is None
        assert result.failed_after is None

    def test_reads_failed_entry_with_last_stage(self) -> None:
        failed = ClassificationResult.failed(
            "no keywords", failed_after=ClassificationStage.TEXT_EXTRACTED
        )

        result = classification_from_json(classification_to_json(failed))

        assert result.stage == ClassificationStage.FAILED
        assert result.failed_after == ClassificationStage.TEXT_EXTRACTED
        assert result.error_message == "no keywords"

    @pytest.mark.parametrize(
        "raw, message",
        [
            ("not json", "Invalid JSON"),
            ("[1, 2]", "must be an object"),
            ('{"predicted_type": "x", "confidence": 1}', "is_successful"),
            ('{"is_successful": true, "predicted_type": 3, "confidence": 1}', "predicted_type"),
            ('{"is_successful": true, "predicted_type": "x", "confidence": true}', "confidence"),
            (
                '{"is_successful": true, "predicted_type": "x", "confidence": 1, '
                '"predictions": [{"name": "x", "score": 1, "rank": "1"}]}',
                "rank",
            ),
            (
                '{"is_successful": true, "predicted_type": "x", "confidence": 1, '
                '"stage": "lost"}',
                "Unknown classification stage",
            ),
            (
                '{"is_successful": true, "predicted_type": "x", "confidence": 1, '
                '"predicted_type_id": "not-a-uuid"}',
                "predicted_type_id",
            ),
        ],
    )
    def test_rejects_malformed_entries(self, raw: str, message: str) -> None:
        with pytest.raises(MalformedClassificationError, match=message):
            classification_from_json(raw)
