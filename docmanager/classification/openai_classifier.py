"""Classifier backed by an OpenAI-compatible chat model."""

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from docmanager.classification.base import BaseClassifier
from docmanager.classification.client_base import BaseChatClient
from docmanager.classification.exceptions import ClassifierError
from docmanager.classification.models import ClassifierOutput
from docmanager.classification.prompt_loader import load_json_schema, load_prompt_template
from docmanager.logging.logger import Log

_MAX_TEXT_CHARS = 12000
_SYSTEM_PROMPT = "You classify business documents. Answer with JSON only."


class OpenAIClassifier(BaseClassifier):
    """Asks a chat model to pick one of the candidate document types."""

    DEFAULT_LABELS: tuple[str, ...] = ("Invoice", "Receipt", "Contract", "Report", "Letter")

    def __init__(
        self,
        *,
        client: BaseChatClient,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._prompt_template = load_prompt_template(prompt_template_path)
        self._json_schema = json.loads(load_json_schema(json_schema_path))

    def classify(
        self, text: str, file_extension: str = "", candidate_labels: Sequence[str] = ()
    ) -> ClassifierOutput:
        labels = list(candidate_labels) or list(self.DEFAULT_LABELS)
        prompt = self._prompt_template.format(
            labels="\n".join(f"- {label}" for label in labels),
            document_text=text[:_MAX_TEXT_CHARS],
        )
        Log.debug(f"Classifying {len(text)} chars of '{file_extension}' text against {labels}")

        raw_response = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=_SYSTEM_PROMPT,
            user_prompt=prompt,
            json_schema=self._json_schema,
        )
        Log.debug(f"Classifier raw response:\n{raw_response}")
        return self._build_output(self._parse_json(raw_response), labels)

    @staticmethod
    def _parse_json(raw: str) -> dict[str, Any]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise ClassifierError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ClassifierError("JSON response must be an object")
        return parsed

    @staticmethod
    def _build_output(data: dict[str, Any], labels: list[str]) -> ClassifierOutput:
        document_type = data.get("document_type")
        if not isinstance(document_type, str) or not document_type:
            raise ClassifierError("'document_type' must be a non-empty string")
        if document_type not in labels:
            return ClassifierOutput(
                is_successful=False,
                error_message=f"Model answered with unknown type '{document_type}'",
            )

        confidence = data.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ClassifierError("'confidence' must be a number")

        predictions: dict[str, float] = {}
        raw_predictions = data.get("predictions", [])
        if not isinstance(raw_predictions, list):
            raise ClassifierError("'predictions' must be a list")
        for item in raw_predictions:
            if not isinstance(item, dict):
                continue
            label, score = item.get("label"), item.get("score")
            if label in labels and isinstance(score, (int, float)) and not isinstance(score, bool):
                predictions[label] = _clamp(float(score))
        predictions.setdefault(document_type, _clamp(float(confidence)))

        return ClassifierOutput(
            is_successful=True,
            document_type=document_type,
            confidence=_clamp(float(confidence)),
            all_predictions=predictions,
        )


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))
