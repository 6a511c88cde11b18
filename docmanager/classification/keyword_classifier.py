"""Deterministic keyword-count classifier.

Used on its own when no AI provider is configured and as the fallback when
the configured classifier fails.
"""

import re
from collections.abc import Mapping, Sequence
from typing import ClassVar

from docmanager.classification.base import BaseClassifier
from docmanager.classification.models import ClassifierOutput
from docmanager.database.models import normalize_type_name

_WORD_RE = re.compile(r"[a-z0-9]+")


class KeywordClassifier(BaseClassifier):
    """Scores each label by how often its keywords occur in the text.

    A label's score is its share of all keyword hits; the top label wins and
    ties go to the label listed first.
    """

    DEFAULT_KEYWORDS: ClassVar[dict[str, tuple[str, ...]]] = {
        "Invoice": ("invoice", "bill", "amount", "due", "vat", "total", "payment"),
        "Receipt": ("receipt", "paid", "cash", "change", "purchase", "thank"),
        "Contract": ("contract", "agreement", "party", "parties", "terms", "clause", "signed"),
        "Report": ("report", "summary", "analysis", "findings", "results", "quarter"),
        "Letter": ("dear", "sincerely", "regards", "yours", "letter"),
        "Resume": ("resume", "experience", "education", "skills", "employment"),
    }

    def __init__(self, keywords: Mapping[str, Sequence[str]] | None = None) -> None:
        source = keywords if keywords is not None else self.DEFAULT_KEYWORDS
        self._keywords = {
            label: frozenset(word.lower() for word in words) for label, words in source.items()
        }

    def classify(
        self, text: str, file_extension: str = "", candidate_labels: Sequence[str] = ()
    ) -> ClassifierOutput:
        labels = self._labels(candidate_labels)
        if not labels:
            return ClassifierOutput(
                is_successful=False, error_message="No known labels among the candidates"
            )

        words = _WORD_RE.findall(text.lower())
        hits = {label: sum(1 for w in words if w in self._keywords[label]) for label in labels}
        total = sum(hits.values())
        if total == 0:
            return ClassifierOutput(
                is_successful=False,
                all_predictions={label: 0.0 for label in labels},
                error_message="No classification keywords found in the text",
            )

        scores = {label: count / total for label, count in hits.items()}
        best = max(labels, key=lambda label: scores[label])
        return ClassifierOutput(
            is_successful=True,
            document_type=best,
            confidence=scores[best],
            all_predictions=scores,
        )

    def _labels(self, candidate_labels: Sequence[str]) -> list[str]:
        if not candidate_labels:
            return list(self._keywords)
        wanted = {normalize_type_name(label) for label in candidate_labels}
        return [label for label in self._keywords if normalize_type_name(label) in wanted]
