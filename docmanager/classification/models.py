from dataclasses import dataclass, field


@dataclass(frozen=True)
class ClassifierOutput:
    """Raw classifier verdict: a label, its confidence and every label's score."""

    is_successful: bool
    document_type: str = ""
    confidence: float = 0.0
    all_predictions: dict[str, float] = field(default_factory=dict)
    error_message: str | None = None
