from abc import ABC, abstractmethod
from collections.abc import Sequence

from docmanager.classification.models import ClassifierOutput


class BaseClassifier(ABC):
    """Contract for document classifiers."""

    @abstractmethod
    def classify(
        self, text: str, file_extension: str = "", candidate_labels: Sequence[str] = ()
    ) -> ClassifierOutput:
        """Predict a document type label for extracted text.

        Args:
            text: Extracted document text, never empty.
            file_extension: Extension of the source file, e.g. ".pdf".
            candidate_labels: Names of the document types a prediction may
                use. Empty means the classifier's own label set.

        Returns:
            A ClassifierOutput; ``is_successful=False`` when no label fits.

        Raises:
            ClassifierError: if the classifier itself is unavailable.
        """
