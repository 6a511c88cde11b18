class ClassifierError(Exception):
    """Raised when a classifier cannot produce a prediction."""


class ClassifierNetworkError(ClassifierError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
