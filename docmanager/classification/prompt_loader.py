from pathlib import Path

from docmanager.classification.exceptions import ClassifierError

_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Read the classification prompt; placeholders are ``{labels}`` and ``{document_text}``.

    Raises:
        ClassifierError: if the file cannot be read.
    """
    return _read(path or _PROMPT_DIR / "classification_prompt.txt", "prompt template")


def load_json_schema(path: Path | None = None) -> str:
    """Read the JSON schema the provider's answer must follow.

    Raises:
        ClassifierError: if the file cannot be read.
    """
    return _read(path or _PROMPT_DIR / "classification_schema.json", "JSON schema")


def _read(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ClassifierError(f"Failed to load {what}: {exc}") from exc
