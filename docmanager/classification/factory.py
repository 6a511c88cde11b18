from typing import ClassVar

from docmanager.classification.base import BaseClassifier
from docmanager.classification.keyword_classifier import KeywordClassifier
from docmanager.classification.openai_classifier import OpenAIClassifier
from docmanager.classification.openai_client_adapter import OpenAIClientAdapter
from docmanager.config.settings import Settings


class ClassifierFactory:
    """Creates the configured classifier."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseClassifier:
        provider = settings.classifier_provider.lower()
        if provider == "keyword":
            return KeywordClassifier()
        client = OpenAIClientAdapter(
            api_key=settings.classifier_openai_api_key,
            timeout_seconds=settings.classifier_openai_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )
        return OpenAIClassifier(client=client, model=settings.classifier_openai_model_name)

    @classmethod
    def create_fallback(cls) -> BaseClassifier:
        return KeywordClassifier()

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return settings.classifier_openai_base_url.strip() or None
        if provider == "openai_compatible":
            url = settings.classifier_openai_base_url.strip()
            if not url:
                raise ValueError(
                    "classifier_openai_base_url is required for "
                    "classifier_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return settings.classifier_openai_base_url.strip() or default_base_url
        supported = [
            "keyword",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(f"Unknown classifier provider '{provider}'. Choose from: {supported}")
