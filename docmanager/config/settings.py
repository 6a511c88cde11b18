from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "docmanager"
    db_username: str = "docmanager"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10

    storage_root: str = "/app/files"

    pdf_engine: str = "pdfplumber"

    classifier_provider: str = "keyword"
    classifier_openai_api_key: str = ""
    classifier_openai_model_name: str = "gpt-4o-mini"
    classifier_openai_timeout_seconds: int = 30
    classifier_openai_base_url: str = ""

    classification_confidence_threshold: float = 0.0
    auto_classify_on_upload: bool = True

    max_page_size: int = 100
