from docmanager.config.settings import Settings
from docmanager.database.connection import close_pool, get_connection, init_pool
from docmanager.database.schema import apply_schema
from docmanager.logging.logger import Log


def main() -> None:
    """Entry point: initialize pool -> apply schema -> report readiness."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        with get_connection() as conn:
            apply_schema(conn)
        Log.info(
            f"docmanager ready (env={settings.app_env}, storage={settings.storage_root}, "
            f"classifier={settings.classifier_provider})"
        )
    finally:
        close_pool()


if __name__ == "__main__":
    main()
