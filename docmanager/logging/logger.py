import logging
import sys

_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class Log:
    """Centralized logging for the document management core.

    Every message may carry the exception that caused it; the traceback is
    attached only at DEBUG level so production logs stay one line per event.
    """

    _logger: logging.Logger = logging.getLogger("docmanager")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Configure the logger with the specified level and stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(_FORMAT))
            cls._logger.addHandler(handler)

    @classmethod
    def debug(cls, message: str) -> None:
        cls._emit(logging.DEBUG, message, None)

    @classmethod
    def info(cls, message: str) -> None:
        cls._emit(logging.INFO, message, None)

    @classmethod
    def warning(cls, message: str, exc: BaseException | None = None) -> None:
        cls._emit(logging.WARNING, message, exc)

    @classmethod
    def error(cls, message: str, exc: BaseException | None = None) -> None:
        cls._emit(logging.ERROR, message, exc)

    @classmethod
    def _emit(cls, level: int, message: str, exc: BaseException | None) -> None:
        if exc is not None:
            message = f"{message}: {exc}"
        exc_info = exc if exc is not None and cls._logger.isEnabledFor(logging.DEBUG) else None
        cls._logger.log(level, message, exc_info=exc_info)
