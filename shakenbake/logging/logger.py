import logging
import sys
from typing import TextIO


class Log:
    """Centralized logging for the reporting core.

    Plugin and upload failures that the core contains (instead of raising)
    are reported here, so the host application can still see them.
    """

    _logger: logging.Logger = logging.getLogger("shakenbake")

    @classmethod
    def configure(cls, log_level: str, stream: TextIO | None = None) -> None:
        """Configure the logger with the specified level and a stream handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(stream or sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return cls._logger

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, exc: BaseException | None = None, **kwargs: object) -> None:
        """Log a warning, attaching the traceback of a contained exception if given."""
        cls._logger.warning(message, exc_info=exc, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        cls._logger.debug(message, extra=kwargs)
