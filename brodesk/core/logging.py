import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from brodesk.core.config import Settings

LOGGER_NAME = "brodesk"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s [in %(pathname)s:%(lineno)d]"
STREAM_FORMAT = "%(levelname)s %(name)s: %(message)s"


def resolve_log_level(settings: Settings) -> int:
    if settings.log_level:
        return logging.getLevelName(settings.log_level.upper())
    return logging.DEBUG if settings.app_debug else logging.INFO


def configure_logging(settings: Settings) -> logging.Logger:
    """Attach a stdout handler and, when ``log_dir`` is set, a rotating file
    handler to the ``brodesk`` logger. Safe to call more than once."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = resolve_log_level(settings)
    logger.setLevel(level)
    logger.propagate = False

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter(STREAM_FORMAT))
    stream_handler.setLevel(level)
    logger.addHandler(stream_handler)

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / "brodesk.log",
            maxBytes=1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger
