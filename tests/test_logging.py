import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from brodesk.core.config import Settings
from brodesk.core.logging import configure_logging, resolve_log_level


def test_log_level_follows_debug_flag_unless_set() -> None:
    assert resolve_log_level(Settings(app_debug=True, log_level=None)) == logging.DEBUG
    assert resolve_log_level(Settings(app_debug=False, log_level=None)) == logging.INFO
    assert resolve_log_level(Settings(app_debug=True, log_level="warning")) == logging.WARNING


def test_configure_logging_writes_rotating_file(tmp_path: Path) -> None:
    logger = configure_logging(Settings(log_dir=str(tmp_path), log_level="INFO"))
    try:
        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1

        logging.getLogger("brodesk.tests").info("board mounted")
        file_handlers[0].flush()
        assert "board mounted" in (tmp_path / "brodesk.log").read_text(encoding="utf-8")

        configure_logging(Settings(log_dir=None, log_level="INFO"))
        assert not any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
    finally:
        configure_logging(Settings(log_dir=None))
