"""
Tests pour le système de logging avec sessions et création lazy.
"""

import logging

from storybook_converter.config import Logger_Level
from storybook_converter.logger import (
    LazyFileHandler,
    LogSession,
    TqdmLoggingHandler,
    get_logger,
    set_console_level,
    setup_logger,
)


def test_log_session_singleton():
    """Test que LogSession est bien un singleton."""
    session1 = LogSession()
    session2 = LogSession()
    assert session1 is session2
    assert LogSession.get_session_dir() == LogSession.get_session_dir()


def test_log_session_dir_under_base_dir(tmp_path):
    """Test que le répertoire de session est un run_* sous le répertoire de base."""
    session_dir = LogSession.get_session_dir()
    assert session_dir.name.startswith("run_")
    assert session_dir.parent == tmp_path / "logs"


def test_lazy_file_handler_creates_file_only_on_emit(tmp_path):
    """Test que LazyFileHandler ne crée le fichier qu'au premier log."""
    log_file = tmp_path / "nested" / "lazy.log"
    handler = LazyFileHandler(log_file)
    handler.setFormatter(logging.Formatter("%(message)s"))

    assert not log_file.exists(), "Le fichier ne doit pas exister avant le premier log"

    record = logging.LogRecord(
        name="test",
        level=logging.WARNING,
        pathname="",
        lineno=0,
        msg="Page 3 ignorée",
        args=(),
        exc_info=None,
    )
    handler.emit(record)
    handler.close()

    assert log_file.exists(), "Le fichier doit exister après le premier log"
    assert "Page 3 ignorée" in log_file.read_text(encoding="utf-8")


def test_setup_logger_uses_session_dir():
    """Test que setup_logger utilise le répertoire de session."""
    logger = setup_logger("test.session_dir", log_filename="test_setup.log")

    assert len(logger.handlers) == 2
    assert isinstance(logger.handlers[0], TqdmLoggingHandler)
    file_handler = logger.handlers[1]
    assert isinstance(file_handler, LazyFileHandler)
    assert file_handler.filename == LogSession.get_session_dir() / "test_setup.log"


def test_get_logger_levels_from_config():
    """Test que get_logger applique les niveaux de Logger_Level."""
    logger = get_logger("test.levels")
    assert logger.level == Logger_Level.level
    assert logger.handlers[0].level == Logger_Level.console_level
    assert logger.handlers[1].level == Logger_Level.file_level
    assert logger.handlers[1].filename.name == "conversion.log"


def test_setup_logger_avoids_duplicate_handlers():
    """Test que setup_logger n'ajoute pas de handlers multiples."""
    logger1 = setup_logger("test.duplicate_handlers")
    logger2 = setup_logger("test.duplicate_handlers")
    assert logger1 is logger2
    assert len(logger1.handlers) == 2


def test_set_console_level_updates_existing_loggers():
    """Test que set_console_level ajuste la console des loggers déjà créés."""
    logger = get_logger("storybook_converter.test_verbose")
    previous = Logger_Level.console_level
    try:
        set_console_level(logging.INFO)
        assert logger.handlers[0].level == logging.INFO
        assert Logger_Level.console_level == logging.INFO
    finally:
        set_console_level(previous)
    assert logger.handlers[0].level == previous
