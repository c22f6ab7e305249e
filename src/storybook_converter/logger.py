"""
Logging de storybook-converter.

Les logs d'une exécution sont regroupés dans logs/run_YYYYMMDD_HHMMSS/ ;
le fichier n'est créé qu'au premier message et la console passe par
tqdm.write pour ne pas casser la barre de progression du lot.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .config import Logger_Level

DEFAULT_LOG_FILENAME = "conversion.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER_PREFIX = "storybook_converter"


# ============================================================
# 🔹 Session de logs
# ============================================================
class LogSession:
    """Singleton : un répertoire run_YYYYMMDD_HHMMSS par exécution."""

    _instance: Optional["LogSession"] = None
    _session_dir: Optional[Path] = None
    base_dir: Path = Path("logs")

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if LogSession._session_dir is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            LogSession._session_dir = LogSession.base_dir / f"run_{timestamp}"

    @classmethod
    def get_session_dir(cls) -> Path:
        if cls._session_dir is None:
            cls()
        assert cls._session_dir is not None
        return cls._session_dir

    @classmethod
    def reset(cls, base_dir: Optional[Path] = None):
        """Oublie la session en cours (tests)."""
        cls._instance = None
        cls._session_dir = None
        if base_dir is not None:
            cls.base_dir = Path(base_dir)


# ============================================================
# 🔹 Handlers
# ============================================================
class TqdmLoggingHandler(logging.Handler):
    """Console via tqdm.write, sous la barre de progression du pool de conversion."""

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=sys.stderr)
        except Exception:
            self.handleError(record)


class LazyFileHandler(logging.Handler):
    """
    Fichier de log créé au premier message seulement : une conversion sans
    avertissement ne laisse pas de fichier vide.
    """

    def __init__(self, filename: Path, level: int = logging.NOTSET):
        super().__init__(level)
        self.filename = filename
        self._handler: Optional[logging.FileHandler] = None

    def emit(self, record):
        try:
            if self._handler is None:
                self.filename.parent.mkdir(parents=True, exist_ok=True)
                self._handler = logging.FileHandler(self.filename, mode="a", encoding="utf-8")
                self._handler.setFormatter(self.formatter or logging.Formatter(LOG_FORMAT))
            self._handler.emit(record)
        except Exception:
            self.handleError(record)

    def close(self):
        if self._handler:
            self._handler.close()
        super().close()


# ============================================================
# 🔹 Loggers
# ============================================================
def setup_logger(name: str, log_filename: str = DEFAULT_LOG_FILENAME) -> logging.Logger:
    """
    Configure un logger avec une sortie console et un fichier de session.

    Les niveaux sont lus dans Logger_Level au moment de l'appel.

    Example:
        >>> logger = setup_logger(__name__)
        >>> logger.warning("Page 3 ignorée : aucun modèle")
    """
    logger = logging.getLogger(name)
    logger.setLevel(Logger_Level.level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = TqdmLoggingHandler(Logger_Level.console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = LazyFileHandler(
        LogSession.get_session_dir() / log_filename, Logger_Level.file_level
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger du module `name`, configuré au premier appel."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger


def set_console_level(level: int, prefix: str = ROOT_LOGGER_PREFIX) -> None:
    """
    Change le niveau console des loggers déjà créés (option --verbose) ;
    les modules créent leur logger à l'import.
    """
    Logger_Level.console_level = level
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not name.startswith(prefix) or not isinstance(logger, logging.Logger):
            continue
        for handler in logger.handlers:
            if isinstance(handler, TqdmLoggingHandler):
                handler.setLevel(level)
