"""Logging setup shared by every sheetbridge module."""

# Module responsibilities:
# - Read log settings (directory, level) from the environment with home-directory defaults.
# - Attach one rotating file handler and one console handler to the `sheetbridge` logger.
# - Hand out child loggers; configuration happens on the first request only.

from __future__ import annotations

import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

ROOT_LOGGER = "sheetbridge"
LOG_FILE_NAME = "sheetbridge.log"
DEFAULT_LOG_BASE = Path.home() / "SheetBridge" / "logs"
LOG_DIR_ENV = "SHEETBRIDGE_LOG_DIR"
LOG_LEVEL_ENV = "SHEETBRIDGE_LOG_LEVEL"
_MAX_BYTES = 2_000_000
_BACKUPS = 3
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LOG_CONFIGURED = False


@dataclass(frozen=True)
class LogSettings:
    """Where log records go and which level passes."""

    directory: Path
    level: int

    @classmethod
    def from_env(cls, log_dir: Optional[Path] = None) -> "LogSettings":
        """Resolve settings; an explicit ``log_dir`` beats ``SHEETBRIDGE_LOG_DIR``."""

        env_dir = os.getenv(LOG_DIR_ENV)
        directory = log_dir or (Path(env_dir).expanduser() if env_dir else DEFAULT_LOG_BASE)
        name = (os.getenv(LOG_LEVEL_ENV) or "INFO").strip().upper()
        level = logging.getLevelName(name)
        return cls(directory=Path(directory), level=level if isinstance(level, int) else logging.INFO)


def _handlers(settings: LogSettings) -> List[logging.Handler]:
    settings.directory.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)
    handlers: List[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            settings.directory / LOG_FILE_NAME,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUPS,
            encoding="utf-8",
        ),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(settings.level)
    return handlers


def _configure_logging(log_dir: Optional[Path] = None) -> None:
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    settings = LogSettings.from_env(log_dir)
    package_logger = logging.getLogger(ROOT_LOGGER)
    package_logger.setLevel(settings.level)
    for handler in _handlers(settings):
        package_logger.addHandler(handler)
    # Records stay out of the host application's root handlers.
    package_logger.propagate = False

    _LOG_CONFIGURED = True


def get_logger(name: str, log_dir: Optional[Path] = None) -> logging.Logger:
    """Return ``sheetbridge.<name>``, configuring the package logger on first use.

    Args:
        name: Suffix under the ``sheetbridge`` namespace, usually the module name.
        log_dir: Directory override honoured only by the call that configures logging.
    """

    _configure_logging(log_dir)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
