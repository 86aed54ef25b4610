"""Logging bootstrap.

The terminal is the rendering surface, so log records go to a rotating file
only.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class LoggingRuntime:
    level_name: str
    level: int
    file_path: str


_RUNTIME: Optional[LoggingRuntime] = None


def _parse_level(raw: str) -> tuple[str, int]:
    normalized = str(raw or "INFO").strip().upper()
    level = getattr(logging, normalized, None)
    if not isinstance(level, int):
        level = logging.INFO
    return logging.getLevelName(level), level


def _default_log_path() -> str:
    log_dir = Path(
        os.environ.get("CLAUDETERM_LOG_DIR", os.path.expanduser("~/.local/share/claudeterm/logs"))
    )
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return str(log_dir / f"claudeterm-{ts}-{os.getpid()}.log")


def _make_file_handler(level: int, file_path: str) -> logging.Handler:
    handler = RotatingFileHandler(
        file_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


def configure(level: str = "INFO", file_path: Optional[str] = None) -> LoggingRuntime:
    """Attach a rotating file handler to the claudeterm logger hierarchy.

    Idempotent: repeated calls return the originally configured runtime.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level_name, level_value = _parse_level(level)
    path = file_path or os.environ.get("CLAUDETERM_LOG_FILE") or _default_log_path()
    Path(path).parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("claudeterm")
    logger.setLevel(level_value)
    logger.propagate = False
    logger.handlers.clear()
    logger.addHandler(_make_file_handler(level_value, path))

    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(level_name=level_name, level=level_value, file_path=path)
    return _RUNTIME

