"""
Logging sink for the quiz server.

Everything goes to the console and ``app.log``; errors are duplicated into
``error.log``. Both files rotate at 5 MB. A ``SUCCESS`` level sits between
INFO and WARNING for "data saved" style events.
"""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"

_configured_dirs: set[str] = set()


def with_context(message: str, /, **data) -> str:
    """Append structured context as ``message | {json}``."""
    if not data:
        return message
    try:
        return f"{message} | {json.dumps(data, ensure_ascii=False, default=str)}"
    except (TypeError, ValueError):
        return f"{message} | {data!r}"


def log_success(logger: logging.Logger, message: str, **data) -> None:
    logger.log(SUCCESS, with_context(message, **data))


def configure_logging(log_dir: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """Attach console and rotating file handlers to the root logger once per directory."""
    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(getattr(handler, "_starterpack_console", False) for handler in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._starterpack_console = True  # type: ignore[attr-defined]
        root.addHandler(console)

    if log_dir is None:
        return root

    key = str(Path(log_dir).resolve())
    if key in _configured_dirs:
        return root

    log_dir = Path(log_dir)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        root.warning(with_context("Log directory unavailable, console only", dir=str(log_dir), error=str(exc)))
        return root

    app_handler = RotatingFileHandler(
        log_dir / "app.log", maxBytes=MAX_LOG_BYTES, backupCount=1, encoding="utf-8"
    )
    app_handler.setFormatter(formatter)
    root.addHandler(app_handler)

    error_handler = RotatingFileHandler(
        log_dir / "error.log", maxBytes=MAX_LOG_BYTES, backupCount=1, encoding="utf-8"
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root.addHandler(error_handler)

    _configured_dirs.add(key)
    return root
