"""Structured logging helpers for the expense service."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

from .config import DEFAULT_LOG_DIR, DEFAULT_LOG_LEVEL

CONSOLE_FORMAT: Final[str] = "[%(levelname)s] %(name)s: %(message)s"
LOG_FILENAME: Final[str] = "expense_api.log"
ROOT_LOGGER: Final[str] = "expense_api"


class JsonAuditFormatter(logging.Formatter):
    """Format log records as single-line JSON payloads."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        payload = {
            "timestamp": timestamp,
            "level": record.levelname,
            "source": record.name,
            "message": record.getMessage(),
            "method": getattr(record, "method", None),
            "path": getattr(record, "path", None),
            "status_code": _coerce_int(getattr(record, "status_code", None)),
            "duration_ms": _coerce_number(getattr(record, "duration_ms", None)),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _coerce_number(value: object) -> float | None:
    if value is None:
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _coerce_int(value: object) -> int | None:
    number = _coerce_number(value)
    return None if number is None else int(number)


def _resolve_level(level: str | int | None) -> int:
    """Translate ``level`` into a numeric logging level, falling back to INFO."""

    if isinstance(level, int):
        return level
    candidate = (level or DEFAULT_LOG_LEVEL).strip().upper()
    resolved = logging.getLevelName(candidate)
    return resolved if isinstance(resolved, int) else logging.INFO


def _ensure_console_handler(logger: logging.Logger, level: int) -> None:
    for handler in logger.handlers:
        if getattr(handler, "_expense_console", False):
            handler.setLevel(level)
            return
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    stream_handler._expense_console = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)


def _ensure_json_handler(logger: logging.Logger, level: int, log_dir: Path) -> None:
    for handler in logger.handlers:
        if getattr(handler, "_expense_json", False):
            handler.setLevel(level)
            return
    log_dir.mkdir(parents=True, exist_ok=True)
    json_handler = logging.FileHandler(log_dir / LOG_FILENAME, encoding="utf-8")
    json_handler.setLevel(level)
    json_handler.setFormatter(JsonAuditFormatter())
    json_handler._expense_json = True  # type: ignore[attr-defined]
    logger.addHandler(json_handler)


def setup_logger(
    name: str = ROOT_LOGGER,
    json_format: bool = False,
    level: str | int | None = None,
    log_dir: str | Path | None = None,
) -> logging.Logger:
    """Configure and return a logger for the expense service.

    Calling it repeatedly for the same name updates levels in place and never
    attaches duplicate handlers.
    """

    resolved_level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(resolved_level)
    # Keep propagating so capture handlers (e.g. pytest ``caplog``) still see records.
    logger.propagate = True
    _ensure_console_handler(logger, resolved_level)
    if json_format:
        _ensure_json_handler(logger, resolved_level, Path(log_dir or DEFAULT_LOG_DIR))
    return logger


__all__ = ["JsonAuditFormatter", "setup_logger"]
