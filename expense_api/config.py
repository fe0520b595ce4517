"""Runtime configuration for the expense service, read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

DATABASE_URL_ENV: Final[str] = "EXPENSES_DATABASE_URL"
API_PREFIX_ENV: Final[str] = "EXPENSES_API_PREFIX"
CORS_ORIGINS_ENV: Final[str] = "EXPENSES_CORS_ORIGINS"
LOG_LEVEL_ENV: Final[str] = "EXPENSES_LOG_LEVEL"
JSON_LOGS_ENV: Final[str] = "EXPENSES_JSON_LOGS"
LOG_DIR_ENV: Final[str] = "EXPENSES_LOG_DIR"

DEFAULT_SQLITE_PATH: Final[Path] = Path("expenses.db")
DEFAULT_API_PREFIX: Final[str] = "/api"
DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_LOG_DIR: Final[Path] = Path("artifacts") / "logs"

_TRUTHY = {"1", "true", "yes", "on"}


def _default_database_url() -> str:
    return f"sqlite:///{DEFAULT_SQLITE_PATH.resolve()}"


def _normalise_prefix(value: str) -> str:
    """Return ``value`` as ``/segment`` without a trailing slash ("" for root)."""

    stripped = value.strip().strip("/")
    return f"/{stripped}" if stripped else ""


def _split_origins(value: str) -> tuple[str, ...]:
    origins = tuple(item.strip() for item in value.split(",") if item.strip())
    return origins or ("*",)


@dataclass(frozen=True, slots=True)
class Settings:
    """Service settings.

    Attributes:
      database_url: SQLAlchemy URL of the backing database.
      api_prefix: Path prefix shared by every expense route.
      cors_origins: Origins allowed by the CORS middleware.
      log_level: Name of the logging level.
      json_logs: Whether the JSON audit log file is written.
      log_dir: Directory receiving the JSON audit log.
    """

    database_url: str = field(default_factory=_default_database_url)
    api_prefix: str = DEFAULT_API_PREFIX
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = DEFAULT_LOG_LEVEL
    json_logs: bool = False
    log_dir: Path = DEFAULT_LOG_DIR

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``environ`` (defaults to :data:`os.environ`)."""

        env = os.environ if environ is None else environ
        database_url = env.get(DATABASE_URL_ENV, "").strip() or _default_database_url()
        return cls(
            database_url=database_url,
            api_prefix=_normalise_prefix(env.get(API_PREFIX_ENV, DEFAULT_API_PREFIX)),
            cors_origins=_split_origins(env.get(CORS_ORIGINS_ENV, "*")),
            log_level=env.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL,
            json_logs=env.get(JSON_LOGS_ENV, "").strip().lower() in _TRUTHY,
            log_dir=Path(env.get(LOG_DIR_ENV, "").strip() or DEFAULT_LOG_DIR),
        )


__all__ = ["Settings"]
