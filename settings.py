"""
Starter Pack quiz configuration

Paths, admin key, workbook and backup behaviour live here.
Environment variables (and a local ``.env``) override defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _default_responses_dir() -> Path:
    override = os.getenv("RESPONSES_DIR")
    if override:
        return Path(override).expanduser()
    if os.getenv("QUIZ_ENV", "development") == "test":
        return DATA_DIR / "test_responses"
    return DATA_DIR / "responses"


@dataclass
class StorageConfig:
    """Where submissions and the shared workbook live"""
    responses_dir: Path = field(default_factory=_default_responses_dir)
    workbook_name: str = os.getenv("EXCEL_FILENAME", "responses.xlsx")
    timezone: str = os.getenv("TIMEZONE", "Asia/Bangkok")


@dataclass
class BackupConfig:
    """Rotation of shared workbook copies"""
    enabled: bool = _env_flag("BACKUP_ENABLED", "true")
    max_files: int = _env_int("BACKUP_MAX_FILES", 10)
    directory: Path = Path(os.getenv("BACKUP_DIR", str(DATA_DIR / "backups")))


@dataclass
class RateLimitConfig:
    """Read for the deployment's limiter; nothing in this app enforces them"""
    general_max: int = _env_int("RATE_LIMIT_MAX", 1000)
    submit_max: int = _env_int("SUBMIT_RATE_LIMIT_MAX", 20)
    window_seconds: int = _env_int("RATE_LIMIT_WINDOW", 15 * 60)


@dataclass
class Settings:
    """Master config"""
    secret_key: str = os.getenv("SECRET_KEY", "replace-this-with-a-random-value")
    admin_api_key: str = os.getenv("ADMIN_API_KEY", "")
    quiz_api_url: str = os.getenv("QUIZ_API_URL", "")
    submit_timeout: float = float(os.getenv("SUBMIT_TIMEOUT", "10"))
    log_dir: Path = Path(os.getenv("LOG_DIR", str(DATA_DIR / "logs")))
    storage: StorageConfig = field(default_factory=StorageConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    def apply(self, app) -> None:
        """Copy settings into ``app.config`` so tests can override them per app."""
        app.config.update(
            SECRET_KEY=self.secret_key,
            ADMIN_API_KEY=self.admin_api_key,
            QUIZ_API_URL=self.quiz_api_url,
            SUBMIT_TIMEOUT=self.submit_timeout,
            LOG_DIR=self.log_dir,
            RESPONSES_DIR=self.storage.responses_dir,
            EXCEL_FILENAME=self.storage.workbook_name,
            TIMEZONE=self.storage.timezone,
            BACKUP_ENABLED=self.backup.enabled,
            BACKUP_MAX_FILES=self.backup.max_files,
            BACKUP_DIR=self.backup.directory,
            RATE_LIMIT_MAX=self.rate_limit.general_max,
            SUBMIT_RATE_LIMIT_MAX=self.rate_limit.submit_max,
            RATE_LIMIT_WINDOW=self.rate_limit.window_seconds,
        )


settings = Settings()
