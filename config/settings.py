"""
Configuration settings for the word classification reaction-time experiment.

This module contains all configurable parameters for the experiment runtime,
including the results/word-list service location, retry behaviour, session
options and the development stub server.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Data paths, relative to the working directory
DATA_DIR = Path("data")
BACKUP_DIR = DATA_DIR / "backups"
STUB_RESULTS_DIR = DATA_DIR / "stub_results"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServiceConfig:
    """Configuration for the word-list and results services.

    Both services live under one base URL; the paths are fixed by the
    backend (``/api/words`` and ``/api/results``).
    """

    base_url: str = field(
        default_factory=lambda: os.getenv("LEXRT_API_BASE_URL", "http://localhost:5000")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.getenv("LEXRT_REQUEST_TIMEOUT", "10"))
    )

    # Word-list loading retry policy
    max_retries: int = 3
    backoff_base_ms: int = 1000
    backoff_cap_ms: int = 10000

    words_path: str = "/api/words"
    results_path: str = "/api/results"


@dataclass
class SessionConfig:
    """Configuration for a single participant session."""

    # Practice records are captured locally either way; this only controls
    # whether they are part of the submitted payload.
    submit_practice_records: bool = field(
        default_factory=lambda: _env_flag("LEXRT_SUBMIT_PRACTICE")
    )

    # Where failed submissions are written for later resubmission
    backup_dir: Optional[Path] = field(
        default_factory=lambda: Path(os.getenv("LEXRT_BACKUP_DIR", str(BACKUP_DIR)))
    )


@dataclass
class KeyBindingConfig:
    """Physical key names bound to the three logical input signals."""

    confirm: str = "space"
    positive: str = "right"
    negative: str = "left"


@dataclass
class StubServerConfig:
    """Configuration for the development stub of the backend services."""

    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "5000")))
    words_file: Optional[Path] = field(
        default_factory=lambda: Path(os.environ["LEXRT_STUB_WORDS"])
        if os.getenv("LEXRT_STUB_WORDS") else None
    )
    results_dir: Path = field(
        default_factory=lambda: Path(os.getenv("LEXRT_STUB_RESULTS_DIR", str(STUB_RESULTS_DIR)))
    )


@dataclass
class AppConfig:
    """Main application configuration."""

    # Environment
    env: str = field(default_factory=lambda: os.getenv("LEXRT_ENV", "development"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Sub-configurations
    service: ServiceConfig = field(default_factory=ServiceConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    keys: KeyBindingConfig = field(default_factory=KeyBindingConfig)
    stub: StubServerConfig = field(default_factory=StubServerConfig)


# Global configuration instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    return config


def reload_config() -> AppConfig:
    """Reload configuration from environment."""
    global config
    load_dotenv(override=True)
    config = AppConfig()
    return config
