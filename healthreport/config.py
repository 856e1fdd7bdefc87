"""
Report Engine - Configuration
=============================
Centralised settings for artifact storage, definition tables and the
rendering engine. Values come from the environment, optionally seeded
from a project-level .env file.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# ── Paths ───────────────────────────────────────────────────────────────
PACKAGE_DIR = Path(__file__).resolve().parent                  # healthreport/
PROJECT_ROOT = PACKAGE_DIR.parent
DATA_DIR = PACKAGE_DIR / "data"

DEFAULT_DEFINITIONS_PATH = DATA_DIR / "report_definitions.json"
DEFAULT_ASSESSMENTS_PATH = DATA_DIR / "sample_assessments.json"
DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "generated-reports"

# ── Rendering defaults ──────────────────────────────────────────────────
DEFAULT_SETTLE_DELAY = 1.0       # seconds, lets font loading finish
DEFAULT_RENDER_TIMEOUT = 30.0    # seconds, caps one render end to end


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the report service."""
    output_dir: Path = DEFAULT_OUTPUT_DIR
    definitions_path: Path = DEFAULT_DEFINITIONS_PATH
    assessments_path: Path = DEFAULT_ASSESSMENTS_PATH
    naming_scheme: str = "session"          # "session" | "session_timestamp"
    settle_delay: float = DEFAULT_SETTLE_DELAY
    render_timeout: float = DEFAULT_RENDER_TIMEOUT
    download_prefix: str = "/api/v1/reports/download"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Build settings from environment variables (after loading .env)."""
        load_dotenv(env_file or PROJECT_ROOT / ".env")
        return cls(
            output_dir=Path(os.getenv("REPORT_OUTPUT_DIR", str(DEFAULT_OUTPUT_DIR))),
            definitions_path=Path(os.getenv("REPORT_DEFINITIONS_PATH", str(DEFAULT_DEFINITIONS_PATH))),
            assessments_path=Path(os.getenv("ASSESSMENT_DATA_PATH", str(DEFAULT_ASSESSMENTS_PATH))),
            naming_scheme=os.getenv("REPORT_NAMING_SCHEME", "session"),
            settle_delay=_env_float("REPORT_SETTLE_DELAY", DEFAULT_SETTLE_DELAY),
            render_timeout=_env_float("REPORT_RENDER_TIMEOUT", DEFAULT_RENDER_TIMEOUT),
            download_prefix=os.getenv("REPORT_DOWNLOAD_PREFIX", "/api/v1/reports/download"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
        )
