"""Configuration loading for noteimpact.

Config sources (in priority order):
1. Explicit arguments passed to functions
2. Environment variables (ANTHROPIC_API_KEY, NOTEIMPACT_DB_PATH, etc.)
3. .env file in current directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import anthropic
from dotenv import load_dotenv

load_dotenv()

DEFAULT_DB_PATH = Path("noteimpact.db")
DEFAULT_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_CLASSIFY_TIMEOUT = 8.0  # seconds
DEFAULT_MAX_WORKERS = 4


@dataclass
class Config:
    anthropic_api_key: str = ""
    db_path: Path = DEFAULT_DB_PATH
    model: str = DEFAULT_MODEL
    classify_timeout: float = DEFAULT_CLASSIFY_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def load(cls) -> Config:
        return cls(
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            db_path=Path(os.getenv("NOTEIMPACT_DB_PATH", str(DEFAULT_DB_PATH))),
            model=os.getenv("NOTEIMPACT_MODEL", DEFAULT_MODEL),
            classify_timeout=_float_env("NOTEIMPACT_CLASSIFY_TIMEOUT", DEFAULT_CLASSIFY_TIMEOUT),
            max_workers=int(_float_env("NOTEIMPACT_WORKERS", DEFAULT_MAX_WORKERS)),
        )

    def validate(self) -> list[str]:
        """Return a list of missing or invalid config issues."""
        issues = []
        if not self.anthropic_api_key:
            issues.append("Anthropic API key not set (ANTHROPIC_API_KEY)")
        if self.classify_timeout <= 0:
            issues.append("Classification timeout must be positive (NOTEIMPACT_CLASSIFY_TIMEOUT)")
        if self.max_workers < 1:
            issues.append("Worker count must be at least 1 (NOTEIMPACT_WORKERS)")
        return issues

    def make_client(self) -> anthropic.Anthropic:
        """Build an Anthropic client that makes exactly one bounded attempt per call."""
        return anthropic.Anthropic(
            api_key=self.anthropic_api_key,
            timeout=self.classify_timeout,
            max_retries=0,
        )


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default
