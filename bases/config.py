"""
Runtime settings for Base Studio.
Read from the environment first, then from a .env file at the repo root.
"""
from __future__ import annotations
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)
REPO_ROOT = Path(__file__).resolve().parent.parent

GENERATION_MODES = ("local", "remote")


def read_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Look up a setting in os.environ, falling back to .env."""
    value = os.getenv(name)
    if value:
        return value
    env_path = REPO_ROOT / ".env"
    if env_path.exists():
        for line in env_path.read_text().splitlines():
            if line.strip().startswith(f"{name}="):
                return line.split("=", 1)[1].strip().strip("\"' ")
    return default


@dataclass(frozen=True)
class Settings:
    generation_mode: str = "local"
    generator_url: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    log_level: str = "INFO"

    @property
    def remote(self) -> bool:
        return self.generation_mode == "remote"


def load_settings() -> Settings:
    mode = (read_env("BASES_GENERATION_MODE", "local") or "local").lower()
    if mode not in GENERATION_MODES:
        logger.warning("Unknown BASES_GENERATION_MODE %r, using 'local'", mode)
        mode = "local"
    return Settings(
        generation_mode=mode,
        generator_url=read_env("BASES_GENERATOR_URL"),
        openai_model=read_env("BASES_OPENAI_MODEL", "gpt-4o-mini"),
        log_level=(read_env("BASES_LOG_LEVEL", "INFO") or "INFO").upper(),
    )


__all__ = ["Settings", "load_settings", "read_env", "GENERATION_MODES"]
