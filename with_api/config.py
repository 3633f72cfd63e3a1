from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Library settings loaded from environment in a type-safe, framework-free way."""

    log_level: str
    trace: bool

    @staticmethod
    def from_env() -> Settings:
        prefix = "WITH_API_"
        log_level = os.getenv(f"{prefix}LOG_LEVEL", "INFO").strip().upper() or "INFO"
        trace = os.getenv(f"{prefix}TRACE", "").strip().lower() in _TRUTHY
        return Settings(log_level=log_level, trace=trace)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings; call `get_settings.cache_clear()` after changing the env."""
    return Settings.from_env()
