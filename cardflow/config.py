"""
cardflow configuration — all environment variables in one place.

Read from environment at import time. Every setting has a default so the
library works without any environment at all.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None


class Settings:
    """Library settings from environment variables."""

    # Ingestion loop
    DEBOUNCE_MS: int = _int_env("CARDFLOW_DEBOUNCE_MS", 300)

    # Layout
    RESIZE_DEBOUNCE_MS: int = _int_env("CARDFLOW_RESIZE_DEBOUNCE_MS", 100)
    LAYOUT_GAP: int = _int_env("CARDFLOW_LAYOUT_GAP", 12)
    MAX_COLUMNS: int = _int_env("CARDFLOW_MAX_COLUMNS", 4)
    DEFAULT_WIDTH: int = _int_env("CARDFLOW_DEFAULT_WIDTH", 1280)

    # Logging
    LOG_LEVEL: str = os.environ.get("CARDFLOW_LOG_LEVEL", "WARNING").upper()


# Singleton instance
settings = Settings()

if settings.DEBOUNCE_MS < 0:
    raise RuntimeError("CARDFLOW_DEBOUNCE_MS must not be negative")
if settings.RESIZE_DEBOUNCE_MS < 0:
    raise RuntimeError("CARDFLOW_RESIZE_DEBOUNCE_MS must not be negative")
if not 1 <= settings.MAX_COLUMNS <= 4:
    raise RuntimeError("CARDFLOW_MAX_COLUMNS must be between 1 and 4")
