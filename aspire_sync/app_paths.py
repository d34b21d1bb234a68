"""Where aspire-sync keeps its settings, tokens, default sheet and log file.

``ASPIRE_SYNC_HOME`` overrides the location.  Nothing is created on import;
each writer creates the directory it needs.
"""
from __future__ import annotations

import os
from pathlib import Path


def _detect_base_directory() -> Path:
    override = os.environ.get("ASPIRE_SYNC_HOME")
    if override:
        return Path(override).expanduser()
    for env_var in ("LOCALAPPDATA", "APPDATA"):
        value = os.environ.get(env_var)
        if value:
            return Path(value).expanduser() / "AspireSync"
    return Path.home() / ".aspire_sync"


APP_DIR: Path = _detect_base_directory()
TOKENS_DIR: Path = APP_DIR / "tokens"
LOG_DIR: Path = APP_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "aspire_sync.log"


def data_path(*parts: str) -> Path:
    return APP_DIR.joinpath(*parts)


__all__ = ["APP_DIR", "LOG_DIR", "LOG_FILE", "TOKENS_DIR", "data_path"]
