"""Application configuration helpers for aspire-sync."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

from aspire_sync import app_paths


logger = logging.getLogger(__name__)


SYNC_SETTINGS_PATH = str(app_paths.data_path("settings.json"))
DEFAULT_SHEET_PATH = os.getenv(
    "ASPIRE_SYNC_DEFAULTS_PATH",
    str(app_paths.data_path("defaults.json")),
)
DEFAULT_TOKEN_PATH = os.getenv(
    "ASPIRE_SYNC_TOKEN_PATH",
    str(app_paths.TOKENS_DIR / "token.json"),
)
DEFAULT_CLIENT_SECRET_PATH = os.getenv("ASPIRE_SYNC_CLIENT_SECRET_PATH", "")
DEFAULT_SERVICE_ACCOUNT_PATH = os.getenv("ASPIRE_SYNC_SERVICE_ACCOUNT_PATH", "")
DEFAULT_LOCALE = os.getenv("ASPIRE_SYNC_LOCALE", "en_US")
DEFAULT_TIMEOUT_SECONDS = 60
DEFAULT_TRANSACTION_NOTE = "Added from Aspire iOS app"
DEFAULT_SCOPES: Sequence[str] = ("https://www.googleapis.com/auth/spreadsheets",)

MIN_TIMEOUT_SECONDS = 5
MAX_TIMEOUT_SECONDS = 600


@dataclass
class SyncSettings:
    token_path: str = DEFAULT_TOKEN_PATH
    client_secret_path: str = DEFAULT_CLIENT_SECRET_PATH
    service_account_path: str = DEFAULT_SERVICE_ACCOUNT_PATH
    default_sheet_path: str = DEFAULT_SHEET_PATH
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    locale: str = DEFAULT_LOCALE
    transaction_note: str = DEFAULT_TRANSACTION_NOTE
    scopes: List[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))

    def to_json(self) -> Dict[str, object]:
        return {
            "token_path": self.token_path,
            "client_secret_path": self.client_secret_path,
            "service_account_path": self.service_account_path,
            "default_sheet_path": self.default_sheet_path,
            "timeout_seconds": self.timeout_seconds,
            "locale": self.locale,
            "transaction_note": self.transaction_note,
            "scopes": list(self.scopes),
        }


def _clamp_timeout(value: object) -> int:
    try:
        return max(MIN_TIMEOUT_SECONDS, min(MAX_TIMEOUT_SECONDS, int(value)))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT_SECONDS


def _ensure_sync_settings(path: str = SYNC_SETTINGS_PATH) -> Dict[str, object]:
    default_settings = SyncSettings().to_json()
    if not os.path.exists(path):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(default_settings, handle, indent=2)
        return json.loads(json.dumps(default_settings))

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        logger.warning("Settings file %s is not valid JSON, using defaults: %s", path, exc)
        data = {}

    merged: Dict[str, object] = dict(default_settings)
    if not isinstance(data, Mapping):
        return merged
    for key, value in data.items():
        if key not in merged:
            continue
        if key == "timeout_seconds":
            merged[key] = _clamp_timeout(value)
        elif key == "scopes" and isinstance(value, list):
            scopes = [scope for scope in value if isinstance(scope, str) and scope]
            if scopes:
                merged[key] = scopes
        elif isinstance(value, str):
            merged[key] = value
    return merged


def load_sync_settings(path: str = SYNC_SETTINGS_PATH) -> SyncSettings:
    data = _ensure_sync_settings(path)
    return SyncSettings(
        token_path=str(data["token_path"]),
        client_secret_path=str(data["client_secret_path"]),
        service_account_path=str(data["service_account_path"]),
        default_sheet_path=str(data["default_sheet_path"]),
        timeout_seconds=_clamp_timeout(data["timeout_seconds"]),
        locale=str(data["locale"]) or DEFAULT_LOCALE,
        transaction_note=str(data["transaction_note"]),
        scopes=list(data["scopes"]),  # type: ignore[arg-type]
    )


def save_sync_settings(settings: SyncSettings, path: str = SYNC_SETTINGS_PATH) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, "w", encoding="utf-8") as handle:
        json.dump(settings.to_json(), handle, indent=2)


__all__ = [
    "DEFAULT_LOCALE",
    "DEFAULT_SCOPES",
    "DEFAULT_SHEET_PATH",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_TOKEN_PATH",
    "DEFAULT_TRANSACTION_NOTE",
    "SYNC_SETTINGS_PATH",
    "SyncSettings",
    "load_sync_settings",
    "save_sync_settings",
]
