"""Credential helpers for the Google Sheets synchronisation layer.

The Sheets client never looks credentials up on its own.  Whoever completes
the OAuth flow hands the result to a :class:`CredentialHolder`, and the client
reads from the holder on every request.  Until something has been supplied
all authenticated operations fail fast with
:class:`~aspire_sync.errors.UnauthenticatedError`.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from aspire_sync.errors import ConnectivityFailureError
from aspire_sync.settings import DEFAULT_SCOPES

logger = logging.getLogger(__name__)

__all__ = [
    "CredentialHolder",
    "CredentialsFileInvalidError",
    "SERVICE_ACCOUNT_FIELDS",
    "load_credentials",
    "load_service_account",
    "load_service_account_data",
]


class CredentialsFileInvalidError(Exception):
    """Raised when a credential JSON file is missing or malformed."""


SERVICE_ACCOUNT_FIELDS: Iterable[str] = (
    "type",
    "project_id",
    "private_key_id",
    "private_key",
    "client_email",
    "token_uri",
)


class CredentialHolder:
    """Thread-safe slot for the credentials used by :class:`SheetsClient`."""

    def __init__(self, credentials: Any = None) -> None:
        self._lock = threading.Lock()
        self._credentials = credentials

    @property
    def credentials(self) -> Any:
        with self._lock:
            return self._credentials

    @property
    def has_credentials(self) -> bool:
        return self.credentials is not None

    def supply(self, credentials: Any) -> None:
        if credentials is None:
            raise ValueError("Use clear() to drop credentials.")
        logger.info("Assigning Google credentials")
        with self._lock:
            self._credentials = credentials

    def clear(self) -> None:
        logger.info("Clearing Google credentials")
        with self._lock:
            self._credentials = None


def _load_json(path: Path) -> Mapping[str, object]:
    try:
        with path.open("r", encoding="utf-8-sig") as handle:
            raw = handle.read()
    except OSError as exc:
        raise CredentialsFileInvalidError(f"Unable to read credential file: {exc}") from exc

    payload_text = raw.strip()
    if not payload_text:
        raise CredentialsFileInvalidError(f"Credential file {path} is empty.")

    try:
        payload = json.loads(payload_text)
    except json.JSONDecodeError as exc:
        raise CredentialsFileInvalidError(f"JSON parse error: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise CredentialsFileInvalidError(f"Credential file {path} must contain a JSON object.")
    return payload


def _normalise_private_key(key: str) -> str:
    key = key.replace("\r\n", "\n").replace("\r", "\n")
    key = key.replace("\\n", "\n")
    if not key.endswith("\n"):
        key += "\n"
    return key


def load_service_account_data(path: Path) -> Dict[str, object]:
    """Return validated service account data from ``path``."""

    data: Dict[str, object] = dict(_load_json(path))
    missing = [
        name
        for name in SERVICE_ACCOUNT_FIELDS
        if not isinstance(data.get(name), str) or not str(data.get(name)).strip()
    ]
    if data.get("type") != "service_account":
        missing.append("type")
    if missing:
        ordered = ", ".join(sorted(dict.fromkeys(missing)))
        raise CredentialsFileInvalidError(f"JSON missing fields: {ordered}")

    data["private_key"] = _normalise_private_key(str(data["private_key"]))
    return data


def load_service_account(path: Path, scopes: Optional[Sequence[str]] = None):
    """Build service account credentials from the JSON key at ``path``."""

    payload = load_service_account_data(path)
    try:
        return service_account.Credentials.from_service_account_info(
            payload, scopes=list(scopes or DEFAULT_SCOPES)
        )
    except ValueError as exc:
        raise CredentialsFileInvalidError(str(exc)) from exc


def _save_token(credentials: Credentials, token_path: Path) -> None:
    os.makedirs(token_path.parent, exist_ok=True)
    with token_path.open("w", encoding="utf-8") as handle:
        handle.write(credentials.to_json())
    logger.info("Credentials saved to %s", token_path)


def load_credentials(
    token_path: Path,
    client_secret_path: Optional[Path] = None,
    scopes: Optional[Sequence[str]] = None,
) -> Credentials:
    """Return user credentials, refreshing or re-authorising as required.

    A cached authorized-user token at ``token_path`` is used when it is valid
    and covers ``scopes``.  Expired tokens are refreshed.  When no usable token
    exists the installed-app OAuth flow is started, which needs
    ``client_secret_path``.
    """

    scopes = list(scopes or DEFAULT_SCOPES)
    credentials: Optional[Credentials] = None

    if token_path.exists():
        try:
            credentials = Credentials.from_authorized_user_file(str(token_path), scopes)
        except (ValueError, json.JSONDecodeError) as exc:
            logger.error("Failed to load cached token %s, re-authorising: %s", token_path, exc)
            credentials = None
        if credentials and not set(scopes).issubset(set(credentials.scopes or [])):
            logger.info("Cached credentials have mismatched scopes. Re-authorisation required.")
            credentials = None

    if credentials and credentials.valid:
        logger.info("Cached credentials are valid.")
        return credentials

    if credentials and credentials.expired and credentials.refresh_token:
        logger.info("Cached credentials expired; attempting refresh.")
        try:
            credentials.refresh(Request())
        except google.auth.exceptions.TransportError as exc:
            logger.error("Unable to reach Google to refresh credentials: %s", exc)
            raise ConnectivityFailureError(f"Unable to refresh Google credentials: {exc}") from exc
        except google.auth.exceptions.RefreshError as exc:
            logger.error("Refresh failed, attempting re-authorisation: %s", exc)
        else:
            _save_token(credentials, token_path)
            return credentials

    if client_secret_path is None or not client_secret_path.exists():
        raise CredentialsFileInvalidError(
            "No valid cached token and no OAuth client secret file is configured."
        )

    logger.info("Starting new OAuth flow...")
    flow = InstalledAppFlow.from_client_secrets_file(str(client_secret_path), scopes)
    credentials = flow.run_local_server(port=0)
    if not credentials or not credentials.token:
        raise CredentialsFileInvalidError("Authentication did not complete successfully.")
    _save_token(credentials, token_path)
    return credentials
