"""Google Sheets client used by the Aspire synchronisation layer.

This module centralises all direct interactions with the Google Sheets API.
It exposes two operations, reading the values of an A1 range and appending
rows to an A1 range, and a coarse failure surface:

* :class:`~aspire_sync.errors.UnauthenticatedError` when no credentials have
  been supplied yet.  No request is built and no service is constructed.
* :class:`~aspire_sync.errors.MalformedSheetError` when the API answered with
  an error object (``HttpError``), e.g. a missing worksheet or an unparsable
  range.
* :class:`~aspire_sync.errors.ConnectivityFailureError` for every other
  transport failure: DNS, sockets, TLS, timeouts and token refresh problems.

Nothing is retried here.  Each call issues exactly one request and callers
decide whether to try again.
"""

from __future__ import annotations

import http.client
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import google.auth.exceptions
import google_auth_httplib2
import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from aspire_sync.errors import (
    ConnectivityFailureError,
    MalformedSheetError,
    UnauthenticatedError,
)
from aspire_sync.google_credentials import CredentialHolder
from aspire_sync.settings import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

USER_ENTERED = "USER_ENTERED"
MAJOR_DIMENSION_ROWS = "ROWS"

ServiceFactory = Callable[[Any, int], Any]

_TRANSPORT_ERRORS = (
    httplib2.HttpLib2Error,
    http.client.HTTPException,
    OSError,
    google.auth.exceptions.GoogleAuthError,
)


@dataclass(frozen=True)
class SpreadsheetReference:
    """Identifies the spreadsheet backing the budget."""

    id: str
    name: str = ""
    mime_type: Optional[str] = None

    def to_json(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"id": self.id, "name": self.name}
        if self.mime_type:
            payload["mimeType"] = self.mime_type
        return payload

    @classmethod
    def from_json(cls, payload: Mapping[str, object]) -> "SpreadsheetReference":
        identifier = payload.get("id")
        if not isinstance(identifier, str) or not identifier.strip():
            raise ValueError("Spreadsheet record is missing its id")
        name = payload.get("name")
        mime_type = payload.get("mimeType")
        return cls(
            id=identifier,
            name=name if isinstance(name, str) else "",
            mime_type=mime_type if isinstance(mime_type, str) else None,
        )


@dataclass
class ValueRange:
    """Rectangular block of cell text returned by a range read."""

    range: str
    values: List[List[str]] = field(default_factory=list)
    major_dimension: str = MAJOR_DIMENSION_ROWS

    @classmethod
    def from_response(cls, payload: Mapping[str, Any], requested_range: str) -> "ValueRange":
        values = [[str(cell) for cell in row] for row in payload.get("values", [])]
        return cls(
            range=str(payload.get("range", requested_range)),
            values=values,
            major_dimension=str(payload.get("majorDimension", MAJOR_DIMENSION_ROWS)),
        )


def _build_service(credentials: Any, timeout_seconds: int):
    authorized_http = google_auth_httplib2.AuthorizedHttp(
        credentials, http=httplib2.Http(timeout=timeout_seconds)
    )
    return build("sheets", "v4", http=authorized_http, cache_discovery=False)


def _http_status(exc: HttpError) -> Optional[int]:
    return getattr(getattr(exc, "resp", None), "status", None)


class SheetsClient:
    """Concrete helper that speaks to Google Sheets using the REST API."""

    def __init__(
        self,
        credentials: CredentialHolder,
        *,
        service=None,
        service_factory: Optional[ServiceFactory] = None,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._credentials = credentials
        self._service = service
        self._service_factory = service_factory or _build_service
        self._timeout_seconds = timeout_seconds
        self._built_for: Any = None
        self._lock = threading.Lock()

    @property
    def timeout_seconds(self) -> int:
        return self._timeout_seconds

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def fetch(self, sheet_ref: SpreadsheetReference, range_spec: str) -> ValueRange:
        """Return the cell values of ``range_spec`` in ``sheet_ref``."""

        service = self._require_service("fetch")
        logger.info("Fetching range %s from spreadsheet %s", range_spec, sheet_ref.id)
        response = self._execute(
            lambda: service.spreadsheets()
            .values()
            .get(spreadsheetId=sheet_ref.id, range=range_spec)
            .execute(),
            range_spec,
        )
        value_range = ValueRange.from_response(response if isinstance(response, dict) else {}, range_spec)
        logger.info("Received %d rows for %s", len(value_range.values), range_spec)
        return value_range

    def append(
        self,
        sheet_ref: SpreadsheetReference,
        range_spec: str,
        rows: Sequence[Sequence[str]],
        *,
        value_input_option: str = USER_ENTERED,
    ) -> Dict[str, Any]:
        """Append ``rows`` after the last table row found in ``range_spec``."""

        service = self._require_service("append")
        body = {
            "range": range_spec,
            "majorDimension": MAJOR_DIMENSION_ROWS,
            "values": [list(row) for row in rows],
        }
        logger.info("Appending %d row(s) to %s in spreadsheet %s", len(rows), range_spec, sheet_ref.id)
        response = self._execute(
            lambda: service.spreadsheets()
            .values()
            .append(
                spreadsheetId=sheet_ref.id,
                range=range_spec,
                valueInputOption=value_input_option,
                body=body,
            )
            .execute(),
            range_spec,
        )
        return response if isinstance(response, dict) else {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_service(self, operation: str):
        credentials = self._credentials.credentials
        if credentials is None:
            logger.error("No credentials while trying to %s", operation)
            raise UnauthenticatedError()

        with self._lock:
            if self._service is not None and (
                self._built_for is None or self._built_for is credentials
            ):
                return self._service
            logger.info("Building Google Sheets service client")
            try:
                self._service = self._service_factory(credentials, self._timeout_seconds)
            except _TRANSPORT_ERRORS as exc:
                raise ConnectivityFailureError(f"Unable to build Sheets service: {exc}") from exc
            self._built_for = credentials
            return self._service

    def _execute(self, call: Callable[[], Any], range_spec: str) -> Any:
        try:
            return call()
        except HttpError as exc:
            logger.error(
                "Sheets API returned an error for %s (HTTP %s): %s",
                range_spec,
                _http_status(exc),
                exc,
            )
            raise MalformedSheetError(
                f"The spreadsheet rejected the request for {range_spec}: {exc}"
            ) from exc
        except _TRANSPORT_ERRORS as exc:
            logger.error("Unable to reach Google Sheets for %s: %s", range_spec, exc)
            raise ConnectivityFailureError(f"Unable to reach Google Sheets: {exc}") from exc


__all__ = [
    "MAJOR_DIMENSION_ROWS",
    "SheetsClient",
    "SpreadsheetReference",
    "USER_ENTERED",
    "ValueRange",
]
