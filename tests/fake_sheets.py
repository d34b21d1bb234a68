"""In-memory stand-in for ``service.spreadsheets().values()`` used by the tests."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import httplib2
from googleapiclient.errors import HttpError

from aspire_sync.google_credentials import CredentialHolder
from aspire_sync.sheets_client import SheetsClient, SpreadsheetReference

SHEET = SpreadsheetReference(id="sheet-123", name="Aspire Budget")


def http_error(status: int = 400, message: str = "Unable to parse range") -> HttpError:
    content = ('{"error": {"code": %d, "message": "%s"}}' % (status, message)).encode("utf-8")
    return HttpError(httplib2.Response({"status": status}), content)


class _FakeRequest:
    def __init__(self, callback):
        self._callback = callback

    def execute(self):
        return self._callback()


class _FakeValues:
    def __init__(self, service: "FakeService") -> None:
        self._service = service

    def get(self, spreadsheetId: str, range: str):  # noqa: N803 - API compatibility
        return _FakeRequest(lambda: self._service._handle_get(spreadsheetId, range))

    def append(self, spreadsheetId: str, range: str, valueInputOption: str, body: Dict[str, Any]):  # noqa: N803
        return _FakeRequest(
            lambda: self._service._handle_append(spreadsheetId, range, valueInputOption, body)
        )


class _FakeSpreadsheets:
    def __init__(self, service: "FakeService") -> None:
        self._service = service

    def values(self) -> _FakeValues:
        return _FakeValues(self._service)


class FakeService:
    """Serve canned ranges and record every request that reaches ``execute``."""

    def __init__(self, ranges: Optional[Dict[str, List[List[Any]]]] = None) -> None:
        self.ranges: Dict[str, List[List[Any]]] = dict(ranges or {})
        self.errors: Dict[str, Exception] = {}
        self.gets: List[Dict[str, Any]] = []
        self.appends: List[Dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.gets) + len(self.appends)

    def spreadsheets(self) -> _FakeSpreadsheets:
        return _FakeSpreadsheets(self)

    def fail(self, range_spec: str, error: Exception) -> None:
        self.errors[range_spec] = error

    def _handle_get(self, spreadsheet_id: str, range_spec: str) -> Dict[str, Any]:
        self.gets.append({"spreadsheetId": spreadsheet_id, "range": range_spec})
        if range_spec in self.errors:
            raise self.errors[range_spec]
        payload: Dict[str, Any] = {"range": range_spec, "majorDimension": "ROWS"}
        values = self.ranges.get(range_spec)
        if values:
            payload["values"] = [list(row) for row in values]
        return payload

    def _handle_append(
        self, spreadsheet_id: str, range_spec: str, value_input_option: str, body: Dict[str, Any]
    ) -> Dict[str, Any]:
        self.appends.append(
            {
                "spreadsheetId": spreadsheet_id,
                "range": range_spec,
                "valueInputOption": value_input_option,
                "body": body,
            }
        )
        if range_spec in self.errors:
            raise self.errors[range_spec]
        return {
            "spreadsheetId": spreadsheet_id,
            "updates": {"updatedRange": "Transactions!B10:H10", "updatedRows": 1},
        }


def make_client(service: FakeService, *, authenticated: bool = True) -> SheetsClient:
    holder = CredentialHolder()
    if authenticated:
        holder.supply(object())
    return SheetsClient(holder, service=service)


def v2_sheet() -> FakeService:
    return FakeService(
        {
            "BackendData!2:2": [["", "", "", "3.0"]],
            "BackendData!F2:F": [["Rent"], ["Groceries"], ["Fun"]],
            "BackendData!H2:H": [["Checking"], ["Credit Card"]],
        }
    )
