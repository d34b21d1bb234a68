from __future__ import annotations

import http.client
import socket
import sys
from pathlib import Path

import google.auth.exceptions
import httplib2
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from aspire_sync.errors import (
    ConnectivityFailureError,
    MalformedSheetError,
    UnauthenticatedError,
)
from aspire_sync.google_credentials import CredentialHolder
from aspire_sync.sheets_client import SheetsClient, SpreadsheetReference, ValueRange
from fake_sheets import SHEET, FakeService, http_error, make_client


def test_fetch_returns_cells_as_strings() -> None:
    service = FakeService({"Dashboard!H4:O": [["✦", "Bills", 1200, 0.5]]})
    client = make_client(service)

    value_range = client.fetch(SHEET, "Dashboard!H4:O")

    assert isinstance(value_range, ValueRange)
    assert value_range.range == "Dashboard!H4:O"
    assert value_range.values == [["✦", "Bills", "1200", "0.5"]]
    assert service.gets == [{"spreadsheetId": "sheet-123", "range": "Dashboard!H4:O"}]


def test_fetch_of_empty_range_yields_no_rows() -> None:
    client = make_client(FakeService())

    assert client.fetch(SHEET, "BackendData!B2:B").values == []


def test_operations_without_credentials_fail_before_any_request() -> None:
    service = FakeService({"BackendData!2:2": [["3.0"]]})
    built = []
    client = SheetsClient(
        CredentialHolder(),
        service_factory=lambda credentials, timeout: built.append(credentials) or service,
    )

    with pytest.raises(UnauthenticatedError):
        client.fetch(SHEET, "BackendData!2:2")
    with pytest.raises(UnauthenticatedError):
        client.append(SHEET, "Transactions!B:H", [["x"]])

    assert built == []
    assert service.call_count == 0


def test_injected_service_is_not_used_without_credentials() -> None:
    service = FakeService({"BackendData!2:2": [["3.0"]]})
    client = make_client(service, authenticated=False)

    with pytest.raises(UnauthenticatedError):
        client.fetch(SHEET, "BackendData!2:2")
    assert service.call_count == 0


@pytest.mark.parametrize("status", [400, 403, 404])
def test_api_error_objects_map_to_malformed_sheet(status: int) -> None:
    service = FakeService()
    service.fail("BackendData!2:2", http_error(status))
    client = make_client(service)

    with pytest.raises(MalformedSheetError) as excinfo:
        client.fetch(SHEET, "BackendData!2:2")

    assert "BackendData!2:2" in str(excinfo.value)


@pytest.mark.parametrize(
    "error",
    [
        httplib2.ServerNotFoundError("Unable to find the server at sheets.googleapis.com"),
        socket.timeout("timed out"),
        ConnectionResetError("connection reset by peer"),
        google.auth.exceptions.RefreshError("invalid_grant"),
        google.auth.exceptions.TransportError("no network"),
        http.client.IncompleteRead(b"partial"),
        http.client.BadStatusLine("garbled"),
    ],
)
def test_other_transport_errors_map_to_connectivity_failure(error: Exception) -> None:
    service = FakeService()
    service.fail("BackendData!2:2", error)
    client = make_client(service)

    with pytest.raises(ConnectivityFailureError) as excinfo:
        client.fetch(SHEET, "BackendData!2:2")

    assert excinfo.value.__cause__ is error


def test_append_sends_user_entered_rows() -> None:
    service = FakeService()
    client = make_client(service)

    response = client.append(SHEET, "Transactions!B:H", [["Nov 1, 2019", "10", ""]])

    assert response["updates"]["updatedRows"] == 1
    assert service.appends == [
        {
            "spreadsheetId": "sheet-123",
            "range": "Transactions!B:H",
            "valueInputOption": "USER_ENTERED",
            "body": {
                "range": "Transactions!B:H",
                "majorDimension": "ROWS",
                "values": [["Nov 1, 2019", "10", ""]],
            },
        }
    ]


def test_append_errors_use_the_same_classification() -> None:
    service = FakeService()
    service.fail("Transactions!B:H", http_error(400))
    client = make_client(service)

    with pytest.raises(MalformedSheetError):
        client.append(SHEET, "Transactions!B:H", [["row"]])


def test_service_is_rebuilt_when_credentials_change() -> None:
    holder = CredentialHolder()
    first, second = object(), object()
    built = []

    def factory(credentials, timeout):
        built.append((credentials, timeout))
        return FakeService({"A1": [["x"]]})

    client = SheetsClient(holder, service_factory=factory, timeout_seconds=30)
    holder.supply(first)
    client.fetch(SHEET, "A1")
    client.fetch(SHEET, "A1")
    holder.supply(second)
    client.fetch(SHEET, "A1")

    assert built == [(first, 30), (second, 30)]


def test_spreadsheet_reference_json_round_trip() -> None:
    sheet_ref = SpreadsheetReference(
        id="abc", name="Budget", mime_type="application/vnd.google-apps.spreadsheet"
    )

    assert SpreadsheetReference.from_json(sheet_ref.to_json()) == sheet_ref
    with pytest.raises(ValueError):
        SpreadsheetReference.from_json({"name": "no id"})
