from __future__ import annotations

import sys
import threading
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from aspire_sync.default_sheet import DefaultSheetStore
from aspire_sync.errors import MalformedSheetError
from aspire_sync.sheets_manager import SheetsManager
from aspire_sync.sync_worker import SyncWorker
from fake_sheets import SHEET, http_error, make_client, v2_sheet


class BlockingManager:
    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()

    def verify_sheet(self, sheet_ref=None):
        self.started.set()
        self.release.wait(5)
        return "verified"

    def fetch_dashboard(self, sheet_ref=None):
        return "dashboard"


def test_verify_reports_success(tmp_path: Path) -> None:
    results = []
    manager = SheetsManager(make_client(v2_sheet()), DefaultSheetStore(tmp_path / "defaults.json"))
    worker = SyncWorker(manager, status_callback=results.append)

    assert worker.verify(SHEET) is True
    worker.join(5)

    assert len(results) == 1
    assert results[0].action == "verify"
    assert results[0].ok is True
    assert results[0].payload.categories == ["Rent", "Groceries", "Fun"]
    assert not worker.busy


def test_failures_are_reported_with_the_error(tmp_path: Path) -> None:
    results = []
    service = v2_sheet()
    service.fail("BackendData!2:2", http_error(404, "Requested entity was not found."))
    manager = SheetsManager(make_client(service), DefaultSheetStore(tmp_path / "defaults.json"))
    worker = SyncWorker(manager, status_callback=results.append)

    worker.verify(SHEET)
    worker.join(5)

    assert results[0].ok is False
    assert isinstance(results[0].payload, MalformedSheetError)
    assert results[0].message == str(results[0].payload)


def test_second_request_while_busy_is_rejected() -> None:
    results = []
    manager = BlockingManager()
    worker = SyncWorker(manager, status_callback=results.append)  # type: ignore[arg-type]

    assert worker.verify(SHEET) is True
    assert manager.started.wait(5)
    assert worker.busy

    assert worker.refresh_dashboard(SHEET) is False
    assert results[0].action == "dashboard"
    assert results[0].message == "busy"

    manager.release.set()
    worker.join(5)
    assert results[-1].payload == "verified"
    assert not worker.busy
