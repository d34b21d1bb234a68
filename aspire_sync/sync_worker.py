"""Background worker that runs Sheets operations off the caller's thread."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from aspire_sync.errors import SheetsSyncError
from aspire_sync.sheets_client import SpreadsheetReference
from aspire_sync.sheets_manager import SheetsManager
from aspire_sync.transactions import Transaction

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    action: str
    ok: bool
    message: str
    payload: Any = None


StatusCallback = Callable[[SyncResult], None]


class SyncWorker:
    """Run one manager operation at a time on a daemon thread and report the outcome."""

    def __init__(self, manager: SheetsManager, status_callback: Optional[StatusCallback] = None) -> None:
        self.manager = manager
        self.status_callback = status_callback
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def verify(self, sheet_ref: Optional[SpreadsheetReference] = None) -> bool:
        return self._start("verify", self.manager.verify_sheet, sheet_ref)

    def refresh_dashboard(self, sheet_ref: Optional[SpreadsheetReference] = None) -> bool:
        return self._start("dashboard", self.manager.fetch_dashboard, sheet_ref)

    def add_transaction(self, transaction: Transaction) -> bool:
        return self._start("add_transaction", self.manager.add_transaction, transaction)

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _start(self, action: str, func: Callable[..., Any], *args: Any) -> bool:
        if not self._lock.acquire(blocking=False):
            logger.info("Sync worker busy; %s request rejected", action)
            self._dispatch_status(SyncResult(action=action, ok=False, message="busy"))
            return False
        self._thread = threading.Thread(
            target=self._execute, args=(action, func, args), daemon=True
        )
        self._thread.start()
        return True

    def _execute(self, action: str, func: Callable[..., Any], args: tuple) -> None:
        try:
            try:
                payload = func(*args)
                result = SyncResult(action=action, ok=True, message="ok", payload=payload)
            except SheetsSyncError as exc:
                logger.warning("%s failed: %s", action, exc)
                result = SyncResult(action=action, ok=False, message=str(exc), payload=exc)
            except Exception as exc:  # pragma: no cover - best effort logging
                logger.exception("Unexpected error during %s", action)
                result = SyncResult(action=action, ok=False, message=f"{action} failed: {exc}", payload=exc)
        finally:
            self._lock.release()
        self._dispatch_status(result)

    def _dispatch_status(self, result: SyncResult) -> None:
        if not self.status_callback:
            return
        try:
            self.status_callback(result)
        except Exception:  # pragma: no cover - UI callback failure
            logger.exception("Sync status callback failed")


__all__ = ["StatusCallback", "SyncResult", "SyncWorker"]
