"""Coordinate verification, reads and writes against the selected Aspire sheet.

:class:`SheetsManager` owns the state the user interface observes: the
detected layout version, the last error and the most recently fetched
dashboard, category and account data.  Verification is performed strictly in
sequence (version, saving the default sheet, categories, accounts) and every
published value is tagged with the selection it was requested for, so a slow
response for a sheet the user has already moved away from is dropped instead
of overwriting newer data.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from aspire_sync import dashboard as dashboard_mod
from aspire_sync import loaders, schema, transactions
from aspire_sync.dashboard import DashboardMetadata
from aspire_sync.default_sheet import DefaultSheetStore
from aspire_sync.errors import NoSheetSelectedError, SheetsSyncError
from aspire_sync.schema import SchemaVersion
from aspire_sync.settings import SyncSettings
from aspire_sync.sheets_client import SheetsClient, SpreadsheetReference
from aspire_sync.transactions import Transaction

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


class SyncState(Enum):
    NO_SHEET_SELECTED = "no_sheet_selected"
    VERSION_UNKNOWN = "version_unknown"
    VERSION_KNOWN = "version_known"


@dataclass
class VerificationResult:
    sheet: SpreadsheetReference
    version: Optional[SchemaVersion] = None
    categories: List[str] = field(default_factory=list)
    accounts: List[str] = field(default_factory=list)
    superseded: bool = False


class SheetsManager:
    """Expose the synchronisation layer's published state."""

    def __init__(
        self,
        client: SheetsClient,
        store: Optional[DefaultSheetStore] = None,
        *,
        settings: Optional[SyncSettings] = None,
        listener: Optional[Listener] = None,
    ) -> None:
        self._client = client
        self._settings = settings or SyncSettings()
        self._store = store or DefaultSheetStore(self._settings.default_sheet_path)
        self._listener = listener
        self._lock = threading.RLock()
        self._generation = 0

        self._state = SyncState.NO_SHEET_SELECTED
        self._sheet: Optional[SpreadsheetReference] = None
        self._default_sheet: Optional[SpreadsheetReference] = None
        self._version: Optional[SchemaVersion] = None
        self._error: Optional[SheetsSyncError] = None
        self._dashboard: Optional[DashboardMetadata] = None
        self._categories: Optional[List[str]] = None
        self._accounts: Optional[List[str]] = None

    # ------------------------------------------------------------------
    # Published state
    # ------------------------------------------------------------------
    @property
    def state(self) -> SyncState:
        with self._lock:
            return self._state

    @property
    def sheet(self) -> Optional[SpreadsheetReference]:
        with self._lock:
            return self._sheet

    @property
    def default_sheet(self) -> Optional[SpreadsheetReference]:
        with self._lock:
            return self._default_sheet

    @property
    def version(self) -> Optional[SchemaVersion]:
        with self._lock:
            return self._version

    @property
    def error(self) -> Optional[SheetsSyncError]:
        with self._lock:
            return self._error

    @property
    def dashboard(self) -> Optional[DashboardMetadata]:
        with self._lock:
            return self._dashboard

    @property
    def categories(self) -> Optional[List[str]]:
        with self._lock:
            return list(self._categories) if self._categories is not None else None

    @property
    def accounts(self) -> Optional[List[str]]:
        with self._lock:
            return list(self._accounts) if self._accounts is not None else None

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------
    def check_defaults(self) -> Optional[SpreadsheetReference]:
        """Load the persisted default sheet, if any."""

        sheet_ref = self._store.load()
        with self._lock:
            self._default_sheet = sheet_ref
        self._notify("default_sheet", sheet_ref)
        return sheet_ref

    def select_sheet(self, sheet_ref: SpreadsheetReference) -> int:
        """Make ``sheet_ref`` current and forget everything read from the old one."""

        logger.info("Selecting spreadsheet %s", sheet_ref.id)
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._sheet = sheet_ref
            self._state = SyncState.VERSION_UNKNOWN
            self._version = None
            self._error = None
            self._dashboard = None
            self._categories = None
            self._accounts = None
        for name in ("state", "version", "error", "dashboard", "categories", "accounts"):
            self._notify(name, getattr(self, name))
        return generation

    def verify_sheet(self, sheet_ref: Optional[SpreadsheetReference] = None) -> VerificationResult:
        """Detect the layout of ``sheet_ref`` and load its categories and accounts.

        The sheet is saved as the default as soon as its version is known.  If
        another sheet is selected while this runs, the remaining steps are
        skipped and the result comes back with ``superseded`` set.
        """

        sheet_ref = sheet_ref or self._current_sheet()
        logger.info("Verifying selected Google Sheet %s", sheet_ref.id)
        generation = self.select_sheet(sheet_ref)
        result = VerificationResult(sheet=sheet_ref)

        try:
            result.version = schema.fetch_version(self._client, sheet_ref)
            if not self._publish(generation, version=result.version, state=SyncState.VERSION_KNOWN):
                return self._superseded(result)

            self._store.save(sheet_ref)
            if not self._publish(generation, default_sheet=sheet_ref):
                return self._superseded(result)

            result.categories = loaders.load_categories(self._client, sheet_ref, result.version)
            if not self._publish(generation, categories=result.categories):
                return self._superseded(result)

            result.accounts = loaders.load_accounts(self._client, sheet_ref, result.version)
            if not self._publish(generation, accounts=result.accounts):
                return self._superseded(result)
        except SheetsSyncError as exc:
            self._publish(generation, error=exc)
            raise

        return result

    def fetch_dashboard(self, sheet_ref: Optional[SpreadsheetReference] = None) -> DashboardMetadata:
        """Read the dashboard of ``sheet_ref``.

        Only a dashboard read from the current sheet is published.
        """

        with self._lock:
            generation = self._generation
            current = self._sheet or self._default_sheet
        sheet_ref = sheet_ref or current
        if sheet_ref is None:
            raise NoSheetSelectedError("No spreadsheet has been selected.")
        publish = sheet_ref == current

        try:
            metadata = dashboard_mod.fetch_dashboard(self._client, sheet_ref)
        except SheetsSyncError as exc:
            if publish:
                self._publish(generation, error=exc)
            raise
        if publish:
            self._publish(generation, dashboard=metadata, error=None)
        else:
            logger.info("Dashboard of %s read without changing the selection", sheet_ref.id)
        return metadata

    def add_transaction(self, transaction: Transaction) -> bool:
        """Append ``transaction`` to the current sheet."""

        with self._lock:
            generation = self._generation
            sheet_ref = self._sheet or self._default_sheet
            version = self._version
            categories = self._categories
            accounts = self._accounts
        if sheet_ref is None:
            raise NoSheetSelectedError("No spreadsheet has been selected.")

        try:
            transactions.append_transaction(
                self._client,
                sheet_ref,
                transaction,
                version,
                categories,
                accounts,
                note=self._settings.transaction_note,
                locale=self._settings.locale,
            )
        except SheetsSyncError as exc:
            self._publish(generation, error=exc)
            raise
        self._publish(generation, error=None)
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _current_sheet(self) -> SpreadsheetReference:
        with self._lock:
            sheet_ref = self._sheet or self._default_sheet
        if sheet_ref is None:
            raise NoSheetSelectedError("No spreadsheet has been selected.")
        return sheet_ref

    def _superseded(self, result: VerificationResult) -> VerificationResult:
        logger.info("Verification of %s superseded by a newer selection", result.sheet.id)
        result.superseded = True
        return result

    def _publish(self, generation: int, **values: Any) -> bool:
        with self._lock:
            if generation != self._generation:
                logger.info(
                    "Discarding %s from a superseded sheet selection", ", ".join(sorted(values))
                )
                return False
            for name, value in values.items():
                setattr(self, f"_{name}", value)
        for name, value in values.items():
            self._notify(name, value)
        return True

    def _notify(self, name: str, value: Any) -> None:
        if not self._listener:
            return
        try:
            self._listener(name, value)
        except Exception:  # pragma: no cover - UI callback failure
            logger.exception("Sheets manager listener failed for %s", name)


__all__ = [
    "Listener",
    "NoSheetSelectedError",
    "SheetsManager",
    "SyncState",
    "VerificationResult",
]
