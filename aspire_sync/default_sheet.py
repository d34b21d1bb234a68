"""Local persistence of the spreadsheet the user picked last."""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from aspire_sync.errors import DefaultSheetError
from aspire_sync.settings import DEFAULT_SHEET_PATH
from aspire_sync.sheets_client import SpreadsheetReference

logger = logging.getLogger(__name__)

DEFAULTS_SHEET_KEY = "Aspire_Sheet"


class DefaultSheetStore:
    """Keep the default :class:`SpreadsheetReference` in a JSON key/value file."""

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self._path = Path(path or DEFAULT_SHEET_PATH)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> Dict[str, object]:
        with self._path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        return data if isinstance(data, dict) else {}

    def save(self, sheet_ref: SpreadsheetReference) -> None:
        """Persist ``sheet_ref``, replacing any previous default."""

        with self._lock:
            try:
                data = self._read_all() if self._path.exists() else {}
            except (OSError, ValueError):
                data = {}
            data[DEFAULTS_SHEET_KEY] = sheet_ref.to_json()
            try:
                payload = json.dumps(data, indent=2, ensure_ascii=False)
                os.makedirs(self._path.parent, exist_ok=True)
                tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
                tmp_path.write_text(payload, encoding="utf-8")
                os.replace(tmp_path, self._path)
            except (OSError, TypeError, ValueError) as exc:
                logger.error("Unable to persist default spreadsheet: %s", exc)
                raise DefaultSheetError(f"Unable to persist default spreadsheet: {exc}") from exc
        logger.info("Default spreadsheet set to %s", sheet_ref.id)

    def load(self) -> Optional[SpreadsheetReference]:
        """Return the saved default, or ``None`` when absent or unreadable."""

        with self._lock:
            if not self._path.exists():
                logger.info("No default Google Sheet found")
                return None
            try:
                record = self._read_all().get(DEFAULTS_SHEET_KEY)
                if not isinstance(record, dict):
                    logger.info("No default Google Sheet found")
                    return None
                sheet_ref = SpreadsheetReference.from_json(record)
            except (OSError, ValueError) as exc:
                logger.warning("Ignoring unreadable default spreadsheet record: %s", exc)
                return None
        logger.info("Default Google Sheet found.")
        return sheet_ref

    def clear(self) -> None:
        with self._lock:
            if not self._path.exists():
                return
            try:
                data = self._read_all()
            except (OSError, ValueError):
                data = {}
            data.pop(DEFAULTS_SHEET_KEY, None)
            try:
                self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            except OSError as exc:
                raise DefaultSheetError(f"Unable to clear default spreadsheet: {exc}") from exc


__all__ = ["DEFAULTS_SHEET_KEY", "DefaultSheetStore"]
