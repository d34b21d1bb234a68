"""Aspire spreadsheet layout versions.

Aspire writes its layout revision into the last populated cell of row 2 of the
``BackendData`` worksheet.  The revision decides where the category and account
lists live and which glyphs mark a transaction as approved or pending.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Sequence

from aspire_sync.errors import UnknownSchemaVersionError
from aspire_sync.sheets_client import SheetsClient, SpreadsheetReference, ValueRange

logger = logging.getLogger(__name__)

BACKEND_SHEET = "BackendData"
VERSION_RANGE = f"{BACKEND_SHEET}!2:2"


class SchemaVersion(Enum):
    V1 = "2.8"
    V2 = "3.0"


@dataclass(frozen=True)
class SchemaLayout:
    category_column: str
    account_column: str
    approved_glyph: str
    pending_glyph: str

    @property
    def category_range(self) -> str:
        return _column_range(self.category_column)

    @property
    def account_range(self) -> str:
        return _column_range(self.account_column)


def _column_range(column: str) -> str:
    return f"{BACKEND_SHEET}!{column}2:{column}"


LAYOUTS: Mapping[SchemaVersion, SchemaLayout] = {
    SchemaVersion.V1: SchemaLayout(
        category_column="B",
        account_column="E",
        approved_glyph="🆗",
        pending_glyph="⏺",
    ),
    SchemaVersion.V2: SchemaLayout(
        category_column="F",
        account_column="H",
        approved_glyph="✅",
        pending_glyph="🅿️",
    ),
}


def parse_version(text: Optional[str]) -> SchemaVersion:
    """Return the :class:`SchemaVersion` advertised by ``text``."""

    candidate = (text or "").strip()
    try:
        return SchemaVersion(candidate)
    except ValueError:
        raise UnknownSchemaVersionError(
            f"Unsupported Aspire sheet version {candidate!r}; expected one of "
            + ", ".join(version.value for version in SchemaVersion)
        ) from None


def detect_version(header_row: Sequence[str]) -> SchemaVersion:
    """Return the version stored in the last cell of ``header_row``."""

    if not header_row:
        raise UnknownSchemaVersionError("The version row of the sheet is empty.")
    return parse_version(header_row[-1])


def detect_version_from_range(value_range: ValueRange) -> SchemaVersion:
    rows = value_range.values
    return detect_version(rows[0] if rows else [])


def fetch_version(client: SheetsClient, sheet_ref: SpreadsheetReference) -> SchemaVersion:
    """Read the version row of ``sheet_ref`` and resolve its layout version."""

    logger.info("Verifying Aspire version of spreadsheet %s", sheet_ref.id)
    version = detect_version_from_range(client.fetch(sheet_ref, VERSION_RANGE))
    logger.info("Spreadsheet %s uses Aspire layout %s", sheet_ref.id, version.value)
    return version


def layout_for(version: Optional[SchemaVersion]) -> SchemaLayout:
    if version is None:
        raise UnknownSchemaVersionError("The sheet version has not been detected yet.")
    return LAYOUTS[version]


__all__ = [
    "BACKEND_SHEET",
    "LAYOUTS",
    "SchemaLayout",
    "SchemaVersion",
    "VERSION_RANGE",
    "detect_version",
    "detect_version_from_range",
    "fetch_version",
    "layout_for",
    "parse_version",
]
