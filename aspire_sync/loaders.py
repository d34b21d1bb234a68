"""Loaders for the transaction category and account lists."""
from __future__ import annotations

import logging
from typing import List, Optional

from aspire_sync.errors import MalformedDataError
from aspire_sync.schema import SchemaVersion, layout_for
from aspire_sync.sheets_client import SheetsClient, SpreadsheetReference, ValueRange

logger = logging.getLogger(__name__)

# Both lists start on row 2 of their column.
FIRST_DATA_ROW = 2


def column_values(value_range: ValueRange, *, label: str) -> List[str]:
    """Return the first cell of every row, rejecting blank rows."""

    values: List[str] = []
    for offset, row in enumerate(value_range.values):
        cell = row[0] if row else ""
        if not cell.strip():
            raise MalformedDataError(
                f"Empty {label} cell at row {FIRST_DATA_ROW + offset} of {value_range.range}."
            )
        values.append(cell)
    return values


def load_categories(
    client: SheetsClient, sheet_ref: SpreadsheetReference, version: Optional[SchemaVersion]
) -> List[str]:
    logger.info("Fetching transaction categories")
    layout = layout_for(version)
    categories = column_values(client.fetch(sheet_ref, layout.category_range), label="category")
    logger.info("Received %d transaction categories", len(categories))
    return categories


def load_accounts(
    client: SheetsClient, sheet_ref: SpreadsheetReference, version: Optional[SchemaVersion]
) -> List[str]:
    logger.info("Fetching transaction accounts")
    layout = layout_for(version)
    accounts = column_values(client.fetch(sheet_ref, layout.account_range), label="account")
    logger.info("Received %d transaction accounts", len(accounts))
    return accounts


__all__ = ["column_values", "load_accounts", "load_categories"]
