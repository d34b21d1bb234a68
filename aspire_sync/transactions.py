"""Build and append transaction rows to the Aspire ``Transactions`` worksheet."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Sequence, Union

from babel.dates import format_date

from aspire_sync.errors import MalformedDataError
from aspire_sync.schema import SchemaLayout, SchemaVersion, layout_for
from aspire_sync.settings import DEFAULT_LOCALE, DEFAULT_TRANSACTION_NOTE
from aspire_sync.sheets_client import USER_ENTERED, SheetsClient, SpreadsheetReference

logger = logging.getLogger(__name__)

TRANSACTIONS_RANGE = "Transactions!B:H"


class TransactionType(Enum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"


class ApprovalType(Enum):
    APPROVED = "approved"
    PENDING = "pending"


@dataclass(frozen=True)
class Transaction:
    amount: str
    date: Union[date, datetime]
    category: int
    account: int
    direction: TransactionType = TransactionType.OUTFLOW
    approval: ApprovalType = ApprovalType.PENDING


def _lookup(options: Optional[Sequence[str]], index: int, label: str) -> str:
    if not options:
        raise MalformedDataError(f"No {label} list has been loaded for this sheet.")
    if not 0 <= index < len(options):
        raise MalformedDataError(
            f"{label.capitalize()} index {index} is out of range (0-{len(options) - 1})."
        )
    return options[index]


def format_transaction_date(value: Union[date, datetime], locale: str = DEFAULT_LOCALE) -> str:
    """Return ``value`` in the locale's medium date style, e.g. ``Nov 1, 2019``."""

    if isinstance(value, datetime):
        value = value.date()
    return format_date(value, format="medium", locale=locale)


def build_row(
    transaction: Transaction,
    layout: SchemaLayout,
    categories: Optional[Sequence[str]],
    accounts: Optional[Sequence[str]],
    *,
    note: str = DEFAULT_TRANSACTION_NOTE,
    locale: str = DEFAULT_LOCALE,
) -> List[str]:
    """Return the ``Transactions!B:H`` cells for ``transaction``."""

    amount = transaction.amount.strip()
    if not amount:
        raise MalformedDataError("Transaction amount is empty.")

    category = _lookup(categories, transaction.category, "category")
    account = _lookup(accounts, transaction.account, "account")

    if transaction.direction is TransactionType.INFLOW:
        outflow, inflow = "", amount
    else:
        outflow, inflow = amount, ""

    if transaction.approval is ApprovalType.APPROVED:
        glyph = layout.approved_glyph
    else:
        glyph = layout.pending_glyph

    return [
        format_transaction_date(transaction.date, locale),
        outflow,
        inflow,
        category,
        account,
        note,
        glyph,
    ]


def append_transaction(
    client: SheetsClient,
    sheet_ref: SpreadsheetReference,
    transaction: Transaction,
    version: Optional[SchemaVersion],
    categories: Optional[Sequence[str]],
    accounts: Optional[Sequence[str]],
    *,
    note: str = DEFAULT_TRANSACTION_NOTE,
    locale: str = DEFAULT_LOCALE,
) -> bool:
    """Append ``transaction`` to the sheet, returning ``True`` once stored."""

    logger.info("Adding transaction")
    row = build_row(
        transaction,
        layout_for(version),
        categories,
        accounts,
        note=note,
        locale=locale,
    )
    response = client.append(
        sheet_ref, TRANSACTIONS_RANGE, [row], value_input_option=USER_ENTERED
    )
    updated = response.get("updates", {}).get("updatedRange")
    if updated:
        logger.info("Transaction written to %s", updated)
    return True


__all__ = [
    "ApprovalType",
    "TRANSACTIONS_RANGE",
    "Transaction",
    "TransactionType",
    "append_transaction",
    "build_row",
    "format_transaction_date",
]
