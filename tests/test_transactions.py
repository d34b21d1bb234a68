from __future__ import annotations

import sys
from datetime import date, datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from aspire_sync import transactions
from aspire_sync.errors import MalformedDataError, UnauthenticatedError, UnknownSchemaVersionError
from aspire_sync.schema import LAYOUTS, SchemaVersion
from aspire_sync.transactions import ApprovalType, Transaction, TransactionType
from fake_sheets import SHEET, FakeService, make_client

CATEGORIES = ["Rent", "Groceries"]
ACCOUNTS = ["Checking", "Credit Card"]


def _transaction(**overrides) -> Transaction:
    values = dict(
        amount="42.50",
        date=date(2019, 11, 1),
        category=1,
        account=0,
        direction=TransactionType.OUTFLOW,
        approval=ApprovalType.APPROVED,
    )
    values.update(overrides)
    return Transaction(**values)


def test_outflow_fills_outflow_column_only() -> None:
    row = transactions.build_row(_transaction(), LAYOUTS[SchemaVersion.V2], CATEGORIES, ACCOUNTS)

    assert row == ["Nov 1, 2019", "42.50", "", "Groceries", "Checking", "Added from Aspire iOS app", "✅"]


def test_inflow_fills_inflow_column_only() -> None:
    row = transactions.build_row(
        _transaction(direction=TransactionType.INFLOW), LAYOUTS[SchemaVersion.V2], CATEGORIES, ACCOUNTS
    )

    assert row[1:3] == ["", "42.50"]


@pytest.mark.parametrize(
    "version, approval, glyph",
    [
        (SchemaVersion.V1, ApprovalType.APPROVED, "🆗"),
        (SchemaVersion.V1, ApprovalType.PENDING, "⏺"),
        (SchemaVersion.V2, ApprovalType.APPROVED, "✅"),
        (SchemaVersion.V2, ApprovalType.PENDING, "🅿️"),
    ],
)
def test_approval_glyph_depends_on_version(version, approval, glyph) -> None:
    row = transactions.build_row(_transaction(approval=approval), LAYOUTS[version], CATEGORIES, ACCOUNTS)

    assert row[-1] == glyph


def test_date_uses_locale_medium_format() -> None:
    assert transactions.format_transaction_date(datetime(2019, 11, 1, 18, 30)) == "Nov 1, 2019"
    assert transactions.format_transaction_date(date(2019, 11, 1), "de_DE") == "01.11.2019"


def test_note_is_configurable() -> None:
    row = transactions.build_row(
        _transaction(), LAYOUTS[SchemaVersion.V1], CATEGORIES, ACCOUNTS, note="From the CLI"
    )

    assert row[5] == "From the CLI"


@pytest.mark.parametrize(
    "overrides, categories, accounts",
    [
        ({"category": 2}, CATEGORIES, ACCOUNTS),
        ({"account": -1}, CATEGORIES, ACCOUNTS),
        ({}, None, ACCOUNTS),
        ({}, CATEGORIES, []),
        ({"amount": "  "}, CATEGORIES, ACCOUNTS),
    ],
)
def test_invalid_references_are_reported(overrides, categories, accounts) -> None:
    with pytest.raises(MalformedDataError):
        transactions.build_row(_transaction(**overrides), LAYOUTS[SchemaVersion.V2], categories, accounts)


def test_append_transaction_writes_one_user_entered_row() -> None:
    service = FakeService()

    result = transactions.append_transaction(
        make_client(service), SHEET, _transaction(), SchemaVersion.V1, CATEGORIES, ACCOUNTS
    )

    assert result is True
    assert len(service.appends) == 1
    call = service.appends[0]
    assert call["range"] == "Transactions!B:H"
    assert call["valueInputOption"] == "USER_ENTERED"
    assert call["body"]["values"] == [
        ["Nov 1, 2019", "42.50", "", "Groceries", "Checking", "Added from Aspire iOS app", "🆗"]
    ]


def test_append_transaction_requires_version() -> None:
    service = FakeService()

    with pytest.raises(UnknownSchemaVersionError):
        transactions.append_transaction(make_client(service), SHEET, _transaction(), None, CATEGORIES, ACCOUNTS)
    assert service.call_count == 0


def test_append_transaction_requires_credentials() -> None:
    service = FakeService()

    with pytest.raises(UnauthenticatedError):
        transactions.append_transaction(
            make_client(service, authenticated=False),
            SHEET,
            _transaction(),
            SchemaVersion.V2,
            CATEGORIES,
            ACCOUNTS,
        )
    assert service.call_count == 0
