"""Command line front end for the Aspire Google Sheets synchronisation layer."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from aspire_sync import logging_config
from aspire_sync.default_sheet import DefaultSheetStore
from aspire_sync.errors import DefaultSheetError, SheetsSyncError
from aspire_sync.google_credentials import (
    CredentialHolder,
    CredentialsFileInvalidError,
    load_credentials,
    load_service_account,
)
from aspire_sync.settings import SYNC_SETTINGS_PATH, SyncSettings, load_sync_settings
from aspire_sync.sheets_client import SheetsClient, SpreadsheetReference
from aspire_sync.sheets_manager import SheetsManager
from aspire_sync.transactions import ApprovalType, Transaction, TransactionType
from aspire_sync.version import __version__

logger = logging.getLogger(__name__)


def _stored_credentials(settings: SyncSettings):
    if settings.service_account_path:
        return load_service_account(Path(settings.service_account_path), settings.scopes)
    token_path = Path(settings.token_path)
    if not token_path.exists():
        return None
    try:
        return load_credentials(token_path, None, settings.scopes)
    except CredentialsFileInvalidError as exc:
        logger.warning("Cached token unusable: %s", exc)
        return None


def build_manager(settings: SyncSettings) -> SheetsManager:
    holder = CredentialHolder()
    credentials = _stored_credentials(settings)
    if credentials is not None:
        holder.supply(credentials)
    client = SheetsClient(holder, timeout_seconds=settings.timeout_seconds)
    store = DefaultSheetStore(settings.default_sheet_path)
    return SheetsManager(client, store, settings=settings)


def _error(message: object) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def command_login(args: argparse.Namespace) -> int:
    settings: SyncSettings = args.settings
    secret_path = args.client_secret or settings.client_secret_path
    secret = Path(secret_path) if secret_path else None
    try:
        load_credentials(Path(settings.token_path), secret, settings.scopes)
    except (SheetsSyncError, CredentialsFileInvalidError) as exc:
        return _error(exc)
    print(f"Credentials stored at: {settings.token_path}")
    return 0


def command_use(args: argparse.Namespace) -> int:
    settings: SyncSettings = args.settings
    sheet_ref = SpreadsheetReference(id=args.spreadsheet_id, name=args.name or "")
    try:
        DefaultSheetStore(settings.default_sheet_path).save(sheet_ref)
    except DefaultSheetError as exc:
        return _error(exc)
    print(f"Default spreadsheet: {sheet_ref.name or sheet_ref.id}")
    return 0


def _verified_manager(args: argparse.Namespace) -> SheetsManager:
    manager = build_manager(args.settings)
    manager.check_defaults()
    manager.verify_sheet()
    return manager


def command_verify(args: argparse.Namespace) -> int:
    try:
        manager = _verified_manager(args)
    except (SheetsSyncError, CredentialsFileInvalidError) as exc:
        return _error(exc)
    print(f"Aspire version: {manager.version.value}")
    print(f"Categories    : {len(manager.categories or [])}")
    print(f"Accounts      : {len(manager.accounts or [])}")
    return 0


def command_categories(args: argparse.Namespace) -> int:
    try:
        manager = _verified_manager(args)
    except (SheetsSyncError, CredentialsFileInvalidError) as exc:
        return _error(exc)
    for index, name in enumerate(manager.categories or []):
        print(f"{index:>3}  {name}")
    return 0


def command_accounts(args: argparse.Namespace) -> int:
    try:
        manager = _verified_manager(args)
    except (SheetsSyncError, CredentialsFileInvalidError) as exc:
        return _error(exc)
    for index, name in enumerate(manager.accounts or []):
        print(f"{index:>3}  {name}")
    return 0


def command_dashboard(args: argparse.Namespace) -> int:
    try:
        manager = build_manager(args.settings)
        manager.check_defaults()
        metadata = manager.fetch_dashboard()
    except (SheetsSyncError, CredentialsFileInvalidError) as exc:
        return _error(exc)
    for group in metadata.groups:
        totals = group.totals
        print(f"{group.name}: available {totals.available}, spent {totals.spent}, budgeted {totals.budgeted}")
        for category in group.categories:
            print(f"    {category.name}: available {category.available}, spent {category.spent}, budgeted {category.budgeted}")
    return 0


def command_add(args: argparse.Namespace) -> int:
    transaction = Transaction(
        amount=args.amount,
        date=args.date,
        category=args.category,
        account=args.account,
        direction=TransactionType.INFLOW if args.inflow else TransactionType.OUTFLOW,
        approval=ApprovalType.PENDING if args.pending else ApprovalType.APPROVED,
    )
    try:
        manager = _verified_manager(args)
        manager.add_transaction(transaction)
    except (SheetsSyncError, CredentialsFileInvalidError) as exc:
        return _error(exc)
    print("Transaction added")
    return 0


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}; use YYYY-MM-DD") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Aspire Budgeting Google Sheets tool")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--settings", default=SYNC_SETTINGS_PATH, help="Path to the settings JSON file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login", help="Authorise access to Google Sheets")
    login_parser.add_argument("--client-secret", help="OAuth client secret JSON file")
    login_parser.set_defaults(func=command_login)

    use_parser = subparsers.add_parser("use", help="Remember the spreadsheet to work with")
    use_parser.add_argument("spreadsheet_id")
    use_parser.add_argument("--name", help="Display name of the spreadsheet")
    use_parser.set_defaults(func=command_use)

    verify_parser = subparsers.add_parser("verify", help="Detect the Aspire version of the default sheet")
    verify_parser.set_defaults(func=command_verify)

    categories_parser = subparsers.add_parser("categories", help="List transaction categories")
    categories_parser.set_defaults(func=command_categories)

    accounts_parser = subparsers.add_parser("accounts", help="List transaction accounts")
    accounts_parser.set_defaults(func=command_accounts)

    dashboard_parser = subparsers.add_parser("dashboard", help="Show dashboard groups and categories")
    dashboard_parser.set_defaults(func=command_dashboard)

    add_parser = subparsers.add_parser("add", help="Append a transaction")
    add_parser.add_argument("amount")
    add_parser.add_argument("--category", type=int, required=True, help="Index from 'categories'")
    add_parser.add_argument("--account", type=int, required=True, help="Index from 'accounts'")
    add_parser.add_argument("--inflow", action="store_true", help="Record money coming in")
    add_parser.add_argument("--pending", action="store_true", help="Mark the transaction as pending")
    add_parser.add_argument("--date", type=_parse_date, default=date.today(), help="Transaction date (YYYY-MM-DD)")
    add_parser.set_defaults(func=command_add)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging_config.configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    args.settings = load_sync_settings(args.settings)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
