"""Error taxonomy shared by the Sheets synchronisation layer.

Every failure the layer can report derives from :class:`SheetsSyncError`, so
callers can surface a message to the user with a single ``except`` clause and
still distinguish the individual kinds when they need to.
"""
from __future__ import annotations


class SheetsSyncError(RuntimeError):
    """Base error raised by the synchronisation layer."""


class UnauthenticatedError(SheetsSyncError):
    """Raised when an operation needs credentials that were not supplied yet."""

    def __init__(self, message: str = "No Google credentials have been supplied.") -> None:
        super().__init__(message)


class MalformedSheetError(SheetsSyncError):
    """Raised when the Sheets API reports a structural problem with the sheet."""


class ConnectivityFailureError(SheetsSyncError):
    """Raised when the Sheets API could not be reached."""


class UnknownSchemaVersionError(SheetsSyncError):
    """Raised when the sheet does not advertise a supported layout version."""


class MalformedDataError(SheetsSyncError):
    """Raised when fetched rows do not have the expected shape."""


class DefaultSheetError(SheetsSyncError):
    """Raised when the default spreadsheet cannot be persisted."""


class NoSheetSelectedError(SheetsSyncError):
    """Raised when an operation needs a spreadsheet but none was chosen."""


__all__ = [
    "ConnectivityFailureError",
    "DefaultSheetError",
    "MalformedDataError",
    "MalformedSheetError",
    "NoSheetSelectedError",
    "SheetsSyncError",
    "UnauthenticatedError",
    "UnknownSchemaVersionError",
]
