"""Parser for the category block of the Aspire ``Dashboard`` worksheet.

The block read from ``Dashboard!H4:O`` is eight columns wide.  Its first row
holds the column titles; every following row is either a group total or a
category belonging to the most recent group:

===  ==========================================
 H   row marker (``✦`` group, ``✧`` category)
 I   name
 J   available
 K   progress bar (not used)
 L   spent
 M   spacer (not used)
 N   budgeted
 O   goal
===  ==========================================

Amounts are kept exactly as the sheet renders them; turning ``"$1,234.00"``
into a number is left to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from aspire_sync.errors import MalformedDataError
from aspire_sync.sheets_client import SheetsClient, SpreadsheetReference, ValueRange

logger = logging.getLogger(__name__)

DASHBOARD_RANGE = "Dashboard!H4:O"
DASHBOARD_WIDTH = 8
GROUP_MARKER = "✦"
CATEGORY_MARKER = "✧"

# Sheet row of the first data row (the header sits on row 4).
_FIRST_DATA_ROW = 5


class RowKind(Enum):
    GROUP = "group"
    CATEGORY = "category"


@dataclass(frozen=True)
class DashboardRow:
    kind: RowKind
    name: str
    available: str
    spent: str
    budgeted: str
    goal: str = ""


@dataclass
class DashboardGroup:
    totals: DashboardRow
    categories: List[DashboardRow] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.totals.name


@dataclass
class DashboardMetadata:
    header: List[str] = field(default_factory=list)
    rows: List[DashboardRow] = field(default_factory=list)
    groups: List[DashboardGroup] = field(default_factory=list)

    def group(self, name: str) -> Optional[DashboardGroup]:
        for group in self.groups:
            if group.name == name:
                return group
        return None


def _kind_for(marker: str, sheet_row: int) -> RowKind:
    if marker == GROUP_MARKER:
        return RowKind.GROUP
    if marker == CATEGORY_MARKER:
        return RowKind.CATEGORY
    raise MalformedDataError(f"Unexpected dashboard marker {marker!r} on row {sheet_row}.")


def _parse_row(cells: Sequence[str], sheet_row: int) -> DashboardRow:
    if len(cells) > DASHBOARD_WIDTH:
        raise MalformedDataError(
            f"Dashboard row {sheet_row} has {len(cells)} cells; expected {DASHBOARD_WIDTH}."
        )
    padded = list(cells) + [""] * (DASHBOARD_WIDTH - len(cells))
    marker, name, available, _progress, spent, _spacer, budgeted, goal = padded
    kind = _kind_for(marker.strip(), sheet_row)
    if not name.strip():
        raise MalformedDataError(f"Dashboard row {sheet_row} has no name.")
    return DashboardRow(
        kind=kind,
        name=name,
        available=available,
        spent=spent,
        budgeted=budgeted,
        goal=goal,
    )


def parse_dashboard(value_range: ValueRange) -> DashboardMetadata:
    """Convert the dashboard block into groups and categories."""

    if not value_range.values:
        return DashboardMetadata()

    header, *data = value_range.values
    metadata = DashboardMetadata(header=list(header))
    current: Optional[DashboardGroup] = None

    for offset, cells in enumerate(data):
        sheet_row = _FIRST_DATA_ROW + offset
        if not any(cell.strip() for cell in cells):
            continue
        row = _parse_row(cells, sheet_row)
        if row.kind is RowKind.GROUP:
            current = DashboardGroup(totals=row)
            metadata.groups.append(current)
        elif current is None:
            raise MalformedDataError(
                f"Dashboard category {row.name!r} on row {sheet_row} precedes any group."
            )
        else:
            current.categories.append(row)
        metadata.rows.append(row)

    logger.info(
        "Parsed dashboard: %d groups, %d rows", len(metadata.groups), len(metadata.rows)
    )
    return metadata


def fetch_dashboard(client: SheetsClient, sheet_ref: SpreadsheetReference) -> DashboardMetadata:
    logger.info("Fetching categories and groups")
    return parse_dashboard(client.fetch(sheet_ref, DASHBOARD_RANGE))


__all__ = [
    "CATEGORY_MARKER",
    "DASHBOARD_RANGE",
    "DASHBOARD_WIDTH",
    "DashboardGroup",
    "DashboardMetadata",
    "DashboardRow",
    "GROUP_MARKER",
    "RowKind",
    "fetch_dashboard",
    "parse_dashboard",
]
