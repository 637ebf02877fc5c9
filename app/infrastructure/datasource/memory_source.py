"""In-memory tabular data source (spreadsheet stand-in for dev and tests)."""

from __future__ import annotations

import copy
from typing import Any


class InMemoryTableSource:
    """Sheets held as lists of rows (implements ITabularDataSource).

    read_rows returns deep copies so callers cannot mutate the stored sheet.
    """

    def __init__(self, sheets: dict[str, list[list[Any]]] | None = None) -> None:
        self._sheets: dict[str, list[list[Any]]] = copy.deepcopy(sheets or {})

    async def read_rows(self, sheet_name: str) -> list[list[Any]] | None:
        rows = self._sheets.get(sheet_name)
        return copy.deepcopy(rows) if rows is not None else None

    def set_sheet(self, sheet_name: str, rows: list[list[Any]]) -> None:
        """Replace a whole sheet (header row first)."""
        self._sheets[sheet_name] = copy.deepcopy(rows)

    def update_cell(self, sheet_name: str, row: int, column: int, value: Any) -> None:
        """Edit one cell (0-based row including header, 0-based column)."""
        self._sheets[sheet_name][row][column] = value
