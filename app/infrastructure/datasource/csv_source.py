"""CSV directory data source: one <sheet>.csv per sheet under a root directory."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Any

import aiofiles

from app.infrastructure.exceptions import DataSourcePathError, DataSourceReadError

logger = logging.getLogger(__name__)


class CsvTableSource:
    """Reads sheets exported as CSV (implements ITabularDataSource).

    Paths are validated against root so a sheet name cannot escape it.
    Cells are returned as strings, as a spreadsheet export would give them.
    """

    def __init__(self, root: str, encoding: str = "utf-8") -> None:
        self.root = Path(root).resolve()
        self.encoding = encoding

    def _sheet_path(self, sheet_name: str) -> Path:
        """Resolve and validate <root>/<sheet_name>.csv. Raises DataSourcePathError on traversal."""
        path = (self.root / f"{sheet_name}.csv").resolve()
        try:
            path.relative_to(self.root)
        except ValueError as e:
            raise DataSourcePathError(sheet_name) from e
        return path

    async def read_rows(self, sheet_name: str) -> list[list[Any]] | None:
        path = self._sheet_path(sheet_name)
        if not path.is_file():
            logger.debug("Sheet not found: %s (%s)", sheet_name, path)
            return None
        try:
            async with aiofiles.open(path, "r", encoding=self.encoding, newline="") as f:
                content = await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DataSourceReadError(sheet_name, str(e)) from e
        try:
            return [row for row in csv.reader(io.StringIO(content))]
        except csv.Error as e:
            raise DataSourceReadError(sheet_name, str(e)) from e
