"""Tests for the CSV and in-memory tabular data sources and their factory."""

import pytest

from app.core.config import Settings
from app.domain.exceptions import ConfigurationError
from app.infrastructure.datasource import (
    CsvTableSource,
    DataSourceFactory,
    InMemoryTableSource,
)
from app.infrastructure.exceptions import DataSourcePathError


class TestCsvTableSource:
    async def test_reads_rows_as_strings(self, tmp_path) -> None:
        (tmp_path / "Staff.csv").write_text(
            'Name,Email,Role,Year\n"Lovelace, Ada",a@x.com,Teacher,1\n', encoding="utf-8"
        )
        rows = await CsvTableSource(str(tmp_path)).read_rows("Staff")
        assert rows == [["Name", "Email", "Role", "Year"], ["Lovelace, Ada", "a@x.com", "Teacher", "1"]]

    async def test_missing_sheet(self, tmp_path) -> None:
        assert await CsvTableSource(str(tmp_path)).read_rows("Settings") is None

    async def test_path_traversal_rejected(self, tmp_path) -> None:
        with pytest.raises(DataSourcePathError):
            await CsvTableSource(str(tmp_path / "data")).read_rows("../secrets")


class TestInMemoryTableSource:
    async def test_returns_copies(self) -> None:
        source = InMemoryTableSource({"Staff": [["a"]]})
        rows = await source.read_rows("Staff")
        rows[0][0] = "changed"
        assert await source.read_rows("Staff") == [["a"]]

    async def test_update_cell(self) -> None:
        source = InMemoryTableSource({"Staff": [["h"], ["x"]]})
        source.update_cell("Staff", 1, 0, "y")
        assert await source.read_rows("Staff") == [["h"], ["y"]]


class TestDataSourceFactory:
    def test_memory(self) -> None:
        assert isinstance(DataSourceFactory.create_data_source(Settings()), InMemoryTableSource)

    def test_csv(self, tmp_path) -> None:
        settings = Settings(data_source_backend="csv", data_source_root=str(tmp_path))
        assert isinstance(DataSourceFactory.create_data_source(settings), CsvTableSource)

    def test_csv_missing_root(self, tmp_path) -> None:
        settings = Settings(data_source_backend="csv", data_source_root=str(tmp_path / "missing"))
        with pytest.raises(ConfigurationError):
            DataSourceFactory.create_data_source(settings)
