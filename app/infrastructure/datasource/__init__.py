"""Tabular data sources (spreadsheet read API): CSV directory and in-memory."""

from app.infrastructure.datasource.csv_source import CsvTableSource
from app.infrastructure.datasource.factory import DataSourceFactory
from app.infrastructure.datasource.memory_source import InMemoryTableSource

__all__ = ["CsvTableSource", "DataSourceFactory", "InMemoryTableSource"]
