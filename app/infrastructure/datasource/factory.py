"""Data source factory: creates memory or CSV backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.application.interfaces.stores import ITabularDataSource
from app.domain.exceptions import ConfigurationError

if TYPE_CHECKING:
    from app.core.config import Settings


class DataSourceFactory:
    """Factory for tabular data source instances based on configuration."""

    @staticmethod
    def create_data_source(settings: "Settings | None" = None) -> ITabularDataSource:
        """Create data source from settings.

        Args:
            settings: Application settings; if None, uses get_settings().

        Returns:
            InMemoryTableSource or CsvTableSource.

        Raises:
            ConfigurationError: CSV backend whose root directory does not exist.
        """
        from app.core.config import get_settings

        s = settings or get_settings()
        backend = s.data_source_backend.lower()

        if backend == "csv":
            from pathlib import Path

            from app.infrastructure.datasource.csv_source import CsvTableSource

            if not Path(s.data_source_root).is_dir():
                raise ConfigurationError(
                    "data_source_root", f"directory not found: {s.data_source_root}"
                )
            return CsvTableSource(root=s.data_source_root)

        from app.infrastructure.datasource.memory_source import InMemoryTableSource

        return InMemoryTableSource()
