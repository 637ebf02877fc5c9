"""Infrastructure exceptions for the tabular data source.

Data source errors extend PortalException so presentation can map them
to HTTP responses consistently.
"""

from app.domain.exceptions import PortalException


class DataSourceException(PortalException):
    """Base exception for data source operations."""


class DataSourceReadError(DataSourceException):
    """Reading a sheet failed (I/O or decode error)."""

    def __init__(self, sheet_name: str, reason: str) -> None:
        super().__init__(
            f"Failed to read sheet: {sheet_name}",
            "DATA_SOURCE_READ_ERROR",
            {"sheet_name": sheet_name, "reason": reason},
        )


class DataSourcePathError(DataSourceException):
    """Sheet name resolves outside the data source root."""

    def __init__(self, sheet_name: str) -> None:
        super().__init__(
            f"Invalid sheet name: {sheet_name}",
            "DATA_SOURCE_PATH_ERROR",
            {"sheet_name": sheet_name},
        )
