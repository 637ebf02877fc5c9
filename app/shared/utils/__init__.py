"""Shared utilities: datetime, generators, sanitization."""

from app.shared.utils.datetime import now_ms, utc_now
from app.shared.utils.generators import generate_cuid, generate_unique_id
from app.shared.utils.sanitization import CellSanitizer

__all__ = [
    "generate_cuid",
    "generate_unique_id",
    "utc_now",
    "now_ms",
    "CellSanitizer",
]
