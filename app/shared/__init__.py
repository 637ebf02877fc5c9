"""Shared utilities: telemetry (logging) and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.utils import (
    generate_cuid,
    generate_unique_id,
    now_ms,
    utc_now,
)

__all__ = [
    "generate_cuid",
    "generate_unique_id",
    "utc_now",
    "now_ms",
]
