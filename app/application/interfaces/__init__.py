"""Application interfaces (ports): store and data source protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure.
"""

from app.application.interfaces.stores import (
    IKeyValueStore,
    IPropertyStore,
    ITabularDataSource,
)

__all__ = [
    "IKeyValueStore",
    "IPropertyStore",
    "ITabularDataSource",
]
