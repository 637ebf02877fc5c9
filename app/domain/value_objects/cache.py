"""Cache dependency value objects.

A dependency pattern is either an exact base key or a prefix wildcard.
The string form used in configuration ("user_*") is parsed once into the
tagged variant; nothing downstream inspects raw strings for "*".
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from app.core.constants import (
    CACHE_KEY_DOMAIN_MAPPINGS,
    CACHE_KEY_ROLE_MAPPINGS,
    CACHE_KEY_SETTINGS_DATA,
    CACHE_KEY_STAFF_DATA,
    WILDCARD,
)


@dataclass(frozen=True)
class ExactPattern:
    """Dependency on one concrete base key (e.g. 'role_mappings')."""

    name: str

    def __post_init__(self) -> None:
        if not self.name or WILDCARD in self.name:
            raise ValueError(f"Exact pattern must be a non-empty key without {WILDCARD!r}")

    def matches(self, key: str) -> bool:
        return key == self.name

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PrefixPattern:
    """Dependency on every key that starts with prefix (e.g. 'user_*').

    Concrete keys under a prefix are not enumerable from the declaration,
    so invalidating one falls back to a master version bump.
    """

    prefix: str

    def __post_init__(self) -> None:
        if not self.prefix or WILDCARD in self.prefix:
            raise ValueError(f"Prefix pattern must be a non-empty prefix without {WILDCARD!r}")

    def matches(self, key: str) -> bool:
        return key.startswith(self.prefix)

    def __str__(self) -> str:
        return f"{self.prefix}{WILDCARD}"


DependencyPattern = ExactPattern | PrefixPattern


def parse_pattern(raw: str) -> DependencyPattern:
    """Parse 'name' into ExactPattern and 'prefix*' into PrefixPattern.

    Raises:
        ValueError: If raw is empty or has a wildcard anywhere but the end.
    """
    raw = raw.strip()
    if raw.endswith(WILDCARD):
        return PrefixPattern(raw[: -len(WILDCARD)])
    return ExactPattern(raw)


@dataclass(frozen=True)
class DependencyMap:
    """Static source -> dependents map, read-only at runtime.

    Sources may be exact or prefix patterns. Lookup is one hop: the
    dependents of a changed key are never expanded further.
    """

    entries: tuple[tuple[DependencyPattern, tuple[DependencyPattern, ...]], ...] = field(
        default_factory=tuple
    )

    @classmethod
    def from_config(cls, config: Mapping[str, Iterable[str]]) -> DependencyMap:
        """Build from {'staff_data': ['user_*', 'role_mappings'], ...}."""
        return cls(
            tuple(
                (parse_pattern(source), tuple(parse_pattern(d) for d in dependents))
                for source, dependents in config.items()
            )
        )

    def dependents_of(self, changed_key: str) -> list[DependencyPattern]:
        """Ordered dependents of changed_key; [] if nothing depends on it.

        Exact sources are checked before prefix sources; duplicates are dropped
        while keeping first-seen order.
        """
        ordered = sorted(
            self.entries, key=lambda entry: isinstance(entry[0], PrefixPattern)
        )
        result: list[DependencyPattern] = []
        for source, dependents in ordered:
            if not source.matches(changed_key):
                continue
            for dependent in dependents:
                if dependent not in result:
                    result.append(dependent)
        return result


DEFAULT_CACHE_DEPENDENCIES: dict[str, list[str]] = {
    CACHE_KEY_STAFF_DATA: ["user_*", CACHE_KEY_ROLE_MAPPINGS],
    CACHE_KEY_SETTINGS_DATA: ["role_sheet_*", CACHE_KEY_DOMAIN_MAPPINGS],
    "user_*": ["role_sheet_*"],
    "role_sheet_*": [],
}
