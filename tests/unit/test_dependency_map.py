"""Tests for dependency patterns and the one-hop DependencyMap."""

import pytest

from app.domain.value_objects.cache import (
    DEFAULT_CACHE_DEPENDENCIES,
    DependencyMap,
    ExactPattern,
    PrefixPattern,
    parse_pattern,
)


class TestParsePattern:
    def test_exact(self) -> None:
        assert parse_pattern("role_mappings") == ExactPattern("role_mappings")

    def test_prefix(self) -> None:
        pattern = parse_pattern("user_*")
        assert pattern == PrefixPattern("user_")
        assert str(pattern) == "user_*"
        assert pattern.matches("user_email:a@x.com")
        assert not pattern.matches("staff_data")

    @pytest.mark.parametrize("raw", ["", "*", "us*er"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ValueError):
            parse_pattern(raw)


class TestDependentsOf:
    """Lookup returns direct dependents only, exact sources first."""

    @pytest.fixture
    def dependency_map(self) -> DependencyMap:
        return DependencyMap.from_config(DEFAULT_CACHE_DEPENDENCIES)

    def test_staff_data(self, dependency_map: DependencyMap) -> None:
        assert dependency_map.dependents_of("staff_data") == [
            PrefixPattern("user_"),
            ExactPattern("role_mappings"),
        ]

    def test_is_one_hop(self, dependency_map: DependencyMap) -> None:
        # user_* -> role_sheet_* is not followed from staff_data
        assert PrefixPattern("role_sheet_") not in dependency_map.dependents_of("staff_data")

    def test_prefix_source(self, dependency_map: DependencyMap) -> None:
        assert dependency_map.dependents_of("user_email:a@x.com") == [PrefixPattern("role_sheet_")]

    def test_empty_and_unknown(self, dependency_map: DependencyMap) -> None:
        assert dependency_map.dependents_of("role_sheet_role:Teacher") == []
        assert dependency_map.dependents_of("unknown") == []

    def test_exact_sources_first_without_duplicates(self) -> None:
        dm = DependencyMap.from_config({"a*": ["x", "y*"], "ab": ["y*", "z"]})
        assert dm.dependents_of("ab") == [PrefixPattern("y"), ExactPattern("z"), ExactPattern("x")]
