"""
Unit tests for the location containment hierarchy.
"""

import pytest

from ..dataclasses import Location
from ..exceptions import ConfigurationError, NotFoundError, UnknownLocationError
from ..services.locations import LocationHierarchy


def ids(locations):
    return [location.id for location in locations]


class TestHierarchyConstruction:
    """Test building the hierarchy arena"""

    def test_rejects_duplicate_ids(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            LocationHierarchy([Location(1, "Everywhere"), Location(1, "Europe", 1)])

    def test_rejects_unknown_parent(self):
        with pytest.raises(ConfigurationError, match="unknown parent"):
            LocationHierarchy([Location(1, "Everywhere"), Location(2, "Europe", 42)])

    def test_rejects_cycles(self):
        with pytest.raises(ConfigurationError, match="Cycle"):
            LocationHierarchy([
                Location(1, "Everywhere"),
                Location(2, "A", 3),
                Location(3, "B", 2),
            ])

    def test_children_derived_from_parent_index(self, hierarchy):
        europe = hierarchy.find("Europe")
        names = {location.name for location in hierarchy.children_of(europe)}
        assert names == {"France", "Germany", "United Kingdom", "Turkey", "Greece"}

    def test_roots_and_depth(self, hierarchy):
        assert [location.name for location in hierarchy.roots()] == ["Everywhere"]
        assert hierarchy.depth(hierarchy.find("Everywhere")) == 0
        assert hierarchy.depth(hierarchy.find("Europe")) == 1
        assert hierarchy.depth(hierarchy.find("Paris")) == 3
        assert hierarchy.parent_of(hierarchy.find("Paris")).name == "France"
        assert hierarchy.parent_of(hierarchy.find("Everywhere")) is None

    def test_membership(self, hierarchy):
        assert hierarchy.find("Paris") in hierarchy
        assert Location(99, "Atlantis", 1) not in hierarchy
        assert len(hierarchy) == 10


class TestContainment:
    """Test containment queries"""

    @pytest.mark.parametrize("name", ["Everywhere", "Europe", "France", "Paris", "Russia"])
    def test_contains_itself(self, hierarchy, name):
        location = hierarchy.find(name)
        assert hierarchy.contains_location(location, location)

    @pytest.mark.parametrize("ancestor, candidate, expected", [
        ("Everywhere", "France", True),
        ("Europe", "Paris", True),
        ("Europe", "Australia", False),
        ("France", "Europe", False),
        ("Germany", "France", False),
    ])
    def test_contains_location(self, hierarchy, ancestor, candidate, expected):
        assert hierarchy.contains_location(hierarchy.find(ancestor), hierarchy.find(candidate)) is expected

    @pytest.mark.parametrize("name, expected_ids", [
        ("Everywhere", [1]),
        ("Europe", [1, 2]),
        ("France", [1, 2, 3]),
        ("Paris", [1, 2, 3, 10]),
    ])
    def test_locations_containing(self, hierarchy, name, expected_ids):
        assert ids(hierarchy.locations_containing(hierarchy.find(name))) == expected_ids

    def test_unknown_location(self, hierarchy):
        stranger = Location(99, "Atlantis", 1)
        with pytest.raises(UnknownLocationError):
            hierarchy.contains_location(hierarchy.find("Everywhere"), stranger)
        with pytest.raises(UnknownLocationError):
            hierarchy.locations_containing(stranger)
        with pytest.raises(UnknownLocationError):
            hierarchy.find("Atlantis")


class TestMostSpecificContaining:
    """Test picking the deepest containing location"""

    def test_picks_deepest(self, hierarchy):
        candidates = [hierarchy.find(name) for name in ("Everywhere", "Europe", "France")]
        assert hierarchy.most_specific_containing(candidates, hierarchy.find("France")).name == "France"

    def test_falls_back_to_ancestor(self, hierarchy):
        candidates = [hierarchy.find(name) for name in ("Everywhere", "Europe")]
        assert hierarchy.most_specific_containing(candidates, hierarchy.find("Germany")).name == "Europe"

    def test_input_order_does_not_matter(self, hierarchy):
        candidates = [hierarchy.find(name) for name in ("France", "Everywhere", "Europe")]
        assert hierarchy.most_specific_containing(candidates, hierarchy.find("Paris")).name == "France"

    def test_duplicate_candidates_are_deterministic(self, hierarchy):
        europe = hierarchy.find("Europe")
        result = hierarchy.most_specific_containing([europe, europe], hierarchy.find("Greece"))
        assert result is europe

    def test_not_found(self, hierarchy):
        candidates = [hierarchy.find(name) for name in ("Europe", "Australia")]
        with pytest.raises(NotFoundError):
            hierarchy.most_specific_containing(candidates, hierarchy.find("Russia"))

    def test_empty_candidates(self, hierarchy):
        with pytest.raises(NotFoundError):
            hierarchy.most_specific_containing([], hierarchy.find("France"))
