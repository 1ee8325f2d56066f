"""
Location containment hierarchy.

Locations are stored in an arena keyed by id. Each location keeps only its
parent id; children are derived from a parent index built once at
construction. The hierarchy is immutable after it is built.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Union

from ..dataclasses import Location
from ..exceptions import ConfigurationError, NotFoundError, UnknownLocationError

logger = logging.getLogger(__name__)


class LocationHierarchy:
    def __init__(self, locations: Iterable[Location]):
        self._by_id: Dict[int, Location] = {}
        for location in locations:
            if location.id in self._by_id:
                raise ConfigurationError(f"Duplicate location id: {location.id}")
            self._by_id[location.id] = location

        self._children: Dict[Optional[int], List[int]] = {}
        for location in self._by_id.values():
            if location.parent_id is not None and location.parent_id not in self._by_id:
                raise ConfigurationError(
                    f"Location {location.name!r} references unknown parent {location.parent_id}"
                )
            self._children.setdefault(location.parent_id, []).append(location.id)

        self._depths: Dict[int, int] = {}
        for location_id in self._by_id:
            self._depths[location_id] = self._compute_depth(location_id)

        logger.debug(f"Built location hierarchy with {len(self._by_id)} locations")

    def _compute_depth(self, location_id: int) -> int:
        seen = set()
        depth = 0
        current = self._by_id[location_id].parent_id
        while current is not None:
            if current in seen or current == location_id:
                raise ConfigurationError(f"Cycle in location hierarchy at location {location_id}")
            seen.add(current)
            depth += 1
            current = self._by_id[current].parent_id
        return depth

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Location]:
        return iter(self._by_id.values())

    def __contains__(self, location: Location) -> bool:
        return location.id in self._by_id

    def get(self, location_id: int) -> Location:
        try:
            return self._by_id[location_id]
        except KeyError:
            raise UnknownLocationError(f"Unknown location id: {location_id}")

    def find(self, name: str) -> Location:
        for location in self._by_id.values():
            if location.name == name:
                return location
        raise UnknownLocationError(f"Unknown location: {name!r}")

    def _require(self, location: Union[Location, int]) -> Location:
        location_id = location if isinstance(location, int) else location.id
        return self.get(location_id)

    def parent_of(self, location: Location) -> Optional[Location]:
        parent_id = self._require(location).parent_id
        return self._by_id[parent_id] if parent_id is not None else None

    def children_of(self, location: Location) -> List[Location]:
        location = self._require(location)
        return [self._by_id[child_id] for child_id in self._children.get(location.id, [])]

    def roots(self) -> List[Location]:
        return [self._by_id[root_id] for root_id in self._children.get(None, [])]

    def depth(self, location: Location) -> int:
        """Number of ancestors; a root has depth 0."""
        return self._depths[self._require(location).id]

    def contains_location(self, ancestor: Location, candidate: Location) -> bool:
        """True if ``candidate`` is ``ancestor`` or one of its descendants."""
        ancestor = self._require(ancestor)
        current: Optional[int] = self._require(candidate).id
        while current is not None:
            if current == ancestor.id:
                return True
            current = self._by_id[current].parent_id
        return False

    def locations_containing(self, location: Location) -> List[Location]:
        """Path from the root down to ``location`` inclusive."""
        path: List[Location] = []
        current: Optional[Location] = self._require(location)
        while current is not None:
            path.append(current)
            current = self._by_id[current.parent_id] if current.parent_id is not None else None
        path.reverse()
        return path

    def most_specific_containing(self, candidates: Iterable[Location], target: Location) -> Location:
        """
        Deepest candidate containing ``target``.

        Locations containing a target form a single chain, so two containing
        candidates of equal depth are the same location; the first one in input
        order is returned.

        Raises:
            UnknownLocationError: If the target or a candidate is not in the hierarchy
            NotFoundError: If no candidate contains the target
        """
        target = self._require(target)
        best: Optional[Location] = None
        best_depth = -1
        for candidate in candidates:
            candidate = self._require(candidate)
            if not self.contains_location(candidate, target):
                continue
            depth = self._depths[candidate.id]
            if depth > best_depth:
                best, best_depth = candidate, depth

        if best is None:
            raise NotFoundError(f"No candidate location contains {target.name!r}")
        return best
