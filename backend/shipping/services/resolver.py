"""
Shipping group resolution.

Selects the shipping groups of a shipping configuration that apply to a
destination, using the location hierarchy for containment and the FX
converter to compare prices in the reference currency.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..dataclasses import Location, Shipping, ShippingGroup, ShippingMethod
from ..exceptions import AmbiguousGroupMatchError
from .fx_service import FxConverter
from .locations import LocationHierarchy

logger = logging.getLogger(__name__)


class ShippingResolver:
    def __init__(self, hierarchy: LocationHierarchy, fx: FxConverter):
        self.hierarchy = hierarchy
        self.fx = fx

    def _specificity(self, group: ShippingGroup, location: Location) -> int:
        """Depth of the deepest bound location containing ``location``, -1 if none."""
        depths = [
            self.hierarchy.depth(bound)
            for bound in group.locations
            if self.hierarchy.contains_location(bound, location)
        ]
        return max(depths) if depths else -1

    def groups_in(self, shipping: Shipping, location: Location) -> List[ShippingGroup]:
        """All groups with a bound location containing ``location``, in declaration order."""
        location = self.hierarchy.get(location.id)
        return [group for group in shipping.groups if self._specificity(group, location) >= 0]

    def ships_to(self, shipping: Shipping, location: Location) -> bool:
        return bool(self.groups_in(shipping, location))

    def group_for(self, shipping: Shipping, location: Location, method: ShippingMethod) -> Optional[ShippingGroup]:
        """
        Group bound to ``method`` that applies to ``location``.

        When several groups for the method apply, the one bound at the most
        specific location wins. Two groups for the same method bound at that
        same location are a configuration error.

        Raises:
            AmbiguousGroupMatchError: If the most specific match is not unique
        """
        matches = [group for group in self.groups_in(shipping, location) if group.method.id == method.id]
        if not matches:
            logger.debug(f"No {method.name!r} group of shipping {shipping.id} applies to {location.name!r}")
            return None
        if len(matches) == 1:
            return matches[0]

        ranked = [(self._specificity(group, location), group) for group in matches]
        best_depth = max(depth for depth, _ in ranked)
        best = [group for depth, group in ranked if depth == best_depth]
        if len(best) > 1:
            raise AmbiguousGroupMatchError(
                f"Groups {[group.id for group in best]} of shipping {shipping.id} all bind "
                f"method {method.name!r} at the same location for {location.name!r}"
            )
        return best[0]

    def cheapest_group_in(self, shipping: Shipping, location: Location) -> Optional[ShippingGroup]:
        """Group with the lowest price in the reference currency; first declared wins ties."""
        groups = self.groups_in(shipping, location)
        if not groups:
            logger.debug(f"Shipping {shipping.id} has no groups for {location.name!r}")
            return None
        return min(groups, key=lambda group: self.fx.normalize(group.price))

    def methods_group_key(self, shipping: Shipping) -> str:
        """Sorted, comma-joined ids of the methods used by the configuration."""
        method_ids = {group.method.id for group in shipping.groups}
        return ",".join(str(method_id) for method_id in sorted(method_ids))

    def methods_for(self, shipping: Shipping, location: Location) -> List[ShippingMethod]:
        methods: Dict[int, ShippingMethod] = {}
        for group in self.groups_in(shipping, location):
            methods.setdefault(group.method.id, group.method)
        return list(methods.values())

    def locations_containing(self, shipping: Shipping, location: Location) -> List[Location]:
        return self.hierarchy.locations_containing(location)

    def most_specific_location_containing(self, shipping: Shipping, location: Location) -> Location:
        """
        Deepest location bound by any group of ``shipping`` that contains ``location``.

        Raises:
            NotFoundError: If no bound location contains ``location``
        """
        bound: Dict[int, Location] = {}
        for group in shipping.groups:
            for candidate in group.locations:
                bound.setdefault(candidate.id, candidate)
        return self.hierarchy.most_specific_containing(bound.values(), location)

    def most_specific_groups_in(self, shipping: Shipping, location: Location) -> List[ShippingGroup]:
        """Groups bound at the most specific location containing ``location``."""
        if not self.ships_to(shipping, location):
            return []
        specific = self.most_specific_location_containing(shipping, location)
        return [group for group in shipping.groups if group.is_bound_to(specific)]
