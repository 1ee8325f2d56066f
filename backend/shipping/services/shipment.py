from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Union

from ..dataclasses import (
    DateRange, DeliveryTimeRange, Location, Money, PurchaseContext,
    PurchaseItem, Shipping, ShippingLineItem, ShippingMethod,
)
from ..exceptions import MissingShipToError
from . import delivery_time, pricing
from .fx_service import FxConverter
from .resolver import ShippingResolver

logger = logging.getLogger(__name__)


@dataclass
class PurchaseShipping:
    """
    Shipping part of a store purchase.

    Holds one shipping line item per purchased item and prices them as a
    whole. Acts as the Sellable behind the purchase's shipping item.
    """
    context: PurchaseContext
    resolver: ShippingResolver
    items: List[ShippingLineItem] = field(default_factory=list)
    id: Optional[int] = None
    is_eligible_for_discount_filtering: Optional[pricing.DiscountPredicate] = None

    def name(self) -> str:
        return "Shipping"

    # -- purchase context ----------------------------------------------------

    def currency(self) -> str:
        return self.context.currency

    def total_purchase_price(self) -> Optional[Money]:
        return self.context.total_purchase_price

    def paid_at(self) -> Optional[Union[date, str]]:
        return self.context.paid_at

    def ship_to(self) -> Location:
        if self.context.ship_to is None:
            raise MissingShipToError(f"Shipment {self.id} has no ship-to location")
        return self.context.ship_to

    def monetary(self) -> FxConverter:
        return self.resolver.fx

    # -- Sellable --------------------------------------------------------------

    def price_for_purchase_item(self, purchase_item: PurchaseItem) -> Money:
        return self.total_price()

    # -- items ---------------------------------------------------------------

    def available_items(self) -> List[ShippingLineItem]:
        return pricing.available_items(self.items)

    def items_from(self, purchase_items: Iterable[PurchaseItem]) -> List[ShippingLineItem]:
        """Line items belonging to any of ``purchase_items``."""
        ids = {purchase_item.id for purchase_item in purchase_items}
        return [item for item in self.items if item.purchase_item is not None and item.purchase_item.id in ids]

    def new_item_from(
        self,
        purchase_item: PurchaseItem,
        location: Location,
        method: Optional[ShippingMethod] = None,
    ) -> ShippingLineItem:
        """Build a line item for ``purchase_item`` resolved against ``location``."""
        shipping: Optional[Shipping] = getattr(purchase_item.reference, "shipping", None)
        group = None
        if shipping is None:
            logger.warning(f"Purchase item {purchase_item.id} has no shipping configuration to resolve")
        else:
            if method is not None:
                group = self.resolver.group_for(shipping, location, method)
            else:
                group = self.resolver.cheapest_group_in(shipping, location)
            if group is None:
                logger.warning(f"Purchase item {purchase_item.id} cannot be shipped to {location.name!r}")

        return ShippingLineItem(
            purchase_item=purchase_item,
            shipping_group=group,
            shipping=shipping,
            is_discounted=purchase_item.is_discounted,
            location=location,
        )

    def new_items_from(
        self,
        purchase_items: Iterable[PurchaseItem],
        location: Location,
        method: Optional[ShippingMethod] = None,
    ) -> List[ShippingLineItem]:
        return [self.new_item_from(purchase_item, location, method) for purchase_item in purchase_items]

    def build_item_from(self, purchase_item: PurchaseItem, method: Optional[ShippingMethod] = None) -> "PurchaseShipping":
        self.items.append(self.new_item_from(purchase_item, self.ship_to(), method))
        return self

    def build_items_from(self, purchase_items: Iterable[PurchaseItem], method: Optional[ShippingMethod] = None) -> "PurchaseShipping":
        self.items = self.new_items_from(purchase_items, self.ship_to(), method)
        return self

    def update_items_location(self, location: Location) -> int:
        """
        Re-resolve the cheapest group of every item not already resolved for
        ``location``. Returns the number of items that were re-resolved.
        """
        changed = 0
        for item in self.items:
            if not self._needs_location_update(item, location):
                continue
            shipping = item.shipping
            if shipping is None and item.purchase_item is not None:
                shipping = getattr(item.purchase_item.reference, "shipping", None)
            if shipping is None:
                logger.warning(f"Shipping item {item.id} has no shipping configuration to resolve")
                continue
            item.shipping = shipping
            item.shipping_group = self.resolver.cheapest_group_in(shipping, location)
            item.location = location
            changed += 1

        logger.debug(f"Re-resolved {changed} of {len(self.items)} shipping items for {location.name!r}")
        return changed

    @staticmethod
    def _needs_location_update(item: ShippingLineItem, location: Location) -> bool:
        if item.location is not None:
            return item.location.id != location.id
        if item.shipping_group is None:
            return True
        return not item.shipping_group.is_bound_to(location)

    # -- pricing -------------------------------------------------------------

    def compute_price(self, items: Iterable[ShippingLineItem]) -> Money:
        return pricing.compute_price(
            items,
            self.total_purchase_price(),
            self.monetary(),
            currency=self.currency(),
            is_eligible_for_discount_filtering=self.is_eligible_for_discount_filtering,
        )

    def compute_price_from(self, purchase_items: Iterable[PurchaseItem], method: ShippingMethod) -> Money:
        """Price ``purchase_items`` shipped by ``method`` without changing this shipment."""
        items = self.new_items_from(purchase_items, self.ship_to(), method)
        return self.compute_price(pricing.available_items(items))

    def total_price(self) -> Money:
        return self.compute_price(self.available_items())

    # -- delivery ------------------------------------------------------------

    def total_delivery_time(self) -> DeliveryTimeRange:
        return delivery_time.total_delivery_time(self.available_items())

    def total_shipping_date(self, business_days: bool = False) -> DateRange:
        return delivery_time.total_shipping_date(self.paid_at(), self.total_delivery_time(), business_days)
