from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Protocol, Tuple, Union, runtime_checkable

from .services.utils import d


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: str

    def __post_init__(self):
        object.__setattr__(self, "amount", d(self.amount))
        object.__setattr__(self, "currency", self.currency.upper())

    def times(self, factor) -> "Money":
        return Money(self.amount * d(factor), self.currency)


@dataclass(frozen=True)
class DeliveryTimeRange:
    """Delivery time in whole days. Bounds are kept as supplied."""
    min: int
    max: int

    def __add__(self, other: "DeliveryTimeRange") -> "DeliveryTimeRange":
        if not isinstance(other, DeliveryTimeRange):
            return NotImplemented
        return DeliveryTimeRange(self.min + other.min, self.max + other.max)

    def as_tuple(self) -> Tuple[int, int]:
        return (self.min, self.max)


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


@dataclass(frozen=True)
class Location:
    id: int
    name: str
    parent_id: Optional[int] = None
    kind: str = "country"  # everywhere | continent | country | region


@dataclass(frozen=True)
class ShippingMethod:
    id: int
    name: str


@dataclass(frozen=True)
class ShippingGroup:
    id: int
    method: ShippingMethod
    locations: Tuple[Location, ...]
    price: Money
    delivery_time: DeliveryTimeRange
    additional_item_price: Optional[Money] = None

    def is_bound_to(self, location: Location) -> bool:
        return any(loc.id == location.id for loc in self.locations)


@dataclass(frozen=True)
class Shipping:
    """Shipping configuration of a shippable entity."""
    id: int
    groups: Tuple[ShippingGroup, ...] = ()
    processing_time: DeliveryTimeRange = DeliveryTimeRange(0, 0)
    ships_from: Optional[Location] = None
    currency: str = "GBP"


@runtime_checkable
class Sellable(Protocol):
    def price_for_purchase_item(self, purchase_item: "PurchaseItem") -> Money:
        ...


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: Money
    shipping: Optional[Shipping] = None

    def price_for_purchase_item(self, purchase_item: "PurchaseItem") -> Money:
        return self.price


@dataclass
class PurchaseItem:
    id: Optional[int]
    reference: Any  # Sellable
    quantity: int = 1
    is_payable: bool = True
    is_discounted: bool = False

    @property
    def price(self) -> Money:
        return self.reference.price_for_purchase_item(self)

    @property
    def total_price(self) -> Money:
        return self.price.times(self.quantity)


@dataclass
class ShippingLineItem:
    id: Optional[int] = None
    purchase_item: Optional[PurchaseItem] = None
    shipping_group: Optional[ShippingGroup] = None
    shipping: Optional[Shipping] = None
    is_discounted: bool = False
    # Destination the group was last resolved for
    location: Optional[Location] = None

    @property
    def price(self) -> Money:
        return self.shipping_group.price

    @property
    def additional_item_price(self) -> Money:
        return self.shipping_group.additional_item_price or self.shipping_group.price

    @property
    def quantity(self) -> int:
        return self.purchase_item.quantity if self.purchase_item else 1

    @property
    def group_key(self) -> Optional[str]:
        """Method id plus shipping origin; items sharing it ship together."""
        if self.shipping_group is None:
            return None
        ships_from = self.shipping.ships_from if self.shipping else None
        origin = ships_from.id if ships_from else ""
        return f"{self.shipping_group.method.id}-{origin}"

    @property
    def total_delivery_time(self) -> DeliveryTimeRange:
        processing = self.shipping.processing_time if self.shipping else DeliveryTimeRange(0, 0)
        return processing + self.shipping_group.delivery_time


@dataclass
class PurchaseContext:
    """Purchase-side values a shipment is priced against."""
    currency: str
    total_purchase_price: Optional[Money] = None
    paid_at: Optional[Union[date, str]] = None
    ship_to: Optional[Location] = None


@dataclass
class ShipmentQuote:
    shipment_id: Optional[int]
    currency: str
    price: Optional[Money] = None
    delivery_time: Optional[DeliveryTimeRange] = None
    shipping_date: Optional[DateRange] = None
    is_incomplete: bool = False
    reasons: List[str] = field(default_factory=list)
