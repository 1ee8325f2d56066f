from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from django.utils.dateparse import parse_date

from ..dataclasses import DateRange, DeliveryTimeRange, Location, Shipping, ShippingLineItem
from ..exceptions import EmptyRangeSetError, MissingPaidDateError, ValidationError
from .resolver import ShippingResolver


def merge_ranges(ranges: Iterable[DeliveryTimeRange]) -> DeliveryTimeRange:
    """Merge ranges by taking the largest min and the largest max."""
    ranges = list(ranges)
    if not ranges:
        raise EmptyRangeSetError("Cannot merge an empty set of delivery time ranges")
    return DeliveryTimeRange(
        min=max(r.min for r in ranges),
        max=max(r.max for r in ranges),
    )


def delivery_time_for(resolver: ShippingResolver, shipping: Shipping, location: Location) -> Optional[DeliveryTimeRange]:
    groups = resolver.groups_in(shipping, location)
    if not groups:
        return None
    return merge_ranges(group.delivery_time for group in groups)


def total_delivery_time_for(resolver: ShippingResolver, shipping: Shipping, location: Location) -> Optional[DeliveryTimeRange]:
    """Delivery time for ``location`` plus the configuration's processing time."""
    delivery_time = delivery_time_for(resolver, shipping, location)
    if delivery_time is None:
        return None
    return shipping.processing_time + delivery_time


def total_delivery_time(items: Iterable[ShippingLineItem]) -> DeliveryTimeRange:
    """Merge of each line item's own processing plus delivery time."""
    return merge_ranges(item.total_delivery_time for item in items)


def _coerce_date(value: Union[date, datetime, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = parse_date(value)
    except ValueError as e:
        raise ValidationError(f"Invalid paid date {value!r}: {e}")
    if parsed is None:
        raise ValidationError(f"Invalid paid date: {value!r}")
    return parsed


def _add_weekdays(start: date, days: int) -> date:
    current = start
    added = 0
    while added < days:
        current += timedelta(days=1)
        if current.weekday() < 5:
            added += 1
    return current


def total_shipping_date(
    paid_at: Optional[Union[date, datetime, str]],
    delivery_time: DeliveryTimeRange,
    business_days: bool = False,
) -> DateRange:
    """
    Project a delivery time range onto dates counted from ``paid_at``.

    Days are calendar days unless ``business_days`` is set, in which case
    Saturdays and Sundays are skipped.
    """
    if not paid_at:
        raise MissingPaidDateError("Cannot project shipping dates without a paid date")
    paid = _coerce_date(paid_at)
    if business_days:
        return DateRange(
            start=_add_weekdays(paid, delivery_time.min),
            end=_add_weekdays(paid, delivery_time.max),
        )
    return DateRange(
        start=paid + timedelta(days=delivery_time.min),
        end=paid + timedelta(days=delivery_time.max),
    )


def format_shipping_time(delivery_time: DeliveryTimeRange) -> str:
    """Human readable range, e.g. "3 - 10 days"."""
    if delivery_time.min == delivery_time.max:
        unit = "day" if delivery_time.min == 1 else "days"
        return f"{delivery_time.min} {unit}"
    return f"{delivery_time.min} - {delivery_time.max} days"
