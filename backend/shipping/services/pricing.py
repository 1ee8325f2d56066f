"""
Shipping price aggregation.

Line items are priced in groups that ship together (same method and origin).
Within a group only one unit is charged the full group price; every other
unit is charged the additional item price. Discounted items are left out
when the purchase total qualifies for discount filtering.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

from .. import conf
from ..dataclasses import Money, ShippingLineItem
from ..exceptions import CurrencyMismatchError, MissingPurchaseTotalError
from .fx_service import FxConverter, sum_money
from .utils import TWOPLACES, ZERO

logger = logging.getLogger(__name__)

DiscountPredicate = Callable[[Money], bool]


def available_items(items: Iterable[ShippingLineItem]) -> List[ShippingLineItem]:
    """Items with both a resolved shipping group and a purchase item."""
    return [item for item in items if item.shipping_group is not None and item.purchase_item is not None]


def threshold_predicate(threshold: Optional[Money], fx: FxConverter) -> DiscountPredicate:
    """Eligible when the purchase total reaches ``threshold``; always eligible without one."""
    def is_eligible(total: Money) -> bool:
        if threshold is None:
            return True
        return total.amount >= fx.convert(threshold, total.currency).amount

    return is_eligible


def default_discount_predicate(fx: FxConverter) -> DiscountPredicate:
    return threshold_predicate(conf.discount_threshold(), fx)


def filter_discounted_items(
    items: Iterable[ShippingLineItem],
    total: Money,
    is_eligible_for_discount_filtering: DiscountPredicate,
) -> List[ShippingLineItem]:
    items = list(items)
    if not is_eligible_for_discount_filtering(total):
        return items
    kept = [item for item in items if not item.is_discounted]
    if len(kept) != len(items):
        logger.debug(f"Excluded {len(items) - len(kept)} discounted shipping items")
    return kept


def group_by_key(items: Iterable[ShippingLineItem]) -> Dict[str, List[ShippingLineItem]]:
    groups: Dict[str, List[ShippingLineItem]] = {}
    for item in items:
        groups.setdefault(item.group_key, []).append(item)
    return groups


def _group_currency(items: List[ShippingLineItem]) -> str:
    currencies = {item.price.currency for item in items}
    currencies.update(item.additional_item_price.currency for item in items)
    if len(currencies) > 1:
        raise CurrencyMismatchError(
            f"Shipping items of group {items[0].group_key!r} mix currencies: {sorted(currencies)}"
        )
    return currencies.pop()


def relative_prices(items: List[ShippingLineItem]) -> List[Money]:
    """
    Price of each item relative to the rest of its group.

    Items are ordered by unit price, highest first (stable, so input order
    breaks ties). The first of them pays the full price for its first unit.
    All its other units, and every unit of the remaining items, pay the
    additional item price.

    Raises:
        CurrencyMismatchError: If the items are not priced in one currency
    """
    if not items:
        return []
    _group_currency(items)

    billable = [item for item in items if item.quantity > 0]
    ordered = sorted(billable, key=lambda item: item.price.amount, reverse=True)

    prices: List[Money] = []
    for position, item in enumerate(ordered):
        if position == 0:
            prices.append(Money(
                item.price.amount + item.additional_item_price.amount * (item.quantity - 1),
                item.price.currency,
            ))
        else:
            prices.append(item.additional_item_price.times(item.quantity))
    return prices


def sum_group(prices: List[Money], currency: str) -> Money:
    """Add same-currency prices."""
    total = ZERO
    for price in prices:
        if price.currency != currency:
            raise CurrencyMismatchError(f"Cannot add {price.currency} to {currency}")
        total += price.amount
    return Money(total, currency)


def compute_price(
    items: Iterable[ShippingLineItem],
    total_purchase_price: Optional[Money],
    fx: FxConverter,
    currency: Optional[str] = None,
    is_eligible_for_discount_filtering: Optional[DiscountPredicate] = None,
) -> Money:
    """
    Aggregate shipping price of ``items`` in ``currency``.

    Args:
        items: Shipping line items to price; they are not modified
        total_purchase_price: Total of the payable purchase items
        fx: Converter used to bring group totals into ``currency``
        currency: Target currency, defaults to the purchase total's currency
        is_eligible_for_discount_filtering: Predicate over the purchase total

    Raises:
        MissingPurchaseTotalError: If ``total_purchase_price`` is not available
        CurrencyMismatchError: If a group mixes currencies
    """
    if total_purchase_price is None:
        raise MissingPurchaseTotalError("Shipping price requires the total purchase price")

    target = (currency or total_purchase_price.currency).upper()
    predicate = is_eligible_for_discount_filtering or default_discount_predicate(fx)

    items = filter_discounted_items(items, total_purchase_price, predicate)
    groups = group_by_key(items)

    group_totals: List[Money] = []
    for grouped_items in groups.values():
        # relative_prices has checked the group is priced in one currency
        group_currency = grouped_items[0].price.currency
        group_totals.append(sum_group(relative_prices(grouped_items), group_currency))

    if not group_totals:
        return Money(ZERO.quantize(TWOPLACES), target)

    total = sum_money(group_totals, target, fx)
    logger.debug(f"Priced {len(items)} shipping items in {len(groups)} groups at {total.amount} {target}")
    return total
