from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from .. import conf
from ..dataclasses import ShipmentQuote
from ..exceptions import EmptyRangeSetError, MissingPaidDateError, ShippingError
from .shipment import PurchaseShipping

logger = logging.getLogger(__name__)


def quote_shipment(shipment: PurchaseShipping) -> ShipmentQuote:
    """
    Price and schedule a single shipment.

    Missing delivery data leaves the quote incomplete with a reason; pricing
    errors propagate.
    """
    reasons: List[str] = []

    price = shipment.total_price()

    unresolved = len(shipment.items) - len(shipment.available_items())
    if unresolved:
        reasons.append(f"{unresolved} shipping item(s) have no applicable shipping group")

    delivery_time = None
    shipping_date = None
    try:
        delivery_time = shipment.total_delivery_time()
    except EmptyRangeSetError:
        reasons.append("No delivery time available")

    if delivery_time is not None:
        try:
            shipping_date = shipment.total_shipping_date()
        except MissingPaidDateError:
            reasons.append("Purchase not paid; shipping dates unavailable")

    return ShipmentQuote(
        shipment_id=shipment.id,
        currency=price.currency,
        price=price,
        delivery_time=delivery_time,
        shipping_date=shipping_date,
        is_incomplete=bool(reasons),
        reasons=reasons,
    )


def _quote_or_failure(shipment: PurchaseShipping) -> ShipmentQuote:
    try:
        return quote_shipment(shipment)
    except ShippingError as e:
        logger.error(f"Error quoting shipment {shipment.id}: {e}")
        return ShipmentQuote(
            shipment_id=shipment.id,
            currency=shipment.currency(),
            is_incomplete=True,
            reasons=[str(e)],
        )


def quote_shipments(shipments: Iterable[PurchaseShipping], max_workers: Optional[int] = None) -> List[ShipmentQuote]:
    """
    Quote many shipments. A failing shipment yields an incomplete quote and
    does not affect the others. Results keep the input order.
    """
    shipments = list(shipments)
    workers = max_workers or conf.quote_max_workers()

    if workers <= 1 or len(shipments) <= 1:
        quotes = [_quote_or_failure(shipment) for shipment in shipments]
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            quotes = list(pool.map(_quote_or_failure, shipments))

    failed = sum(1 for quote in quotes if quote.price is None)
    logger.info(f"Quoted {len(quotes)} shipments ({failed} failed)")
    return quotes
