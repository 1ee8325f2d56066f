from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

import requests

from .. import conf
from ..dataclasses import Money
from ..exceptions import FxRateError
from .utils import TWOPLACES, ZERO, d

logger = logging.getLogger(__name__)


class FxConverter:
    """
    Converts money between currencies using a static table of mid rates.

    The table maps base -> quote -> rate (quote units per base unit). When only
    the reverse pair is configured its reciprocal is used; pairs with neither
    direction configured are crossed through the reference currency.
    """

    def __init__(self, mid_rates: Optional[Dict[str, Dict[str, Any]]] = None, reference_currency: str = "GBP"):
        self.reference_currency = reference_currency.upper()
        self.table: Dict[str, Dict[str, Decimal]] = {}
        for base, quotes in (mid_rates or {}).items():
            for quote, rate in quotes.items():
                self.table.setdefault(base.upper(), {})[quote.upper()] = d(rate)

    @classmethod
    def from_settings(cls) -> "FxConverter":
        mid_rates = {base: dict(quotes) for base, quotes in conf.fx_mid_rates().items()}
        url = conf.fx_rates_url()
        if url:
            for base, quotes in fetch_mid_rates(url, conf.fx_rates_timeout()).items():
                mid_rates.setdefault(base, {}).update(quotes)
        return cls(mid_rates, conf.reference_currency())

    def _direct_rate(self, base: str, quote: str) -> Optional[Decimal]:
        if self.table.get(base, {}).get(quote) is not None:
            return self.table[base][quote]
        reverse = self.table.get(quote, {}).get(base)
        if reverse:
            # Use reciprocal if only reverse is provided
            return Decimal(1) / reverse
        return None

    def rate(self, base_ccy: str, quote_ccy: str) -> Decimal:
        base_ccy = base_ccy.upper()
        quote_ccy = quote_ccy.upper()

        if base_ccy == quote_ccy:
            return Decimal("1.0")

        direct = self._direct_rate(base_ccy, quote_ccy)
        if direct is not None:
            return direct

        ref = self.reference_currency
        if ref not in (base_ccy, quote_ccy):
            to_ref = self._direct_rate(base_ccy, ref)
            from_ref = self._direct_rate(ref, quote_ccy)
            if to_ref is not None and from_ref is not None:
                logger.debug(f"Crossing {base_ccy}->{quote_ccy} through {ref}")
                return to_ref * from_ref

        raise FxRateError(f"No FX rate configured for {base_ccy}->{quote_ccy}")

    def convert(self, money: Money, to_ccy: str) -> Money:
        if money.currency == to_ccy.upper():
            return money
        fx_rate = self.rate(money.currency, to_ccy)
        return Money((money.amount * fx_rate).quantize(TWOPLACES), to_ccy)

    def normalize(self, money: Money) -> Decimal:
        """Amount of ``money`` expressed in the reference currency."""
        return self.convert(money, self.reference_currency).amount


def sum_money(items: Iterable[Money], to_ccy: str, fx: FxConverter) -> Money:
    total = ZERO
    for m in items:
        total += fx.convert(m, to_ccy).amount
    return Money(total.quantize(TWOPLACES), to_ccy)


def fetch_mid_rates(url: str, timeout: int = 15) -> Dict[str, Dict[str, Any]]:
    """
    Fetch a mid rate table (base -> quote -> rate) served as JSON.

    Raises:
        FxRateError: If the endpoint cannot be reached or does not return a table
    """
    headers = {"Accept": "application/json"}
    try:
        resp = requests.get(url, headers=headers, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FxRateError(f"Error fetching FX rates from {url}: {e}")

    try:
        table = resp.json()
    except ValueError as e:
        raise FxRateError(f"Invalid FX rate JSON from {url}: {e}")

    if not isinstance(table, dict) or not all(isinstance(quotes, dict) for quotes in table.values()):
        raise FxRateError(f"FX rate table from {url} must map base currencies to quote rates")

    logger.info(f"Fetched FX rates for {len(table)} base currencies from {url}")
    return table
