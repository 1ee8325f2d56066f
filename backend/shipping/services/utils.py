from __future__ import annotations

from decimal import Decimal

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))
