"""
Engine settings.

Values come from the ``SHIPPING`` dict in Django settings, merged over the
defaults below. ``FX_MID_RATES`` may also be supplied as JSON through the
environment variable of the same name, e.g.

    FX_MID_RATES='{"USD": {"GBP": 0.75}, "EUR": {"GBP": 0.85}}'
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from django.conf import settings

from .dataclasses import Money

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "REFERENCE_CURRENCY": "GBP",
    # {"amount": "100.00", "currency": "GBP"}; None means always eligible
    "DISCOUNT_THRESHOLD": None,
    "FX_MID_RATES": {},
    "REFERENCE_DATA_PATH": None,
    # JSON endpoint serving a mid rate table; merged over FX_MID_RATES
    "FX_RATES_URL": None,
    "FX_RATES_TIMEOUT": 15,
    "QUOTE_MAX_WORKERS": 1,
}


def _env_mid_rates() -> Dict[str, Dict[str, Any]]:
    blob = os.environ.get("FX_MID_RATES")
    if not blob:
        return {}
    try:
        table = json.loads(blob)
    except json.JSONDecodeError:
        logger.exception("Invalid FX_MID_RATES JSON; ignoring environment rates")
        return {}
    if not isinstance(table, dict):
        logger.warning("FX_MID_RATES must be a JSON object; ignoring environment rates")
        return {}
    return table


def get_engine_settings() -> Dict[str, Any]:
    """Return engine settings with defaults, environment and Django settings applied."""
    merged = dict(DEFAULTS)

    env_rates = _env_mid_rates()
    if env_rates:
        merged["FX_MID_RATES"] = env_rates

    user_settings = getattr(settings, "SHIPPING", None) if settings.configured else None
    if user_settings:
        unknown = set(user_settings) - set(DEFAULTS)
        if unknown:
            logger.warning(f"Ignoring unknown SHIPPING settings: {sorted(unknown)}")
        merged.update({k: v for k, v in user_settings.items() if k in DEFAULTS})

    return merged


def reference_currency() -> str:
    return get_engine_settings()["REFERENCE_CURRENCY"].upper()


def discount_threshold() -> Optional[Money]:
    raw = get_engine_settings()["DISCOUNT_THRESHOLD"]
    if raw is None:
        return None
    if isinstance(raw, Money):
        return raw
    return Money(raw["amount"], raw["currency"])


def fx_mid_rates() -> Dict[str, Dict[str, Any]]:
    return get_engine_settings()["FX_MID_RATES"]


def fx_rates_url() -> Optional[str]:
    return get_engine_settings()["FX_RATES_URL"]


def fx_rates_timeout() -> int:
    return int(get_engine_settings()["FX_RATES_TIMEOUT"])


def reference_data_path() -> Optional[str]:
    return get_engine_settings()["REFERENCE_DATA_PATH"]


def quote_max_workers() -> int:
    return int(get_engine_settings()["QUOTE_MAX_WORKERS"] or 1)
