"""Market lookup by ZIP code.

Markets are configured as a JSON object mapping a ZIP prefix to a market id,
e.g. ``MARKET_ZIP_PREFIXES='{"900": 0, "941": 1}'``. The longest matching
prefix wins.
"""
from __future__ import annotations

import json
import os
from typing import Dict, Optional

from orderflow.models.order import Order


def _load_markets() -> Dict[str, int]:
    raw = os.getenv("MARKET_ZIP_PREFIXES", "{}")
    return {str(k): int(v) for k, v in json.loads(raw).items()}


MARKETS = _load_markets()


def zip_to_market_id(zip_code: str | None, markets: Optional[Dict[str, int]] = None) -> Optional[int]:
    if not zip_code:
        return None
    table = MARKETS if markets is None else markets
    for prefix in sorted(table, key=len, reverse=True):
        if zip_code.startswith(prefix):
            return table[prefix]
    return None


def order_market_id(order: Order, markets: Optional[Dict[str, int]] = None) -> Optional[int]:
    return zip_to_market_id(order.address_zip, markets)
