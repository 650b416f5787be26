"""Event tracking via a Segment-compatible HTTP API."""
from __future__ import annotations

import os
from typing import Any, Dict

import httpx
from tenacity import retry, wait_exponential, stop_after_attempt, RetryError

from orderflow.models.order import Order
from orderflow.utils.formatting import cents_to_dollars, unix_to_datetime
from orderflow.utils.logger import logger
from orderflow.utils.zoning import order_market_id

ANALYTICS_URL = os.getenv("ANALYTICS_URL", "https://api.segment.io/v1")

_PASSTHROUGH_FIELDS = (
    "vehicle_id",
    "gallons",
    "gas_type",
    "lat",
    "lng",
    "address_street",
    "address_city",
    "address_state",
    "address_zip",
    "license_plate",
    "coupon_code",
    "referral_gallons_used",
    "tire_pressure_check",
)


def order_properties(order: Order) -> Dict[str, Any]:
    """Standard properties attached to every order event."""
    props: Dict[str, Any] = {field: getattr(order, field) for field in _PASSTHROUGH_FIELDS}
    start = unix_to_datetime(order.target_time_start)
    end = unix_to_datetime(order.target_time_end)
    props.update(
        order_id=order.id,
        gas_price=cents_to_dollars(order.gas_price),
        service_fee=cents_to_dollars(order.service_fee),
        total_price=cents_to_dollars(order.total_price),
        target_time_start=start.isoformat() if start else None,
        target_time_end=end.isoformat() if end else None,
        market_id=order_market_id(order),
    )
    return props


class EventTracker:
    def __init__(
        self,
        write_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._write_key = write_key or os.getenv("ANALYTICS_WRITE_KEY", "")
        self._base = (base_url or ANALYTICS_URL).rstrip("/")
        self._transport = transport

    @retry(wait=wait_exponential(multiplier=1, min=1, max=10), stop=stop_after_attempt(3))
    async def _post(self, payload: Dict[str, Any]) -> None:
        async with httpx.AsyncClient(timeout=10, transport=self._transport) as client:
            resp = await client.post(f"{self._base}/track", json=payload, auth=(self._write_key, ""))
            resp.raise_for_status()

    async def track(self, user_id: str, event: str, properties: Dict[str, Any]) -> bool:
        try:
            await self._post({"userId": user_id, "event": event, "properties": properties})
        except RetryError as exc:
            logger.warning("Failed to track event", extra={"event": event, "error": str(exc)})
            return False
        logger.debug("Tracked event", extra={"event": event, "user_id": user_id})
        return True
