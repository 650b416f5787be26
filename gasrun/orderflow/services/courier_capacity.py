"""Courier capacity tracking.

The only writer of ``couriers.busy``. A courier is busy iff it is bound to at
least one order that is not complete or cancelled, so every write recomputes
the flag from the orders table instead of toggling it.
"""
from __future__ import annotations

from orderflow.services.supabase_client import SupabaseClient
from orderflow.utils.logger import logger


class CourierCapacity:
    def __init__(self, supa: SupabaseClient) -> None:
        self._supa = supa

    async def acquire(self, courier_id: str, order_id: str) -> None:
        # The order may not carry courier_id yet when this runs
        await self._supa.set_courier_busy(courier_id, True)
        logger.info("Courier acquired", extra={"courier_id": courier_id, "order_id": order_id})

    async def release(self, courier_id: str, order_id: str) -> bool:
        """Recompute busy after ``order_id`` stops holding the courier. Returns the new flag."""
        active = await self._supa.list_active_courier_orders(courier_id)
        busy = any(o.id != order_id for o in active)
        await self._supa.set_courier_busy(courier_id, busy)
        logger.info(
            "Courier released",
            extra={"courier_id": courier_id, "order_id": order_id, "busy": busy},
        )
        return busy
