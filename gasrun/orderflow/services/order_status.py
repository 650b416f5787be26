"""Order status transitions.

``set_status`` does not check legality; the workflows only call it on edges
of the forward chain or on the cancel edge.
"""
from __future__ import annotations

import time
from typing import Callable, Dict, Optional

from orderflow.models.order import OrderStatus, TERMINAL_STATUSES
from orderflow.services.supabase_client import SupabaseClient
from orderflow.utils.logger import logger

STATUS_NEXT: Dict[OrderStatus, OrderStatus] = {
    OrderStatus.UNASSIGNED: OrderStatus.ASSIGNED,
    OrderStatus.ASSIGNED: OrderStatus.ACCEPTED,
    OrderStatus.ACCEPTED: OrderStatus.ENROUTE,
    OrderStatus.ENROUTE: OrderStatus.SERVICING,
    OrderStatus.SERVICING: OrderStatus.COMPLETE,
}


def next_status(status: OrderStatus | str) -> Optional[OrderStatus]:
    """Successor in the forward chain, ``None`` for complete and cancelled."""
    return STATUS_NEXT.get(OrderStatus(status))


def transition_allowed(current: OrderStatus | str, target: OrderStatus) -> bool:
    """Whether a caller may move an order from ``current`` to ``target``.

    Completion may happen from any open status; every other step must be the
    next one in the chain.
    """
    if target == OrderStatus.COMPLETE:
        return OrderStatus(current) not in TERMINAL_STATUSES
    return next_status(current) == target


class StatusAuthority:
    def __init__(self, supa: SupabaseClient, clock: Callable[[], float] = time.time) -> None:
        self._supa = supa
        self._clock = clock

    async def set_status(self, order_id: str, status: OrderStatus) -> None:
        await self._supa.set_order_status(order_id, status, int(self._clock()))
        logger.info("Order status changed", extra={"order_id": order_id, "status": status.value})
