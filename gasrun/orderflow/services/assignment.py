"""Courier assignment and the courier-driven status steps."""
from __future__ import annotations

from typing import Any, Dict, Optional

from orderflow.models.order import Order, OrderStatus, TERMINAL_STATUSES
from orderflow.services.cancellation import NOT_FOUND_MESSAGE
from orderflow.services.courier_capacity import CourierCapacity
from orderflow.services.notifier import Notifier
from orderflow.services.order_status import StatusAuthority
from orderflow.services.supabase_client import SupabaseClient
from orderflow.utils.formatting import cents_to_dollars_str, unix_to_full
from orderflow.utils.logger import logger

ASSIGNED_TEXT = "You have been assigned a new order."
ENROUTE_TEXT = (
    "A courier is enroute to your location. Please ensure that your"
    " fueling door is open."
)
SERVICING_TEXT = "We are currently servicing your vehicle."
CLOSED_MESSAGE = "This order is already complete or cancelled."


class AssignmentCoordinator:
    def __init__(
        self,
        supa: SupabaseClient,
        status: StatusAuthority,
        capacity: CourierCapacity,
        notifier: Notifier,
    ) -> None:
        self._supa = supa
        self._status = status
        self._capacity = capacity
        self._notifier = notifier

    async def new_order_text(self, order: Order, charge_authorized: bool = True) -> str:
        """SMS summary sent to the courier on assignment."""
        lines = ["New order:"]
        lines.append("Charge Authorized." if charge_authorized else "!CHARGE FAILED TO AUTHORIZE!")
        unpaid = await self._supa.unpaid_balance(order.user_id)
        if unpaid > 0:
            lines.append(f"!UNPAID BALANCE: ${cents_to_dollars_str(unpaid)}")
        lines.append(f"Due: {unix_to_full(order.target_time_end)}")
        lines.append(f"{order.address_street}, {order.address_zip}")
        lines.append(f"{order.gallons:g} Gallons of {order.gas_type}")
        return "\n".join(lines)

    async def assign(
        self, order_id: str, courier_id: str, no_reassign: bool = False
    ) -> Optional[Dict[str, Any]]:
        """Bind a courier to an order.

        With ``no_reassign`` an order that already left ``unassigned`` is
        left alone and ``None`` is returned; that is not an error.
        """
        order = await self._supa.get_order(order_id)
        if order is None:
            return {"success": False, "message": NOT_FOUND_MESSAGE}
        if no_reassign and order.status != OrderStatus.UNASSIGNED:
            logger.info(
                "Skipping reassignment",
                extra={"order_id": order_id, "status": order.status.value},
            )
            return None
        if order.status in TERMINAL_STATUSES:
            return {"success": False, "message": CLOSED_MESSAGE}

        await self._status.set_status(order_id, OrderStatus.ASSIGNED)
        await self._supa.update_order(order_id, {"courier_id": courier_id})
        await self._capacity.acquire(courier_id, order_id)
        if order.courier_id and order.courier_id != courier_id:
            await self._capacity.release(order.courier_id, order_id)
        await self._notifier.push(courier_id, ASSIGNED_TEXT)
        await self._notifier.sms(courier_id, await self.new_order_text(order))
        return {"success": True}

    async def accept(self, order_id: str) -> Dict[str, Any]:
        await self._status.set_status(order_id, OrderStatus.ACCEPTED)
        return {"success": True}

    async def begin_route(self, order: Order) -> None:
        await self._status.set_status(order.id, OrderStatus.ENROUTE)
        await self._notifier.push(order.user_id, ENROUTE_TEXT)

    async def service(self, order: Order) -> None:
        await self._status.set_status(order.id, OrderStatus.SERVICING)
        await self._notifier.push(order.user_id, SERVICING_TEXT)
