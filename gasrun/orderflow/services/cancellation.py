"""Order cancellation.

Everything that has to be undone after a cancel (gallons, coupon, courier,
refund, notifications) is written down as a compensation plan before the
status flips, then handed to the worker; the caller gets its answer without
waiting on any of it. The worker only acts on plans of cancelled orders.
"""
from __future__ import annotations

from typing import Any, Callable, Dict

from orderflow.models.compensation import CancelOptions, CompensationPlan
from orderflow.models.order import CANCELLABLE_STATUSES, OrderStatus
from orderflow.services.order_status import StatusAuthority
from orderflow.services.supabase_client import SupabaseClient
from orderflow.utils.logger import logger

NOT_FOUND_MESSAGE = "An order with that ID could not be found."
TOO_LATE_MESSAGE = "Sorry, it is too late for this order to be cancelled."
CANCEL_FAILED_MESSAGE = "Sorry, the order could not be cancelled right now. Please try again."


def enqueue_compensation(order_id: str) -> None:
    from orderflow.worker import run_compensation

    run_compensation.delay(order_id)


class CancellationSaga:
    def __init__(
        self,
        supa: SupabaseClient,
        status: StatusAuthority,
        dispatch: Callable[[str], Any] = enqueue_compensation,
    ) -> None:
        self._supa = supa
        self._status = status
        self._dispatch = dispatch

    async def cancel(
        self, user_id: str, order_id: str, options: CancelOptions | None = None
    ) -> Dict[str, Any]:
        options = options or CancelOptions()
        order = await self._supa.get_order(order_id)
        if order is None:
            return {"success": False, "message": NOT_FOUND_MESSAGE}

        if options.override_cancellable_statuses is not None:
            cancellable = set(options.override_cancellable_statuses)
        else:
            cancellable = CANCELLABLE_STATUSES
        if order.status not in cancellable:
            logger.info(
                "Cancel refused",
                extra={"order_id": order_id, "status": order.status.value},
            )
            return {"success": False, "message": TOO_LATE_MESSAGE}

        plan = CompensationPlan(order_id=order.id, order=order, options=options)
        try:
            await self._supa.save_compensation_plan(plan)
        except Exception as exc:  # noqa: BLE001 nothing changed yet, caller may retry
            logger.error(
                "Failed to record compensation plan",
                extra={"order_id": order_id, "error": str(exc)},
            )
            return {"success": False, "message": CANCEL_FAILED_MESSAGE}

        await self._status.set_status(order_id, OrderStatus.CANCELLED)
        try:
            self._dispatch(order.id)
        except Exception as exc:  # noqa: BLE001 plan is stored, resume picks it up
            logger.error(
                "Failed to enqueue compensation",
                extra={"order_id": order_id, "error": str(exc)},
            )

        if options.suppress_user_details:
            return {"success": True}
        user = await self._supa.get_user(user_id)
        return {"success": True, "user": user.details() if user else None}
