"""Cancellation compensation runner.

Executes a recorded compensation plan step by step, in a fixed order:

1. restore referral gallons
2. free the coupon code
3. free the courier and tell them
4. tell the customer (when asked to)
5. refund the charge
6. track the cancellation

Every step's outcome is written to ``order_compensation_steps``. A step that
is already done or skipped is not run again, so a plan can be re-run safely
to retry whatever failed. Within a step the gallons credit carries an
idempotency key and the refund is checkpointed, so neither repeats when the
step is retried.
One failing step never stops the later ones.
"""
from __future__ import annotations

import os
from typing import Dict

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from orderflow.models.compensation import (
    COMPENSATION_STEPS,
    CancelOptions,
    CompensationPlan,
    CompensationStep,
    StepStatus,
)
from orderflow.models.order import Order
from orderflow.services.analytics import EventTracker, order_properties
from orderflow.services.coupon_ledger import CouponLedger
from orderflow.services.courier_capacity import CourierCapacity
from orderflow.services.notifier import Notifier
from orderflow.services.stripe_gateway import StripeGateway
from orderflow.services.supabase_client import SupabaseClient
from orderflow.utils.logger import logger

MAX_ATTEMPTS = int(os.getenv("COMPENSATION_MAX_ATTEMPTS", "3"))
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@gasrun.app")

COURIER_CANCEL_TEXT = "The current order has been cancelled."
CUSTOMER_CANCEL_TEXT = (
    "Your order has been cancelled. If you have any questions,"
    f" please email us at {SUPPORT_EMAIL} or use the Feedback"
    " form on the left-hand menu."
)


class CompensationStepError(Exception):
    """A compensation step could not be applied."""


class CompensationRunner:
    def __init__(
        self,
        supa: SupabaseClient,
        capacity: CourierCapacity,
        gateway: StripeGateway,
        coupons: CouponLedger,
        notifier: Notifier,
        tracker: EventTracker,
        max_attempts: int = MAX_ATTEMPTS,
        wait: wait_base | None = None,
    ) -> None:
        self._supa = supa
        self._capacity = capacity
        self._gateway = gateway
        self._coupons = coupons
        self._notifier = notifier
        self._tracker = tracker
        self._max_attempts = max_attempts
        self._wait = wait if wait is not None else wait_exponential(multiplier=1, min=2, max=30)

    async def run(self, plan: CompensationPlan) -> Dict[str, StepStatus]:
        """Run every unfinished step of the plan; returns the status of each step."""
        recorded = {s.step: s for s in await self._supa.list_compensation_steps(plan.order_id)}
        results: Dict[str, StepStatus] = {}
        for name in COMPENSATION_STEPS:
            step = recorded.get(name) or CompensationStep(order_id=plan.order_id, step=name)
            if step.finished:
                results[name] = step.status
                continue
            results[name] = await self._run_step(step, plan)
        logger.info(
            "Compensation finished",
            extra={"order_id": plan.order_id, "steps": {k: v.value for k, v in results.items()}},
        )
        return results

    async def _run_step(self, step: CompensationStep, plan: CompensationPlan) -> StepStatus:
        handler = getattr(self, f"_{step.step}")
        try:
            async for attempt in AsyncRetrying(
                wait=self._wait, stop=stop_after_attempt(self._max_attempts), reraise=True
            ):
                with attempt:
                    step.attempts += 1
                    applied = await handler(plan.order, plan.options, step)
        except Exception as exc:  # noqa: BLE001 steps are independent
            step.status = StepStatus.FAILED
            step.last_error = str(exc)
            logger.error(
                "Compensation step failed",
                extra={"order_id": plan.order_id, "step": step.step, "error": str(exc)},
            )
        else:
            step.status = StepStatus.DONE if applied else StepStatus.SKIPPED
            step.last_error = None
        await self._supa.save_compensation_step(step)
        return step.status

    async def _checkpoint(self, step: CompensationStep, marker: str) -> None:
        step.progress.append(marker)
        await self._supa.save_compensation_step(step)

    async def _restore_referral_gallons(self, order: Order, options: CancelOptions, step: CompensationStep) -> bool:
        if not order.referral_gallons_used:
            return False
        await self._coupons.credit_gallons(
            order.user_id, order.referral_gallons_used, idempotency_key=f"{order.id}:{step.step}"
        )
        await self._supa.update_order(order.id, {"referral_gallons_used": 0})
        return True

    async def _release_coupon(self, order: Order, options: CancelOptions, step: CompensationStep) -> bool:
        if not order.coupon_code:
            return False
        await self._coupons.mark_code_unused(order.coupon_code, order.vehicle_id, order.user_id)
        await self._supa.update_order(order.id, {"coupon_code": ""})
        return True

    async def _release_courier(self, order: Order, options: CancelOptions, step: CompensationStep) -> bool:
        if not order.courier_id:
            return False
        await self._capacity.release(order.courier_id, order.id)
        if not await self._notifier.push(order.courier_id, COURIER_CANCEL_TEXT):
            raise CompensationStepError("courier notification failed")
        return True

    async def _notify_customer(self, order: Order, options: CancelOptions, step: CompensationStep) -> bool:
        if not options.notify_customer:
            return False
        if not await self._notifier.push(order.user_id, CUSTOMER_CANCEL_TEXT):
            raise CompensationStepError("customer notification failed")
        return True

    async def _refund_charge(self, order: Order, options: CancelOptions, step: CompensationStep) -> bool:
        if not order.stripe_charge_id:
            return False
        refund_id = next((p.split(":", 1)[1] for p in step.progress if p.startswith("refund:")), None)
        if refund_id is None:
            result = await self._gateway.refund(order.stripe_charge_id)
            if not result.get("success"):
                raise CompensationStepError(f"refund failed: {result.get('message')}")
            refund_id = result["refund"]["id"]
            await self._checkpoint(step, f"refund:{refund_id}")
        await self._supa.update_order(order.id, {"stripe_refund_id": refund_id})
        return True

    async def _track_cancel(self, order: Order, options: CancelOptions, step: CompensationStep) -> bool:
        props = order_properties(order)
        props["cancelled-by-user"] = not options.origin_was_dashboard
        if not await self._tracker.track(order.user_id, "Cancel Order", props):
            raise CompensationStepError("analytics tracking failed")
        return True
