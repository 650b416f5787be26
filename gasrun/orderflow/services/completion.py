"""Order completion: capture the authorized charge, then fan out.

A capture failure leaves the order ``complete`` but unpaid. Nothing retries
or reverses that here; it is reconciled by hand.
"""
from __future__ import annotations

import json
from typing import Any, Dict

from orderflow.models.order import Order, OrderStatus
from orderflow.services.analytics import EventTracker, order_properties
from orderflow.services.coupon_ledger import CouponLedger
from orderflow.services.courier_capacity import CourierCapacity
from orderflow.services.notifier import Notifier
from orderflow.services.order_status import StatusAuthority
from orderflow.services.stripe_gateway import CARD_SUMMARY_FIELDS, StripeGateway
from orderflow.services.supabase_client import SupabaseClient
from orderflow.utils.formatting import cents_to_dollars
from orderflow.utils.logger import logger

GIFT_GLYPH = " \ue112"  # private-use gift emoji on iOS


def charge_fields(charge: Dict[str, Any]) -> Dict[str, Any]:
    """Order columns recorded from a captured Stripe charge."""
    source = charge.get("source") or {}
    return {
        # captured, NOT paid: an uncaptured charge also reports paid=True
        "paid": bool(charge.get("captured")),
        "stripe_charge_id": charge.get("id"),
        "stripe_customer_id_charged": charge.get("customer"),
        "stripe_balance_transaction_id": charge.get("balance_transaction"),
        "time_paid": charge.get("created"),
        "payment_info": json.dumps({key: source.get(key) for key in CARD_SUMMARY_FIELDS}),
    }


class CompletionWorkflow:
    def __init__(
        self,
        supa: SupabaseClient,
        status: StatusAuthority,
        capacity: CourierCapacity,
        gateway: StripeGateway,
        coupons: CouponLedger,
        notifier: Notifier,
        tracker: EventTracker,
    ) -> None:
        self._supa = supa
        self._status = status
        self._capacity = capacity
        self._gateway = gateway
        self._coupons = coupons
        self._notifier = notifier
        self._tracker = tracker

    async def complete(self, order: Order) -> Dict[str, Any]:
        """Completes the order and charges the customer."""
        await self._status.set_status(order.id, OrderStatus.COMPLETE)
        if order.courier_id:
            await self._capacity.release(order.courier_id, order.id)

        if order.total_price == 0 or not order.stripe_charge_id:
            logger.info("Skipping capture", extra={"order_id": order.id})
            await self.after_payment(order)
            return {"success": True}

        result = await self._gateway.capture(order.stripe_charge_id)
        if not result.get("success"):
            logger.error(
                "Order completed but capture failed",
                extra={"order_id": order.id, "charge_id": order.stripe_charge_id},
            )
            return result

        await self._supa.update_order(order.id, charge_fields(result["charge"]))
        await self.after_payment(order)
        return {"success": True}

    async def after_payment(self, order: Order) -> None:
        if order.coupon_code:
            # Standard coupons have no owner; own referral code earns nothing
            referrer = await self._supa.find_user_by_referral_code(order.coupon_code)
            if referrer is not None and referrer.id != order.user_id:
                await self._coupons.apply_referral_bonus(referrer.id)

        props = order_properties(order)
        props["revenue"] = cents_to_dollars(order.total_price)
        await self._tracker.track(order.user_id, "Complete Order", props)

        await self._notifier.push(order.user_id, await self.completion_text(order.user_id))

    async def completion_text(self, user_id: str) -> str:
        user = await self._supa.get_user(user_id)
        text = "Your delivery has been completed."
        if user is not None and not user.is_managed_account:
            text += f" Share your code {user.referral_code} to earn free gas"
            if user.supports_rich_text:
                text += GIFT_GLYPH
            text += "."
        return text + " Thank you!"
