"""Stripe payment gateway adapter.

Outcomes are plain dicts so they can be handed back to callers unchanged:
``{"success": True, "charge": {...}}`` / ``{"success": True, "refund": {...}}``
on success, ``{"success": False, "message": ..., "code": ...}`` otherwise.
"""
from __future__ import annotations

import os
from typing import Any, Dict

import stripe

from orderflow.utils.logger import logger

CARD_SUMMARY_FIELDS = ("id", "brand", "exp_month", "exp_year", "last4")


def _card_summary(source: Any) -> Dict[str, Any]:
    if source is None:
        return {}
    return {key: getattr(source, key, None) for key in CARD_SUMMARY_FIELDS}


def _charge_to_dict(charge: Any) -> Dict[str, Any]:
    return {
        "id": charge.id,
        "captured": bool(getattr(charge, "captured", False)),
        "paid": bool(getattr(charge, "paid", False)),
        "customer": getattr(charge, "customer", None),
        "balance_transaction": getattr(charge, "balance_transaction", None),
        "created": getattr(charge, "created", None),
        "source": _card_summary(getattr(charge, "source", None)),
    }


def _failure(exc: stripe.StripeError) -> Dict[str, Any]:
    return {
        "success": False,
        "message": getattr(exc, "user_message", None) or str(exc),
        "code": getattr(exc, "code", None),
    }


class StripeGateway:
    """Captures authorized charges and refunds them."""

    def __init__(self, api_key: str | None = None) -> None:
        key = api_key or os.getenv("STRIPE_SECRET_KEY")
        if key:
            stripe.api_key = key
        else:
            logger.warning("No Stripe API key configured - capture and refund will fail")

    async def capture(self, charge_id: str) -> Dict[str, Any]:
        try:
            charge = stripe.Charge.capture(charge_id)
        except stripe.StripeError as exc:
            logger.error("Stripe capture failed", extra={"charge_id": charge_id, "error": str(exc)})
            return _failure(exc)
        logger.info("Captured charge", extra={"charge_id": charge_id})
        return {"success": True, "charge": _charge_to_dict(charge)}

    async def refund(self, charge_id: str) -> Dict[str, Any]:
        try:
            refund = stripe.Refund.create(charge=charge_id)
        except stripe.StripeError as exc:
            logger.error("Stripe refund failed", extra={"charge_id": charge_id, "error": str(exc)})
            return _failure(exc)
        logger.info("Refunded charge", extra={"charge_id": charge_id, "refund_id": refund.id})
        return {"success": True, "refund": {"id": refund.id, "status": getattr(refund, "status", None)}}
