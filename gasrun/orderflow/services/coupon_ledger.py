"""Coupon usage and referral gallons ledger."""
from __future__ import annotations

import os

from orderflow.services.supabase_client import SupabaseClient
from orderflow.utils.logger import logger

REFERRAL_BONUS_GALLONS = float(os.getenv("REFERRAL_BONUS_GALLONS", "5"))


class CouponLedger:
    def __init__(self, supa: SupabaseClient, referral_bonus_gallons: float = REFERRAL_BONUS_GALLONS) -> None:
        self._supa = supa
        self._bonus = referral_bonus_gallons

    async def mark_code_used(self, code: str, vehicle_id: str | None, user_id: str) -> None:
        await self._supa.insert_coupon_usage(code, vehicle_id, user_id)

    async def mark_code_unused(self, code: str, vehicle_id: str | None, user_id: str) -> None:
        await self._supa.delete_coupon_usage(code, vehicle_id, user_id)
        logger.info("Freed coupon code", extra={"code": code, "user_id": user_id})

    async def credit_gallons(
        self, user_id: str, gallons: float, idempotency_key: str | None = None
    ) -> None:
        await self._supa.adjust_referral_gallons(user_id, gallons, idempotency_key)

    async def debit_gallons(self, user_id: str, gallons: float) -> None:
        await self._supa.adjust_referral_gallons(user_id, -gallons)

    async def apply_referral_bonus(self, referrer_id: str) -> None:
        """Credit the owner of a referral code after a referred order is paid."""
        await self.credit_gallons(referrer_id, self._bonus)
        logger.info("Applied referral bonus", extra={"user_id": referrer_id, "gallons": self._bonus})
