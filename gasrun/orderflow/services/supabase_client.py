"""Async Supabase client wrapper for order data access.

Encapsulates reading and writing orders, users, courier capacity, coupon
usage and the compensation log. Uses the supabase Python client; status
changes and gallons adjustments go through Postgres functions (see
``sql/schema.sql``) so each is a single atomic write.
"""
from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from orderflow.models.compensation import CompensationPlan, CompensationStep
from orderflow.models.order import Order, OrderStatus, TERMINAL_STATUSES
from orderflow.models.user import User
from orderflow.utils.logger import logger


class SupabaseClient:
    """Order store backed by Supabase (PostgREST)."""

    def __init__(self, client: Client | None = None) -> None:
        if client is None:
            url = os.getenv("SUPABASE_URL")
            key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            if not url or not key:
                raise RuntimeError("Supabase env vars are not configured")
            client = create_client(url, key)
        self._client: Client = client

    # -- orders -------------------------------------------------------------

    async def get_order(self, order_id: str) -> Optional[Order]:
        resp = self._client.table("orders").select("*").eq("id", order_id).limit(1).execute()
        rows = resp.data or []
        return Order(**rows[0]) if rows else None

    async def update_order(self, order_id: str, fields: Dict[str, Any]) -> None:
        self._client.table("orders").update(fields).eq("id", order_id).execute()
        logger.debug("Updated order", extra={"order_id": order_id, "fields": sorted(fields)})

    async def set_order_status(self, order_id: str, status: OrderStatus, timestamp: int) -> None:
        # status and event_log are written by one UPDATE inside the function
        self._client.rpc(
            "set_order_status",
            {"p_order_id": order_id, "p_status": status.value, "p_timestamp": timestamp},
        ).execute()

    async def unpaid_balance(self, user_id: str) -> int:
        """Sum of total_price over complete, unpaid, non-free orders of a user."""
        resp = (
            self._client.table("orders")
            .select("total_price")
            .eq("user_id", user_id)
            .eq("status", OrderStatus.COMPLETE.value)
            .eq("paid", False)
            .gt("total_price", 0)  # $0 order = no charge
            .execute()
        )
        return sum(row["total_price"] for row in resp.data or [])

    async def list_active_courier_orders(self, courier_id: str) -> List[Order]:
        active = [s.value for s in OrderStatus if s not in TERMINAL_STATUSES]
        resp = (
            self._client.table("orders")
            .select("*")
            .eq("courier_id", courier_id)
            .in_("status", active)
            .execute()
        )
        return [Order(**row) for row in resp.data or []]

    # -- users & couriers ---------------------------------------------------

    async def get_user(self, user_id: str) -> Optional[User]:
        resp = self._client.table("users").select("*").eq("id", user_id).limit(1).execute()
        rows = resp.data or []
        return User(**rows[0]) if rows else None

    async def find_user_by_referral_code(self, referral_code: str) -> Optional[User]:
        resp = (
            self._client.table("users")
            .select("*")
            .eq("referral_code", referral_code)
            .limit(1)
            .execute()
        )
        rows = resp.data or []
        return User(**rows[0]) if rows else None

    async def adjust_referral_gallons(
        self, user_id: str, delta: float, idempotency_key: str | None = None
    ) -> None:
        """Add ``delta`` to the balance; a repeated ``idempotency_key`` is a no-op."""
        self._client.rpc(
            "adjust_referral_gallons",
            {"p_user_id": user_id, "p_delta": delta, "p_idempotency_key": idempotency_key},
        ).execute()
        logger.info("Adjusted referral gallons", extra={"user_id": user_id, "delta": delta})

    async def set_courier_busy(self, courier_id: str, busy: bool) -> None:
        self._client.table("couriers").update({"busy": busy}).eq("id", courier_id).execute()

    # -- coupons ------------------------------------------------------------

    async def insert_coupon_usage(self, code: str, vehicle_id: str | None, user_id: str) -> None:
        self._client.table("coupon_usages").upsert(
            {"code": code, "vehicle_id": vehicle_id, "user_id": user_id},
            on_conflict="code,vehicle_id,user_id",
        ).execute()

    async def delete_coupon_usage(self, code: str, vehicle_id: str | None, user_id: str) -> None:
        query = self._client.table("coupon_usages").delete().eq("code", code).eq("user_id", user_id)
        if vehicle_id is None:
            query = query.is_("vehicle_id", "null")
        else:
            query = query.eq("vehicle_id", vehicle_id)
        query.execute()

    # -- compensation log ---------------------------------------------------

    async def save_compensation_plan(self, plan: CompensationPlan) -> None:
        self._client.table("order_compensations").upsert(
            plan.model_dump(mode="json", exclude_none=True), on_conflict="order_id"
        ).execute()
        logger.info("Recorded compensation plan", extra={"order_id": plan.order_id})

    async def get_compensation_plan(self, order_id: str) -> Optional[CompensationPlan]:
        resp = (
            self._client.table("order_compensations")
            .select("*")
            .eq("order_id", order_id)
            .limit(1)
            .execute()
        )
        rows = resp.data or []
        return CompensationPlan(**rows[0]) if rows else None

    async def list_compensation_steps(self, order_id: str) -> List[CompensationStep]:
        resp = self._client.table("order_compensation_steps").select("*").eq("order_id", order_id).execute()
        return [CompensationStep(**row) for row in resp.data or []]

    async def save_compensation_step(self, step: CompensationStep) -> None:
        self._client.table("order_compensation_steps").upsert(
            step.model_dump(mode="json", exclude={"updated_at"}), on_conflict="order_id,step"
        ).execute()
