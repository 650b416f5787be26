"""Pydantic models for the cancellation compensation log."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from orderflow.models.order import Order, OrderStatus


class StepStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


COMPENSATION_STEPS = (
    "restore_referral_gallons",
    "release_coupon",
    "release_courier",
    "notify_customer",
    "refund_charge",
    "track_cancel",
)


class CancelOptions(BaseModel):
    origin_was_dashboard: bool = False
    notify_customer: bool = False
    suppress_user_details: bool = False
    override_cancellable_statuses: List[OrderStatus] | None = None


class CompensationPlan(BaseModel):
    """Snapshot of the order as it was when cancelled, plus the caller's options."""

    order_id: str
    order: Order
    options: CancelOptions
    created_at: datetime | None = None


class CompensationStep(BaseModel):
    order_id: str
    step: str
    status: StepStatus = StepStatus.PENDING
    attempts: int = 0
    # sub-step markers that must not be repeated, e.g. "refund:re_123"
    progress: List[str] = Field(default_factory=list)
    last_error: str | None = None
    updated_at: datetime | None = None

    @property
    def finished(self) -> bool:
        return self.status in (StepStatus.DONE, StepStatus.SKIPPED)
