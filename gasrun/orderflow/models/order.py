"""Pydantic models for delivery orders."""
from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    ENROUTE = "enroute"
    SERVICING = "servicing"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETE, OrderStatus.CANCELLED})

# Default set for cancel(); callers may pass their own.
CANCELLABLE_STATUSES = frozenset(s for s in OrderStatus if s not in TERMINAL_STATUSES)


class EventLogEntry(BaseModel):
    status: OrderStatus
    timestamp: int


class Order(BaseModel):
    id: str
    status: OrderStatus = OrderStatus.UNASSIGNED
    user_id: str
    courier_id: str | None = None
    vehicle_id: str | None = None
    license_plate: str | None = None

    # prices are in cents
    total_price: int = 0
    gas_price: int = 0
    service_fee: int = 0
    gallons: float = 0
    gas_type: str | None = None
    tire_pressure_check: bool = False

    paid: bool = False
    stripe_charge_id: str | None = None
    stripe_customer_id_charged: str | None = None
    stripe_balance_transaction_id: str | None = None
    time_paid: int | None = None
    payment_info: str | None = None
    stripe_refund_id: str | None = None

    coupon_code: str | None = None
    referral_gallons_used: int = Field(default=0, ge=0)

    event_log: List[EventLogEntry] = Field(default_factory=list)

    address_street: str | None = None
    address_city: str | None = None
    address_state: str | None = None
    address_zip: str | None = None
    lat: float | None = None
    lng: float | None = None
    target_time_start: int | None = None
    target_time_end: int | None = None
