"""Builds the order workflow graph.

Collaborators default to the real Supabase/Stripe/HTTP adapters; tests pass
their own.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from orderflow.services.analytics import EventTracker
from orderflow.services.assignment import AssignmentCoordinator
from orderflow.services.cancellation import CancellationSaga, enqueue_compensation
from orderflow.services.compensation import CompensationRunner
from orderflow.services.completion import CompletionWorkflow
from orderflow.services.coupon_ledger import CouponLedger
from orderflow.services.courier_capacity import CourierCapacity
from orderflow.services.notifier import Notifier
from orderflow.services.order_status import StatusAuthority
from orderflow.services.stripe_gateway import StripeGateway
from orderflow.services.supabase_client import SupabaseClient


@dataclass
class OrderServices:
    supa: SupabaseClient
    status: StatusAuthority
    capacity: CourierCapacity
    coupons: CouponLedger
    assignment: AssignmentCoordinator
    completion: CompletionWorkflow
    cancellation: CancellationSaga
    compensation: CompensationRunner


def build_services(
    supa: Optional[SupabaseClient] = None,
    gateway: Optional[StripeGateway] = None,
    notifier: Optional[Notifier] = None,
    tracker: Optional[EventTracker] = None,
    dispatch: Callable[[str], Any] = enqueue_compensation,
    **runner_kwargs: Any,
) -> OrderServices:
    supa = supa or SupabaseClient()
    gateway = gateway or StripeGateway()
    notifier = notifier or Notifier(supa)
    tracker = tracker or EventTracker()

    status = StatusAuthority(supa)
    capacity = CourierCapacity(supa)
    coupons = CouponLedger(supa)
    return OrderServices(
        supa=supa,
        status=status,
        capacity=capacity,
        coupons=coupons,
        assignment=AssignmentCoordinator(supa, status, capacity, notifier),
        completion=CompletionWorkflow(supa, status, capacity, gateway, coupons, notifier, tracker),
        cancellation=CancellationSaga(supa, status, dispatch=dispatch),
        compensation=CompensationRunner(
            supa, capacity, gateway, coupons, notifier, tracker, **runner_kwargs
        ),
    )
