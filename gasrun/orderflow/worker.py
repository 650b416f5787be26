"""Celery tasks for orderflow.

Compensation plans are loaded from the store by order id, so the task can be
re-queued at any time to retry steps that failed earlier.
"""
from __future__ import annotations

import asyncio
from typing import Dict

from celery import shared_task

from orderflow.celery_app import celery_app  # noqa: F401  binds shared tasks to our broker
from orderflow.factory import build_services
from orderflow.models.order import OrderStatus
from orderflow.utils.logger import logger


async def run_compensation_plan(order_id: str, services=None) -> Dict[str, str]:
    services = services or build_services()
    plan = await services.supa.get_compensation_plan(order_id)
    if plan is None:
        logger.warning("No compensation plan recorded", extra={"order_id": order_id})
        return {}
    order = await services.supa.get_order(order_id)
    if order is None or order.status != OrderStatus.CANCELLED:
        # plan recorded but the status flip never happened
        logger.warning("Order is not cancelled, leaving plan alone", extra={"order_id": order_id})
        return {}
    results = await services.compensation.run(plan)
    return {step: status.value for step, status in results.items()}


@shared_task(name="run_compensation")
def run_compensation(order_id: str) -> dict:
    """Run (or resume) the compensation plan of a cancelled order."""
    logger.info("Running compensation plan", extra={"order_id": order_id})
    return asyncio.run(run_compensation_plan(order_id))
