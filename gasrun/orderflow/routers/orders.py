"""Orders router: courier actions, completion and cancellation.

Thin layer over the workflows in ``orderflow.services``; failure results are
mapped onto HTTP status codes.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from orderflow.factory import OrderServices, build_services
from orderflow.models.compensation import CancelOptions, CompensationStep
from orderflow.models.order import Order, OrderStatus
from orderflow.services.cancellation import CANCEL_FAILED_MESSAGE, NOT_FOUND_MESSAGE
from orderflow.services.order_status import transition_allowed

router = APIRouter()


@lru_cache(maxsize=1)
def get_services() -> OrderServices:
    return build_services()


class AssignIn(BaseModel):
    courier_id: str
    no_reassign: bool = False


class CancelIn(CancelOptions):
    user_id: str


async def _load(order_id: str, services: OrderServices, target: OrderStatus) -> Order:
    """Load an order that may move to ``target``; 404 if missing, 409 if not."""
    order = await services.supa.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    if not transition_allowed(order.status, target):
        raise HTTPException(
            status_code=409,
            detail=f"Order is {order.status.value} and cannot become {target.value}.",
        )
    return order


@router.post("/{order_id}/assign", response_model=dict)
async def assign(order_id: str, body: AssignIn, services: OrderServices = Depends(get_services)) -> dict:
    """Assign a courier; a skipped reassignment reports ``assigned: false``."""
    result = await services.assignment.assign(order_id, body.courier_id, no_reassign=body.no_reassign)
    if result is None:
        return {"success": True, "assigned": False}
    if not result["success"]:
        code = 404 if result["message"] == NOT_FOUND_MESSAGE else 409
        raise HTTPException(status_code=code, detail=result["message"])
    return {**result, "assigned": True}


@router.post("/{order_id}/accept", response_model=dict)
async def accept(order_id: str, services: OrderServices = Depends(get_services)) -> dict:
    await _load(order_id, services, OrderStatus.ACCEPTED)
    return await services.assignment.accept(order_id)


@router.post("/{order_id}/begin-route", response_model=dict)
async def begin_route(order_id: str, services: OrderServices = Depends(get_services)) -> dict:
    await services.assignment.begin_route(await _load(order_id, services, OrderStatus.ENROUTE))
    return {"success": True}


@router.post("/{order_id}/service", response_model=dict)
async def service(order_id: str, services: OrderServices = Depends(get_services)) -> dict:
    await services.assignment.service(await _load(order_id, services, OrderStatus.SERVICING))
    return {"success": True}


@router.post("/{order_id}/complete", response_model=dict)
async def complete(order_id: str, services: OrderServices = Depends(get_services)) -> dict:
    """Complete the order; a capture failure is returned as 402 with the gateway payload."""
    result = await services.completion.complete(await _load(order_id, services, OrderStatus.COMPLETE))
    if not result.get("success"):
        raise HTTPException(status_code=402, detail=result)
    return result


@router.post("/{order_id}/cancel", response_model=dict)
async def cancel(order_id: str, body: CancelIn, services: OrderServices = Depends(get_services)) -> dict:
    options = CancelOptions(**body.model_dump(exclude={"user_id"}))
    result = await services.cancellation.cancel(body.user_id, order_id, options)
    if not result["success"]:
        code = {NOT_FOUND_MESSAGE: 404, CANCEL_FAILED_MESSAGE: 503}.get(result["message"], 409)
        raise HTTPException(status_code=code, detail=result["message"])
    return result


@router.get("/{order_id}/compensation", response_model=List[CompensationStep])
async def compensation_steps(order_id: str, services: OrderServices = Depends(get_services)) -> List[CompensationStep]:
    """Step log of the order's cancellation compensation."""
    return await services.supa.list_compensation_steps(order_id)
