"""Tests for the courier busy flag."""
import pytest

from orderflow.services.courier_capacity import CourierCapacity

pytestmark = [pytest.mark.asyncio]


async def test_release_frees_courier_without_other_orders(supa, db, make_order, make_courier):
    make_courier("c9", busy=True)
    make_order("o1", status="complete", courier_id="c9")

    assert await CourierCapacity(supa).release("c9", "o1") is False
    assert db.row("couriers", "c9")["busy"] is False


async def test_release_keeps_courier_busy_with_another_active_order(supa, db, make_order, make_courier):
    make_courier("c9", busy=True)
    make_order("o1", status="servicing", courier_id="c9")
    make_order("o2", status="assigned", courier_id="c9")

    assert await CourierCapacity(supa).release("c9", "o1") is True
    assert db.row("couriers", "c9")["busy"] is True


async def test_acquire_marks_busy(supa, db, make_courier):
    make_courier("c9")
    await CourierCapacity(supa).acquire("c9", "o1")
    assert db.row("couriers", "c9")["busy"] is True
