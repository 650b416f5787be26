"""Tests for courier assignment and courier-driven status changes."""
import pytest

from orderflow.services.assignment import ASSIGNED_TEXT, CLOSED_MESSAGE, ENROUTE_TEXT, SERVICING_TEXT
from orderflow.services.cancellation import NOT_FOUND_MESSAGE

pytestmark = [pytest.mark.asyncio]


async def test_assign_binds_courier_and_marks_busy(services, db, notifier, make_order, make_user, make_courier):
    make_user("u1")
    make_courier("c9")
    make_order("o1")

    assert await services.assignment.assign("o1", "c9") == {"success": True}

    row = db.row("orders", "o1")
    assert row["status"] == "assigned"
    assert row["courier_id"] == "c9"
    assert [e["status"] for e in row["event_log"]] == ["assigned"]
    assert db.row("couriers", "c9")["busy"] is True
    assert notifier.pushes == [("c9", ASSIGNED_TEXT)]
    [(courier, text)] = notifier.texts
    assert courier == "c9"
    assert text.startswith("New order:\nCharge Authorized.\nDue: ")
    assert "123 Main St, 90025" in text
    assert text.endswith("10 Gallons of 87")


async def test_no_reassign_leaves_assigned_order_alone(services, db, notifier, make_order, make_courier):
    make_courier("c9")
    make_courier("c1", busy=True)
    make_order("o2", status="assigned", courier_id="c1")

    assert await services.assignment.assign("o2", "c9", no_reassign=True) is None

    row = db.row("orders", "o2")
    assert row["status"] == "assigned"
    assert row["courier_id"] == "c1"
    assert row["event_log"] == []
    assert db.row("couriers", "c9")["busy"] is False
    assert notifier.pushes == []


async def test_no_reassign_still_assigns_unassigned_order(services, db, make_order, make_courier):
    make_courier("c9")
    make_order("o2")

    assert await services.assignment.assign("o2", "c9", no_reassign=True) == {"success": True}
    assert db.row("orders", "o2")["courier_id"] == "c9"


async def test_reassign_without_flag_moves_order(services, db, make_order, make_courier):
    make_courier("c9")
    make_courier("c1", busy=True)
    make_order("o2", status="accepted", courier_id="c1")

    assert await services.assignment.assign("o2", "c9") == {"success": True}
    assert db.row("orders", "o2")["status"] == "assigned"
    assert db.row("orders", "o2")["courier_id"] == "c9"
    assert db.row("couriers", "c9")["busy"] is True
    assert db.row("couriers", "c1")["busy"] is False


async def test_reassign_keeps_previous_courier_busy_with_other_orders(services, db, make_order, make_courier):
    make_courier("c9")
    make_courier("c1", busy=True)
    make_order("o2", status="accepted", courier_id="c1")
    make_order("o3", status="enroute", courier_id="c1")

    assert await services.assignment.assign("o2", "c9") == {"success": True}
    assert db.row("couriers", "c1")["busy"] is True


@pytest.mark.parametrize("status", ["complete", "cancelled"])
async def test_closed_order_cannot_be_assigned(services, db, notifier, make_order, make_courier, status):
    make_courier("c9")
    make_order("o2", status=status, courier_id="c1")

    assert await services.assignment.assign("o2", "c9") == {"success": False, "message": CLOSED_MESSAGE}

    row = db.row("orders", "o2")
    assert row["status"] == status
    assert row["courier_id"] == "c1"
    assert db.row("couriers", "c9")["busy"] is False
    assert notifier.pushes == []


async def test_assign_unknown_order(services):
    assert await services.assignment.assign("nope", "c9") == {"success": False, "message": NOT_FOUND_MESSAGE}


async def test_new_order_text_warns_about_unpaid_balance(services, make_order):
    make_order("old", status="complete", paid=False, total_price=1234)
    make_order("o1")
    order = await services.supa.get_order("o1")

    text = await services.assignment.new_order_text(order, charge_authorized=False)

    lines = text.split("\n")
    assert lines[:3] == ["New order:", "!CHARGE FAILED TO AUTHORIZE!", "!UNPAID BALANCE: $12.34"]


async def test_accept_and_courier_progress(services, db, notifier, make_order):
    make_order("o1", status="assigned", courier_id="c9")

    assert await services.assignment.accept("o1") == {"success": True}
    order = await services.supa.get_order("o1")
    await services.assignment.begin_route(order)
    await services.assignment.service(order)

    row = db.row("orders", "o1")
    assert row["status"] == "servicing"
    assert [e["status"] for e in row["event_log"]] == ["accepted", "enroute", "servicing"]
    assert notifier.pushes == [("u1", ENROUTE_TEXT), ("u1", SERVICING_TEXT)]
