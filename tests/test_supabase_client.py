"""Tests for the Supabase-backed order store."""
import pytest

from orderflow.services.supabase_client import SupabaseClient


def test_missing_configuration_raises(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    with pytest.raises(RuntimeError):
        SupabaseClient()


@pytest.mark.asyncio
async def test_get_order_returns_none_when_absent(supa):
    assert await supa.get_order("nope") is None


@pytest.mark.asyncio
async def test_unpaid_balance_counts_only_complete_unpaid_charged_orders(supa, make_order):
    make_order("a", status="complete", paid=False, total_price=1500)
    make_order("b", status="complete", paid=False, total_price=900)
    make_order("free", status="complete", paid=False, total_price=0)
    make_order("paid", status="complete", paid=True, total_price=4000)
    make_order("open", status="enroute", paid=False, total_price=3000)
    make_order("other", status="complete", paid=False, total_price=700, user_id="u2")

    assert await supa.unpaid_balance("u1") == 2400
    assert await supa.unpaid_balance("u2") == 700
    assert await supa.unpaid_balance("nobody") == 0


@pytest.mark.asyncio
async def test_list_active_courier_orders_ignores_terminal_orders(supa, make_order):
    make_order("a", courier_id="c1", status="enroute")
    make_order("b", courier_id="c1", status="complete")
    make_order("c", courier_id="c1", status="cancelled")
    make_order("d", courier_id="c2", status="assigned")

    active = await supa.list_active_courier_orders("c1")
    assert [o.id for o in active] == ["a"]


@pytest.mark.asyncio
async def test_coupon_usage_is_freed_per_vehicle(db, supa):
    await supa.insert_coupon_usage("SAVE5", "v1", "u1")
    await supa.insert_coupon_usage("SAVE5", "v2", "u1")
    await supa.insert_coupon_usage("SAVE5", "v1", "u1")
    assert len(db.rows("coupon_usages")) == 2

    await supa.delete_coupon_usage("SAVE5", "v1", "u1")
    assert db.rows("coupon_usages") == [{"code": "SAVE5", "vehicle_id": "v2", "user_id": "u1"}]


@pytest.mark.asyncio
async def test_find_user_by_referral_code(supa, make_user):
    make_user("u7", referral_code="FRIEND7")
    user = await supa.find_user_by_referral_code("FRIEND7")
    assert user.id == "u7"
    assert await supa.find_user_by_referral_code("NOPE") is None
