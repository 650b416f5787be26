"""Shared fixtures: a fake Supabase behind the real SupabaseClient, fake transports."""
from typing import Any, Dict, List

import pytest
from tenacity import wait_none

from fakes import FakeGateway, FakeNotifier, FakeSupabase, FakeTracker
from orderflow.factory import build_services
from orderflow.services.supabase_client import SupabaseClient


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def supa(db) -> SupabaseClient:
    return SupabaseClient(client=db)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(
        capture_result={
            "success": True,
            "charge": {
                "id": "ch_1",
                "captured": True,
                "paid": True,
                "customer": "cus_1",
                "balance_transaction": "txn_1",
                "created": 1700000100,
                "source": {"id": "card_1", "brand": "Visa", "exp_month": 4, "exp_year": 2030, "last4": "4242"},
            },
        }
    )


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def dispatched() -> List[str]:
    return []


@pytest.fixture
def services(supa, gateway, notifier, tracker, dispatched):
    return build_services(
        supa=supa,
        gateway=gateway,
        notifier=notifier,
        tracker=tracker,
        dispatch=dispatched.append,
        wait=wait_none(),
    )


@pytest.fixture
def make_user(db):
    def _make(user_id: str = "u1", **fields: Any) -> Dict[str, Any]:
        row = {
            "id": user_id,
            "name": "Pat Driver",
            "email": f"{user_id}@example.com",
            "phone_number": "+13105550100",
            "referral_code": f"REF{user_id.upper()}",
            "referral_gallons": 0,
            "account_manager_id": None,
            "supports_rich_text": False,
            "is_courier": False,
        }
        row.update(fields)
        db.rows("users").append(row)
        return row

    return _make


@pytest.fixture
def make_courier(db, make_user):
    def _make(courier_id: str = "c9", busy: bool = False) -> Dict[str, Any]:
        make_user(courier_id, is_courier=True)
        row = {"id": courier_id, "busy": busy}
        db.rows("couriers").append(row)
        return row

    return _make


@pytest.fixture
def make_order(db):
    def _make(order_id: str = "o1", **fields: Any) -> Dict[str, Any]:
        row = {
            "id": order_id,
            "status": "unassigned",
            "user_id": "u1",
            "courier_id": None,
            "vehicle_id": "v1",
            "license_plate": "7ABC123",
            "total_price": 2500,
            "gas_price": 2000,
            "service_fee": 500,
            "gallons": 10.0,
            "gas_type": "87",
            "paid": False,
            "stripe_charge_id": None,
            "coupon_code": "",
            "referral_gallons_used": 0,
            "event_log": [],
            "address_street": "123 Main St",
            "address_zip": "90025",
            "target_time_start": 1700000000,
            "target_time_end": 1700010800,
        }
        row.update(fields)
        db.rows("orders").append(row)
        return row

    return _make
