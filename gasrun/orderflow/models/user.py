"""Pydantic model for customers and couriers."""
from __future__ import annotations

from pydantic import BaseModel


class User(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    referral_code: str | None = None
    referral_gallons: float = 0
    account_manager_id: str | None = None
    # Device renders private-use glyphs (iOS) in push bodies
    supports_rich_text: bool = False
    is_courier: bool = False

    @property
    def is_managed_account(self) -> bool:
        return bool(self.account_manager_id)

    def details(self) -> dict:
        """Customer-facing profile returned after a cancellation."""
        return self.model_dump(
            include={"id", "name", "email", "phone_number", "referral_code", "referral_gallons"}
        )
