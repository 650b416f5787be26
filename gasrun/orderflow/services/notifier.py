"""Customer and courier notifications.

Push messages go to the push gateway over HTTP; SMS goes through Brevo's
transactional SMS API. Delivery is best-effort: failures are logged and
reported as ``False`` so callers decide whether to retry.
"""
from __future__ import annotations

import os

import httpx
import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException

from orderflow.services.supabase_client import SupabaseClient
from orderflow.utils.logger import logger

PUSH_GATEWAY_URL = os.getenv("PUSH_GATEWAY_URL", "http://localhost:8081")


class Notifier:
    """Sends push notifications and text messages to users by id."""

    def __init__(
        self,
        supa: SupabaseClient,
        push_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._supa = supa
        self._push_url = (push_url or PUSH_GATEWAY_URL).rstrip("/")
        self._push_token = os.getenv("PUSH_GATEWAY_TOKEN")
        self._transport = transport
        self._sender = os.getenv("SMS_SENDER", "GasRun")
        cfg = sib_api_v3_sdk.Configuration()
        api_key = os.getenv("BREVO_API_KEY")
        if api_key:
            cfg.api_key["api-key"] = api_key
        self._sms_api = sib_api_v3_sdk.TransactionalSMSApi(sib_api_v3_sdk.ApiClient(cfg))

    async def push(self, user_id: str, text: str) -> bool:
        headers = {"Authorization": f"Bearer {self._push_token}"} if self._push_token else {}
        try:
            async with httpx.AsyncClient(timeout=10, transport=self._transport) as client:
                resp = await client.post(
                    f"{self._push_url}/push",
                    json={"user_id": user_id, "message": text},
                    headers=headers,
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Push failed", extra={"user_id": user_id, "error": str(exc)})
            return False
        logger.debug("Push sent", extra={"user_id": user_id})
        return True

    async def sms(self, user_id: str, text: str) -> bool:
        user = await self._supa.get_user(user_id)
        if user is None or not user.phone_number:
            logger.warning("No phone number on file", extra={"user_id": user_id})
            return False
        message = sib_api_v3_sdk.SendTransacSms(
            sender=self._sender,
            recipient=user.phone_number,
            content=text,
            type="transactional",
        )
        try:
            self._sms_api.send_transac_sms(message)
        except ApiException as exc:  # noqa: BLE001
            logger.error("SMS failed", extra={"user_id": user_id, "error": str(exc)})
            return False
        logger.info("SMS sent", extra={"user_id": user_id})
        return True
