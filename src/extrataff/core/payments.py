from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from extrataff.config import Settings, get_settings
from extrataff.types import PaymentSession

logger = logging.getLogger(__name__)


class PaymentGateway(Protocol):
    def create_payment_session(
        self,
        *,
        establishment_id: int,
        mission_type: str,
        mission_id: int,
        is_urgent: bool,
    ) -> PaymentSession: ...

    def verify_payment(self, session_id: str) -> bool: ...


class CheckoutGateway:
    """Talks to the hosted checkout functions over HTTP."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.settings.payment_api_key:
            headers["Authorization"] = f"Bearer {self.settings.payment_api_key}"

        response = requests.post(
            f"{self.settings.payment_base_url.rstrip('/')}/{path}",
            json=payload,
            headers=headers,
            timeout=self.settings.payment_timeout_sec,
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"unexpected payment response: {data!r}")
        return data

    def create_payment_session(
        self,
        *,
        establishment_id: int,
        mission_type: str,
        mission_id: int,
        is_urgent: bool,
    ) -> PaymentSession:
        payload = {
            "establishment_id": establishment_id,
            "mission_type": mission_type,
            "mission_id": mission_id,
            "is_urgent": is_urgent,
        }
        try:
            data = self._post("create-checkout-session", payload)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Payment session failed for mission_id=%s: %s", mission_id, exc)
            return PaymentSession(error=str(exc) or exc.__class__.__name__)

        if data.get("error"):
            return PaymentSession(error=str(data["error"]), raw=data)
        return PaymentSession(
            url=str(data.get("url") or ""),
            session_id=str(data.get("session_id") or data.get("id") or ""),
            raw=data,
        )

    def verify_payment(self, session_id: str) -> bool:
        if not session_id:
            return False
        try:
            data = self._post("verify-payment", {"session_id": session_id})
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Payment verification failed for session %s: %s", session_id, exc)
            return False
        return bool(data.get("paid") or data.get("success")) and not data.get("error")
