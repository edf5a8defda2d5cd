"""Sehat Sathi – WhatsApp Cloud API.

Text delivery to a phone number and verification of the signature Meta puts
on every webhook delivery.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any

import httpx
import structlog

logger = structlog.get_logger()

GRAPH_URL = "https://graph.facebook.com/v21.0"
SIGNATURE_PREFIX = "sha256="


def _text_message(recipient: str, text: str) -> dict[str, Any]:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": recipient,
        "type": "text",
        "text": {"preview_url": False, "body": text},
    }


class WhatsAppClient:
    """Meta Cloud API client for a single business phone number.

    Errors from ``send_text`` propagate; :class:`OutboundDispatcher` turns
    them into a ``False`` delivery result.
    """

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        app_secret: str = "",
        timeout: float = 15.0,
    ) -> None:
        self._token = access_token
        self._number_id = phone_number_id
        self._app_secret = app_secret
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._token and self._number_id)

    @property
    def messages_url(self) -> str:
        return f"{GRAPH_URL}/{self._number_id}/messages"

    async def send_text(self, to: str, body: str) -> dict[str, Any]:
        """POST a text message to ``to`` (digits only, country code first).

        Returns the Graph API response; ``messages[0].id`` is the wamid.
        """
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.post(
                    self.messages_url,
                    json=_text_message(to, body),
                    headers={"Authorization": f"Bearer {self._token}"},
                )
                response.raise_for_status()
            except Exception as e:
                logger.error("whatsapp.send_failed", error=str(e))
                raise
            result = response.json()

        wamid = (result.get("messages") or [{}])[0].get("id")
        logger.info("whatsapp.sent", wamid=wamid)
        return result

    def verify_webhook_signature(self, payload_body: bytes, signature_header: str) -> bool:
        """Check ``X-Hub-Signature-256`` against an HMAC of the raw body.

        Fails closed: no configured app secret means no signature is valid.
        """
        if not self._app_secret:
            logger.warning("whatsapp.no_app_secret")
            return False
        if not (signature_header or "").startswith(SIGNATURE_PREFIX):
            return False

        digest = hmac.new(self._app_secret.encode("utf-8"), payload_body, hashlib.sha256).hexdigest()
        return hmac.compare_digest(digest, signature_header[len(SIGNATURE_PREFIX):])
