"""Sehat Sathi – Outbound Message Dispatcher.

Single entry point for every outbound text (replies, alerts, reminders).
Delivery failures are logged and reported as False, never raised.
"""

from typing import Any, Protocol

import structlog

from app.core.crypto import pseudonymize

logger = structlog.get_logger()


class OutboundSender(Protocol):
    async def send(self, identity: str, text: str) -> bool: ...


class OutboundDispatcher:
    """Sends text to a channel identity through the WhatsApp client.

    Flow: (identity, text) → credentials check → WhatsAppClient.send_text
    """

    def __init__(self, whatsapp_client: Any | None = None, pseudonym_secret: str = "") -> None:
        self._whatsapp = whatsapp_client
        self._secret = pseudonym_secret

    async def send(self, identity: str, text: str) -> bool:
        """Send ``text`` to ``identity``.

        Returns:
            True if the message was accepted by the channel.
        """
        recipient = pseudonymize(identity, self._secret)
        if not self._whatsapp or not getattr(self._whatsapp, "is_configured", True):
            logger.warning("dispatcher.whatsapp_not_configured", pseudonymous_id=recipient)
            return False
        try:
            await self._whatsapp.send_text(identity, text)
        except Exception as e:
            logger.error("dispatcher.send_failed", pseudonymous_id=recipient, error=str(e))
            return False
        logger.info("dispatcher.whatsapp_sent", pseudonymous_id=recipient, length=len(text))
        return True
