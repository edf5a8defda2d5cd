"""Sehat Sathi – Webhook Normalizer.

Meta webhook payload → list of :class:`InboundMessage`.

Deliveries are untrusted JSON: any field may be missing, null or of the wrong
type. Anything that is not the expected shape is skipped, never raised on.
"""

from typing import Any, Iterator
from uuid import uuid4

import structlog

from app.gateway.schemas import InboundMessage

logger = structlog.get_logger()

WHATSAPP_OBJECT = "whatsapp_business_account"


def _objects(value: Any) -> list[dict[str, Any]]:
    """The dict items of ``value`` when it is a list, else nothing."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _field(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, dict) else None


def _raw_messages(payload: dict[str, Any]) -> Iterator[dict[str, Any]]:
    for entry in _objects(payload.get("entry")):
        for change in _objects(entry.get("changes")):
            yield from _objects(_field(change.get("value"), "messages"))


def _message_text(msg: dict[str, Any]) -> str:
    """Text a user typed or tapped; empty for media without a caption."""
    kind = msg.get("type") or "text"
    if kind == "text":
        value = _field(msg.get("text"), "body")
    elif kind == "image":
        value = _field(msg.get("image"), "caption")
    elif kind == "interactive":
        interactive = msg.get("interactive")
        choice = _field(interactive, "button_reply") or _field(interactive, "list_reply")
        value = _field(choice, "title") or _field(choice, "id")
    else:
        value = None
    return value if isinstance(value, str) else ""


class MessageNormalizer:
    """Pulls user messages out of webhook deliveries.

    Status callbacks, messages without a sender and messages without text are
    dropped here and never reach the pipeline.
    """

    def normalize_whatsapp(self, raw_payload: dict[str, Any]) -> list[InboundMessage]:
        if raw_payload.get("object") != WHATSAPP_OBJECT:
            return []

        normalized: list[InboundMessage] = []
        for msg in _raw_messages(raw_payload):
            sender = msg.get("from")
            if not isinstance(sender, (str, int)) or isinstance(sender, bool):
                sender = None
            text = _message_text(msg)
            kind = str(msg.get("type") or "text")
            if not sender or not text.strip():
                logger.info("normalizer.skipped", content_type=kind, has_sender=bool(sender))
                continue
            normalized.append(
                InboundMessage(
                    message_id=str(msg.get("id") or uuid4()),
                    user_id=str(sender),
                    content=text,
                    content_type=kind,
                )
            )
        logger.info("normalizer.whatsapp", accepted=len(normalized))
        return normalized
