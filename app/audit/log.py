"""Sehat Sathi – Anonymized Audit Log.

Append-only record of what the bot did, for observability. Stores the
pseudonymous id and the content length only: never raw text, never the
phone number.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger()


class AuditMessageType(str, Enum):
    MESSAGE = "message"
    ALERT = "alert"
    REMINDER = "reminder"


class AuditEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    pseudonymous_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message_type: AuditMessageType
    content_length: int = Field(ge=0)
    intent: str = "unknown"


class AuditLog:
    """In-memory append-only sink; each event is also emitted as a log line."""

    def __init__(self) -> None:
        self._events: list[AuditEvent] = []

    def __len__(self) -> int:
        return len(self._events)

    def record(
        self,
        pseudonymous_id: str,
        message_type: AuditMessageType,
        content: str | None,
        intent: str | None = None,
    ) -> AuditEvent:
        event = AuditEvent(
            pseudonymous_id=pseudonymous_id,
            message_type=message_type,
            content_length=len(content or ""),
            intent=intent or "unknown",
        )
        self._events.append(event)
        logger.info(
            "audit.event",
            pseudonymous_id=event.pseudonymous_id,
            message_type=event.message_type.value,
            content_length=event.content_length,
            intent=event.intent,
        )
        return event

    def events(self) -> tuple[AuditEvent, ...]:
        return tuple(self._events)
