"""Sehat Sathi – Gateway Schemas.

Webhook envelope, the normalized inbound message and the health payload.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class InboundMessage(BaseModel):
    """One user message extracted from a webhook delivery.

    ``user_id`` is the raw phone number; it must not be logged.
    """

    message_id: str
    user_id: str
    content: str
    content_type: str = Field(default="text", description="text | image | interactive")
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class WebhookPayload(BaseModel):
    """Outer shape of a Meta webhook POST; ``entry`` is walked by the normalizer."""

    object: str = ""
    entry: list[dict[str, Any]] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    uptime_seconds: float
    profiles: int
