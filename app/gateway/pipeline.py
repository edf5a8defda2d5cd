"""Sehat Sathi – Inbound Message Pipeline.

inbound (identity, text) → profile (load/create, language refresh)
→ rule parser → resolver → outbound send → audit.

``handle`` never raises: every message ends in a sent reply or a deliberate
no-op, so one bad message cannot stop the next.
"""

from __future__ import annotations

import structlog

from app.audit.log import AuditLog, AuditMessageType
from app.core.instrumentation import INBOUND_MESSAGE_COUNT
from app.integrations.dispatcher import OutboundSender
from app.profiles.store import ProfileStore
from app.swarm.resolver import Resolution, ResponseResolver
from app.swarm.router.parser import parse_intent

logger = structlog.get_logger()


class InboundPipeline:
    def __init__(
        self,
        store: ProfileStore,
        resolver: ResponseResolver,
        sender: OutboundSender,
        audit: AuditLog,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._sender = sender
        self._audit = audit

    async def handle(self, identity: str | None, text: str | None) -> Resolution | None:
        """Process one inbound message.

        Returns:
            The resolution that was sent, or None for malformed events and
            internal failures.
        """
        if not identity or not (text or "").strip():
            logger.info("pipeline.malformed_event", has_identity=bool(identity))
            return None

        try:
            async with self._store.lock(identity):
                profile = await self._store.ensure(identity, text)
                intent = parse_intent(text)
                resolution = await self._resolver.resolve(intent, profile, raw_text=text or "")
                pseudonymous_id = profile.pseudonymous_id

            delivered = await self._sender.send(identity, resolution.content)
            self._audit.record(pseudonymous_id, AuditMessageType.MESSAGE, text, resolution.intent)
        except Exception as e:
            logger.exception("pipeline.failed", error=str(e))
            INBOUND_MESSAGE_COUNT.labels(intent="error", status="error").inc()
            return None

        INBOUND_MESSAGE_COUNT.labels(
            intent=resolution.intent,
            status="sent" if delivered else "send_failed",
        ).inc()
        logger.info(
            "pipeline.reply_sent" if delivered else "pipeline.reply_not_delivered",
            pseudonymous_id=pseudonymous_id,
            rule_intent=intent.name,
            intent=resolution.intent,
            effects=resolution.effects,
        )
        return resolution
