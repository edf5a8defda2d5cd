"""Sehat Sathi – Gateway.

WhatsApp webhook ingress, health and metrics endpoints, and the lifespan
that runs the notification scheduler.
"""

import asyncio
import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from app.core.instrumentation import router as metrics_router
from app.core.instrumentation import setup_instrumentation
from app.gateway.dependencies import Services, build_services
from app.gateway.schemas import HealthResponse, WebhookPayload
from app.scheduler.loop import scheduler_loop

logger = structlog.get_logger()

VERSION = "1.0.0"
SERVICE_NAME = "sehat-sathi-gateway"

# --- Globals ---
services: Services = build_services()
settings = services.settings
_started_at = time.monotonic()
_inflight: set[asyncio.Task] = set()


def _enforce_startup_guards() -> None:
    if not settings.is_production:
        return
    if settings.meta_verify_token in {"", "change-me", "changeme"}:
        raise RuntimeError("Refusing startup in production with a default webhook verify token.")


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[type-arg]
    """Start the sweep scheduler on startup, cancel it on shutdown."""
    _enforce_startup_guards()
    logger.info("gateway.startup", version=VERSION, env=settings.environment)
    background_tasks: list[asyncio.Task] = []
    if settings.scheduler_enabled:
        background_tasks.append(
            asyncio.create_task(
                scheduler_loop(
                    services.scheduler,
                    outbreak_cron=settings.outbreak_alert_cron,
                    reminder_cron=settings.vaccination_reminder_cron,
                    poll_seconds=settings.scheduler_poll_seconds,
                )
            )
        )
    else:
        logger.warning("gateway.scheduler_disabled")

    yield
    for task in background_tasks:
        task.cancel()
    logger.info("gateway.shutdown")


app = FastAPI(
    title="Sehat Sathi Gateway",
    description="Public health intake router for WhatsApp",
    version=VERSION,
    lifespan=lifespan,
)

setup_instrumentation(app, settings.log_level)
app.include_router(metrics_router)


def _spawn(identity: str, text: str) -> None:
    task = asyncio.create_task(services.pipeline.handle(identity, text))
    _inflight.add(task)
    task.add_done_callback(_inflight.discard)


@app.get("/", response_model=HealthResponse)
@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        service=SERVICE_NAME,
        version=VERSION,
        uptime_seconds=round(time.monotonic() - _started_at, 3),
        profiles=len(services.store),
    )


@app.get("/webhook")
async def verify_webhook(
    hub_mode: str | None = Query(default=None, alias="hub.mode"),
    hub_verify_token: str | None = Query(default=None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(default=None, alias="hub.challenge"),
):
    """Meta webhook verification handshake."""
    if hub_mode == "subscribe" and hub_verify_token and hub_verify_token == settings.meta_verify_token:
        logger.info("webhook.verified")
        return PlainTextResponse(hub_challenge or "")
    logger.warning("webhook.verification_failed", mode=hub_mode)
    return PlainTextResponse("Forbidden", status_code=403)


@app.post("/webhook")
async def receive_webhook(
    request: Request,
    x_hub_signature_256: str | None = Header(default=None),
):
    """Accept WhatsApp events. Always acknowledges so Meta does not retry."""
    body = await request.body()

    if settings.meta_app_secret and not services.whatsapp.verify_webhook_signature(body, x_hub_signature_256 or ""):
        logger.warning("webhook.invalid_signature")
        return JSONResponse({"error": "invalid signature"}, status_code=401)

    try:
        payload = WebhookPayload.model_validate_json(body)
    except ValidationError:
        logger.warning("webhook.malformed_payload")
        return {"status": "ignored"}

    messages = services.normalizer.normalize_whatsapp(payload.model_dump())
    for message in messages:
        _spawn(message.user_id, message.content)

    return {"status": "ok", "accepted": len(messages)}
