"""Sehat Sathi – Gateway Tests.

Tests: Health endpoint, Webhook verification, Webhook ingress, Metrics.
"""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from app.gateway import main
from app.gateway.main import app, services, settings


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def text_event(sender: str = "919876543210", body: str = "help") -> dict:
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "WABA_ID",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "messages": [{"from": sender, "id": "wamid.1", "type": "text", "text": {"body": body}}],
                        },
                    }
                ],
            }
        ],
    }


# ──────────────────────────────────────────
# Health Endpoint
# ──────────────────────────────────────────


class TestHealthEndpoint:
    @pytest.mark.anyio
    @pytest.mark.parametrize("path", ["/", "/health"])
    async def test_health(self, client: AsyncClient, path: str) -> None:
        response = await client.get(path)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "sehat-sathi-gateway"
        assert data["version"] == "1.0.0"
        assert data["uptime_seconds"] >= 0
        assert data["profiles"] == len(services.store)

    @pytest.mark.anyio
    async def test_metrics_exposed(self, client: AsyncClient) -> None:
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert "# HELP sehat_inbound_messages_total" in response.text


# ──────────────────────────────────────────
# Webhook Verification
# ──────────────────────────────────────────


class TestWebhookVerification:
    @pytest.mark.anyio
    async def test_valid_token_echoes_challenge(self, client: AsyncClient) -> None:
        response = await client.get(
            "/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": settings.meta_verify_token, "hub.challenge": "1158201444"},
        )
        assert response.status_code == 200
        assert response.text == "1158201444"

    @pytest.mark.anyio
    async def test_wrong_token_is_forbidden(self, client: AsyncClient) -> None:
        response = await client.get(
            "/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "123"},
        )
        assert response.status_code == 403

    @pytest.mark.anyio
    async def test_wrong_mode_is_forbidden(self, client: AsyncClient) -> None:
        response = await client.get(
            "/webhook",
            params={"hub.mode": "unsubscribe", "hub.verify_token": settings.meta_verify_token, "hub.challenge": "123"},
        )
        assert response.status_code == 403


# ──────────────────────────────────────────
# Webhook Ingress
# ──────────────────────────────────────────


class TestWebhookIngress:
    @pytest.mark.anyio
    async def test_text_message_is_accepted(self, client: AsyncClient) -> None:
        with patch.object(services.pipeline, "handle", new_callable=AsyncMock) as handle:
            response = await client.post("/webhook", json=text_event(body="symptoms dengue"))
            for task in list(main._inflight):
                await task

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "accepted": 1}
        handle.assert_awaited_once_with("919876543210", "symptoms dengue")

    @pytest.mark.anyio
    async def test_status_only_event(self, client: AsyncClient) -> None:
        payload = {"object": "whatsapp_business_account", "entry": [{"changes": [{"value": {"statuses": [{}]}}]}]}
        with patch.object(services.pipeline, "handle", new_callable=AsyncMock) as handle:
            response = await client.post("/webhook", json=payload)
        assert response.json() == {"status": "ok", "accepted": 0}
        handle.assert_not_called()

    @pytest.mark.anyio
    @pytest.mark.parametrize("text_field", [{"body": None}, "hi"])
    async def test_malformed_message_does_not_sink_the_batch(self, client: AsyncClient, text_field) -> None:
        payload = text_event(body="vaccines")
        messages = payload["entry"][0]["changes"][0]["value"]["messages"]
        messages.insert(0, {"from": "911111111111", "id": "wamid.bad", "type": "text", "text": text_field})

        with patch.object(services.pipeline, "handle", new_callable=AsyncMock) as handle:
            response = await client.post("/webhook", json=payload)
            for task in list(main._inflight):
                await task

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "accepted": 1}
        handle.assert_awaited_once_with("919876543210", "vaccines")

    @pytest.mark.anyio
    async def test_malformed_body_is_acknowledged(self, client: AsyncClient) -> None:
        response = await client.post(
            "/webhook", content=b"not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 200
        assert response.json() == {"status": "ignored"}

    @pytest.mark.anyio
    async def test_signature_required_when_secret_set(self, client: AsyncClient) -> None:
        body = json.dumps(text_event()).encode()
        with patch.object(settings, "meta_app_secret", "app-secret"), \
                patch.object(services.whatsapp, "_app_secret", "app-secret"), \
                patch.object(services.pipeline, "handle", new_callable=AsyncMock) as handle:
            bad = await client.post(
                "/webhook",
                content=body,
                headers={"Content-Type": "application/json", "X-Hub-Signature-256": "sha256=bad"},
            )
            signature = hmac.new(b"app-secret", body, hashlib.sha256).hexdigest()
            good = await client.post(
                "/webhook",
                content=body,
                headers={"Content-Type": "application/json", "X-Hub-Signature-256": f"sha256={signature}"},
            )
            for task in list(main._inflight):
                await task

        assert bad.status_code == 401
        assert good.status_code == 200
        assert good.json()["accepted"] == 1
        handle.assert_awaited_once()


class TestStartupGuards:
    def test_default_token_rejected_in_production(self) -> None:
        with patch.object(settings, "environment", "production"), \
                patch.object(settings, "meta_verify_token", "change-me"):
            with pytest.raises(RuntimeError):
                main._enforce_startup_guards()

    def test_non_production_is_lenient(self) -> None:
        with patch.object(settings, "meta_verify_token", "change-me"):
            main._enforce_startup_guards()
