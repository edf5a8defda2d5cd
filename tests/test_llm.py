"""Sehat Sathi – Gemini Client Tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.swarm.llm import GeminiClient, _extract_text


def gemini_response(status: int = 200, body: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.text = "error detail"
    response.json.return_value = body or {}
    return response


def patch_client(mock_cls: MagicMock, response: MagicMock | None = None, error: Exception | None = None) -> AsyncMock:
    mock_http = AsyncMock()
    mock_http.post = AsyncMock(side_effect=error) if error else AsyncMock(return_value=response)
    mock_http.__aenter__ = AsyncMock(return_value=mock_http)
    mock_http.__aexit__ = AsyncMock(return_value=False)
    mock_cls.return_value = mock_http
    return mock_http


OK_BODY = {"candidates": [{"content": {"parts": [{"text": "Drink clean water."}, {"text": "Use nets."}]}}]}


class TestExtractText:
    def test_joins_parts_of_first_candidate(self) -> None:
        assert _extract_text(OK_BODY) == "Drink clean water.\nUse nets."

    @pytest.mark.parametrize("body", [{}, {"candidates": []}, {"candidates": [{"content": {}}]}])
    def test_empty(self, body) -> None:
        assert _extract_text(body) == ""


class TestGeminiClient:
    def setup_method(self) -> None:
        self.llm = GeminiClient(api_key="test-key", model="gemini-test")

    @pytest.mark.anyio
    async def test_success(self) -> None:
        with patch("httpx.AsyncClient") as mock_cls:
            mock_http = patch_client(mock_cls, gemini_response(body=OK_BODY))
            text = await self.llm.complete("how to avoid malaria", system="Be brief.", temperature=0.1, max_tokens=64)

        assert text == "Drink clean water.\nUse nets."
        args, kwargs = mock_http.post.call_args
        assert args[0].endswith("/models/gemini-test:generateContent")
        assert kwargs["params"] == {"key": "test-key"}
        payload = kwargs["json"]
        assert payload["contents"][0]["parts"][0]["text"] == "how to avoid malaria"
        assert payload["systemInstruction"]["parts"][0]["text"] == "Be brief."
        assert payload["generationConfig"] == {"temperature": 0.1, "maxOutputTokens": 64}

    @pytest.mark.anyio
    async def test_no_system_instruction_when_absent(self) -> None:
        with patch("httpx.AsyncClient") as mock_cls:
            mock_http = patch_client(mock_cls, gemini_response(body=OK_BODY))
            await self.llm.complete("hello")
        assert "systemInstruction" not in mock_http.post.call_args.kwargs["json"]

    @pytest.mark.anyio
    async def test_missing_key_skips_request(self) -> None:
        with patch("httpx.AsyncClient") as mock_cls:
            assert await GeminiClient(api_key="").complete("hello") is None
            mock_cls.assert_not_called()
        assert GeminiClient(api_key="").is_configured is False

    @pytest.mark.anyio
    async def test_provider_error(self) -> None:
        with patch("httpx.AsyncClient") as mock_cls:
            patch_client(mock_cls, gemini_response(status=429))
            assert await self.llm.complete("hello") is None

    @pytest.mark.anyio
    async def test_transport_error(self) -> None:
        with patch("httpx.AsyncClient") as mock_cls:
            patch_client(mock_cls, error=httpx.ReadTimeout("timeout"))
            assert await self.llm.complete("hello") is None

    @pytest.mark.anyio
    async def test_empty_candidate(self) -> None:
        with patch("httpx.AsyncClient") as mock_cls:
            patch_client(mock_cls, gemini_response(body={"candidates": [{"content": {"parts": [{"text": "  "}]}}]}))
            assert await self.llm.complete("hello") is None
