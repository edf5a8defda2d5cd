"""Sehat Sathi – Outbreak Advisory Sources.

Where the hourly outbreak sweep gets its per-area advisory text.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Protocol

import httpx
import structlog
from pydantic import BaseModel

logger = structlog.get_logger()


class Advisory(BaseModel):
    area: str
    message: str


class AdvisorySource(Protocol):
    async def fetch_advisory(self, area: str) -> Advisory: ...


class RotatingAdvisorySource:
    """Offline source: rotates through a fixed list, one advisory per hour.

    Stands in until a government outbreak feed is configured.
    """

    def __init__(
        self,
        advisories: list[str],
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        if not advisories:
            raise ValueError("RotatingAdvisorySource needs at least one advisory")
        self._advisories = list(advisories)
        self._clock = clock

    async def fetch_advisory(self, area: str) -> Advisory:
        hours = int(self._clock().timestamp() // 3600)
        return Advisory(area=area, message=self._advisories[hours % len(self._advisories)])


class HttpAdvisorySource:
    """Fetches ``GET {url}?area=<area>`` → ``{"area": ..., "message": ...}``.

    Raises on transport errors, non-2xx responses and malformed bodies; the
    sweep isolates the failure to the one user.
    """

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self._url = url
        self._timeout = timeout

    async def fetch_advisory(self, area: str) -> Advisory:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(self._url, params={"area": area})
            response.raise_for_status()
            data = response.json()
        advisory = Advisory(area=data.get("area") or area, message=data["message"])
        logger.debug("advisories.fetched", chars=len(advisory.message))
        return advisory
