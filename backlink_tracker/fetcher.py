# backlink_tracker/fetcher.py
"""
HTTPX-based page fetcher.

Responsibilities:
- One GET per call, redirects followed, no retries.
- Non-200 responses are ordinary results (FetchResponse), not errors.
- Transport-level failures (DNS, TLS, connect, timeout) come back as
  TransportFailure values carrying the error text.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from backlink_tracker.models import FetchResponse, FetchResult, TransportFailure

log = logging.getLogger(__name__)


def _error_text(e: Exception) -> str:
    message = str(e)
    name = type(e).__name__
    return f"{name}: {message}" if message else name


class Fetcher:
    """
    Async context manager around a single httpx.AsyncClient.

    Config keys consumed:
      - user_agent: str
      - timeout: float (seconds)
    """

    def __init__(
        self,
        config: Dict[str, Any],
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "Fetcher":
        headers = {
            "User-Agent": self.config.get(
                "user_agent",
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/107.0.0.0 Safari/537.36",
            )
        }
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.config.get("timeout", 10.0),
            headers=headers,
            transport=self._transport,
        )
        log.debug("httpx session initialized.")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        log.debug("httpx session closed.")

    async def fetch(self, url: str) -> FetchResult:
        if self._client is None:
            raise RuntimeError("Fetcher used outside of its 'async with' block")

        try:
            resp = await self._client.get(url)
        except httpx.RequestError as e:
            msg = _error_text(e)
            log.warning("Network error fetching %s: %s", url, msg)
            return TransportFailure(url=url, error=msg)
        except httpx.InvalidURL as e:
            msg = _error_text(e)
            log.warning("Invalid URL %s: %s", url, msg)
            return TransportFailure(url=url, error=msg)

        if resp.status_code != 200:
            log.info("Non-200 response for %s: %d", url, resp.status_code)

        return FetchResponse(
            url=url,
            status_code=resp.status_code,
            text=resp.text,
            final_url=str(resp.url),
        )
