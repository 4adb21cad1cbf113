# test/conftest.py
# Shared fixtures: a fake web served through httpx.MockTransport.
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Tuple, Union

import httpx
import pytest

Page = Union[Tuple[int, str], Exception]

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0)


class FakeWeb:
    """
    Maps URL -> (status, body) or an exception to raise.
    Unknown URLs answer 404. Every request URL is recorded in order.
    """

    def __init__(self, pages: Dict[str, Page] | None = None) -> None:
        self.pages: Dict[str, Page] = dict(pages or {})
        self.requests: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        page = self.pages.get(url)
        if page is None:
            return httpx.Response(404, text="not found")
        if isinstance(page, Exception):
            raise page
        status, body = page
        if 300 <= status < 400:
            return httpx.Response(status, headers={"Location": body})
        return httpx.Response(status, text=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def web() -> FakeWeb:
    return FakeWeb()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW
