# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Dict, List, Optional, Tuple, Union

import pytest
from aiohttp import ClientConnectionError, web

from backlink_scout.config import ScoutConfig
from backlink_scout.crawler.browser import NavigationResult
from backlink_scout.crawler.models import PageData

Answer = Union[PageData, BaseException, int, str]


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


# --------------------------------------------------------------------------- #
#                                   Fakes                                     #
# --------------------------------------------------------------------------- #


class FakeFetcher:
    """In-memory stand-in for :class:`backlink_scout.crawler.fetcher.Fetcher`.

    ``pages`` maps a URL (exact match first, then the longest prefix) to a
    PageData, an HTML string (200), a bare status code, or an exception to
    raise. Unknown URLs raise ClientConnectionError.
    """

    def __init__(self, pages: Optional[Dict[str, Answer]] = None) -> None:
        self.pages: Dict[str, Answer] = dict(pages or {})
        self.calls: List[Tuple[str, str]] = []

    def _lookup(self, url: str) -> Optional[Answer]:
        if url in self.pages:
            return self.pages[url]
        prefixes = [k for k in self.pages if url.startswith(k)]
        if prefixes:
            return self.pages[max(prefixes, key=len)]
        return None

    def _answer(self, url: str) -> PageData:
        answer = self._lookup(url)
        if answer is None:
            raise ClientConnectionError(f"no route to {url}")
        if isinstance(answer, BaseException):
            raise answer
        if isinstance(answer, PageData):
            return answer
        if isinstance(answer, int):
            return PageData(url=url, final_url=url, status=answer)
        return PageData(url=url, final_url=url, status=200, content=answer)

    async def head(self, url, *, timeout=None, max_redirects=None) -> PageData:
        self.calls.append(("HEAD", url))
        return self._answer(url)

    async def get(self, url, *, timeout=None, max_redirects=None) -> PageData:
        self.calls.append(("GET", url))
        return self._answer(url)

    def urls(self, method: str) -> List[str]:
        return [u for m, u in self.calls if m == method]


class FakeRender:
    """Scripted rendering session factory.

    Each ``navigate()`` consumes the next step: a NavigationResult, None, or an
    exception to raise. With no steps left navigation succeeds with HTTP 200.
    """

    def __init__(self, html: str = "", steps: Optional[list] = None) -> None:
        self.html = html
        self.steps = list(steps or [])
        self.navigated: List[str] = []
        self.opened = 0
        self.closed = 0

    def __call__(self, config: ScoutConfig) -> "_FakeSession":
        return _FakeSession(self)


class _FakeSession:
    def __init__(self, owner: FakeRender) -> None:
        self.owner = owner

    async def __aenter__(self) -> "_FakeSession":
        self.owner.opened += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.owner.closed += 1

    async def navigate(self, url: str) -> Optional[NavigationResult]:
        self.owner.navigated.append(url)
        if not self.owner.steps:
            return NavigationResult(url=url, status=200, ok=True)
        step = self.owner.steps.pop(0)
        if isinstance(step, BaseException):
            raise step
        return step

    async def content(self) -> str:
        return self.owner.html


def meta_tag(token: str, name: str = "backlink-scout-verify") -> str:
    return f'<html><head><meta name="{name}" content="{token}"></head><body></body></html>'


# --------------------------------------------------------------------------- #
#                                  Fixtures                                   #
# --------------------------------------------------------------------------- #


@pytest.fixture()
def fast_config() -> ScoutConfig:
    """Defaults with every pause and backoff removed."""
    return ScoutConfig(
        batch_pause=0,
        retry_delay=0,
        settle_delay=0,
        probe_timeout=2.0,
        request_timeout=5.0,
    )


@pytest.fixture()
def fake_fetcher() -> type[FakeFetcher]:
    return FakeFetcher


@pytest.fixture()
def fake_render() -> type[FakeRender]:
    return FakeRender


@pytest.fixture()
def verify_page():
    return meta_tag


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def serve():
    return serve_app
