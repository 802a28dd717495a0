# File: tests/test_fetcher.py
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientResponseError, web

from backlink_scout.crawler.browser import BLOCKED_RESOURCE_TYPES, BrowserSession
from backlink_scout.crawler.fetcher import Fetcher, open_session


@pytest_asyncio.fixture
async def echo_server(unused_tcp_port: int, serve) -> AsyncIterator[str]:
    app = web.Application()

    async def handle_headers(request):
        return web.json_response(
            {"ua": request.headers.get("User-Agent"), "lang": request.headers.get("Accept-Language")}
        )

    async def handle_hop(request):
        left = int(request.match_info["n"])
        if left == 0:
            return web.Response(text="landed", content_type="text/html")
        raise web.HTTPFound(f"/hop/{left - 1}")

    async def handle_binary(_):
        return web.Response(body=b"caf\xe9 \xff", content_type="text/html")

    app.router.add_get("/headers", handle_headers)
    app.router.add_get("/hop/{n}", handle_hop)
    app.router.add_get("/binary", handle_binary)

    async for url in serve(app, unused_tcp_port):
        yield url


@pytest.mark.asyncio()
async def test_user_agent_from_pool(fast_config, echo_server: str):
    cfg = fast_config.model_copy(update={"user_agents": ["Agent/1.0", "Agent/2.0"]})
    async with open_session(cfg) as session:
        page = await Fetcher(session, cfg).get(f"{echo_server}/headers")

    assert page.status == 200
    assert '"ua": "Agent/' in page.content
    assert '"lang": "en-US,en;q=0.9"' in page.content


@pytest.mark.asyncio()
async def test_redirects_followed_within_budget(fast_config, echo_server: str):
    async with open_session(fast_config) as session:
        page = await Fetcher(session, fast_config).get(f"{echo_server}/hop/2", max_redirects=3)

    assert page.ok
    assert page.content == "landed"
    assert page.final_url == f"{echo_server}/hop/0"
    assert page.url == f"{echo_server}/hop/2"


@pytest.mark.asyncio()
async def test_redirect_budget_exceeded(fast_config, echo_server: str):
    async with open_session(fast_config) as session:
        with pytest.raises(ClientResponseError):
            await Fetcher(session, fast_config).get(f"{echo_server}/hop/3", max_redirects=1)


@pytest.mark.asyncio()
async def test_zero_budget_returns_redirect(fast_config, echo_server: str):
    async with open_session(fast_config) as session:
        page = await Fetcher(session, fast_config).get(f"{echo_server}/hop/1", max_redirects=0)

    assert page.status == 302
    assert page.ok


@pytest.mark.asyncio()
async def test_head_has_no_body(fast_config, echo_server: str):
    async with open_session(fast_config) as session:
        page = await Fetcher(session, fast_config).head(f"{echo_server}/hop/0")

    assert page.status == 200
    assert page.content == ""


@pytest.mark.asyncio()
async def test_undecodable_body_is_replaced(fast_config, echo_server: str):
    async with open_session(fast_config) as session:
        page = await Fetcher(session, fast_config).get(f"{echo_server}/binary")

    assert page.status == 200
    assert page.content.startswith("caf")


class FakeRoute:
    def __init__(self, resource_type):
        self.request = type("Req", (), {"resource_type": resource_type})()
        self.action = None

    async def abort(self):
        self.action = "abort"

    async def continue_(self):
        self.action = "continue"


@pytest.mark.parametrize("resource_type", sorted(BLOCKED_RESOURCE_TYPES))
@pytest.mark.asyncio()
async def test_heavy_resources_are_aborted(fast_config, resource_type):
    route = FakeRoute(resource_type)
    await BrowserSession(fast_config)._route_handler(route)
    assert route.action == "abort"


@pytest.mark.parametrize("resource_type", ["document", "script", "xhr"])
@pytest.mark.asyncio()
async def test_markup_and_scripts_pass(fast_config, resource_type):
    route = FakeRoute(resource_type)
    await BrowserSession(fast_config)._route_handler(route)
    assert route.action == "continue"


@pytest.mark.asyncio()
async def test_navigate_requires_open_session(fast_config):
    with pytest.raises(RuntimeError):
        await BrowserSession(fast_config).navigate("https://example.com")
