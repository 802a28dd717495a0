# File: tests/test_discovery.py
from __future__ import annotations

from urllib.parse import quote

import pytest

from backlink_scout.crawler.models import PageData
from backlink_scout.discovery import SEARCH_SURFACES, BacklinkDiscovery, SearchSurface, build_queries
from backlink_scout.progress import ProgressReporter

DDG = "https://html.duckduckgo.com/html/"
BING_EXACT = "https://www.bing.com/search?q=%22"
BING_APPS = "https://www.bing.com/search?q=site"
YAHOO = "https://search.yahoo.com/search"
BAIDU = "https://www.baidu.com/s"
YANDEX = "https://yandex.com/search/"


def serp(*urls: str) -> str:
    return "".join(f'<a href="{u}">{u}</a>' for u in urls)


def test_build_queries():
    queries = build_queries("example.com")
    assert queries == {
        "exact": '"example.com" -site:example.com',
        "apps": 'site:play.google.com OR site:apps.apple.com "example"',
        "domain": "example.com",
    }


def test_surface_urls_are_encoded():
    queries = build_queries("example.com")
    urls = [s.url_for(queries) for s in SEARCH_SURFACES]
    assert urls[0] == DDG + "?q=" + quote('"example.com" -site:example.com', safe="")
    assert urls[4] == "https://www.baidu.com/s?wd=example.com"
    assert all(" " not in u for u in urls)
    assert [s.name for s in SEARCH_SURFACES] == [
        "DuckDuckGo", "Bing", "Bing Apps", "Yahoo", "Baidu", "Yandex",
    ]


@pytest.mark.asyncio()
async def test_discover_merges_and_dedupes(fast_config, fake_fetcher):
    fetcher = fake_fetcher(
        {
            DDG: serp("https://github.com/acme", "https://example.com/self", "https://medium.com/x"),
            BING_EXACT: serp("https://www.bing.com/next", "https://github.com/acme", "https://reddit.com/r/a"),
            BING_APPS: serp("https://play.google.com/store/apps/details?id=com.example"),
            YAHOO: 503,
            BAIDU: ConnectionResetError("reset by peer"),
            # Yandex missing: connection error on every attempt
        }
    )
    events = []
    sources = await BacklinkDiscovery(fetcher, fast_config).discover(
        "example.com", ProgressReporter(lambda s, p: events.append((s, p)))
    )

    assert sources == [
        "https://github.com/acme",
        "https://medium.com/x",
        "https://reddit.com/r/a",
        "https://play.google.com/store/apps/details?id=com.example",
    ]
    assert events == [("backlinks", 4)]


@pytest.mark.asyncio()
async def test_failing_surfaces_are_retried(fast_config, fake_fetcher):
    fetcher = fake_fetcher({DDG: serp("https://github.com/acme")})
    sources = await BacklinkDiscovery(fetcher, fast_config).discover("example.com")

    assert sources == ["https://github.com/acme"]
    gets = fetcher.urls("GET")
    # one successful surface, five unreachable ones with every attempt used
    assert len(gets) == 1 + 5 * fast_config.max_retries


@pytest.mark.asyncio()
async def test_all_surfaces_failing_yields_empty(fast_config, fake_fetcher):
    sources = await BacklinkDiscovery(fake_fetcher(), fast_config).discover("example.com")
    assert sources == []


@pytest.mark.asyncio()
async def test_discover_caps_results(fast_config, fake_fetcher):
    cfg = fast_config.model_copy(update={"max_backlinks": 3})
    many = serp(*(f"https://site{i}.org/" for i in range(10)))
    fetcher = fake_fetcher({DDG: many})
    sources = await BacklinkDiscovery(fetcher, cfg).discover("example.com")
    assert sources == ["https://site0.org/", "https://site1.org/", "https://site2.org/"]


@pytest.mark.asyncio()
async def test_non_200_success_status_counts_as_failure(fast_config, fake_fetcher):
    page = PageData(url=DDG, final_url=DDG, status=202, content=serp("https://github.com/acme"))
    fetcher = fake_fetcher({DDG: page})
    surfaces = [SearchSurface("DuckDuckGo", DDG + "?q={q}")]
    sources = await BacklinkDiscovery(fetcher, fast_config, surfaces=surfaces).discover("example.com")
    assert sources == []


@pytest.mark.asyncio()
async def test_server_error_surface_is_retried(fast_config, fake_fetcher):
    fetcher = fake_fetcher({DDG: 503})
    surfaces = [SearchSurface("DuckDuckGo", DDG + "?q={q}")]

    sources = await BacklinkDiscovery(fetcher, fast_config, surfaces=surfaces).discover("example.com")

    assert sources == []
    assert len(fetcher.urls("GET")) == fast_config.max_retries


@pytest.mark.asyncio()
async def test_surface_recovers_after_server_error(fast_config, fake_fetcher):
    answers = [PageData(DDG, DDG, 503), PageData(DDG, DDG, 200, serp("https://github.com/acme"))]

    class Recovering(fake_fetcher):
        async def get(self, url, *, timeout=None, max_redirects=None):
            self.calls.append(("GET", url))
            return answers.pop(0)

    fetcher = Recovering()
    surfaces = [SearchSurface("DuckDuckGo", DDG + "?q={q}")]

    sources = await BacklinkDiscovery(fetcher, fast_config, surfaces=surfaces).discover("example.com")

    assert sources == ["https://github.com/acme"]
    assert len(fetcher.urls("GET")) == 2


@pytest.mark.asyncio()
async def test_client_error_surface_is_not_retried(fast_config, fake_fetcher):
    fetcher = fake_fetcher({DDG: 403})
    surfaces = [SearchSurface("DuckDuckGo", DDG + "?q={q}")]

    assert await BacklinkDiscovery(fetcher, fast_config, surfaces=surfaces).discover("example.com") == []
    assert len(fetcher.urls("GET")) == 1
