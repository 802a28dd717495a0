# File: backlink_scout/discovery.py
"""backlink_scout.discovery: backlink candidates from public search result pages.

Each search surface is one task for the throttled executor. A surface that
errors, blocks or returns a non-200 page contributes an empty list; the
union of all lists is deduplicated in submission order and capped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence
from urllib.parse import quote

from backlink_scout.config import ScoutConfig
from backlink_scout.crawler.fetcher import get_or_raise_5xx
from backlink_scout.crawler.link_extractor import extract_external_links
from backlink_scout.crawler.models import PageData
from backlink_scout.errors import UpstreamSourceFailure
from backlink_scout.executor import ThrottledExecutor
from backlink_scout.logger import logger
from backlink_scout.progress import ProgressReporter
from backlink_scout.utils import flatten, remove_duplicates

__all__: Sequence[str] = (
    "APP_STORE_HOSTS",
    "SearchSurface",
    "SEARCH_SURFACES",
    "build_queries",
    "BacklinkDiscovery",
)

APP_STORE_HOSTS: tuple[str, str] = ("play.google.com", "apps.apple.com")


class _Getter(Protocol):
    async def get(self, url: str, *, timeout: float | None = None,
                  max_redirects: int | None = None) -> PageData: ...


@dataclass(frozen=True, slots=True)
class SearchSurface:
    """A public search result page; ``query`` selects which query string it receives."""

    name: str
    url_template: str
    query: str = "exact"

    def url_for(self, queries: Dict[str, str]) -> str:
        return self.url_template.format(q=quote(queries[self.query], safe=""))


SEARCH_SURFACES: tuple[SearchSurface, ...] = (
    SearchSurface("DuckDuckGo", "https://html.duckduckgo.com/html/?q={q}"),
    SearchSurface("Bing", "https://www.bing.com/search?q={q}"),
    SearchSurface("Bing Apps", "https://www.bing.com/search?q={q}", query="apps"),
    SearchSurface("Yahoo", "https://search.yahoo.com/search?p={q}"),
    SearchSurface("Baidu", "https://www.baidu.com/s?wd={q}", query="domain"),
    SearchSurface("Yandex", "https://yandex.com/search/?text={q}", query="domain"),
)


def build_queries(domain: str) -> Dict[str, str]:
    """Query strings for *domain*: exact-phrase exclusion, app stores by brand, bare domain."""
    brand = domain.split(".", 1)[0]
    stores = " OR ".join(f"site:{host}" for host in APP_STORE_HOSTS)
    return {
        "exact": f'"{domain}" -site:{domain}',
        "apps": f'{stores} "{brand}"',
        "domain": domain,
    }


class BacklinkDiscovery:
    """Fans the queries out over :data:`SEARCH_SURFACES` and merges the results."""

    def __init__(
        self,
        fetcher: _Getter,
        config: ScoutConfig,
        *,
        executor: Optional[ThrottledExecutor] = None,
        surfaces: Sequence[SearchSurface] = SEARCH_SURFACES,
    ) -> None:
        self.fetcher = fetcher
        self.config = config
        self.executor = executor or ThrottledExecutor.from_config(config)
        self.surfaces = tuple(surfaces)

    async def _scrape_surface(self, surface: SearchSurface, url: str, domain: str) -> List[str]:
        try:
            page = await self.executor.retry(lambda: get_or_raise_5xx(self.fetcher, url))
            if page.status != 200:
                raise UpstreamSourceFailure(f"HTTP {page.status}")
            links = extract_external_links(page.content, domain)
        except Exception as exc:
            logger.warning("  ✗ %s: %s", surface.name, exc or type(exc).__name__)
            return []
        logger.info("  ✓ %s: %d links found", surface.name, len(links))
        return links

    async def discover(self, domain: str, progress: Optional[ProgressReporter] = None) -> List[str]:
        """Return at most ``max_backlinks`` unique external URLs mentioning *domain*."""
        progress = progress or ProgressReporter()
        queries = build_queries(domain)
        logger.info("Backlink discovery for %s over %d surfaces", domain, len(self.surfaces))

        tasks = []
        for surface in self.surfaces:
            url = surface.url_for(queries)
            tasks.append(lambda s=surface, u=url: self._scrape_surface(s, u, domain))

        outcomes = await self.executor.run(tasks)
        unique = remove_duplicates(flatten(o.value for o in outcomes if o.fulfilled and o.value))
        logger.info("Found %d unique potential sources", len(unique))
        progress.emit("backlinks", len(unique))
        return unique[: self.config.max_backlinks]
