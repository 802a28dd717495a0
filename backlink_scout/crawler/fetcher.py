# backlink_scout/crawler/fetcher.py
"""
Fetcher module: plain HTTP requests with per-call timeout, redirect budget
and a rotating User-Agent.

Network errors are not swallowed here. ``aiohttp.ClientError`` and
``asyncio.TimeoutError`` reach the caller, which decides whether the failure
is isolated (search surface, probe) or retried.
"""
from __future__ import annotations

import random
from typing import Dict, Optional

from aiohttp import ClientSession, ClientTimeout

from backlink_scout.config import ScoutConfig
from backlink_scout.crawler.models import PageData
from backlink_scout.errors import UpstreamSourceFailure

BASE_HEADERS: Dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "DNT": "1",
}


def open_session(config: ScoutConfig) -> ClientSession:
    """Create the shared ClientSession for one crawl request."""
    return ClientSession(
        timeout=ClientTimeout(total=config.request_timeout),
        headers=BASE_HEADERS,
        raise_for_status=False,
    )


class Fetcher:
    """Thin wrapper over a ClientSession returning :class:`PageData`."""

    def __init__(self, session: ClientSession, config: ScoutConfig) -> None:
        self.session = session
        self.config = config

    def _user_agent(self) -> str:
        return random.choice(self.config.user_agents)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        timeout: Optional[float],
        max_redirects: Optional[int],
        read_body: bool,
    ) -> PageData:
        budget = self.config.max_redirects if max_redirects is None else max_redirects
        async with self.session.request(
            method,
            url,
            headers={"User-Agent": self._user_agent()},
            timeout=ClientTimeout(total=timeout or self.config.request_timeout),
            # aiohttp treats max_redirects=0 as unlimited
            allow_redirects=budget > 0,
            max_redirects=max(budget, 1),
            ssl=self.config.verify_ssl,
        ) as resp:
            text = await resp.text(errors="replace") if read_body else ""
            return PageData(url=url, final_url=str(resp.url), status=resp.status, content=text)

    async def head(
        self, url: str, *, timeout: Optional[float] = None, max_redirects: Optional[int] = None
    ) -> PageData:
        return await self._request(
            "HEAD", url, timeout=timeout, max_redirects=max_redirects, read_body=False
        )

    async def get(
        self, url: str, *, timeout: Optional[float] = None, max_redirects: Optional[int] = None
    ) -> PageData:
        """GET *url* and decode the body; undecodable bytes are replaced."""
        return await self._request(
            "GET", url, timeout=timeout, max_redirects=max_redirects, read_body=True
        )


async def get_or_raise_5xx(fetcher, url: str, **kwargs) -> PageData:
    """GET *url* through *fetcher*, turning a 5xx answer into an exception.

    Meant as the factory passed to ``ThrottledExecutor.retry`` so server
    errors are retried like connection failures.
    """
    page = await fetcher.get(url, **kwargs)
    if page.status >= 500:
        raise UpstreamSourceFailure(f"retryable status {page.status} from {url}")
    return page
