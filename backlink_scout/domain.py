# File: backlink_scout/domain.py
"""backlink_scout.domain: normalization of user-supplied domains and live origin resolution."""

from __future__ import annotations

import asyncio
import re
from typing import List, Protocol, Sequence
from urllib.parse import urlsplit

from aiohttp import ClientError

from backlink_scout.config import ScoutConfig
from backlink_scout.crawler.models import PageData, ResolvedOrigin
from backlink_scout.errors import InvalidInputError
from backlink_scout.logger import logger

__all__: Sequence[str] = (
    "LOOPBACK_HOSTS",
    "normalize_domain",
    "is_loopback",
    "is_subdomain",
    "candidate_origins",
    "OriginResolver",
)

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1"})

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")


class _Prober(Protocol):
    async def head(self, url: str, *, timeout: float | None = None,
                   max_redirects: int | None = None) -> PageData: ...


def _valid_hostname(host: str) -> bool:
    if len(host) > 253:
        return False
    return all(_LABEL_RE.match(label) for label in host.split("."))


def normalize_domain(raw: str) -> str:
    """Turn free-form input into a NormalizedDomain.

    ``HTTPS://WWW.Example.com/path`` → ``example.com``. Loopback hosts keep
    their port (``localhost:3000``). Internationalized names come back as
    punycode (``bücher.de`` → ``xn--bcher-kva.de``). Raises InvalidInputError
    when no hostname can be parsed.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidInputError("Invalid URL: empty input")
    clean = raw.strip()
    if not _SCHEME_RE.match(clean):
        clean = "https://" + clean
    elif not clean.lower().startswith(("http://", "https://")):
        raise InvalidInputError(f"Invalid URL: unsupported scheme in {raw!r}")
    try:
        parsed = urlsplit(clean)
        host = parsed.hostname
        port = parsed.port
    except ValueError as exc:
        raise InvalidInputError(f"Invalid URL: {exc}") from exc
    if host:
        # internationalized names are kept in their punycode form
        try:
            host = host.encode("idna").decode("ascii")
        except UnicodeError as exc:
            raise InvalidInputError(f"Invalid URL: {raw!r}") from exc
    if not host or not _valid_hostname(host):
        raise InvalidInputError(f"Invalid URL: {raw!r}")

    if host.startswith("www."):
        host = host[4:]
        if not host:
            raise InvalidInputError(f"Invalid URL: {raw!r}")
    if host in LOOPBACK_HOSTS:
        return f"{host}:{port}" if port else host
    return host


def is_loopback(domain: str) -> bool:
    return domain.split(":", 1)[0] in LOOPBACK_HOSTS


def is_subdomain(domain: str) -> bool:
    """Three or more labels (``blog.example.com``) mean a subdomain."""
    return len(domain.split(":", 1)[0].split(".")) > 2


def candidate_origins(domain: str) -> List[str]:
    """Ordered origin variants to probe.

    Subdomains and loopback hosts only vary the scheme; a ``www.`` prefix
    would change the host identity.
    """
    if is_subdomain(domain) or is_loopback(domain):
        return [f"https://{domain}", f"http://{domain}"]
    return [
        f"https://{domain}",
        f"https://www.{domain}",
        f"http://{domain}",
        f"http://www.{domain}",
    ]


class OriginResolver:
    """Probes origin variants one after another and returns the first live one."""

    def __init__(self, prober: _Prober, config: ScoutConfig) -> None:
        self.prober = prober
        self.config = config

    async def resolve(self, domain: str) -> ResolvedOrigin:
        kind = "subdomain" if is_subdomain(domain) else "root domain"
        logger.info("Testing %s: %s", kind, domain)
        for url in candidate_origins(domain):
            logger.debug("  Trying: %s", url)
            try:
                page = await self.prober.head(url, timeout=self.config.probe_timeout)
            except (ClientError, asyncio.TimeoutError) as exc:
                logger.debug("  Failed %s: %s", url, exc or type(exc).__name__)
                continue
            if not page.ok:
                logger.debug("  Failed %s: HTTP %s", url, page.status)
                continue
            final = page.final_url.rstrip("/") if page.final_url else url
            logger.info("Working URL found: %s", final)
            return ResolvedOrigin(domain=domain, url=final or url)

        # keep going with https; verification reports the real problem
        logger.warning("No reachable origin for %s, using https://%s", domain, domain)
        return ResolvedOrigin(domain=domain, url=f"https://{domain}", reachable=False)
