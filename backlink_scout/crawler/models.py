# backlink_scout/crawler/models.py
"""
Data models shared by the crawler, the verifier and the report assembler.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

TIMEOUT_MARKER = "TIMEOUT"


@dataclass(slots=True)
class PageData:
    """Result of one plain HTTP request."""

    url: str
    final_url: str
    status: int
    content: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400


@dataclass(frozen=True, slots=True)
class ResolvedOrigin:
    """Scheme + host (+ port) chosen for a normalized domain.

    ``reachable`` is False when no variant answered and the https
    last-resort origin was used.
    """

    domain: str
    url: str
    reachable: bool = True


class LinkStatus(str, Enum):
    OK = "OK"
    BROKEN = "BROKEN"


class BacklinkStatus(str, Enum):
    LIVE = "LIVE"


@dataclass(frozen=True, slots=True)
class Classification:
    category: str
    authority: int
    value: int


@dataclass(frozen=True, slots=True)
class BacklinkRecord:
    source: str
    category: str
    authority: int
    value: int
    status: BacklinkStatus = BacklinkStatus.LIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "type": self.category,
            "authority": self.authority,
            "value": self.value,
            "status": self.status.value,
        }


@dataclass(frozen=True, slots=True)
class InternalLinkRecord:
    url: str
    status: LinkStatus
    code: Union[int, str]

    @property
    def broken(self) -> bool:
        return self.status is LinkStatus.BROKEN

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "status": self.status.value, "code": self.code}
