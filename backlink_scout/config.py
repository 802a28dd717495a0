# === FILE: backlink_scout/config.py ===
"""
Loading and validation of the BacklinkScout configuration.
Pydantic describes the schema; every component receives the same frozen
:class:`ScoutConfig` instance at construction.
"""
from __future__ import annotations

import errno
import json
import os
import re
from pathlib import Path
from typing import Any, List, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

DEFAULT_USER_AGENTS: List[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/115.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
]

_TAG_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_.:-]*$")


class ScoutConfig(BaseModel):
    """Settings for one verification and crawl run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agents: List[str] = Field(
        default_factory=lambda: list(DEFAULT_USER_AGENTS),
        min_length=1,
        description="User-Agent pool, one is picked at random per request.",
    )
    verify_tag: str = Field("backlink-scout-verify", description="Name of the verification meta tag.")
    min_token_length: int = Field(10, ge=1, description="Shortest accepted verification token.")

    # executor
    max_concurrent_requests: int = Field(3, ge=1, description="Tasks in flight per batch.")
    batch_pause: float = Field(1.0, ge=0, description="Pause between batches (seconds).")
    max_retries: int = Field(3, ge=1, description="Attempts per retried task.")
    retry_delay: float = Field(2.0, ge=0, description="First backoff delay, doubled each attempt.")

    # plain HTTP
    request_timeout: float = Field(15.0, gt=0, description="Default per-request timeout (seconds).")
    max_redirects: int = Field(5, ge=0, description="Default redirect budget.")
    verify_ssl: bool = Field(True, description="Verify TLS certificates of crawled hosts.")

    # origin resolution
    probe_timeout: float = Field(8.0, gt=0, description="HEAD probe timeout per origin variant.")

    # ownership verification
    render_timeout: float = Field(45.0, gt=0, description="Navigation timeout of the rendering session.")
    settle_delay: float = Field(2.0, ge=0, description="Wait after DOM-ready for deferred scripts.")
    headless: bool = Field(True, description="Run the rendering browser headless.")
    viewport_width: int = Field(1920, ge=1)
    viewport_height: int = Field(1080, ge=1)
    fallback_timeout: float = Field(20.0, gt=0, description="Timeout of the non-rendered fallback GET.")

    # discovery & audit
    max_backlinks: int = Field(50, ge=0, description="Cap on unique discovered sources.")
    max_internal_links: int = Field(20, ge=0, description="Cap on audited same-host links.")
    audit_concurrency: int = Field(5, ge=1, description="Probes in flight per audit batch.")
    audit_timeout: float = Field(10.0, gt=0, description="Timeout of one internal link probe.")
    audit_max_redirects: int = Field(3, ge=0, description="Redirect budget of one internal link probe.")

    @field_validator("user_agents")
    def _strip_agents(cls, v: List[str]) -> List[str]:
        agents = [a.strip() for a in v if a and a.strip()]
        if not agents:
            raise ValueError("user_agents must contain at least one non-empty value")
        return agents

    @field_validator("verify_tag")
    def _check_tag(cls, v: str) -> str:
        if not _TAG_NAME_RE.match(v):
            raise ValueError(f"invalid meta tag name: {v!r}")
        return v


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Malformed YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"YAML top level must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Malformed JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"JSON top level must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> ScoutConfig:
    """
    Read YAML or JSON and return a validated ScoutConfig.

    Without an explicit path ``configs/default.yaml`` is used when it exists,
    otherwise the built-in defaults. An explicit path that does not exist
    raises FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return ScoutConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return ScoutConfig(**data)


__all__ = ["ScoutConfig", "load_config", "DEFAULT_USER_AGENTS"]
