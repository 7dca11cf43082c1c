"""Scanner defaults (registry endpoint, headers, filter signatures, limits).

Centralizes static defaults so the workflow modules have no embedded magic
strings. ``ScanConfig`` bundles the tunable knobs; callers can build one
directly or via :meth:`ScanConfig.from_env`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

# Endpoints
REGISTRY_URL = "https://freedns.afraid.org/domain/registry/"
PAGE_QUERY_PARAM = "page"

# Substrings identifying the registry's own links (fallback parser ignores them)
REGISTRY_SELF_SUBSTRINGS = ("freedns", "afraid")

# Headers
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
PAGE_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
PAGE_ACCEPT_LANGUAGE = "en-US,en;q=0.5"
PAGE_ACCEPT_ENCODING = "gzip, deflate"

# Registry row markup
REGISTRY_ROW_SELECTOR = "tr.trl, tr.trd"
REGISTRY_MIN_CELLS = 4
UNKNOWN_FIELD = "unknown"

# Filter-vendor signatures (matched against the lower-cased final URL / body)
FILTER_URL_SIGNATURES = (
    "securly",
    "blocked",
    "filter",
    "websense",
    "lightspeed",
    "barracuda",
)
FILTER_BODY_SIGNATURES = (
    "securly",
    "this site has been blocked",
    "access denied",
    "content filtered",
    "blocked by",
    "website blocked",
    "content filter",
    "websense",
    "lightspeed",
    "barracuda",
)

# Probe error messages
ERR_FILTER_BLOCKED = "Blocked by security filter (Securly/similar)"
ERR_CONNECTION_FAILED = "Connection failed"
ERR_UNKNOWN = "Unknown error"
ERR_CHECK_FAILED = "Check failed"

# Request limits (pages per scan, seconds per probe)
MIN_PAGES = 1
MAX_PAGES = 230
MIN_PROBE_TIMEOUT = 10.0
MAX_PROBE_TIMEOUT = 60.0

# Paths (working-directory relative)
DEFAULT_STORE_PATH = Path("run") / "scans" / "scans.jsonl"


def _env_int(name: str, default: int = 0) -> int:
    try:
        raw = os.getenv(name, "")
        return int(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float = 0.0) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ScanConfig:
    """Configuration parameters for one registry scan."""

    registry_url: str = REGISTRY_URL
    page_timeout: float = 30.0
    page_max_redirects: int = 5
    page_delay: float = 1.0
    probe_timeout: float = 30.0
    probe_max_redirects: int = 10
    # 0 leaves the probe fan-out unbounded
    probe_concurrency: int = 0
    user_agent: str = DEFAULT_USER_AGENT
    excluded_substrings: Tuple[str, ...] = REGISTRY_SELF_SUBSTRINGS

    @classmethod
    def from_env(cls) -> "ScanConfig":
        return cls(
            registry_url=os.getenv("DOMAINSCAN_REGISTRY_URL", "").strip() or REGISTRY_URL,
            page_timeout=max(1.0, _env_float("DOMAINSCAN_PAGE_TIMEOUT", 30.0)),
            page_delay=max(0.0, _env_float("DOMAINSCAN_PAGE_DELAY", 1.0)),
            probe_timeout=min(
                MAX_PROBE_TIMEOUT,
                max(MIN_PROBE_TIMEOUT, _env_float("DOMAINSCAN_PROBE_TIMEOUT", 30.0)),
            ),
            probe_concurrency=max(0, _env_int("DOMAINSCAN_PROBE_CONCURRENCY", 0)),
            user_agent=os.getenv("DOMAINSCAN_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
        )


def resolve_store_path() -> Path:
    env_path = os.getenv("DOMAINSCAN_STORE_PATH", "").strip()
    if env_path:
        return Path(env_path)
    return DEFAULT_STORE_PATH
