"""HTTP(S) reachability probe with filter-block detection.

A probe tries ``http://<domain>`` and, only when that attempt fails at the
transport level, ``https://<domain>``. The first response that gets through is
classified from its final URL, body and status; the probe itself never raises.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

import aiohttp

from .errors import ProbeError
from .models import ProbeOutcome
from .scan_config import (
    ERR_CONNECTION_FAILED,
    ERR_FILTER_BLOCKED,
    ERR_UNKNOWN,
    FILTER_BODY_SIGNATURES,
    FILTER_URL_SIGNATURES,
    ScanConfig,
)

logger = logging.getLogger(__name__)

# Failures that move the probe on to the next scheme
_TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ProbeError, OSError)


def detect_filter_block(final_url: str, body: str) -> Optional[str]:
    """Return the first filter-vendor signature found in the URL or body."""

    url_lower = (final_url or "").lower()
    for token in FILTER_URL_SIGNATURES:
        if token in url_lower:
            return token
    body_lower = (body or "").lower()
    for token in FILTER_BODY_SIGNATURES:
        if token in body_lower:
            return token
    return None


def classify_response(status: int, final_url: str, body: str) -> ProbeOutcome:
    if detect_filter_block(final_url, body):
        return ProbeOutcome.broken(ERR_FILTER_BLOCKED)
    if 400 <= status < 500:
        return ProbeOutcome.broken(f"HTTP {status}")
    return ProbeOutcome.working()


class ReachabilityProber:
    """Classify a domain as working or broken over plain HTTP(S)."""

    def __init__(self, config: Optional[ScanConfig] = None) -> None:
        self.config = config or ScanConfig()

    async def probe(
        self,
        session: aiohttp.ClientSession,
        domain: str,
        timeout_seconds: Optional[float] = None,
    ) -> ProbeOutcome:
        timeout = self.config.probe_timeout if timeout_seconds is None else timeout_seconds
        try:
            for url in (f"http://{domain}", f"https://{domain}"):
                try:
                    status, final_url, body = await self._fetch_once(session, url, timeout)
                except _TRANSPORT_ERRORS as exc:
                    logger.debug("probe %s failed: %s", url, exc or type(exc).__name__)
                    continue
                return classify_response(status, final_url, body)
            return ProbeOutcome.broken(ERR_CONNECTION_FAILED)
        except Exception as exc:
            return ProbeOutcome.broken(str(exc) or ERR_UNKNOWN)

    async def _fetch_once(
        self,
        session: aiohttp.ClientSession,
        url: str,
        timeout: float,
    ) -> Tuple[int, str, str]:
        async with session.get(
            url,
            headers={"User-Agent": self.config.user_agent},
            timeout=aiohttp.ClientTimeout(total=timeout),
            allow_redirects=True,
            max_redirects=self.config.probe_max_redirects,
        ) as resp:
            if resp.status >= 500:
                raise ProbeError(f"HTTP {resp.status}", details={"url": url, "status": resp.status})
            raw_bytes = await resp.read()
            return resp.status, str(resp.url), raw_bytes.decode("utf-8", "ignore")


async def check_domain(
    domain: str,
    timeout_seconds: Optional[float] = None,
    config: Optional[ScanConfig] = None,
) -> ProbeOutcome:
    """Probe one domain outside of a scan, with a session of its own."""

    prober = ReachabilityProber(config)
    async with aiohttp.ClientSession() as session:
        return await prober.probe(session, domain, timeout_seconds)


__all__ = ["detect_filter_block", "classify_response", "ReachabilityProber", "check_domain"]
