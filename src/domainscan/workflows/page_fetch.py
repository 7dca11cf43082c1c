"""Fetch raw registry listing pages."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Tuple

import aiohttp

from .errors import FetchError
from .scan_config import (
    PAGE_ACCEPT,
    PAGE_ACCEPT_ENCODING,
    PAGE_ACCEPT_LANGUAGE,
    PAGE_QUERY_PARAM,
    ScanConfig,
)

logger = logging.getLogger(__name__)


def build_page_url(base_url: str, page_index: int) -> str:
    """Return the listing URL for a 1-based page index."""

    if page_index < 1:
        raise ValueError(f"page index must be >= 1, got {page_index}")
    if page_index == 1:
        return base_url
    return f"{base_url}?{PAGE_QUERY_PARAM}={page_index}"


class RegistryPageFetcher:
    """Single-shot GET of one registry page; no retries."""

    def __init__(self, config: Optional[ScanConfig] = None) -> None:
        self.config = config or ScanConfig()

    def headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.config.user_agent,
            "Accept": PAGE_ACCEPT,
            "Accept-Language": PAGE_ACCEPT_LANGUAGE,
            "Accept-Encoding": PAGE_ACCEPT_ENCODING,
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
        }

    async def fetch(self, session: aiohttp.ClientSession, page_index: int) -> str:
        url = build_page_url(self.config.registry_url, page_index)
        try:
            status, text = await self._fetch_once(session, url)
        except asyncio.TimeoutError as exc:
            raise FetchError(
                f"Timed out after {self.config.page_timeout:g}s fetching {url}",
                url=url,
                page=page_index,
            ) from exc
        except aiohttp.ClientError as exc:
            raise FetchError(
                f"Failed to fetch {url}: {exc or type(exc).__name__}",
                url=url,
                page=page_index,
            ) from exc
        if not 200 <= status < 300:
            raise FetchError(
                f"Registry page {page_index} returned HTTP {status}",
                url=url,
                page=page_index,
                status=status,
            )
        logger.debug("fetched page %d (%d chars) from %s", page_index, len(text), url)
        return text

    async def _fetch_once(self, session: aiohttp.ClientSession, url: str) -> Tuple[int, str]:
        async with session.get(
            url,
            headers=self.headers(),
            timeout=aiohttp.ClientTimeout(total=self.config.page_timeout),
            max_redirects=self.config.page_max_redirects,
        ) as resp:
            raw_bytes = await resp.read()
            return resp.status, raw_bytes.decode("utf-8", "ignore")


__all__ = ["build_page_url", "RegistryPageFetcher"]
