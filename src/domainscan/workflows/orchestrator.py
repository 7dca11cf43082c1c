"""End-to-end registry scan: sequential page extraction, concurrent probing."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

import aiohttp

from .aggregate import merge_page_records
from .errors import ScanFailedError
from .models import DomainRecord, ProbeOutcome, Reachability, ScanResult, ScanStatus
from .page_fetch import RegistryPageFetcher
from .reachability import ReachabilityProber
from .registry_parser import page_title, parse_fallback_links, parse_registry_page
from .scan_config import ERR_CHECK_FAILED, ScanConfig
from .scan_utils import validate_scan_request
from .storage import ScanStore

logger = logging.getLogger(__name__)

ProgressHook = Callable[[int, int, DomainRecord], None]


class ScanOrchestrator:
    """Drive fetch → parse → merge per page, then probe every discovered domain."""

    def __init__(
        self,
        store: ScanStore,
        config: Optional[ScanConfig] = None,
        fetcher: Optional[RegistryPageFetcher] = None,
        prober: Optional[ReachabilityProber] = None,
    ) -> None:
        self.store = store
        self.config = config or ScanConfig()
        self.fetcher = fetcher or RegistryPageFetcher(self.config)
        self.prober = prober or ReachabilityProber(self.config)
        self._sleep = asyncio.sleep

    async def run_scan(
        self,
        page_count: int,
        probe_timeout: Optional[float] = None,
        progress_hook: Optional[ProgressHook] = None,
    ) -> ScanResult:
        timeout = self.config.probe_timeout if probe_timeout is None else probe_timeout
        validate_scan_request(page_count, timeout)
        logger.info("starting scan of %d page(s) with %gs timeout per domain", page_count, timeout)

        try:
            connector = aiohttp.TCPConnector(limit=self.config.probe_concurrency)
            async with aiohttp.ClientSession(connector=connector) as session:
                records, first_markup = await self._scan_pages(session, page_count)
                if not records:
                    logger.info("no table rows found on any page, trying link fallback")
                    records = parse_fallback_links(first_markup, self.config.excluded_substrings)
                    logger.info("fallback found %d domain(s)", len(records))
                probed = await self._probe_all(session, records, timeout, progress_hook)
            scan = self.store.create(probed, ScanStatus.COMPLETED)
        except Exception as exc:
            logger.exception("domain scan failed: %s", exc)
            failed = self._persist_failure()
            raise ScanFailedError(str(exc) or type(exc).__name__, scan=failed) from exc

        working = sum(1 for r in scan.domains if r.reachability is Reachability.WORKING)
        logger.info(
            "scan %s completed: %d domain(s), %d working, %d broken",
            scan.id,
            len(scan.domains),
            working,
            len(scan.domains) - working,
        )
        return scan

    async def _scan_pages(
        self,
        session: aiohttp.ClientSession,
        page_count: int,
    ) -> Tuple[List[DomainRecord], str]:
        collected: List[DomainRecord] = []
        first_markup = ""
        for page in range(1, page_count + 1):
            logger.info("scanning page %d/%d", page, page_count)
            markup = await self.fetcher.fetch(session, page)
            if page == 1:
                first_markup = markup
            logger.debug("page %d title: %s", page, page_title(markup))
            collected, accepted = merge_page_records(collected, parse_registry_page(markup))
            for record in accepted:
                logger.debug(
                    "page %d found %s | status %s | owner %s | hosts %d",
                    page,
                    record.domain,
                    record.registration_status,
                    record.owner,
                    record.host_count,
                )
            logger.info(
                "page %d: %d new domain(s) (total %d)", page, len(accepted), len(collected)
            )
            if page < page_count:
                await self._sleep(self.config.page_delay)
        return collected, first_markup

    async def _probe_all(
        self,
        session: aiohttp.ClientSession,
        records: List[DomainRecord],
        timeout: float,
        progress_hook: Optional[ProgressHook] = None,
    ) -> List[DomainRecord]:
        # One slot per record; each task writes only its own index.
        slots = [replace(record, reachability=Reachability.CHECKING, reachability_error=None) for record in records]
        total = len(slots)
        semaphore = asyncio.Semaphore(self.config.probe_concurrency) if self.config.probe_concurrency > 0 else None
        completed = 0

        async def _probe_slot(index: int) -> None:
            nonlocal completed
            record = slots[index]
            try:
                if semaphore is not None:
                    async with semaphore:
                        outcome = await self.prober.probe(session, record.domain, timeout)
                else:
                    outcome = await self.prober.probe(session, record.domain, timeout)
            except Exception as exc:
                logger.warning("error checking %s: %s", record.domain, exc)
                outcome = ProbeOutcome.broken(ERR_CHECK_FAILED)
            slots[index] = replace(
                record,
                reachability=outcome.classification,
                reachability_error=outcome.error if outcome.classification is Reachability.BROKEN else None,
            )
            completed += 1
            logger.info(
                "%s: %s%s",
                record.domain,
                outcome.classification.value,
                f" ({outcome.error})" if outcome.error else "",
            )
            if progress_hook is not None:
                try:
                    progress_hook(completed, total, slots[index])
                except Exception:
                    pass

        await asyncio.gather(*(_probe_slot(i) for i in range(total)))
        return slots

    def _persist_failure(self) -> Optional[ScanResult]:
        try:
            return self.store.create([], ScanStatus.FAILED)
        except Exception as exc:
            logger.error("failed to store failed scan: %s", exc)
            return None


__all__ = ["ScanOrchestrator", "ProgressHook"]
