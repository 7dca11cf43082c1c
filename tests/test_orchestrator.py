import asyncio

import pytest

from domainscan.workflows.errors import FetchError, PersistenceError, ScanFailedError, ValidationError
from domainscan.workflows.models import ProbeOutcome, Reachability, ScanStatus
from domainscan.workflows.orchestrator import ScanOrchestrator
from domainscan.workflows.scan_config import ScanConfig
from domainscan.workflows.storage import MemoryScanStore


def _row(domain, status="public", owner="owner", age="1 year", hosts=0):
    return (
        f'<tr class="trl"><td><a href="#">{domain}</a><span>({hosts} hosts in use)</span></td>'
        f'<td>{status}</td><td><a href="#">{owner}</a></td><td>{age}</td></tr>'
    )


def _page(*rows, links=()):
    anchors = "".join(f'<a href="/x">{text}</a>' for text in links)
    return f"<html><body><table>{''.join(rows)}</table>{anchors}</body></html>"


class FakeFetcher:
    def __init__(self, pages):
        self.pages = pages
        self.requested = []

    async def fetch(self, session, page_index):
        self.requested.append(page_index)
        outcome = self.pages[page_index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeProber:
    def __init__(self, outcomes=None, default=None):
        self.outcomes = outcomes or {}
        self.default = default or ProbeOutcome.working()
        self.calls = []

    async def probe(self, session, domain, timeout_seconds=None):
        self.calls.append((domain, timeout_seconds))
        await asyncio.sleep(0)
        outcome = self.outcomes.get(domain, self.default)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FailingStore(MemoryScanStore):
    def __init__(self, fail_statuses):
        super().__init__()
        self.fail_statuses = set(fail_statuses)

    def create(self, domains, status):
        if status in self.fail_statuses:
            raise PersistenceError(f"cannot store {status.value} scan")
        return super().create(domains, status)


def _orchestrator(pages, prober=None, store=None, concurrency=0):
    store = store if store is not None else MemoryScanStore()
    fetcher = FakeFetcher(pages)
    prober = prober or FakeProber()
    orchestrator = ScanOrchestrator(
        store,
        config=ScanConfig(page_delay=1.0, probe_concurrency=concurrency),
        fetcher=fetcher,
        prober=prober,
    )
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    orchestrator._sleep = fake_sleep
    return orchestrator, store, fetcher, prober, sleeps


def test_scan_merges_pages_probes_and_persists():
    pages = {
        1: _page(_row("a.example", hosts=4), _row("b.example")),
        2: _page(_row("b.example", owner="late"), _row("c.example")),
    }
    prober = FakeProber({"b.example": ProbeOutcome.broken("HTTP 404")})
    orchestrator, store, fetcher, _, sleeps = _orchestrator(pages, prober)

    scan = asyncio.run(orchestrator.run_scan(2, 15))

    assert scan.status is ScanStatus.COMPLETED
    assert [r.domain for r in scan.domains] == ["a.example", "b.example", "c.example"]
    assert scan.domains[0].host_count == 4
    assert scan.domains[1].owner == "owner"
    assert [r.reachability for r in scan.domains] == [
        Reachability.WORKING,
        Reachability.BROKEN,
        Reachability.WORKING,
    ]
    assert scan.domains[1].reachability_error == "HTTP 404"
    assert scan.domains[0].reachability_error is None
    assert fetcher.requested == [1, 2]
    assert sorted(prober.calls) == [("a.example", 15), ("b.example", 15), ("c.example", 15)]
    assert sleeps == [1.0]
    assert store.get_latest() == scan


def test_pacing_only_between_pages():
    pages = {i: _page(_row(f"d{i}.example")) for i in range(1, 4)}
    orchestrator, _, _, _, sleeps = _orchestrator(pages)

    asyncio.run(orchestrator.run_scan(3, 10))

    assert sleeps == [1.0, 1.0]


def test_fallback_runs_when_every_page_is_empty():
    pages = {
        1: _page(links=["www.linked.example", "freedns.afraid.org", "other.example"]),
        2: _page(links=["ignored.example"]),
    }
    orchestrator, _, _, prober, _ = _orchestrator(pages)

    scan = asyncio.run(orchestrator.run_scan(2, 10))

    assert [r.domain for r in scan.domains] == ["linked.example", "other.example"]
    assert all(r.registration_status == "unknown" for r in scan.domains)
    assert all(r.reachability is Reachability.WORKING for r in scan.domains)
    assert {domain for domain, _ in prober.calls} == {"linked.example", "other.example"}


def test_fallback_skipped_when_a_later_page_has_rows():
    pages = {
        1: _page(links=["linked.example"]),
        2: _page(_row("table.example")),
    }
    orchestrator, _, _, _, _ = _orchestrator(pages)

    scan = asyncio.run(orchestrator.run_scan(2, 10))

    assert [r.domain for r in scan.domains] == ["table.example"]


def test_empty_registry_without_links_completes_empty():
    orchestrator, store, _, prober, _ = _orchestrator({1: _page()})

    scan = asyncio.run(orchestrator.run_scan(1, 10))

    assert scan.status is ScanStatus.COMPLETED
    assert scan.domains == ()
    assert prober.calls == []
    assert store.list_all() == [scan]


def test_probe_exception_is_downgraded_without_aborting_batch():
    pages = {1: _page(_row("ok.example"), _row("crash.example"), _row("late.example"))}
    prober = FakeProber({"crash.example": RuntimeError("kaboom")})
    orchestrator, _, _, _, _ = _orchestrator(pages, prober)

    scan = asyncio.run(orchestrator.run_scan(1, 10))

    by_domain = {r.domain: r for r in scan.domains}
    assert by_domain["crash.example"].reachability is Reachability.BROKEN
    assert by_domain["crash.example"].reachability_error == "Check failed"
    assert by_domain["ok.example"].reachability is Reachability.WORKING
    assert by_domain["late.example"].reachability is Reachability.WORKING


def test_bounded_concurrency_keeps_classification():
    pages = {1: _page(*[_row(f"d{i}.example") for i in range(6)])}
    prober = FakeProber({"d3.example": ProbeOutcome.broken("Connection failed")})
    orchestrator, _, _, _, _ = _orchestrator(pages, prober, concurrency=2)

    scan = asyncio.run(orchestrator.run_scan(1, 10))

    assert [r.domain for r in scan.domains] == [f"d{i}.example" for i in range(6)]
    assert [r.reachability_error for r in scan.domains] == [None, None, None, "Connection failed", None, None]


def test_progress_hook_sees_every_settled_record():
    pages = {1: _page(_row("a.example"), _row("b.example"))}
    orchestrator, _, _, _, _ = _orchestrator(pages)
    seen = []

    def hook(done, total, record):
        seen.append((done, total, record.reachability))
        raise ValueError("hooks must not break the scan")

    asyncio.run(orchestrator.run_scan(1, 10, progress_hook=hook))

    assert sorted(done for done, _, _ in seen) == [1, 2]
    assert all(total == 2 and state is Reachability.WORKING for _, total, state in seen)


def test_fetch_failure_on_later_page_persists_failed_scan_and_raises():
    pages = {
        1: _page(_row("a.example")),
        2: FetchError("connection reset", url="https://registry/?page=2", page=2),
        3: _page(_row("c.example")),
    }
    orchestrator, store, fetcher, prober, _ = _orchestrator(pages)

    with pytest.raises(ScanFailedError) as excinfo:
        asyncio.run(orchestrator.run_scan(3, 10))

    failed = excinfo.value.scan
    assert failed is not None
    assert failed.status is ScanStatus.FAILED
    assert failed.domains == ()
    assert isinstance(excinfo.value.__cause__, FetchError)
    assert "connection reset" in excinfo.value.message
    assert fetcher.requested == [1, 2]
    assert prober.calls == []
    assert store.list_all() == [failed]


def test_failure_record_persistence_error_is_swallowed():
    store = FailingStore({ScanStatus.FAILED})
    pages = {1: FetchError("offline", url="https://registry/", page=1)}
    orchestrator, _, _, _, _ = _orchestrator(pages, store=store)

    with pytest.raises(ScanFailedError) as excinfo:
        asyncio.run(orchestrator.run_scan(1, 10))

    assert excinfo.value.scan is None
    assert isinstance(excinfo.value.__cause__, FetchError)
    assert store.list_all() == []


def test_success_persistence_error_propagates():
    store = FailingStore({ScanStatus.COMPLETED})
    orchestrator, _, _, _, _ = _orchestrator({1: _page(_row("a.example"))}, store=store)

    with pytest.raises(ScanFailedError) as excinfo:
        asyncio.run(orchestrator.run_scan(1, 10))

    assert isinstance(excinfo.value.__cause__, PersistenceError)
    assert excinfo.value.scan is not None
    assert excinfo.value.scan.status is ScanStatus.FAILED


@pytest.mark.parametrize("pages, timeout", [(0, 10), (231, 10), (1, 5), (1, 61)])
def test_invalid_requests_are_rejected_before_any_work(pages, timeout):
    orchestrator, store, fetcher, _, _ = _orchestrator({})

    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.run_scan(pages, timeout))

    assert fetcher.requested == []
    assert store.list_all() == []
