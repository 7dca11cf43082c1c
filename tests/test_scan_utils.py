import pytest

from domainscan.workflows.errors import ValidationError
from domainscan.workflows.models import DomainRecord, Reachability, ScanStatus
from domainscan.workflows.report import format_record_line, summarize_scan
from domainscan.workflows.scan_utils import (
    is_hostname,
    parse_host_count,
    strip_www,
    validate_probe_timeout,
    validate_scan_request,
)
from domainscan.workflows.storage import MemoryScanStore


@pytest.mark.parametrize("text, expected", [
    ("(12 hosts in use)", 12),
    ("  (0 hosts in use) ", 0),
    ("(1234   hosts in use)", 1234),
    ("12 hosts in use", 0),
    ("", 0),
])
def test_parse_host_count(text, expected):
    assert parse_host_count(text) == expected


@pytest.mark.parametrize("text, expected", [
    ("example.org", True),
    ("a-b.c-d.example.co", True),
    ("localhost", False),
    ("example.o", False),
    ("example.123", False),
    ("exa mple.org", False),
    ("under_score.org", False),
])
def test_is_hostname(text, expected):
    assert is_hostname(text) is expected


def test_strip_www():
    assert strip_www("www.example.org") == "example.org"
    assert strip_www("WWW.example.org") == "example.org"
    assert strip_www("wwwexample.org") == "wwwexample.org"


def test_validate_scan_request_bounds():
    validate_scan_request(1, 10)
    validate_scan_request(230, 60)
    validate_probe_timeout(10)
    with pytest.raises(ValidationError):
        validate_probe_timeout(61)
    with pytest.raises(ValidationError) as excinfo:
        validate_scan_request(1, 9.5)
    assert excinfo.value.details == {"timeout": 9.5}


def test_summarize_scan_counts():
    records = [
        DomainRecord("a.example", "public", "x", "1 year", 0, Reachability.WORKING),
        DomainRecord("b.example", "public", "x", "1 year", 0, Reachability.BROKEN, "Connection failed"),
        DomainRecord("c.example", "public", "x", "1 year", 0, Reachability.BROKEN, "HTTP 410"),
    ]
    scan = MemoryScanStore().create(records, ScanStatus.COMPLETED)

    summary = summarize_scan(scan)

    assert summary["counts"]["total"] == 3
    assert summary["counts"]["working"] == 1
    assert summary["counts"]["broken"] == 2
    assert summary["message"].startswith("Successfully extracted 3 domains from FreeDNS registry.")
    assert format_record_line(records[1]).endswith("broken (Connection failed)")
