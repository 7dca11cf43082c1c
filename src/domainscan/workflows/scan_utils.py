"""Shared helper functions used by the scan workflow."""

from __future__ import annotations

import re
from typing import Iterable

from .errors import ValidationError
from .scan_config import MAX_PAGES, MAX_PROBE_TIMEOUT, MIN_PAGES, MIN_PROBE_TIMEOUT

HOSTNAME_RE = re.compile(r"^(?:[A-Za-z0-9-]+\.)+[A-Za-z]{2,}$")
HOST_COUNT_RE = re.compile(r"\((\d+)\s+hosts in use\)")


def is_hostname(text: str) -> bool:
    """Return True for strict ``label(.label)+`` host names with an alphabetic TLD."""

    return bool(HOSTNAME_RE.match(text or ""))


def strip_www(host: str) -> str:
    return host[4:] if host.lower().startswith("www.") else host


def contains_any(text: str, needles: Iterable[str]) -> bool:
    lowered = (text or "").lower()
    return any(needle.lower() in lowered for needle in needles)


def parse_host_count(text: str) -> int:
    """Return ``k`` from a ``(k hosts in use)`` fragment, or 0 when absent."""

    match = HOST_COUNT_RE.search(text or "")
    if not match:
        return 0
    return int(match.group(1))


def validate_probe_timeout(timeout: float) -> None:
    if not MIN_PROBE_TIMEOUT <= timeout <= MAX_PROBE_TIMEOUT:
        raise ValidationError(
            f"timeout must be between {MIN_PROBE_TIMEOUT:g} and {MAX_PROBE_TIMEOUT:g} seconds",
            details={"timeout": timeout},
        )


def validate_scan_request(pages: int, timeout: float) -> None:
    if not MIN_PAGES <= pages <= MAX_PAGES:
        raise ValidationError(
            f"pages must be between {MIN_PAGES} and {MAX_PAGES}",
            details={"pages": pages},
        )
    validate_probe_timeout(timeout)


__all__ = [
    "HOSTNAME_RE",
    "HOST_COUNT_RE",
    "is_hostname",
    "strip_www",
    "contains_any",
    "parse_host_count",
    "validate_probe_timeout",
    "validate_scan_request",
]
