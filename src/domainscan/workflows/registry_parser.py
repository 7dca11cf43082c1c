"""Extract domain records from FreeDNS registry listing markup.

The listing is an uncontrolled HTML page, so everything here is defensive:
missing cells, links or spans yield empty strings or zero and never abort the
parse of other rows.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from bs4 import BeautifulSoup  # type: ignore
from bs4.element import Tag  # type: ignore

from .models import DomainRecord
from .scan_config import (
    REGISTRY_MIN_CELLS,
    REGISTRY_ROW_SELECTOR,
    REGISTRY_SELF_SUBSTRINGS,
    UNKNOWN_FIELD,
)
from .scan_utils import contains_any, is_hostname, parse_host_count, strip_www

logger = logging.getLogger(__name__)


def _soup(markup: str) -> Optional[BeautifulSoup]:
    try:
        return BeautifulSoup(markup or "", "lxml")
    except Exception as exc:
        logger.warning("unable to parse registry markup: %s", exc)
        return None


def _text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return node.get_text().strip()


def _parse_row(row: Tag) -> Optional[DomainRecord]:
    cells = row.find_all("td")
    if len(cells) < REGISTRY_MIN_CELLS:
        return None
    domain_cell, status_cell, owner_cell, age_cell = cells[:REGISTRY_MIN_CELLS]

    domain = _text(domain_cell.find("a"))
    span_text = "".join(span.get_text() for span in domain_cell.find_all("span"))
    host_count = parse_host_count(span_text)

    status = _text(status_cell)
    owner_links = "".join(a.get_text() for a in owner_cell.find_all("a")).strip()
    owner = owner_links or _text(owner_cell)
    age = _text(age_cell)

    if not domain or not status:
        return None
    return DomainRecord(
        domain=domain,
        registration_status=status,
        owner=owner,
        age=age,
        host_count=host_count,
    )


def parse_registry_page(markup: str) -> List[DomainRecord]:
    """Return the records of every well-formed registry row, in page order."""

    soup = _soup(markup)
    if soup is None:
        return []
    records: List[DomainRecord] = []
    for row in soup.select(REGISTRY_ROW_SELECTOR):
        record = _parse_row(row)
        if record is not None:
            records.append(record)
    return records


def parse_fallback_links(
    markup: str,
    excluded_substrings: Iterable[str] = REGISTRY_SELF_SUBSTRINGS,
) -> List[DomainRecord]:
    """Permissive link scan used when no structured rows were found anywhere.

    Every hyperlink whose text is a bare host name becomes a record with
    ``unknown`` registry fields.
    """

    soup = _soup(markup)
    if soup is None:
        return []
    excluded = tuple(excluded_substrings)
    seen: Set[str] = set()
    records: List[DomainRecord] = []
    for link in soup.find_all("a", href=True):
        candidate = link.get_text().strip()
        if not candidate or not is_hostname(candidate):
            continue
        domain = strip_www(candidate)
        if not is_hostname(domain) or contains_any(domain, excluded):
            continue
        if domain in seen:
            continue
        seen.add(domain)
        records.append(
            DomainRecord(
                domain=domain,
                registration_status=UNKNOWN_FIELD,
                owner=UNKNOWN_FIELD,
                age=UNKNOWN_FIELD,
                host_count=0,
            )
        )
    return records


def page_title(markup: str) -> str:
    soup = _soup(markup)
    if soup is None or soup.title is None:
        return ""
    return soup.title.get_text().strip()


__all__ = ["parse_registry_page", "parse_fallback_links", "page_title"]
