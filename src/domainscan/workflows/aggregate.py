"""Merge per-page registry records into one ordered, de-duplicated collection."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .models import DomainRecord


def merge_page_records(
    existing: Sequence[DomainRecord],
    page_records: Iterable[DomainRecord],
) -> Tuple[List[DomainRecord], List[DomainRecord]]:
    """Return ``(updated, accepted)`` after folding one page into ``existing``.

    First occurrence wins: a record is accepted only when its domain is not yet
    present, including domains accepted earlier from the same page. Neither
    input is mutated.
    """

    seen = {record.domain for record in existing}
    updated = list(existing)
    accepted: List[DomainRecord] = []
    for record in page_records:
        if record.domain in seen:
            continue
        seen.add(record.domain)
        updated.append(record)
        accepted.append(record)
    return updated, accepted


__all__ = ["merge_page_records"]
