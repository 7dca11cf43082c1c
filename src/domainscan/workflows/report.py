"""Human-readable summaries of scan results."""

from __future__ import annotations

from typing import Any, Dict

from .models import DomainRecord, Reachability, ScanResult


def summarize_scan(scan: ScanResult, pages: int | None = None) -> Dict[str, Any]:
    counts = {state.value: 0 for state in Reachability}
    for record in scan.domains:
        counts[record.reachability.value] += 1
    counts["total"] = len(scan.domains)
    source = f"{pages} page(s) of " if pages else ""
    message = (
        f"Successfully extracted {counts['total']} domains from {source}FreeDNS registry. "
        f"Website checks: {counts['working']} working, {counts['broken']} broken."
    )
    return {"scan_id": scan.id, "status": scan.status.value, "counts": counts, "message": message}


def format_record_line(record: DomainRecord) -> str:
    state = record.reachability.value
    if record.reachability_error:
        state = f"{state} ({record.reachability_error})"
    return "\t".join(
        [
            record.domain,
            record.registration_status,
            record.owner,
            f"{record.host_count} hosts",
            record.age,
            state,
        ]
    )


def format_scan_line(scan: ScanResult) -> str:
    return f"{scan.completed_at.isoformat()}\t{scan.id}\t{scan.status.value}\t{len(scan.domains)} domains"


__all__ = ["summarize_scan", "format_record_line", "format_scan_line"]
