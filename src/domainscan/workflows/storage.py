"""Scan record stores.

Stores only ever append: a scan result is created once and never updated or
deleted. ``MemoryScanStore`` suits tests and one-shot runs; ``JsonlScanStore``
keeps one JSON object per line so history survives across CLI invocations.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from .errors import PersistenceError
from .models import DomainRecord, ScanResult, ScanStatus

logger = logging.getLogger(__name__)


class ScanStore(Protocol):
    def create(self, domains: Iterable[DomainRecord], status: ScanStatus) -> ScanResult:
        ...

    def get_latest(self) -> Optional[ScanResult]:
        ...

    def list_all(self) -> List[ScanResult]:
        ...


def _new_scan(domains: Iterable[DomainRecord], status: ScanStatus) -> ScanResult:
    return ScanResult(
        id=uuid.uuid4().hex,
        status=ScanStatus(status),
        completed_at=datetime.now(timezone.utc),
        domains=tuple(domains),
    )


def _newest_first(scans: Iterable[ScanResult]) -> List[ScanResult]:
    # Input is in creation order; reversing first keeps later scans ahead on timestamp ties.
    return sorted(reversed(list(scans)), key=lambda scan: scan.completed_at, reverse=True)


class MemoryScanStore:
    """In-process store keyed by scan id."""

    def __init__(self) -> None:
        self._scans: Dict[str, ScanResult] = {}

    def create(self, domains: Iterable[DomainRecord], status: ScanStatus) -> ScanResult:
        scan = _new_scan(domains, status)
        self._scans[scan.id] = scan
        return scan

    def get_latest(self) -> Optional[ScanResult]:
        scans = self.list_all()
        return scans[0] if scans else None

    def list_all(self) -> List[ScanResult]:
        return _newest_first(self._scans.values())


class JsonlScanStore:
    """Append-only JSON-lines file store."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def create(self, domains: Iterable[DomainRecord], status: ScanStatus) -> ScanResult:
        scan = _new_scan(domains, status)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(scan.to_json() + "\n")
        except OSError as exc:
            raise PersistenceError(
                f"Unable to write scan {scan.id} to {self.path}: {exc}",
                details={"path": str(self.path)},
            ) from exc
        return scan

    def get_latest(self) -> Optional[ScanResult]:
        scans = self.list_all()
        return scans[0] if scans else None

    def list_all(self) -> List[ScanResult]:
        if not self.path.exists():
            return []
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise PersistenceError(
                f"Unable to read scans from {self.path}: {exc}",
                details={"path": str(self.path)},
            ) from exc
        scans: List[ScanResult] = []
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                scans.append(ScanResult.from_dict(json.loads(line)))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("skipping unreadable scan record %s:%d (%s)", self.path, lineno, exc)
        return _newest_first(scans)


__all__ = ["ScanStore", "MemoryScanStore", "JsonlScanStore"]
