"""Exceptions raised by the scan workflow.

Every error carries a human-readable ``message`` plus optional structured
``details`` so the CLI can render either a one-line failure or a JSON payload.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .models import ScanResult


class DomainScanError(Exception):
    """Base exception for all domainscan errors."""

    error_code: str = "DOMAINSCAN_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        response: Dict[str, Any] = {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


class ValidationError(DomainScanError):
    """Scan request parameters are out of range."""

    error_code = "VALIDATION_ERROR"


class FetchError(DomainScanError):
    """A registry page could not be retrieved."""

    error_code = "FETCH_ERROR"

    def __init__(
        self,
        message: str,
        *,
        url: str,
        page: Optional[int] = None,
        status: Optional[int] = None,
    ):
        details: Dict[str, Any] = {"url": url}
        if page is not None:
            details["page"] = page
        if status is not None:
            details["status"] = status
        super().__init__(message, details=details)
        self.url = url
        self.page = page
        self.status = status


class ProbeError(DomainScanError):
    """One probe attempt failed; recovered into a classification by the prober."""

    error_code = "PROBE_ERROR"


class PersistenceError(DomainScanError):
    """The scan store could not be read or written."""

    error_code = "PERSISTENCE_ERROR"


class ScanFailedError(DomainScanError):
    """A scan run failed; ``scan`` holds the persisted failure record, if any."""

    error_code = "SCAN_FAILED"

    def __init__(self, message: str, scan: Optional["ScanResult"] = None):
        details = {"scan_id": scan.id} if scan is not None else None
        super().__init__(message, details=details)
        self.scan = scan
