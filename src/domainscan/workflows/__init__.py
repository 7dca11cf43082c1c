"""High-level exports for the scan workflows."""

from .aggregate import merge_page_records
from .errors import (
    DomainScanError,
    FetchError,
    PersistenceError,
    ProbeError,
    ScanFailedError,
    ValidationError,
)
from .models import DomainRecord, ProbeOutcome, Reachability, ScanResult, ScanStatus
from .orchestrator import ScanOrchestrator
from .page_fetch import RegistryPageFetcher, build_page_url
from .reachability import ReachabilityProber, detect_filter_block
from .registry_parser import parse_fallback_links, parse_registry_page
from .scan_config import ScanConfig
from .storage import JsonlScanStore, MemoryScanStore, ScanStore

__all__ = [
    "merge_page_records",
    "DomainScanError",
    "FetchError",
    "PersistenceError",
    "ProbeError",
    "ScanFailedError",
    "ValidationError",
    "DomainRecord",
    "ProbeOutcome",
    "Reachability",
    "ScanResult",
    "ScanStatus",
    "ScanOrchestrator",
    "RegistryPageFetcher",
    "build_page_url",
    "ReachabilityProber",
    "detect_filter_block",
    "parse_fallback_links",
    "parse_registry_page",
    "ScanConfig",
    "JsonlScanStore",
    "MemoryScanStore",
    "ScanStore",
]
