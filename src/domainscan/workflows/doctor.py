from __future__ import annotations

import importlib.util
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .scan_config import ScanConfig, resolve_store_path


def _check_writable(path: Path) -> bool:
    try:
        if path.exists():
            return os.access(path, os.W_OK)
        # Walk up to the nearest existing ancestor; the store creates the rest.
        parent = path.parent
        while not parent.exists() and parent != parent.parent:
            parent = parent.parent
        return os.access(parent, os.W_OK)
    except OSError:
        return False


def build_doctor_report(
    *,
    config: Optional[ScanConfig] = None,
    store_path: Optional[Path] = None,
) -> Dict[str, Any]:
    cfg = config or ScanConfig.from_env()
    report: Dict[str, Any] = {
        "generated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        "ok": True,
        "checks": [],
    }

    def add_check(
        name: str,
        status: bool,
        *,
        detail: Optional[str] = None,
        remedy: Optional[str] = None,
        level: str = "warn",
    ) -> None:
        entry = {
            "name": name,
            "status": "ok" if status else "missing",
            "level": level,
            "detail": detail,
        }
        if remedy:
            entry["remedy"] = remedy
        report["checks"].append(entry)
        if not status and level == "warn":
            report["ok"] = False

    lxml_ok = importlib.util.find_spec("lxml") is not None
    add_check(
        "lxml",
        lxml_ok,
        detail="HTML parser available" if lxml_ok else "HTML parser missing",
        remedy="pip install lxml",
    )

    parsed = urlparse(cfg.registry_url)
    add_check(
        "DOMAINSCAN_REGISTRY_URL",
        parsed.scheme in {"http", "https"} and bool(parsed.netloc),
        detail=cfg.registry_url,
        remedy="Set DOMAINSCAN_REGISTRY_URL to an http(s) listing URL or unset it.",
    )

    path = Path(store_path or resolve_store_path())
    add_check(
        "DOMAINSCAN_STORE_PATH",
        _check_writable(path),
        detail=str(path),
        remedy="Create the store directory or set DOMAINSCAN_STORE_PATH to a writable location.",
    )

    bounded = cfg.probe_concurrency > 0
    add_check(
        "DOMAINSCAN_PROBE_CONCURRENCY",
        True,
        detail=f"probe fan-out bounded at {cfg.probe_concurrency}" if bounded else "probe fan-out unbounded",
        level="info",
    )
    return report


def format_doctor_report(report: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append("domainscan doctor")
    lines.append(f"Generated: {report.get('generated_at')}")
    lines.append("")
    for check in report.get("checks", []):
        name = check.get("name", "check")
        status = check.get("status", "unknown")
        level = check.get("level", "info")
        lines.append(f"- [{level}] {name}: {status}")
        detail = check.get("detail")
        if detail:
            lines.append(f"  detail: {detail}")
        remedy = check.get("remedy")
        if remedy and status != "ok":
            lines.append(f"  remedy: {remedy}")
    return "\n".join(lines).rstrip() + "\n"
