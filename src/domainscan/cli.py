from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from .workflows.doctor import build_doctor_report, format_doctor_report
from .workflows.errors import DomainScanError, ScanFailedError, ValidationError
from .workflows.orchestrator import ScanOrchestrator
from .workflows.reachability import check_domain
from .workflows.report import format_record_line, format_scan_line, summarize_scan
from .workflows.scan_config import (
    MAX_PAGES,
    MAX_PROBE_TIMEOUT,
    MIN_PAGES,
    MIN_PROBE_TIMEOUT,
    ScanConfig,
    resolve_store_path,
)
from .workflows.scan_utils import validate_probe_timeout
from .workflows.storage import JsonlScanStore

load_dotenv()

app = typer.Typer(add_help_option=False, no_args_is_help=False)


def _minimal_help() -> str:
    return """domainscan (FreeDNS registry scanner)

Usage:
  domainscan scan [--pages N] [--timeout S] [--concurrency N] [--store PATH] [--json]
  domainscan check <domain> [--timeout S] [--json]
  domainscan latest [--store PATH] [--json]
  domainscan history [--store PATH] [--json]
  domainscan doctor

Common options:
  --store <PATH>  JSON-lines scan store (default: run/scans/scans.jsonl).
  --json          Print JSON to stdout only.
  -v, --verbose   Log progress to stderr.

Discoverability:
  --help-full     Expanded help + env vars.
  --find <query>  Search commands, flags, env vars.
  --doctor        Run environment diagnostics and exit.
"""


def _help_full() -> str:
    return f"""domainscan CLI

Commands:
  scan      Scan registry pages and probe every listed domain.
  check     Probe a single domain.
  latest    Show the most recent stored scan.
  history   List stored scans, newest first.
  doctor    Print environment diagnostics.

Limits:
  --pages     {MIN_PAGES}..{MAX_PAGES}
  --timeout   {MIN_PROBE_TIMEOUT:g}..{MAX_PROBE_TIMEOUT:g} seconds per domain

Env vars:
  DOMAINSCAN_REGISTRY_URL
  DOMAINSCAN_PAGE_TIMEOUT
  DOMAINSCAN_PAGE_DELAY
  DOMAINSCAN_PROBE_TIMEOUT
  DOMAINSCAN_PROBE_CONCURRENCY
  DOMAINSCAN_USER_AGENT
  DOMAINSCAN_STORE_PATH
  DOMAINSCAN_LOG_LEVEL

Exit codes:
  0 success, 2 invalid input, 3 scan failed.
"""


_FIND_INDEX = [
    ("command", "scan", "Scan registry pages and probe every listed domain."),
    ("command", "check", "Probe a single domain."),
    ("command", "latest", "Show the most recent stored scan."),
    ("command", "history", "List stored scans, newest first."),
    ("command", "doctor", "Print environment diagnostics."),
    ("flag", "--pages", "Number of registry pages to scan."),
    ("flag", "--timeout", "Per-domain probe timeout in seconds."),
    ("flag", "--concurrency", "Bound concurrent probes (0 = unbounded)."),
    ("flag", "--store", "JSON-lines scan store path."),
    ("flag", "--json", "Print JSON to stdout only."),
    ("env", "DOMAINSCAN_REGISTRY_URL", "Override the registry listing URL."),
    ("env", "DOMAINSCAN_PAGE_DELAY", "Pause between registry pages (seconds)."),
    ("env", "DOMAINSCAN_PROBE_CONCURRENCY", "Default probe fan-out bound."),
    ("env", "DOMAINSCAN_STORE_PATH", "Default scan store path."),
    ("env", "DOMAINSCAN_LOG_LEVEL", "Logging level when --verbose is not given."),
]


def _run_find(query: str) -> str:
    needle = (query or "").strip().lower()
    if not needle:
        return ""
    lines = []
    for category, name, desc in _FIND_INDEX:
        haystack = f"{category} {name} {desc}".lower()
        if needle in haystack:
            lines.append(f"{category} {name} - {desc}")
    return "\n".join(lines)


def _configure_logging(verbose: bool) -> None:
    level_name = "INFO" if verbose else os.getenv("DOMAINSCAN_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _store(path: Optional[Path]) -> JsonlScanStore:
    return JsonlScanStore(path or resolve_store_path())


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    help: bool = typer.Option(False, "--help", "-h", is_eager=True, help="Show minimal help."),
    help_full: bool = typer.Option(False, "--help-full", is_eager=True, help="Show expanded help."),
    find: Optional[str] = typer.Option(None, "--find", is_eager=True, help="Search commands, flags, env vars."),
    doctor: bool = typer.Option(False, "--doctor", is_eager=True, help="Run environment diagnostics and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr."),
) -> None:
    if help_full:
        typer.echo(_help_full())
        raise typer.Exit(code=0)
    if find is not None:
        output = _run_find(find)
        if output:
            typer.echo(output)
        raise typer.Exit(code=0)
    if doctor:
        report = build_doctor_report()
        typer.echo(format_doctor_report(report))
        raise typer.Exit(code=0 if report.get("ok", True) else 2)
    if help or ctx.invoked_subcommand is None:
        typer.echo(_minimal_help())
        raise typer.Exit(code=0)
    _configure_logging(verbose)


@app.command("doctor", add_help_option=True)
def doctor_cmd() -> None:
    """Print environment diagnostics."""
    report = build_doctor_report()
    typer.echo(format_doctor_report(report))
    raise typer.Exit(code=0 if report.get("ok", True) else 2)


@app.command("scan", add_help_option=True)
def scan_cmd(
    pages: int = typer.Option(1, "--pages", help="Number of registry pages to scan."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-domain probe timeout in seconds."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", help="Bound concurrent probes (0 = unbounded)."),
    delay: Optional[float] = typer.Option(None, "--delay", help="Pause between registry pages in seconds."),
    store: Optional[Path] = typer.Option(None, "--store", help="JSON-lines scan store path."),
    json_out: bool = typer.Option(False, "--json", help="Print scan JSON to stdout only."),
) -> None:
    config = ScanConfig.from_env()
    overrides = {}
    if concurrency is not None:
        overrides["probe_concurrency"] = max(0, concurrency)
    if delay is not None:
        overrides["page_delay"] = max(0.0, delay)
    if overrides:
        config = replace(config, **overrides)
    orchestrator = ScanOrchestrator(_store(store), config=config)
    try:
        scan = asyncio.run(orchestrator.run_scan(pages, timeout))
    except ValidationError as exc:
        typer.echo(f"error: {exc.message}", err=True)
        raise typer.Exit(code=2)
    except ScanFailedError as exc:
        if json_out:
            sys.stdout.write(json.dumps(exc.to_dict(), ensure_ascii=False) + "\n")
        else:
            typer.echo(f"fatal: {exc.message}", err=True)
        raise typer.Exit(code=3)
    if json_out:
        sys.stdout.write(scan.to_json() + "\n")
        raise typer.Exit(code=0)
    typer.echo(summarize_scan(scan, pages)["message"])
    for record in scan.domains:
        typer.echo(format_record_line(record))


@app.command("check", add_help_option=True)
def check_cmd(
    domain: str = typer.Argument(..., help="Domain to probe."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Probe timeout in seconds."),
    json_out: bool = typer.Option(False, "--json", help="Print JSON to stdout only."),
) -> None:
    domain = domain.strip()
    if not domain:
        typer.echo("error: domain is required", err=True)
        raise typer.Exit(code=2)
    config = ScanConfig.from_env()
    timeout = config.probe_timeout if timeout is None else timeout
    try:
        validate_probe_timeout(timeout)
    except ValidationError as exc:
        typer.echo(f"error: {exc.message}", err=True)
        raise typer.Exit(code=2)
    outcome = asyncio.run(check_domain(domain, timeout, config))
    if json_out:
        payload = {"domain": domain, "reachability": outcome.classification.value}
        if outcome.error:
            payload["reachability_error"] = outcome.error
        sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
        raise typer.Exit(code=0)
    suffix = f" ({outcome.error})" if outcome.error else ""
    typer.echo(f"{domain}: {outcome.classification.value}{suffix}")


@app.command("latest", add_help_option=True)
def latest_cmd(
    store: Optional[Path] = typer.Option(None, "--store", help="JSON-lines scan store path."),
    json_out: bool = typer.Option(False, "--json", help="Print scan JSON to stdout only."),
) -> None:
    try:
        scan = _store(store).get_latest()
    except DomainScanError as exc:
        typer.echo(f"error: {exc.message}", err=True)
        raise typer.Exit(code=3)
    if json_out:
        sys.stdout.write(json.dumps(scan.to_dict() if scan else None, ensure_ascii=False) + "\n")
        raise typer.Exit(code=0)
    if scan is None:
        typer.echo("No scans recorded yet.")
        raise typer.Exit(code=0)
    typer.echo(format_scan_line(scan))
    for record in scan.domains:
        typer.echo(format_record_line(record))


@app.command("history", add_help_option=True)
def history_cmd(
    store: Optional[Path] = typer.Option(None, "--store", help="JSON-lines scan store path."),
    json_out: bool = typer.Option(False, "--json", help="Print scans JSON to stdout only."),
) -> None:
    try:
        scans = _store(store).list_all()
    except DomainScanError as exc:
        typer.echo(f"error: {exc.message}", err=True)
        raise typer.Exit(code=3)
    if json_out:
        sys.stdout.write(json.dumps([scan.to_dict() for scan in scans], ensure_ascii=False) + "\n")
        raise typer.Exit(code=0)
    for scan in scans:
        typer.echo(format_scan_line(scan))
