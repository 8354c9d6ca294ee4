"""
The three audit scenarios, written as plain functions so pytest tests only
have to provide the browser, the report sink and the final assertion.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests
from playwright.sync_api import BrowserContext, Page

from site_audit.api_validation import fetch_api_data, validate_api_data
from site_audit.config import DEFAULT_DEBUG_PORT, LIGHTHOUSE_CATEGORIES
from site_audit.lighthouse import LighthouseResult, close_browser_context_safely, run_lighthouse
from site_audit.reporting import (
    TEXT,
    ReportSink,
    attach_to_test_report,
    ensure_directory_exists,
    save_and_attach_log,
    save_report,
)
from site_audit.resources import collect_resources, validate_resources
from site_audit.scoring import extract_lighthouse_scores

log = logging.getLogger(__name__)

LIGHTHOUSE_REPORT = "lighthouse-report.json"


def validation_log_name(name: str) -> str:
    return f"validation-log-{name.lower()}.json"


def run_lighthouse_audit(
    url: str,
    *,
    context: BrowserContext,
    reports_dir: Path,
    sink: ReportSink,
    oracle: Callable[..., LighthouseResult] = run_lighthouse,
    port: int = DEFAULT_DEBUG_PORT,
    categories: Iterable[str] = LIGHTHOUSE_CATEGORIES,
    **oracle_options: Any,
) -> Dict[str, float]:
    """Run Lighthouse through ``context``'s debugging port and report the scores.

    ``context`` is closed whatever happens.
    """
    try:
        ensure_directory_exists(reports_dir)
        try:
            result = oracle(
                url,
                port=port,
                output="json",
                log_level="info",
                only_categories=list(categories),
                **oracle_options,
            )
            save_report(Path(reports_dir) / LIGHTHOUSE_REPORT, result.lhr, sink, "Lighthouse Report")
            scores = extract_lighthouse_scores(result.lhr)
        except Exception as exc:
            attach_to_test_report(sink, "Lighthouse Error", str(exc), TEXT)
            raise

        attach_to_test_report(sink, "Lighthouse Scores", scores)
        log.info("Lighthouse scores for %s: %s", url, scores)
        return scores
    finally:
        close_browser_context_safely(context)


def run_resource_validation(page: Page, url: str, *, sink: ReportSink) -> List[Dict[str, Any]]:
    """Load ``url`` and return its broken stylesheets, scripts and images.

    ``page`` is left pointing at the last resource checked.
    """
    try:
        page.goto(url)
        resources = collect_resources(page)
        attach_to_test_report(sink, "Linked Resources", resources)

        broken = validate_resources(page, resources)
        if broken:
            attach_to_test_report(sink, "Broken Resources", broken)
        log.info("%d of %d resource(s) broken on %s", len(broken), len(resources), url)
        return broken
    except Exception as exc:
        attach_to_test_report(sink, "Validation Error", str(exc), TEXT)
        raise


def run_api_validation(
    url: str,
    name: str,
    *,
    reports_dir: Path,
    sink: ReportSink,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """Fetch ``url``, validate it as ``name`` records and log the invalid ones.

    The validation log is written and attached even when it is empty.
    """
    ensure_directory_exists(reports_dir)
    log_path = Path(reports_dir) / validation_log_name(name)

    fetch_options = {"session": session}
    if timeout is not None:
        fetch_options["timeout"] = timeout
    data = fetch_api_data(url, sink, name, **fetch_options)

    invalid_entries = validate_api_data(data, name)
    save_and_attach_log(log_path, invalid_entries, sink, f"Validation Log for {name}")
    return invalid_entries
