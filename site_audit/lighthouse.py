"""
Lighthouse runs against a Playwright-launched Chromium.

Chromium is started as a persistent context with a remote debugging port;
the Lighthouse CLI then attaches to that port instead of launching its own
browser.
"""
from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from playwright.sync_api import BrowserContext, Playwright
from playwright.sync_api import Error as PlaywrightError

from site_audit.config import DEFAULT_DEBUG_PORT, LIGHTHOUSE_CATEGORIES, Settings

log = logging.getLogger(__name__)

# logLevel -> CLI flag; "info" is the CLI default
_LOG_LEVEL_FLAGS = {"silent": ["--quiet"], "error": ["--quiet"], "info": [], "verbose": ["--verbose"]}


class LighthouseError(RuntimeError):
    pass


@dataclass
class LighthouseResult:
    lhr: Dict[str, Any]


def launch_audit_context(playwright: Playwright, settings: Settings) -> BrowserContext:
    log.info(
        "Launching Chromium (headless=%s) with remote debugging on port %d",
        settings.headless,
        settings.debug_port,
    )
    return playwright.chromium.launch_persistent_context(
        str(settings.user_data_dir),
        args=settings.chromium_args,
        headless=settings.headless,
    )


def close_browser_context_safely(context: BrowserContext) -> None:
    try:
        context.close()
    except PlaywrightError as exc:
        log.error("Error closing browser context: %s", exc)


def build_command(
    url: str,
    *,
    port: int = DEFAULT_DEBUG_PORT,
    output: str = "json",
    log_level: str = "info",
    only_categories: Iterable[str] = LIGHTHOUSE_CATEGORIES,
    binary: str = "lighthouse",
) -> List[str]:
    if log_level not in _LOG_LEVEL_FLAGS:
        raise ValueError(f"Unsupported Lighthouse log level: {log_level!r}")
    return [
        binary,
        url,
        f"--port={port}",
        f"--output={output}",
        "--output-path=stdout",
        f"--only-categories={','.join(only_categories)}",
        *_LOG_LEVEL_FLAGS[log_level],
    ]


def run_lighthouse(
    url: str,
    *,
    port: int = DEFAULT_DEBUG_PORT,
    output: str = "json",
    log_level: str = "info",
    only_categories: Iterable[str] = LIGHTHOUSE_CATEGORIES,
    binary: str = "lighthouse",
    timeout: float = 180.0,
) -> LighthouseResult:
    """Run the Lighthouse CLI against the browser listening on ``port``."""
    if output != "json":
        raise ValueError("Only JSON output can be turned into a LighthouseResult")
    cmd = build_command(
        url,
        port=port,
        output=output,
        log_level=log_level,
        only_categories=only_categories,
        binary=binary,
    )
    log.info("Running Lighthouse on %s (port %d)", url, port)
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as exc:
        raise LighthouseError(f"Lighthouse executable not found: {binary}") from exc
    except subprocess.TimeoutExpired as exc:
        raise LighthouseError(f"Lighthouse timed out after {timeout}s on {url}") from exc

    if proc.stderr:
        log.debug("Lighthouse log:\n%s", proc.stderr)
    if proc.returncode != 0:
        raise LighthouseError(
            f"Lighthouse exited with code {proc.returncode}: {proc.stderr.strip()}"
        )

    try:
        lhr = json.loads(proc.stdout)
    except json.JSONDecodeError as exc:
        raise LighthouseError(f"Lighthouse produced invalid JSON: {exc}") from exc
    if not isinstance(lhr, dict):
        raise LighthouseError("Lighthouse output is not a report object")
    if lhr.get("runtimeError"):
        raise LighthouseError(f"Lighthouse runtime error: {lhr['runtimeError'].get('message')}")
    return LighthouseResult(lhr=lhr)
