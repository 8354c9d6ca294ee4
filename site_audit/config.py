"""
Runtime settings for the audit scenarios.

Everything is read from the environment with a default, so CI can point the
suite at another site or reports directory without touching the code.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

log = logging.getLogger(__name__)

DEFAULT_URL = "https://www.cbssports.com/betting"
DEFAULT_DEBUG_PORT = 9222

# Chromium must expose the debugging port so Lighthouse can drive the same browser.
CHROMIUM_ARGS = (
    "--disable-background-networking",
    "--disable-default-apps",
    "--disable-extensions",
    "--disable-gpu",
    "--headless",
    "--no-first-run",
    "--no-sandbox",
    "--no-zygote",
    "--disable-dev-shm-usage",
    "--single-process",
)

LIGHTHOUSE_CATEGORIES = ("performance", "seo", "accessibility", "best-practices")

API_ENDPOINTS = (
    {"name": "Posts", "url": "https://jsonplaceholder.typicode.com/posts"},
    {"name": "Users", "url": "https://jsonplaceholder.typicode.com/users"},
)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    url: str = DEFAULT_URL
    reports_dir: Path = Path("reports")
    user_data_dir: Path = Path("user-data-dir")
    debug_port: int = DEFAULT_DEBUG_PORT
    headless: bool = True
    lighthouse_bin: str = "lighthouse"
    lighthouse_timeout: float = 180.0
    api_timeout: float = 30.0

    @property
    def chromium_args(self) -> list[str]:
        return [f"--remote-debugging-port={self.debug_port}", *CHROMIUM_ARGS]

    def report_path(self, filename: str) -> Path:
        return self.reports_dir / filename


def _as_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _as_number(name: str, raw: str, kind):
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"{name} must be a {kind.__name__}, got {raw!r}") from None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from ``SITE_AUDIT_*`` variables, falling back to defaults."""
    env = os.environ if environ is None else environ
    defaults = Settings()

    def get(name):
        return env.get(f"SITE_AUDIT_{name}")

    kwargs = {}
    if get("URL"):
        kwargs["url"] = get("URL")
    if get("REPORTS_DIR"):
        kwargs["reports_dir"] = Path(get("REPORTS_DIR"))
    if get("USER_DATA_DIR"):
        kwargs["user_data_dir"] = Path(get("USER_DATA_DIR"))
    if get("DEBUG_PORT"):
        kwargs["debug_port"] = _as_number("SITE_AUDIT_DEBUG_PORT", get("DEBUG_PORT"), int)
    if get("HEADLESS"):
        kwargs["headless"] = _as_bool("SITE_AUDIT_HEADLESS", get("HEADLESS"))
    if get("LIGHTHOUSE_BIN"):
        kwargs["lighthouse_bin"] = get("LIGHTHOUSE_BIN")
    if get("LIGHTHOUSE_TIMEOUT"):
        kwargs["lighthouse_timeout"] = _as_number(
            "SITE_AUDIT_LIGHTHOUSE_TIMEOUT", get("LIGHTHOUSE_TIMEOUT"), float
        )
    if get("API_TIMEOUT"):
        kwargs["api_timeout"] = _as_number("SITE_AUDIT_API_TIMEOUT", get("API_TIMEOUT"), float)

    if kwargs:
        log.debug("Settings overridden from environment: %s", sorted(kwargs))
    return replace(defaults, **kwargs)
