"""
Linked-resource collection and validation.

All checks reuse the page that loaded the audited site: every ``goto`` replaces
the document in that tab, so resources are checked one at a time and the
original page is gone once validation starts.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

log = logging.getLogger(__name__)

RESOURCE_SELECTOR = "link[rel='stylesheet'], script[src], img[src]"

NO_RESPONSE = "No Response"
ERROR = "Error"

Status = Union[int, str]
ResourceCheck = Dict[str, Status]


def extract_resource_urls(html: str, base_url: str) -> List[str]:
    """Absolute URLs of stylesheets, scripts and images, in document order.

    Each element contributes its ``src`` or, failing that, its ``href``,
    resolved the way the browser resolves it. Empty values are dropped and
    duplicates are kept.
    """
    soup = BeautifulSoup(html, "html.parser")
    # the live DOM never loads these subtrees
    for inert in soup.select("noscript, template"):
        if not inert.decomposed:
            inert.decompose()

    base = soup.find("base", href=True)
    if base is not None:
        base_url = urljoin(base_url, base["href"].strip())

    urls = []
    for el in soup.select(RESOURCE_SELECTOR):
        ref = (el.get("src") or el.get("href") or "").strip()
        if ref:
            urls.append(urljoin(base_url, ref))
    return urls


def collect_resources(page: Page) -> List[str]:
    resources = extract_resource_urls(page.content(), page.url)
    log.info("Collected %d linked resource(s) on %s", len(resources), page.url)
    return resources


def check_resource(page: Page, resource: str) -> ResourceCheck:
    """Navigate ``page`` to ``resource`` and report the outcome.

    ``status`` is the HTTP status code when a response came back,
    ``"No Response"`` when navigation produced none, and ``"Error"`` when
    navigation raised.
    """
    log.debug("Checking %s", resource)
    try:
        response = page.goto(resource)
    except PlaywrightError as exc:
        log.warning("Navigation to %s failed: %s", resource, exc)
        return {"resource": resource, "status": ERROR}
    if response is None:
        return {"resource": resource, "status": NO_RESPONSE}
    return {"resource": resource, "status": response.status}


def is_broken(check: ResourceCheck) -> bool:
    return check["status"] != 200


def validate_resources(page: Page, resources: Iterable[str]) -> List[ResourceCheck]:
    """Check every resource in order and return only the broken ones."""
    broken = []
    for resource in resources:
        check = check_resource(page, resource)
        if is_broken(check):
            log.warning("Broken resource %s [Status: %s]", resource, check["status"])
            broken.append(check)
    return broken


def format_broken_resources(broken: List[ResourceCheck]) -> str:
    details = ", ".join(f"{b['resource']} [Status: {b['status']}]" for b in broken)
    return f"Found {len(broken)} broken resources: {details}"
