"""
Fetching JSON collections from a REST API and checking the shape of each record.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import requests

from site_audit.reporting import JSON, TEXT, ReportSink, attach_to_test_report

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class FetchError(RuntimeError):
    pass


def fetch_api_data(
    url: str,
    sink: ReportSink,
    label: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """GET ``url`` and return the decoded JSON body.

    Any failure is attached to ``sink`` as "Fetch Error" before ``FetchError``
    is raised.
    """
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise _fetch_error(sink, f"Failed to fetch data from {label}. Error: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise _fetch_error(
            sink, f"Failed to fetch data from {label}. Status: {response.status_code}"
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise _fetch_error(sink, f"Failed to decode JSON from {label}: {exc}") from exc

    attach_to_test_report(sink, f"Fetched Data from {label}", data, JSON)
    log.info("Fetched %s from %s", label, url)
    return data


def _fetch_error(sink, message):
    log.warning(message)
    attach_to_test_report(sink, "Fetch Error", message, TEXT)
    return FetchError(message)


def is_blank(value: Any) -> bool:
    """None, or a string that is empty once trimmed."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _post_violations(record: Mapping[str, Any]) -> List[str]:
    reasons = []
    if not is_number(record.get("userId")):
        reasons.append("userId is not a number")
    for name in ("title", "body"):
        value = record.get(name)
        if is_blank(value):
            reasons.append(f"{name} is empty")
        elif not isinstance(value, str):
            reasons.append(f"{name} is not a string")
    return reasons


def _user_violations(record: Mapping[str, Any]) -> List[str]:
    value = record.get("name")
    if is_blank(value) or not isinstance(value, str):
        return ["name is empty"]
    return []


@dataclass(frozen=True)
class RecordRule:
    fields: Tuple[str, ...]
    check: Callable[[Mapping[str, Any]], List[str]]


# Record-type label -> rule. Labels missing here are not validated.
RECORD_RULES: Dict[str, RecordRule] = {
    "Posts": RecordRule(("userId", "title", "body"), _post_violations),
    "Users": RecordRule(("name",), _user_violations),
}


def validate_api_data(data: Sequence[Any], name: str) -> List[Dict[str, Any]]:
    """Return one entry per record of ``data`` that breaks the ``name`` rules.

    Each entry carries the record's position in ``data`` as ``index``, the
    checked fields as they were received and every failed check in ``reason``.
    """
    if not isinstance(data, (list, tuple)):
        raise TypeError(f"{name} payload must be a JSON array, got {type(data).__name__}")

    rule = RECORD_RULES.get(name)
    if rule is None:
        log.warning("No validation rules for %r; %d record(s) accepted as-is", name, len(data))
        return []

    invalid_entries = []
    for index, item in enumerate(data):
        record = item if isinstance(item, Mapping) else {}
        reasons = rule.check(record)
        if reasons:
            entry = {"index": index}
            entry.update((field, record.get(field)) for field in rule.fields)
            entry["reason"] = reasons
            invalid_entries.append(entry)

    log.info("%s: %d of %d record(s) invalid", name, len(invalid_entries), len(data))
    return invalid_entries


def format_invalid_entries(invalid_entries: List[Dict[str, Any]], name: str) -> str:
    details = "; ".join(
        f"#{entry['index']}: {', '.join(entry['reason'])}" for entry in invalid_entries
    )
    return (
        f"Validation failed for {len(invalid_entries)} entries in the {name} API. "
        f"Check the attached log for details. {details}"
    )
