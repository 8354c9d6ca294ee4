"""Website quality audit and API payload validation helpers for pytest scenarios."""

from site_audit.api_validation import FetchError, fetch_api_data, validate_api_data
from site_audit.config import Settings, load_settings
from site_audit.reporting import (
    AttachmentStore,
    attach_to_test_report,
    save_and_attach_log,
    save_report,
)
from site_audit.resources import collect_resources, validate_resources
from site_audit.scoring import extract_lighthouse_scores

__version__ = "0.1.0"

__all__ = [
    "AttachmentStore",
    "FetchError",
    "Settings",
    "attach_to_test_report",
    "collect_resources",
    "extract_lighthouse_scores",
    "fetch_api_data",
    "load_settings",
    "save_and_attach_log",
    "save_report",
    "validate_api_data",
    "validate_resources",
    "__version__",
]
