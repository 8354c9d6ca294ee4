import os
import sys
import time
import subprocess
import signal
import contextlib
import importlib.util
from pathlib import Path

import pytest
import requests

from site_audit.config import load_settings
from site_audit.reporting import AttachmentStore

SITE_DIR = Path(__file__).parent / "site"
SITE_PORT = int(os.environ.get("SITE_PORT", "5000"))


def _resolve_app():
    spec = importlib.util.spec_from_file_location("fixture_site", SITE_DIR / "app.py")
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    mod.app.config.update(TESTING=True)
    return mod.app


@pytest.fixture(scope="session")
def app():
    return _resolve_app()


@pytest.fixture(scope="session")
def client(app):
    return app.test_client()


@pytest.fixture(scope="session")
def live_server():
    """
    Launch the fixture site on 127.0.0.1:SITE_PORT for the browser tests.
    """
    env = os.environ.copy()
    env["SITE_PORT"] = str(SITE_PORT)
    proc = subprocess.Popen(
        [sys.executable, str(SITE_DIR / "app.py")],
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        env=env,
    )

    base = f"http://127.0.0.1:{SITE_PORT}"
    for _ in range(60):
        try:
            r = requests.get(base, timeout=1.5)
            if r.status_code < 500:
                break
        except requests.RequestException:
            pass
        time.sleep(1)
    else:
        with contextlib.suppress(Exception):
            proc.kill()
            out = proc.stdout.read().decode("utf-8", errors="ignore")
            print("Server boot log:\n", out)
        raise RuntimeError(f"Fixture site did not start on :{SITE_PORT}")

    yield {"base_url": base, "proc": proc}

    with contextlib.suppress(Exception):
        proc.send_signal(signal.SIGINT)
        proc.terminate()
        proc.wait(timeout=5)


@pytest.fixture(scope="session")
def settings():
    return load_settings()


@pytest.fixture
def reports_dir(tmp_path):
    return tmp_path / "reports"


@pytest.fixture
def report_sink(request):
    store = AttachmentStore()
    request.node.report_sink = store
    return store


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    rep = outcome.get_result()
    store = getattr(item, "report_sink", None)
    if store is None or rep.when != "call":
        return
    for attachment in store.attachments:
        with contextlib.suppress(OSError):
            rep.sections.append(
                (f"Attachment: {attachment.name} ({attachment.content_type})", attachment.read())
            )
