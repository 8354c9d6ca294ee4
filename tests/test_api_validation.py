import pytest
import requests

from site_audit.api_validation import (
    FetchError,
    fetch_api_data,
    format_invalid_entries,
    is_blank,
    validate_api_data,
)
from site_audit.reporting import AttachmentStore


@pytest.mark.parametrize("value", [None, "", "  ", "\t\n"])
def test_blank_values(value):
    assert is_blank(value)


@pytest.mark.parametrize("value", ["a", " a ", 0, 5])
def test_non_blank_values(value):
    assert not is_blank(value)


def test_valid_posts_pass():
    assert validate_api_data([{"userId": 1, "title": "a", "body": "b"}], "Posts") == []


def test_post_reason_lists_only_failed_checks():
    entries = validate_api_data([{"userId": "x", "title": "", "body": "ok"}], "Posts")
    assert entries == [
        {
            "index": 0,
            "userId": "x",
            "title": "",
            "body": "ok",
            "reason": ["userId is not a number", "title is empty"],
        }
    ]


def test_post_missing_fields():
    entries = validate_api_data([{}], "Posts")
    assert entries[0]["reason"] == ["userId is not a number", "title is empty", "body is empty"]
    assert entries[0]["userId"] is None


def test_bool_user_id_is_not_a_number():
    entries = validate_api_data([{"userId": True, "title": "t", "body": "b"}], "Posts")
    assert entries[0]["reason"] == ["userId is not a number"]


def test_non_string_title_is_flagged():
    entries = validate_api_data([{"userId": 1.5, "title": 42, "body": "b"}], "Posts")
    assert entries[0]["reason"] == ["title is not a string"]


def test_indexes_follow_source_positions():
    data = [
        {"userId": 1, "title": "a", "body": "b"},
        {"userId": 1, "title": " ", "body": "b"},
        {"userId": 1, "title": "a", "body": "b"},
        {"userId": None, "title": "a", "body": "b"},
        "not a record",
    ]
    entries = validate_api_data(data, "Posts")
    assert [e["index"] for e in entries] == [1, 3, 4]
    for entry in entries:
        original = data[entry["index"]]
        if isinstance(original, dict):
            assert entry["title"] == original["title"]


def test_users_blank_name():
    entries = validate_api_data([{"name": "Ann"}, {"name": "   "}, {"id": 3}], "Users")
    assert entries == [
        {"index": 1, "name": "   ", "reason": ["name is empty"]},
        {"index": 2, "name": None, "reason": ["name is empty"]},
    ]


def test_unknown_label_accepts_everything():
    assert validate_api_data([{"anything": None}], "Comments") == []


def test_payload_must_be_a_list():
    with pytest.raises(TypeError):
        validate_api_data({"userId": 1}, "Posts")


def test_format_invalid_entries():
    msg = format_invalid_entries(
        [{"index": 3, "reason": ["title is empty", "body is empty"]}], "Posts"
    )
    assert msg.startswith("Validation failed for 1 entries in the Posts API.")
    assert "#3: title is empty, body is empty" in msg


def make_response(status_code, body=b""):
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response.encoding = "utf-8"
    response.url = "https://api.test/"
    return response


class FakeSession:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_fetch_attaches_payload():
    sink = AttachmentStore()
    session = FakeSession(make_response(200, b'[{"name": "Ann"}]'))
    data = fetch_api_data("https://api.test/users", sink, "Users", session=session, timeout=5)

    assert data == [{"name": "Ann"}]
    assert session.calls == [("https://api.test/users", 5)]
    assert sink.names() == ["Fetched Data from Users"]
    assert '"name": "Ann"' in sink.get("Fetched Data from Users").body


def test_fetch_non_ok_status():
    sink = AttachmentStore()
    with pytest.raises(FetchError, match="Failed to fetch data from Posts. Status: 503"):
        fetch_api_data("u", sink, "Posts", session=FakeSession(make_response(503)))
    error = sink.get("Fetch Error")
    assert error.content_type == "text/plain"
    assert error.body == "Failed to fetch data from Posts. Status: 503"


def test_fetch_network_error_is_reported():
    sink = AttachmentStore()
    session = FakeSession(requests.ConnectionError("connection refused"))
    with pytest.raises(FetchError) as excinfo:
        fetch_api_data("u", sink, "Posts", session=session)
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)
    assert sink.names() == ["Fetch Error"]


def test_fetch_bad_json_is_reported():
    sink = AttachmentStore()
    session = FakeSession(make_response(200, b"<html>"))
    with pytest.raises(FetchError, match="Failed to decode JSON from Posts"):
        fetch_api_data("u", sink, "Posts", session=session)
    assert sink.names() == ["Fetch Error"]


@pytest.mark.e2e
def test_fetch_from_fixture_site(live_server):
    sink = AttachmentStore()
    data = fetch_api_data(f"{live_server['base_url']}/api/posts", sink, "Posts")
    assert validate_api_data(data, "Posts") == []


@pytest.mark.e2e
def test_fetch_from_fixture_site_unavailable(live_server):
    sink = AttachmentStore()
    with pytest.raises(FetchError, match="Status: 503"):
        fetch_api_data(f"{live_server['base_url']}/api/down", sink, "Down")


@pytest.mark.parametrize("status", [204, 299])
def test_fetch_accepts_any_2xx(status):
    data = fetch_api_data("u", AttachmentStore(), "Posts", session=FakeSession(make_response(status, b"[]")))
    assert data == []


@pytest.mark.parametrize("status", [300, 301, 304, 399])
def test_fetch_rejects_non_2xx_with_json_body(status):
    sink = AttachmentStore()
    with pytest.raises(FetchError, match=f"Status: {status}"):
        fetch_api_data("u", sink, "Posts", session=FakeSession(make_response(status, b"[]")))
    assert sink.names() == ["Fetch Error"]


def test_non_string_user_name_has_single_reason():
    entries = validate_api_data([{"name": 7}], "Users")
    assert entries == [{"index": 0, "name": 7, "reason": ["name is empty"]}]
