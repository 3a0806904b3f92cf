"""
Hygraph client: request shape, GraphQL error mapping, retries for reads only.
Uses httpx.MockTransport so no network is touched.
"""
import json

import pytest

try:
    import httpx
    from tenacity import wait_none

    from school_api.errors import HygraphError
    from school_api.services.hygraph import HygraphClient
    _DEPS_LOADED = True
except ImportError:
    _DEPS_LOADED = False

pytestmark = pytest.mark.skipif(not _DEPS_LOADED, reason="httpx/tenacity not installed (pip install -e .[test])")


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    monkeypatch.setattr(HygraphClient, "retry_wait", wait_none())


def _client(handler, max_attempts=3) -> HygraphClient:
    return HygraphClient(
        "https://hygraph.example.com/v2/x/master",
        "read-token",
        mutation_token="write-token",
        max_attempts=max_attempts,
        transport=httpx.MockTransport(handler),
    )


def test_query_posts_document_and_variables():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": {"courses": [{"id": "c1"}]}})

    data = _client(handler).query("query { courses { id } }", {"first": 1})
    assert data == {"courses": [{"id": "c1"}]}
    body = json.loads(seen[0].content)
    assert body == {"query": "query { courses { id } }", "variables": {"first": 1}}
    assert seen[0].headers["Authorization"] == "Bearer read-token"


def test_mutation_uses_mutation_token():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": {"createCourse": {"id": "c1"}}})

    _client(handler).mutate("mutation { createCourse { id } }")
    assert seen[0].headers["Authorization"] == "Bearer write-token"


def test_graphql_errors_raise_with_first_message():
    def handler(request):
        return httpx.Response(200, json={"errors": [{"message": "field 'nope' not found"}], "data": None})

    with pytest.raises(HygraphError, match="field 'nope' not found"):
        _client(handler).query("query { nope }")


def test_missing_data_raises():
    def handler(request):
        return httpx.Response(200, json={})

    with pytest.raises(HygraphError, match="No data returned"):
        _client(handler).query("query { x }")


def test_query_retries_server_errors():
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"data": {"ok": True}})

    assert _client(handler).query("query { ok }") == {"ok": True}
    assert len(calls) == 3


def test_query_gives_up_after_max_attempts():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(502)

    with pytest.raises(HygraphError) as exc:
        _client(handler, max_attempts=2).query("query { ok }")
    assert exc.value.status_code == 502
    assert len(calls) == 2


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(400)

    with pytest.raises(HygraphError):
        _client(handler).query("query { ok }")
    assert len(calls) == 1


def test_mutation_is_sent_once_on_server_error():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(503)

    with pytest.raises(HygraphError):
        _client(handler).mutate("mutation { deleteCourse { id } }")
    assert len(calls) == 1


def test_transport_error_becomes_hygraph_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(HygraphError, match="Hygraph request failed"):
        _client(handler, max_attempts=2).query("query { ok }")
