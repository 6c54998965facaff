# tests/integration/test_rest_api_caller.py

import base64
import json
from typing import List

import httpx
import pytest

from testlab.schemas.auth import ApiKeyAuth, BasicAuth, OAuth2RefreshAuth
from testlab.schemas.tools.rest_api_caller import PreparedRequest
from testlab.tools.rest_api_caller import RestApiCallerTool

API = "https://api.example.com"
TOKEN_URL = "https://auth.example.com/token"


class Recorder:
    """MockTransport handler that remembers what it received."""

    def __init__(self, response: httpx.Response = None):
        self.requests: List[httpx.Request] = []
        self.response = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "fresh", "expires_in": 3600})
        if self.response is not None:
            return self.response
        return httpx.Response(200, json={"ok": True})

    @property
    def api_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(API)]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
async def caller(recorder):
    tool = RestApiCallerTool(transport=httpx.MockTransport(recorder))
    yield tool
    await tool.cleanup()


async def test_raw_json_body_and_query_params(caller, recorder):
    output = await caller.send(
        PreparedRequest(
            method="POST",
            url=f"{API}/items",
            headers={"Content-Type": "application/json"},
            params=[("tag", "a"), ("tag", "b")],
            body_mode="raw",
            body='{"name": "widget"}',
        )
    )

    assert output.success
    assert output.response.status == 200
    assert json.loads(output.response.body) == {"ok": True}
    sent = recorder.requests[0]
    assert sent.method == "POST"
    assert sent.url.params.get_list("tag") == ["a", "b"]
    assert json.loads(sent.content) == {"name": "widget"}
    assert sent.headers["content-type"] == "application/json"


async def test_urlencoded_body(caller, recorder):
    await caller.send(
        PreparedRequest(
            method="POST",
            url=f"{API}/login",
            body_mode="urlencoded",
            form=[("user", "ada"), ("scope", "read"), ("scope", "write")],
        )
    )

    assert recorder.requests[0].content == b"user=ada&scope=read&scope=write"


async def test_api_key_in_header_with_prefix(caller, recorder):
    auth = ApiKeyAuth(id="k", key="Authorization", value="abc", prefix="Token")

    await caller.send(PreparedRequest(method="GET", url=f"{API}/me", auth=auth))

    assert recorder.requests[0].headers["Authorization"] == "Token abc"


async def test_api_key_in_query_base64_encoded(caller, recorder):
    auth = ApiKeyAuth(id="k", key="api_key", value="abc", send_in="query", base64_encode=True)

    await caller.send(PreparedRequest(method="GET", url=f"{API}/me", auth=auth))

    assert recorder.requests[0].url.params["api_key"] == base64.b64encode(b"abc").decode()


async def test_basic_auth(caller, recorder):
    auth = BasicAuth(id="b", username="ada", password="pw")

    await caller.send(PreparedRequest(method="GET", url=f"{API}/me", auth=auth))

    expected = base64.b64encode(b"ada:pw").decode()
    assert recorder.requests[0].headers["Authorization"] == f"Basic {expected}"


async def test_oauth2_token_is_refreshed_once_and_cached(caller, recorder):
    auth = OAuth2RefreshAuth(
        id="o", token_url=TOKEN_URL, client_id="cli", refresh_token="r-1", scope="read"
    )

    for _ in range(2):
        await caller.send(PreparedRequest(method="GET", url=f"{API}/me", auth=auth))

    token_calls = [r for r in recorder.requests if r.url == TOKEN_URL]
    assert len(token_calls) == 1
    form = dict(pair.split("=") for pair in token_calls[0].content.decode().split("&"))
    assert form["grant_type"] == "refresh_token"
    assert form["refresh_token"] == "r-1"
    assert [r.headers["Authorization"] for r in recorder.api_requests] == ["Bearer fresh"] * 2


async def test_oauth2_unexpired_access_token_is_used_as_is(caller, recorder):
    auth = OAuth2RefreshAuth(
        id="o", token_url=TOKEN_URL, client_id="cli", refresh_token="r", access_token="still-good"
    )

    await caller.send(PreparedRequest(method="GET", url=f"{API}/me", auth=auth))

    assert [str(r.url) for r in recorder.requests] == [f"{API}/me"]
    assert recorder.requests[0].headers["Authorization"] == "Bearer still-good"


async def test_oauth2_refresh_failure_is_reported_without_sending():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    tool = RestApiCallerTool(transport=httpx.MockTransport(handler))
    auth = OAuth2RefreshAuth(id="o", token_url=TOKEN_URL, client_id="cli", refresh_token="r")

    output = await tool.send(PreparedRequest(method="GET", url=f"{API}/me", auth=auth))

    assert not output.success
    assert output.error_message.startswith("OAuth2 token refresh failed")
    await tool.cleanup()


async def test_timeout_becomes_an_error_result():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    tool = RestApiCallerTool(config={"timeout": 2}, transport=httpx.MockTransport(handler))

    output = await tool.send(PreparedRequest(method="GET", url=f"{API}/slow"))

    assert not output.success
    assert output.response is None
    assert output.error_message == "Request timed out after 2.0s"
    await tool.cleanup()


async def test_connection_error_becomes_an_error_result():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    tool = RestApiCallerTool(transport=httpx.MockTransport(handler))

    output = await tool.send(PreparedRequest(method="GET", url=f"{API}/down"))

    assert output.error_message == "Request error: connection refused"
    await tool.cleanup()


async def test_missing_body_file_is_reported(caller, tmp_path):
    output = await caller.send(
        PreparedRequest(
            method="PUT", url=f"{API}/upload", body_mode="file", file_path=str(tmp_path / "nope.bin")
        )
    )

    assert not output.success
    assert output.error_message.startswith("Cannot read body file")


async def test_binary_response_is_base64_encoded():
    png = b"\x89PNG\r\n\x1a\n\x00\x00"
    recorder = Recorder(httpx.Response(200, content=png, headers={"content-type": "image/png"}))
    tool = RestApiCallerTool(transport=httpx.MockTransport(recorder))

    output = await tool.send(PreparedRequest(method="GET", url=f"{API}/logo.png"))

    record = output.response
    assert record.is_encoded
    assert base64.b64decode(record.body) == png
    assert record.size == len(png)
    await tool.cleanup()


async def test_error_status_is_still_a_successful_call():
    recorder = Recorder(httpx.Response(404, text="missing", headers={"content-type": "text/plain"}))
    tool = RestApiCallerTool(transport=httpx.MockTransport(recorder))

    output = await tool.send(PreparedRequest(method="GET", url=f"{API}/gone"))

    assert output.success
    assert output.response.status == 404
    assert output.response.status_text == "Not Found"
    assert output.response.body == "missing"
    assert not output.response.is_encoded
    await tool.cleanup()


async def test_cleanup_closes_the_client(caller):
    await caller.send(PreparedRequest(method="GET", url=f"{API}/ping"))
    client = caller._client

    await caller.cleanup()

    assert client.is_closed
    assert caller._client is None
