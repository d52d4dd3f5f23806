import asyncio
import time

import httpx
import pytest

from morphreel.services.errors import (
    AuthError,
    ErrorKind,
    UnreachableError,
    UpstreamHttpError,
    UpstreamShapeError,
    UpstreamTimeoutError,
)
from morphreel.services.upstream import (
    ProviderAdapter,
    UpstreamCaller,
    extract_error_message,
    extract_field,
    mask_credential,
    resolve_path,
)

ENDPOINT = "https://provider.example.com/v1/run"


def _call(upstream, *, timeout=5.0, expect=("url",)):
    async def go():
        async with upstream.client() as client:
            caller = UpstreamCaller(client)
            return await caller.call(ENDPOINT, {"a": 1}, {"X-Test": "1"}, timeout, expect=expect)
    return asyncio.run(go())


@pytest.mark.parametrize("body, expected", [
    ("plain failure", "plain failure"),
    ({"error": "bad thing"}, "bad thing"),
    ({"error": {"message": "nested"}, "message": "outer"}, "nested"),
    ({"message": "msg", "detail": "det"}, "msg"),
    ({"detail": "det"}, "det"),
    ({"detail": [{"loc": ["body"], "msg": "field required"}]}, "field required"),
    ({"something": "else"}, "provider error (status 418)"),
    ("", "provider error (status 418)"),
    (None, "provider error (status 418)"),
])
def test_extract_error_message_priority(body, expected):
    assert extract_error_message(body, 418) == expected


def test_resolve_path_walks_dicts_and_lists():
    body = {"content": [{"text": "hello"}], "video": {"url": "u"}}
    assert resolve_path(body, "content.0.text") == "hello"
    assert resolve_path(body, "video.url") == "u"
    assert resolve_path(body, "content.3.text") is None
    assert resolve_path(body, "video.url.deeper") is None


def test_extract_field_uses_first_match():
    assert extract_field({"video_url": "b", "url": "c"}, ["video.url", "video_url", "url"]) == "b"
    with pytest.raises(UpstreamShapeError):
        extract_field({"video": {"url": ""}}, ["video.url"])


def test_mask_credential_hides_the_middle():
    assert mask_credential("short") == "***"
    masked = mask_credential("sk-ant-1234567890abcdef")
    assert masked.startswith("sk-a") and masked.endswith("cdef")
    assert "567890" not in masked


@pytest.mark.parametrize("style, header, value", [
    ("bearer", "Authorization", "Bearer secret"),
    ("key", "Authorization", "Key secret"),
    ("x-api-key", "x-api-key", "secret"),
])
def test_adapter_auth_styles(style, header, value):
    adapter = ProviderAdapter(name="p", endpoint=ENDPOINT, auth_style=style,
                              extra_headers={"anthropic-version": "v"})
    headers = adapter.build_headers("secret")
    assert headers[header] == value
    assert headers["anthropic-version"] == "v"
    assert adapter.host == "provider.example.com"


def test_adapter_rejects_unknown_auth_style():
    with pytest.raises(ValueError):
        ProviderAdapter(name="p", endpoint=ENDPOINT, auth_style="basic")


def test_success_returns_expected_field(upstream):
    upstream.respond(200, {"url": "https://x.example/v.mp4"})
    assert _call(upstream) == "https://x.example/v.mp4"
    request = upstream.calls[0]
    assert request.method == "POST"
    assert request.headers["X-Test"] == "1"
    assert upstream.last_json() == {"a": 1}


def test_401_is_auth_error(upstream):
    upstream.respond(401, {"error": "unauthorized"})
    with pytest.raises(AuthError) as exc:
        _call(upstream)
    assert exc.value.message == "invalid credential"
    assert exc.value.status_code == 401
    assert exc.value.kind is ErrorKind.AUTH


def test_non_2xx_passes_status_and_message(upstream):
    upstream.respond(429, {"error": {"message": "Rate limit exceeded"}})
    with pytest.raises(UpstreamHttpError) as exc:
        _call(upstream)
    assert exc.value.status_code == 429
    assert exc.value.message == "Rate limit exceeded"


def test_non_json_error_body(upstream):
    upstream.respond(502, text="Bad Gateway")
    with pytest.raises(UpstreamHttpError, match="Bad Gateway"):
        _call(upstream)


def test_2xx_missing_field_is_shape_error(upstream):
    upstream.respond(200, {"status": "done"})
    with pytest.raises(UpstreamShapeError) as exc:
        _call(upstream)
    assert exc.value.status_code == 500
    assert exc.value.message == "malformed response from provider"


def test_2xx_non_json_is_shape_error(upstream):
    upstream.respond(200, text="<html>ok</html>")
    with pytest.raises(UpstreamShapeError):
        _call(upstream)


def test_connect_error_is_unreachable(upstream):
    def refuse(request):
        raise httpx.ConnectError("Name or service not known", request=request)
    upstream.handler = refuse
    with pytest.raises(UnreachableError) as exc:
        _call(upstream)
    assert exc.value.status_code == 503
    assert "provider.example.com" in exc.value.message


def test_other_transport_error_is_unreachable(upstream):
    def drop(request):
        raise httpx.RemoteProtocolError("connection dropped", request=request)
    upstream.handler = drop
    with pytest.raises(UnreachableError):
        _call(upstream)


def test_transport_timeout_is_timeout_error(upstream):
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)
    upstream.handler = slow
    with pytest.raises(UpstreamTimeoutError) as exc:
        _call(upstream)
    assert exc.value.status_code == 504


def test_deadline_is_enforced_before_slow_upstream_answers(upstream):
    async def hang(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json={"url": "late"})
    upstream.handler = hang

    t0 = time.monotonic()
    with pytest.raises(UpstreamTimeoutError):
        _call(upstream, timeout=0.2)
    assert time.monotonic() - t0 < 2
