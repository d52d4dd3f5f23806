"""Pytest configuration helpers.

This conftest puts ``backend/`` on ``sys.path`` so tests can import the
``morphreel`` package regardless of how pytest is invoked, and provides a
fake upstream provider built on ``httpx.MockTransport``.
"""
import base64
import json
import os
import sys

import httpx
import pytest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND = os.path.join(ROOT, "backend")
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

from morphreel.config import Settings  # noqa: E402


JPEG_B64 = base64.b64encode(b"\xff\xd8\xff\xe0\x00\x10JFIF start frame").decode()
PNG_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\n end frame").decode()
VIDEO_URL = "https://media.example.com/files/out/clip.mp4"


def data_url(b64: str, media_type: str = "image/jpeg") -> str:
    return f"data:{media_type};base64,{b64}"


class FakeUpstream:
    """Records every request and answers with ``handler`` (sync or async)."""

    def __init__(self):
        self.calls: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(200, json={})

    def respond(self, status_code=200, json_body=None, text=None):
        if text is not None:
            self.handler = lambda request: httpx.Response(status_code, text=text)
        else:
            self.handler = lambda request: httpx.Response(status_code, json=json_body)

    def __call__(self, request: httpx.Request):
        self.calls.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def last_json(self):
        return json.loads(self.calls[-1].content)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        HEALTH_DNS_CHECK=False,
        RETRY_BACKOFF_SECONDS=0,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()
