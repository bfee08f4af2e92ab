# Shared fixtures: the upstream is replaced with httpx.MockTransport through
# FastAPI dependency overrides, so no test talks to the network.
import base64
import json

import fitz
import httpx
import pytest
from fastapi.testclient import TestClient

from agent_router.app import app, get_upstream_client
from agent_router.upstream import UpstreamClient, UpstreamConfig

UPSTREAM_URL = "https://upstream.test/api/v1/chat/completions"

CONFIG = UpstreamConfig(
    url=UPSTREAM_URL,
    api_key="sk-test",
    referer="http://localhost:5173",
    generation_timeout=5.0,
)


def make_upstream(handler) -> UpstreamClient:
    return UpstreamClient(CONFIG, http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def byte_stream(*chunks: bytes):
    async def gen():
        for chunk in chunks:
            yield chunk
    return gen()


def completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


def make_pdf(*page_texts: str, title: str = "") -> str:
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    if title:
        doc.set_metadata({"title": title})
    data = doc.tobytes()
    doc.close()
    return base64.b64encode(data).decode("ascii")


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def use_upstream():
    def install(handler) -> UpstreamClient:
        upstream = make_upstream(handler)
        app.dependency_overrides[get_upstream_client] = lambda: upstream
        return upstream

    yield install
    app.dependency_overrides.clear()
