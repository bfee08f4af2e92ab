import json

import httpx

from agent_router.upstream.client import CREDITS_EXHAUSTED, RATE_LIMITED
from conftest import byte_stream, completion, make_pdf, request_json

CHAT_BODY = {"model": "openai/gpt-4o-mini", "messages": [{"role": "user", "content": "hi"}]}


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "message": "Agent Router Proxy is running"}


# ------------------------------------------------------------
# /api/chat
# ------------------------------------------------------------
def test_chat_relays_stream_without_processing_marker(client, use_upstream):
    seen = {}

    def handler(request):
        seen["request"] = request
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=byte_stream(
                b'data: {"choices":[{"delta":{"content":"Hel"}}]}\n\n',
                b": OPENROUTER PROCESSING\n\n",
                b'data: {"choices":[{"delta":{"content":"lo"}}]}\n\n',
                b"data: [DONE]\n\n",
            ),
        )

    use_upstream(handler)
    r = client.post("/api/chat", json=CHAT_BODY)

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/event-stream")
    assert r.headers["cache-control"] == "no-cache"
    assert "OPENROUTER PROCESSING" not in r.text
    assert r.text == (
        'data: {"choices":[{"delta":{"content":"Hel"}}]}\n\n'
        'data: {"choices":[{"delta":{"content":"lo"}}]}\n\n'
        "data: [DONE]\n\n"
    )

    sent = seen["request"]
    assert sent.headers["authorization"] == "Bearer sk-test"
    assert sent.headers["http-referer"] == "http://localhost:5173"
    assert sent.headers["x-title"] == "MUZ AI"
    assert request_json(sent) == {**CHAT_BODY, "stream": True}


def test_chat_forwards_multimodal_messages_verbatim(client, use_upstream):
    seen = {}
    messages = [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": [
            {"type": "text", "text": "what is this?"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
        ]},
    ]

    def handler(request):
        seen["body"] = request_json(request)
        return httpx.Response(200, content=byte_stream(b"data: [DONE]\n\n"))

    use_upstream(handler)
    r = client.post("/api/chat", json={"model": "qwen/qwen-2.5-vl", "messages": messages})

    assert r.status_code == 200
    assert seen["body"]["messages"] == messages


def test_chat_mirrors_upstream_error_status(client, use_upstream):
    body = '{"error":{"message":"No auth credentials found","code":401}}'
    use_upstream(lambda request: httpx.Response(401, text=body))

    r = client.post("/api/chat", json=CHAT_BODY)

    assert r.status_code == 401
    assert r.json() == {"error": "OpenRouter API error: 401", "details": body}


def test_chat_rejects_missing_fields(client, use_upstream):
    use_upstream(lambda request: httpx.Response(500))
    expected = {"error": "Invalid request. Required: model (string) and messages (array)"}

    for body in (
        {"messages": [{"role": "user", "content": "hi"}]},
        {"model": "m"},
        {"model": "m", "messages": "hi"},
        {"model": "m", "messages": []},
        {"model": "", "messages": [{"role": "user", "content": "hi"}]},
    ):
        r = client.post("/api/chat", json=body)
        assert r.status_code == 400, body
        assert r.json() == expected


def test_chat_rejects_invalid_json(client, use_upstream):
    use_upstream(lambda request: httpx.Response(500))
    r = client.post("/api/chat", content=b"{not json", headers={"content-type": "application/json"})
    assert r.status_code == 400


def test_chat_reports_unreachable_upstream(client, use_upstream):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    use_upstream(handler)
    r = client.post("/api/chat", json=CHAT_BODY)

    assert r.status_code == 502
    assert r.json()["error"] == "Internal proxy error"


# ------------------------------------------------------------
# /api/generate-html
# ------------------------------------------------------------
def test_generate_html_extracts_fenced_json(client, use_upstream):
    seen = {}
    content = 'Here:\n```json\n{"html":"<p>x</p>","css":"","js":""}\n```\nEnjoy!'

    def handler(request):
        seen["request"] = request
        return httpx.Response(200, json=completion(content))

    use_upstream(handler)
    r = client.post("/api/generate-html", json={"prompt": "a paragraph", "model": "m"})

    assert r.status_code == 200
    assert r.json() == {"html": "<p>x</p>", "css": "", "js": ""}

    sent = seen["request"]
    body = request_json(sent)
    assert sent.headers["x-title"] == "MUZ AI Chat"
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 2000
    assert "stream" not in body
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert body["messages"][1]["content"] == "a paragraph"


def test_generate_html_malformed_output_truncates_details(client, use_upstream):
    content = '{"html": "<div>' + "x" * 800
    use_upstream(lambda request: httpx.Response(200, json=completion(content)))

    r = client.post("/api/generate-html", json={"prompt": "p", "model": "m"})

    assert r.status_code == 500
    data = r.json()
    assert data["error"] == "Failed to parse generated code"
    assert data["details"] == content[:500]


def test_generate_html_credit_error_is_mirrored(client, use_upstream):
    body = '{"error":{"message":"Insufficient credits","code":402}}'
    use_upstream(lambda request: httpx.Response(402, text=body))

    r = client.post("/api/generate-html", json={"prompt": "p", "model": "m"})

    assert r.status_code == 402
    assert r.json() == {"error": CREDITS_EXHAUSTED, "details": body}


def test_generate_html_requires_prompt_and_model(client, use_upstream):
    use_upstream(lambda request: httpx.Response(500))
    r = client.post("/api/generate-html", json={"model": "m"})
    assert r.status_code == 400
    assert "prompt" in r.json()["error"]


def test_generate_html_timeout(client, use_upstream):
    seen = {}

    def handler(request):
        seen["timeout"] = request.extensions["timeout"]
        raise httpx.ReadTimeout("timed out", request=request)

    use_upstream(handler)
    r = client.post("/api/generate-html", json={"prompt": "p", "model": "m"})

    assert r.status_code == 504
    assert r.json()["error"] == "Upstream request timed out"
    assert seen["timeout"] == {"connect": 5.0, "read": 5.0, "write": 5.0, "pool": 5.0}


# ------------------------------------------------------------
# /api/generate-app
# ------------------------------------------------------------
def test_generate_app_strips_component_css_imports(client, use_upstream):
    seen = {}
    files = {
        "/App.js": "import './styles.css';\nimport Foo from './components/Foo';\nexport default function App() { return <Foo />; }\n",
        "/components/Foo.js": "import React from 'react';\nimport './Foo.css';\nexport default function Foo() { return <p>foo</p>; }\n",
        "/styles.css": "body { margin: 0; }",
    }
    content = "```json\n" + json.dumps({"files": files}) + "\n```"

    def handler(request):
        seen["request"] = request
        return httpx.Response(200, json=completion(content))

    use_upstream(handler)
    r = client.post("/api/generate-app", json={"prompt": "todo app", "model": "m"})

    assert r.status_code == 200
    out = r.json()["files"]
    assert out["/App.js"] == files["/App.js"]
    assert out["/components/Foo.js"] == (
        "import React from 'react';\nexport default function Foo() { return <p>foo</p>; }\n"
    )
    assert out["/styles.css"] == files["/styles.css"]

    sent = seen["request"]
    assert sent.headers["x-title"] == "MUZ AI App Builder"
    assert request_json(sent)["max_tokens"] == 3000


def test_generate_app_rate_limited(client, use_upstream):
    body = '{"error":{"message":"Rate limit exceeded","code":429}}'
    use_upstream(lambda request: httpx.Response(429, text=body))

    r = client.post("/api/generate-app", json={"prompt": "p", "model": "m"})

    assert r.status_code == 429
    assert r.json()["error"] == RATE_LIMITED


def test_generate_app_completion_without_content(client, use_upstream):
    use_upstream(lambda request: httpx.Response(200, json={"choices": []}))
    r = client.post("/api/generate-app", json={"prompt": "p", "model": "m"})
    assert r.status_code == 500
    assert "details" in r.json()


# ------------------------------------------------------------
# /api/extract-pdf
# ------------------------------------------------------------
def test_extract_pdf_text(client):
    pdf = make_pdf(
        "The quick brown fox jumps over the lazy dog.\nPack my box with five dozen liquor jugs.",
        "Second page text.",
    )
    r = client.post("/api/extract-pdf", json={"pdfBase64": "data:application/pdf;base64," + pdf})

    assert r.status_code == 200
    data = r.json()
    assert data["pages"] == 2
    assert data["usedOCR"] is False
    assert "quick brown fox" in data["text"]
    assert "Second page text." in data["text"]
    assert "message" not in data


def test_extract_pdf_requires_data(client):
    r = client.post("/api/extract-pdf", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "PDF base64 data is required"}


def test_extract_pdf_garbage(client):
    r = client.post("/api/extract-pdf", json={"pdfBase64": "bm90IGEgcGRmIGF0IGFsbA=="})

    assert r.status_code == 500
    data = r.json()
    assert data["error"] == "Failed to extract PDF"
    assert data["message"]
    assert "image" in data["suggestion"]
