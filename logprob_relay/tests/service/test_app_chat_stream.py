"""NDJSON streaming route."""
from __future__ import annotations

import asyncio
import json

from logprob_relay.config import RelayConfig
from logprob_relay.mock import ScriptedToken, ScriptedUpstream, script_from_text
from logprob_relay.service.app import create_app
from logprob_relay.tests.fakes import StatusError

BODY = {"messages": [{"role": "user", "content": "Say hi"}], "model": "m1"}


def _lines(res):
    return [json.loads(line) for line in res.text.splitlines() if line.strip()]


def test_stream_headers_and_event_order(make_client):
    upstream = ScriptedUpstream(script_from_text("Hello there friend"))
    res = make_client(provider=upstream).post("/api/complete/stream", json=BODY, headers={"X-Request-ID": "s1"})
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("application/x-ndjson")
    assert res.headers["cache-control"] == "no-cache"
    assert res.headers["X-Request-ID"] == "s1"

    events = _lines(res)
    kinds = [e["type"] for e in events]
    assert kinds.count("done") == 1 and kinds[-1] == "done"
    completion = events[-1]["completion"]
    assert "".join(e["delta"] for e in events if e["type"] == "delta") == completion["text"]
    assert [e["delta"]["index"] for e in events if e["type"] == "logprobs"] == list(range(3))
    assert upstream.closed_streams == 1


def test_stream_without_final_object(make_client):
    upstream = ScriptedUpstream(
        [ScriptedToken("Hi"), ScriptedToken(" there")],
        with_summary=False,
        with_logprobs=False,
    )
    events = _lines(make_client(provider=upstream).post("/complete/stream", json=BODY))
    assert events[:2] == [{"type": "delta", "delta": "Hi"}, {"type": "delta", "delta": " there"}]
    completion = events[2]["completion"]
    assert completion["text"] == "Hi there"
    assert completion["tokens"] == []
    assert completion["finish_reason"] == "stop"
    assert completion["usage"]["completion_tokens"] == 0
    assert len(events) == 3


def test_stream_upstream_failure_is_a_done_error(make_client):
    upstream = ScriptedUpstream(
        script_from_text("a b c"),
        fail_after=1,
        error=StatusError("upstream exploded", 500),
    )
    res = make_client(provider=upstream).post("/api/complete/stream", json=BODY)
    assert res.status_code == 200
    events = _lines(res)
    assert events[0] == {"type": "delta", "delta": "a"}
    assert events[-1] == {"type": "done", "error": "upstream:upstream exploded"}


def test_stream_invalid_body_is_400_before_streaming(make_client):
    upstream = ScriptedUpstream()
    res = make_client(provider=upstream).post("/api/complete/stream", json=dict(BODY, top_logprobs=11))
    assert res.status_code == 400
    assert res.headers["content-type"].startswith("application/json")
    assert res.json()["error"] == "Invalid request"
    assert upstream.requests == []


def test_stream_missing_credential_is_500(make_client):
    res = make_client(config=RelayConfig(api_key=None)).post("/api/complete/stream", json=BODY)
    assert res.status_code == 500
    assert "OPENAI_API_KEY" in res.json()["error"]


def test_stream_force_prefix_echo(make_client):
    upstream = ScriptedUpstream([ScriptedToken(" world")])
    body = dict(BODY, force_prefix="Hello")
    events = _lines(make_client(provider=upstream).post("/api/complete/stream", json=body))
    assert events[-1]["completion"]["force_prefix_echo"] == "Hello"
    sent = upstream.requests[0].messages
    assert sent[-1].role == "assistant" and sent[-1].content == "Hello"


def _asgi_post(path: str) -> dict:
    return {
        "type": "http",
        "http_version": "1.1",
        "method": "POST",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("ascii"),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"relay"), (b"content-type", b"application/json")],
        "client": ("127.0.0.1", 50000),
        "server": ("relay", 80),
    }


def test_client_disconnect_cancels_relay_without_done(relay_config):
    upstream = ScriptedUpstream(script_from_text("a b c d e f g h"), delay=0.05)
    app = create_app(config=relay_config, provider=upstream)
    body = json.dumps(BODY).encode("utf-8")

    async def run():
        first_chunk = asyncio.Event()
        request_sent = False
        sent = []

        async def receive():
            nonlocal request_sent
            if not request_sent:
                request_sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            await first_chunk.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            sent.append(message)
            if message["type"] == "http.response.body" and message.get("body"):
                first_chunk.set()

        await asyncio.wait_for(app(_asgi_post("/complete/stream"), receive, send), timeout=5.0)
        return sent

    sent = asyncio.run(run())
    assert sent[0]["type"] == "http.response.start" and sent[0]["status"] == 200
    text = b"".join(m.get("body", b"") for m in sent if m["type"] == "http.response.body").decode("utf-8")
    lines = [json.loads(line) for line in text.splitlines() if line.strip()]
    assert lines and lines[0]["type"] == "delta"
    assert all(e["type"] != "done" for e in lines)
    assert upstream.closed_streams == 1
