import json

import httpx
import pytest
import respx

from contentgen.adapters import ApiAdapter
from contentgen.errors import ConversionError, TransportError, ValidationError
from contentgen.types import FinishReason, GenerateContentRequest

from helpers import TrackingStream, sse_body

BASE = "https://gateway.test"


def _adapter(model="gpt-4o", **kwargs):
    return ApiAdapter(endpoint=BASE + "/", auth_token="tok-123", model=model, **kwargs)


def _frame(text, finished=False):
    return "data: " + json.dumps({"chunk": text, "finished": finished})


@pytest.mark.anyio
@respx.mock
async def test_generate_hello_scenario(hello_request):
    route = respx.post(f"{BASE}/api/chat/send").mock(
        return_value=httpx.Response(200, json={"message": "Hi! How can I help?", "model_name": "gpt-4o", "mode": "gateway"})
    )

    response = await _adapter().generate(hello_request, "prompt-1")

    assert len(response.candidates) == 1
    candidate = response.candidates[0]
    assert candidate.content.role == "model"
    assert candidate.content.parts[0].text == "Hi! How can I help?"
    assert candidate.finish_reason == FinishReason.STOP
    assert response.usage is None

    sent = route.calls.last.request
    assert sent.headers["Authorization"] == "Bearer tok-123"
    assert json.loads(sent.content) == {"message": "hello", "model_name": "gpt-4o", "stream": False}


@pytest.mark.anyio
@respx.mock
async def test_generate_maps_internal_model_and_flattens_history():
    route = respx.post(f"{BASE}/api/chat/send").mock(
        return_value=httpx.Response(200, json={"message": "ok", "metadata": {"tokens_used": 42}})
    )
    request = GenerateContentRequest(contents=[
        {"role": "user", "parts": [{"text": "first"}]},
        {"role": "model", "parts": [{"text": "second"}]},
    ])

    response = await _adapter(model="claude-opus-4-1").generate(request, "p")

    body = json.loads(route.calls.last.request.content)
    assert body["model_name"] == "claude-opus-4-1-20250805"
    assert body["message"] == "first second"
    assert response.usage.prompt_tokens == 0
    assert response.usage.completion_tokens == 42
    assert response.usage.total_tokens == 42


@pytest.mark.anyio
@respx.mock
async def test_http_error_becomes_transport_error(hello_request):
    respx.post(f"{BASE}/api/chat/send").mock(return_value=httpx.Response(503, text="upstream down"))

    with pytest.raises(TransportError) as exc_info:
        await _adapter().generate(hello_request, "p")

    err = exc_info.value
    assert err.provider == "api"
    assert err.status == 503
    assert "api" in str(err)
    assert "upstream down" in str(err)


@pytest.mark.anyio
@respx.mock
async def test_connection_failure_becomes_transport_error(hello_request):
    respx.post(f"{BASE}/api/chat/send").mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(TransportError) as exc_info:
        await _adapter().generate(hello_request, "p")
    assert exc_info.value.status is None
    assert "refused" in str(exc_info.value)


@pytest.mark.anyio
@pytest.mark.parametrize("kwargs", [
    {"text": "<html>not json</html>"},
    {"json": {"unexpected": True}},
    {"json": {"message": ["not", "a", "string"]}},
    {"json": ["list"]},
])
async def test_garbage_response_becomes_conversion_error(hello_request, kwargs):
    with respx.mock:
        respx.post(f"{BASE}/api/chat/send").mock(return_value=httpx.Response(200, **kwargs))

        with pytest.raises(ConversionError) as exc_info:
            await _adapter().generate(hello_request, "p")
    assert exc_info.value.provider == "api"


@pytest.mark.anyio
@respx.mock
async def test_stream_yields_deltas_in_order(hello_request):
    route = respx.post(f"{BASE}/api/chat/stream").mock(
        return_value=httpx.Response(200, content=sse_body(
            _frame("Hel"), "", _frame("lo"), _frame("!", finished=True),
        ))
    )

    chunks = [c async for c in _adapter().generate_stream(hello_request, "p")]

    assert [c.text for c in chunks] == ["Hel", "lo", "!"]
    assert [c.finish_reason for c in chunks] == [
        FinishReason.UNSPECIFIED, FinishReason.UNSPECIFIED, FinishReason.STOP,
    ]
    assert json.loads(route.calls.last.request.content)["stream"] is True


@pytest.mark.anyio
@respx.mock
async def test_stream_survives_malformed_frame(hello_request):
    frames = [_frame("a"), _frame("b"), "data: {broken", _frame("c"), _frame("d"), _frame("e")]
    respx.post(f"{BASE}/api/chat/stream").mock(return_value=httpx.Response(200, content=sse_body(*frames)))

    chunks = [c.text async for c in _adapter().generate_stream(hello_request, "p")]

    assert chunks == ["a", "b", "c", "d", "e"]


@pytest.mark.anyio
@respx.mock
async def test_stream_drops_frame_with_unexpected_shape(hello_request):
    frames = [_frame("a"), 'data: {"chunk": {"text": "nested"}}', 'data: {"finished": true}', _frame("b")]
    respx.post(f"{BASE}/api/chat/stream").mock(return_value=httpx.Response(200, content=sse_body(*frames)))

    chunks = [c.text async for c in _adapter().generate_stream(hello_request, "p")]

    assert chunks == ["a", "b"]


@pytest.mark.anyio
@respx.mock
async def test_stream_http_error(hello_request):
    respx.post(f"{BASE}/api/chat/stream").mock(return_value=httpx.Response(401, text="bad token"))

    with pytest.raises(TransportError) as exc_info:
        async for _ in _adapter().generate_stream(hello_request, "p"):
            pass
    assert exc_info.value.status == 401
    assert "bad token" in str(exc_info.value)


@pytest.mark.anyio
async def test_cancelling_stream_releases_response(hello_request):
    blocks = [(_frame(f"c{i}") + "\n").encode() for i in range(5)]
    tracking = TrackingStream(blocks)
    transport = httpx.MockTransport(lambda request: httpx.Response(200, stream=tracking))

    stream = _adapter(transport=transport).generate_stream(hello_request, "p")
    received = []
    async for chunk in stream:
        received.append(chunk.text)
        if len(received) == 2:
            break
    await stream.aclose()

    assert received == ["c0", "c1"]
    assert tracking.closed is True
    assert tracking.delivered < len(blocks)
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()


@pytest.mark.anyio
async def test_exhausted_stream_releases_response(hello_request):
    tracking = TrackingStream([sse_body(_frame("only", finished=True))])
    transport = httpx.MockTransport(lambda request: httpx.Response(200, stream=tracking))

    chunks = [c async for c in _adapter(transport=transport).generate_stream(hello_request, "p")]

    assert [c.text for c in chunks] == ["only"]
    assert tracking.closed is True


@pytest.mark.anyio
async def test_count_tokens_is_an_estimate():
    result = await _adapter().count_tokens(GenerateContentRequest(contents="x" * 10))
    assert result.total_tokens == 3
    assert result.estimated is True


@pytest.mark.anyio
@respx.mock
async def test_blank_embedding_rejected_before_transport():
    route = respx.post(url__startswith=BASE).mock(return_value=httpx.Response(200, json={}))

    with pytest.raises(ValidationError) as exc_info:
        await _adapter().embed(GenerateContentRequest(contents="   "))

    assert "No content provided for embedding" in str(exc_info.value)
    assert not route.called


@pytest.mark.anyio
async def test_embedding_returns_empty_vector():
    result = await _adapter().embed(GenerateContentRequest(contents="some text"))
    assert len(result.embeddings) == 1
    assert result.embeddings[0].values == []


def test_get_model_returns_constructed_id():
    assert _adapter(model="claude-opus-4-1").get_model() == "claude-opus-4-1"
