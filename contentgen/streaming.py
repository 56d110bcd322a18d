"""
Stream normalizer.

Turns a provider's byte-oriented, line-framed streaming body into a lazy
sequence of canonical chunks. Frames are emitted in arrival order; a single
malformed frame is dropped rather than aborting the stream.
"""
import codecs
import json
import logging
from contextlib import aclosing
from typing import AsyncIterable, AsyncIterator, Callable, NamedTuple, Optional

from .types import FinishReason, GenerateContentResponse, TokenUsage

logger = logging.getLogger("contentgen.streaming")

DATA_PREFIX = "data:"


class StreamDelta(NamedTuple):
    text: str
    finish_reason: FinishReason
    usage: Optional[TokenUsage] = None


DeltaExtractor = Callable[[dict], Optional[StreamDelta]]

# Raised by an extractor reading a frame whose JSON parsed but whose shape is wrong.
FRAME_SHAPE_ERRORS = (KeyError, IndexError, TypeError, AttributeError, ValueError)


async def iter_lines(byte_stream: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Yield complete lines; a partial trailing fragment waits for the next block."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    async for block in byte_stream:
        buffer += decoder.decode(block)
        lines = buffer.split("\n")
        buffer = lines.pop()
        for line in lines:
            yield line.rstrip("\r")
    buffer += decoder.decode(b"", final=True)
    if buffer.strip():
        yield buffer.rstrip("\r")


async def iter_json_frames(
    byte_stream: AsyncIterable[bytes],
    prefix: str = DATA_PREFIX,
    sentinel: str | None = None,
) -> AsyncIterator[dict]:
    async with aclosing(iter_lines(byte_stream)) as lines:
        async for line in lines:
            if not line.strip() or not line.startswith(prefix):
                continue
            data = line[len(prefix):].strip()
            if sentinel is not None and data == sentinel:
                return
            try:
                frame = json.loads(data)
            except json.JSONDecodeError:
                logger.debug("Dropping malformed frame: %.200s", data)
                continue
            if not isinstance(frame, dict):
                logger.debug("Dropping non-object frame: %.200s", data)
                continue
            yield frame


async def normalize_stream(
    byte_stream: AsyncIterable[bytes],
    extract_delta: DeltaExtractor,
    sentinel: str | None = None,
) -> AsyncIterator[GenerateContentResponse]:
    """Map each frame through ``extract_delta``.

    A delta with neither text nor usage is not emitted. A usage-only delta
    becomes a chunk with empty text so the counters still reach the caller.
    Frames the extractor cannot read are dropped; anything else it raises
    (a provider-reported error frame) ends the stream.
    """
    async with aclosing(iter_json_frames(byte_stream, sentinel=sentinel)) as frames:
        async for frame in frames:
            try:
                delta = extract_delta(frame)
            except FRAME_SHAPE_ERRORS as e:
                logger.debug("Dropping unreadable frame (%s: %s): %.200s", type(e).__name__, e, frame)
                continue
            if delta is None:
                continue
            delta = StreamDelta(*delta)
            if delta.text or delta.usage is not None:
                yield GenerateContentResponse.from_text(delta.text, delta.finish_reason, usage=delta.usage)
