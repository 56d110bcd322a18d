import httpx


def sse_body(*frames: str) -> bytes:
    """Join raw frame lines into a streaming body."""
    return "".join(f"{frame}\n" for frame in frames).encode()


class TrackingStream(httpx.AsyncByteStream):
    """Byte stream that records whether the response was released."""

    def __init__(self, blocks: list[bytes]):
        self.blocks = blocks
        self.delivered = 0
        self.closed = False

    async def __aiter__(self):
        for block in self.blocks:
            self.delivered += 1
            yield block

    async def aclose(self):
        self.closed = True
