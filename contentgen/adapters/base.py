import logging
import platform
import sys
from abc import ABC, abstractmethod
from contextlib import aclosing
from typing import AsyncGenerator

import httpx

from ..conversion import estimate_tokens, flatten_to_text
from ..errors import ValidationError, provider_errors, raise_for_status
from ..streaming import DeltaExtractor, normalize_stream
from ..types import (
    ContentEmbedding,
    CountTokensResponse,
    EmbedContentResponse,
    GenerateContentRequest,
    GenerateContentResponse,
)

logger = logging.getLogger("contentgen.adapters")

DEFAULT_TIMEOUT = httpx.Timeout(120, connect=10)


def default_user_agent() -> str:
    from .. import __version__
    return f"contentgen/{__version__} ({sys.platform}; {platform.machine()})"


class BaseAdapter(ABC):
    """One provider's implementation of the content-generation capability set."""

    provider_name: str = ""

    @abstractmethod
    async def generate(self, request: GenerateContentRequest, prompt_id: str) -> GenerateContentResponse:
        """Single-shot generation; one canonical candidate."""
        ...

    @abstractmethod
    def generate_stream(
        self, request: GenerateContentRequest, prompt_id: str
    ) -> AsyncGenerator[GenerateContentResponse, None]:
        """Streaming generation. Yields chunks carrying only the text delta."""
        ...

    @abstractmethod
    async def count_tokens(self, request: GenerateContentRequest) -> CountTokensResponse:
        ...

    @abstractmethod
    async def embed(self, request: GenerateContentRequest) -> EmbedContentResponse:
        ...

    @abstractmethod
    def get_model(self) -> str:
        ...


class HttpAdapter(BaseAdapter):
    """Shared plumbing for adapters that talk to their provider over HTTP.

    Every call opens its own ``httpx.AsyncClient`` so concurrent calls on one
    adapter never share connection state.
    """

    def __init__(
        self,
        model: str,
        *,
        proxy: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        user_agent: str | None = None,
    ):
        self.model = model
        self.proxy = proxy
        self.timeout = timeout
        self.user_agent = user_agent or default_user_agent()
        self._transport = transport

    def _headers(self) -> dict:
        return {"Content-Type": "application/json"}

    def _client(self) -> httpx.AsyncClient:
        kwargs: dict = {"timeout": self.timeout, "headers": {"User-Agent": self.user_agent}}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif self.proxy:
            kwargs["proxy"] = self.proxy
        return httpx.AsyncClient(**kwargs)

    async def _post_json(self, url: str, payload: dict) -> dict:
        logger.debug("POST %s (%s)", url, self.provider_name)
        async with self._client() as client:
            resp = await client.post(url, headers=self._headers(), json=payload)
            await raise_for_status(resp, self.provider_name)
            data = resp.json()
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return data

    async def _stream_post(
        self,
        url: str,
        payload: dict,
        extract_delta: DeltaExtractor,
        sentinel: str | None = None,
    ) -> AsyncGenerator[GenerateContentResponse, None]:
        logger.debug("POST %s (%s, streaming)", url, self.provider_name)
        with provider_errors(self.provider_name):
            async with self._client() as client:
                async with client.stream("POST", url, headers=self._headers(), json=payload) as resp:
                    await raise_for_status(resp, self.provider_name)
                    chunks = normalize_stream(resp.aiter_bytes(), extract_delta, sentinel=sentinel)
                    async with aclosing(chunks):
                        async for chunk in chunks:
                            yield chunk

    async def count_tokens(self, request: GenerateContentRequest) -> CountTokensResponse:
        """Approximate count (length / 4); ``estimated`` is always True here."""
        with provider_errors(self.provider_name):
            text = flatten_to_text(request.contents)
            return CountTokensResponse(total_tokens=estimate_tokens(text), estimated=True)

    def _embedding_text(self, request: GenerateContentRequest) -> str:
        text = flatten_to_text(request.contents)
        if not text.strip():
            raise ValidationError(self.provider_name, "No content provided for embedding")
        return text

    async def embed(self, request: GenerateContentRequest) -> EmbedContentResponse:
        """Providers without an embeddings endpoint return an empty vector."""
        with provider_errors(self.provider_name):
            self._embedding_text(request)
            return EmbedContentResponse(embeddings=[ContentEmbedding(values=[])])

    def get_model(self) -> str:
        return self.model
