import logging
import time
from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncGenerator, Awaitable, Callable, TypeVar

from .adapters.base import BaseAdapter
from .errors import ContentGeneratorError
from .types import (
    CountTokensResponse,
    EmbedContentResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    TokenUsage,
)

logger = logging.getLogger("contentgen.usage")

T = TypeVar("T")


@dataclass
class UsageRecord:
    """One completed call, as reported to the usage sink."""
    prompt_id: str
    provider: str
    model: str
    operation: str                # "generate" | "generate_stream"
    latency_ms: float
    usage: TokenUsage | None = None
    chunks: int = 0               # stream chunks delivered; 0 for single-shot calls
    session_id: str | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


UsageSink = Callable[[UsageRecord], None]


class LoggingContentGenerator(BaseAdapter):
    """Forwards every call to ``wrapped`` unchanged, logging usage and latency."""

    def __init__(
        self,
        wrapped: BaseAdapter,
        session_id: str | None = None,
        usage_sink: UsageSink | None = None,
    ):
        self.wrapped = wrapped
        self.provider_name = wrapped.provider_name
        self.session_id = session_id
        self._usage_sink = usage_sink

    def _log_request(self, prompt_id: str, operation: str) -> None:
        logger.info(
            "%s request: prompt_id=%s provider=%s model=%s session=%s",
            operation, prompt_id, self.provider_name, self.wrapped.get_model(), self.session_id,
        )

    def _log_error(self, prompt_id: str | None, operation: str, start: float, error: Exception) -> None:
        logger.warning(
            "%s failed: prompt_id=%s provider=%s latency_ms=%.0f error=%s",
            operation, prompt_id, self.provider_name, (time.monotonic() - start) * 1000, error,
        )

    def _record(self, record: UsageRecord) -> None:
        usage = record.usage or TokenUsage()
        logger.info(
            "%s response: prompt_id=%s provider=%s latency_ms=%.0f chunks=%d "
            "prompt_tokens=%d completion_tokens=%d total_tokens=%d",
            record.operation, record.prompt_id, record.provider, record.latency_ms, record.chunks,
            usage.prompt_tokens, usage.completion_tokens, usage.total_tokens,
        )
        if self._usage_sink is not None:
            self._usage_sink(record)

    async def generate(self, request: GenerateContentRequest, prompt_id: str) -> GenerateContentResponse:
        self._log_request(prompt_id, "generate")
        start = time.monotonic()
        try:
            response = await self.wrapped.generate(request, prompt_id)
        except ContentGeneratorError as e:
            self._log_error(prompt_id, "generate", start, e)
            raise
        self._record(UsageRecord(
            prompt_id=prompt_id,
            provider=self.provider_name,
            model=self.wrapped.get_model(),
            operation="generate",
            latency_ms=(time.monotonic() - start) * 1000,
            usage=response.usage,
            session_id=self.session_id,
        ))
        return response

    async def generate_stream(
        self, request: GenerateContentRequest, prompt_id: str
    ) -> AsyncGenerator[GenerateContentResponse, None]:
        self._log_request(prompt_id, "generate_stream")
        start = time.monotonic()
        chunks = 0
        usage = None
        try:
            async with aclosing(self.wrapped.generate_stream(request, prompt_id)) as stream:
                async for chunk in stream:
                    chunks += 1
                    usage = chunk.usage or usage
                    yield chunk
        except ContentGeneratorError as e:
            self._log_error(prompt_id, "generate_stream", start, e)
            raise
        self._record(UsageRecord(
            prompt_id=prompt_id,
            provider=self.provider_name,
            model=self.wrapped.get_model(),
            operation="generate_stream",
            latency_ms=(time.monotonic() - start) * 1000,
            usage=usage,
            chunks=chunks,
            session_id=self.session_id,
        ))

    async def _timed(self, operation: str, call: Awaitable[T]) -> T:
        logger.info(
            "%s request: provider=%s model=%s session=%s",
            operation, self.provider_name, self.wrapped.get_model(), self.session_id,
        )
        start = time.monotonic()
        try:
            result = await call
        except ContentGeneratorError as e:
            self._log_error(None, operation, start, e)
            raise
        logger.info(
            "%s response: provider=%s latency_ms=%.0f",
            operation, self.provider_name, (time.monotonic() - start) * 1000,
        )
        return result

    async def count_tokens(self, request: GenerateContentRequest) -> CountTokensResponse:
        return await self._timed("count_tokens", self.wrapped.count_tokens(request))

    async def embed(self, request: GenerateContentRequest) -> EmbedContentResponse:
        return await self._timed("embed", self.wrapped.embed(request))

    def get_model(self) -> str:
        return self.wrapped.get_model()
