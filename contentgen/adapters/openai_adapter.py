from typing import AsyncGenerator

from ..conversion import map_finish_reason, to_role_messages
from ..errors import TransportError, provider_errors
from ..model_mapping import map_to_api_model
from ..streaming import StreamDelta
from ..types import (
    ContentEmbedding,
    EmbedContentResponse,
    FinishReason,
    GenerateContentRequest,
    GenerateContentResponse,
    TokenUsage,
)
from .base import HttpAdapter

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

FINISH_REASONS = {
    "stop": FinishReason.STOP,
    "length": FinishReason.MAX_TOKENS,
    "content_filter": FinishReason.SAFETY,
}


class OpenAIAdapter(HttpAdapter):
    provider_name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        **kwargs,
    ):
        super().__init__(model, **kwargs)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, request: GenerateContentRequest, stream: bool = False) -> dict:
        config = request.config
        payload: dict = {
            "model": map_to_api_model(self.model),
            "messages": to_role_messages(request.contents),
        }
        optional = {
            "temperature": config.temperature,
            "max_tokens": config.max_output_tokens,
            "top_p": config.top_p,
            "stop": config.stop_sequences,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        if stream:
            payload["stream"] = True
            payload["stream_options"] = {"include_usage": True}
        return payload

    async def generate(self, request: GenerateContentRequest, prompt_id: str) -> GenerateContentResponse:
        with provider_errors(self.provider_name):
            payload = self._build_payload(request)
            data = await self._post_json(f"{self.base_url}/chat/completions", payload)

            choice = data["choices"][0]
            content = choice["message"].get("content") or ""
            return GenerateContentResponse.from_text(
                content,
                map_finish_reason(FINISH_REASONS, choice.get("finish_reason")),
                usage=_usage(data.get("usage") or {}),
            )

    def generate_stream(
        self, request: GenerateContentRequest, prompt_id: str
    ) -> AsyncGenerator[GenerateContentResponse, None]:
        with provider_errors(self.provider_name):
            payload = self._build_payload(request, stream=True)
        return self._stream_post(
            f"{self.base_url}/chat/completions", payload, self._extract_delta, sentinel="[DONE]"
        )

    def _extract_delta(self, frame: dict) -> StreamDelta | None:
        if frame.get("error"):
            error = frame["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise TransportError(self.provider_name, f"stream error: {message}")
        # with include_usage the counters arrive on a final frame with no choices
        usage = _usage(frame["usage"]) if frame.get("usage") else None
        choices = frame.get("choices") or []
        if not choices:
            return StreamDelta("", FinishReason.UNSPECIFIED, usage) if usage else None
        delta = choices[0].get("delta") or {}
        return StreamDelta(
            delta.get("content") or "",
            map_finish_reason(FINISH_REASONS, choices[0].get("finish_reason")),
            usage,
        )

    async def embed(self, request: GenerateContentRequest) -> EmbedContentResponse:
        with provider_errors(self.provider_name):
            text = self._embedding_text(request)
            data = await self._post_json(
                f"{self.base_url}/embeddings",
                {"model": DEFAULT_EMBEDDING_MODEL, "input": text},
            )
            items = data.get("data") or []
            values = (items[0].get("embedding") or []) if items else []
            return EmbedContentResponse(embeddings=[ContentEmbedding(values=values)])


def _usage(usage: dict) -> TokenUsage:
    return TokenUsage(
        prompt_tokens=usage.get("prompt_tokens") or 0,
        completion_tokens=usage.get("completion_tokens") or 0,
        total_tokens=usage.get("total_tokens") or 0,
    )
