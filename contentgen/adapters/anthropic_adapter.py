from typing import AsyncGenerator

from ..conversion import map_finish_reason, to_role_messages
from ..errors import TransportError, provider_errors
from ..model_mapping import map_to_api_model
from ..streaming import StreamDelta
from ..types import FinishReason, GenerateContentRequest, GenerateContentResponse, TokenUsage
from .base import HttpAdapter

DEFAULT_MAX_TOKENS = 4096

FINISH_REASONS = {
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "max_tokens": FinishReason.MAX_TOKENS,
    "refusal": FinishReason.SAFETY,
}


class AnthropicAdapter(HttpAdapter):
    provider_name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        base_url: str = "https://api.anthropic.com/v1",
        **kwargs,
    ):
        super().__init__(model, **kwargs)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }

    def _build_payload(self, request: GenerateContentRequest, stream: bool = False) -> dict:
        config = request.config
        payload: dict = {
            "model": map_to_api_model(self.model),
            "messages": to_role_messages(request.contents),
            "max_tokens": config.max_output_tokens or DEFAULT_MAX_TOKENS,
        }
        optional = {
            "temperature": config.temperature,
            "top_p": config.top_p,
            "stop_sequences": config.stop_sequences,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        if stream:
            payload["stream"] = True
        return payload

    async def generate(self, request: GenerateContentRequest, prompt_id: str) -> GenerateContentResponse:
        with provider_errors(self.provider_name):
            payload = self._build_payload(request)
            data = await self._post_json(f"{self.base_url}/messages", payload)

            content_text = "".join(
                block.get("text", "") for block in data["content"] if block.get("type") == "text"
            )
            return GenerateContentResponse.from_text(
                content_text,
                map_finish_reason(FINISH_REASONS, data.get("stop_reason")),
                usage=_usage(data.get("usage") or {}),
            )

    def generate_stream(
        self, request: GenerateContentRequest, prompt_id: str
    ) -> AsyncGenerator[GenerateContentResponse, None]:
        with provider_errors(self.provider_name):
            payload = self._build_payload(request, stream=True)
        return self._stream_post(f"{self.base_url}/messages", payload, self._extract_delta)

    def _extract_delta(self, frame: dict) -> StreamDelta | None:
        event_type = frame.get("type")
        if event_type == "error":
            error = frame.get("error") or {}
            message = error.get("message", error) if isinstance(error, dict) else error
            raise TransportError(self.provider_name, f"stream error: {message}")
        if event_type == "message_delta":
            # text-less; carries the stop reason and the running usage
            delta = frame.get("delta") or {}
            return StreamDelta(
                "",
                map_finish_reason(FINISH_REASONS, delta.get("stop_reason")),
                _usage(frame.get("usage") or {}),
            )
        if event_type != "content_block_delta":
            return None
        delta = frame.get("delta") or {}
        return StreamDelta(delta.get("text") or "", FinishReason.UNSPECIFIED)


def _usage(usage: dict) -> TokenUsage:
    input_tokens = usage.get("input_tokens") or 0
    output_tokens = usage.get("output_tokens") or 0
    return TokenUsage(
        prompt_tokens=input_tokens,
        completion_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
    )
