from typing import AsyncGenerator

from ..conversion import flatten_to_text
from ..errors import provider_errors
from ..model_mapping import map_to_api_model
from ..streaming import StreamDelta
from ..types import FinishReason, GenerateContentRequest, GenerateContentResponse, TokenUsage
from .base import HttpAdapter


class ApiAdapter(HttpAdapter):
    """Generic chat gateway.

    The gateway takes one flattened message per request and picks the backing
    provider itself, so roles are not preserved and no token counting or
    embeddings endpoint exists.
    """

    provider_name = "api"

    def __init__(self, endpoint: str, auth_token: str, model: str = "gpt-4o", **kwargs):
        super().__init__(model, **kwargs)
        self.endpoint = endpoint.rstrip("/")
        self.auth_token = auth_token

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.auth_token}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, request: GenerateContentRequest, stream: bool) -> dict:
        return {
            "message": flatten_to_text(request.contents),
            "model_name": map_to_api_model(self.model),
            "stream": stream,
        }

    async def generate(self, request: GenerateContentRequest, prompt_id: str) -> GenerateContentResponse:
        with provider_errors(self.provider_name):
            payload = self._build_payload(request, stream=False)
            data = await self._post_json(f"{self.endpoint}/api/chat/send", payload)

            message = data["message"]
            if not isinstance(message, str):
                raise TypeError(f"'message' must be a string, got {type(message).__name__}")

            usage = None
            tokens_used = (data.get("metadata") or {}).get("tokens_used")
            if tokens_used:
                # the gateway only reports one combined count
                usage = TokenUsage(prompt_tokens=0, completion_tokens=tokens_used, total_tokens=tokens_used)
            return GenerateContentResponse.from_text(message, FinishReason.STOP, usage=usage)

    def generate_stream(
        self, request: GenerateContentRequest, prompt_id: str
    ) -> AsyncGenerator[GenerateContentResponse, None]:
        with provider_errors(self.provider_name):
            payload = self._build_payload(request, stream=True)
        return self._stream_post(f"{self.endpoint}/api/chat/stream", payload, _extract_delta)


def _extract_delta(frame: dict) -> StreamDelta | None:
    text = frame.get("chunk")
    if not isinstance(text, str):
        return None
    return StreamDelta(text, FinishReason.STOP if frame.get("finished") else FinishReason.UNSPECIFIED)
