from typing import AsyncGenerator

from ..conversion import map_finish_reason, to_native_contents
from ..errors import TransportError, provider_errors
from ..streaming import StreamDelta
from ..types import (
    ContentEmbedding,
    CountTokensResponse,
    EmbedContentResponse,
    FinishReason,
    GenerateContentRequest,
    GenerateContentResponse,
    TokenUsage,
)
from .base import HttpAdapter

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
VERTEX_BASE_URL = "https://aiplatform.googleapis.com/v1/publishers/google"
DEFAULT_EMBEDDING_MODEL = "text-embedding-004"
PRIVILEGED_USER_HEADER = "x-gemini-api-privileged-user-id"

FINISH_REASONS = {
    "STOP": FinishReason.STOP,
    "MAX_TOKENS": FinishReason.MAX_TOKENS,
    "SAFETY": FinishReason.SAFETY,
    "RECITATION": FinishReason.SAFETY,
    "BLOCKLIST": FinishReason.SAFETY,
    "PROHIBITED_CONTENT": FinishReason.SAFETY,
    "SPII": FinishReason.SAFETY,
}


class GeminiAdapter(HttpAdapter):
    """Pass-through to the native Gemini API.

    The canonical shapes mirror Gemini's own, so requests go out nearly
    verbatim and the model id is sent without mapping. Token counting and
    embeddings use the native endpoints.
    """

    provider_name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-pro",
        vertexai: bool = False,
        base_url: str | None = None,
        privileged_user_id: str | None = None,
        **kwargs,
    ):
        super().__init__(model, **kwargs)
        self.api_key = api_key
        self.vertexai = vertexai
        if vertexai:
            self.provider_name = "vertex-ai"
        self.base_url = (base_url or (VERTEX_BASE_URL if vertexai else GEMINI_BASE_URL)).rstrip("/")
        self.privileged_user_id = privileged_user_id

    def _headers(self) -> dict:
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        if self.privileged_user_id:
            headers[PRIVILEGED_USER_HEADER] = self.privileged_user_id
        return headers

    def _url(self, method: str, model: str | None = None) -> str:
        return f"{self.base_url}/models/{model or self.model}:{method}"

    def _build_payload(self, request: GenerateContentRequest) -> dict:
        payload: dict = {"contents": to_native_contents(request.contents)}
        generation_config = request.config.model_dump(by_alias=True, exclude_none=True)
        if generation_config:
            payload["generationConfig"] = generation_config
        return payload

    async def generate(self, request: GenerateContentRequest, prompt_id: str) -> GenerateContentResponse:
        with provider_errors(self.provider_name):
            data = await self._post_json(self._url("generateContent"), self._build_payload(request))
            candidates = data.get("candidates") or []
            if not candidates:
                block_reason = (data.get("promptFeedback") or {}).get("blockReason")
                if not block_reason:
                    raise KeyError("candidates")
                return GenerateContentResponse.from_text("", FinishReason.SAFETY, usage=_usage(data))

            text, finish_reason = _candidate_delta(candidates[0])
            return GenerateContentResponse.from_text(text, finish_reason, usage=_usage(data))

    def generate_stream(
        self, request: GenerateContentRequest, prompt_id: str
    ) -> AsyncGenerator[GenerateContentResponse, None]:
        with provider_errors(self.provider_name):
            payload = self._build_payload(request)
        return self._stream_post(
            self._url("streamGenerateContent") + "?alt=sse", payload, self._extract_delta
        )

    def _extract_delta(self, frame: dict) -> StreamDelta | None:
        if frame.get("error"):
            error = frame["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise TransportError(self.provider_name, f"stream error: {message}")
        usage = _usage(frame)
        candidates = frame.get("candidates") or []
        if not candidates:
            return StreamDelta("", FinishReason.UNSPECIFIED, usage) if usage else None
        text, finish_reason = _candidate_delta(candidates[0])
        return StreamDelta(text, finish_reason, usage)

    async def count_tokens(self, request: GenerateContentRequest) -> CountTokensResponse:
        with provider_errors(self.provider_name):
            data = await self._post_json(
                self._url("countTokens"), {"contents": to_native_contents(request.contents)}
            )
            return CountTokensResponse(total_tokens=data.get("totalTokens") or 0, estimated=False)

    async def embed(self, request: GenerateContentRequest) -> EmbedContentResponse:
        with provider_errors(self.provider_name):
            text = self._embedding_text(request)
            data = await self._post_json(
                self._url("embedContent", model=DEFAULT_EMBEDDING_MODEL),
                {"content": {"parts": [{"text": text}]}},
            )
            values = data["embedding"].get("values") or []
            return EmbedContentResponse(embeddings=[ContentEmbedding(values=values)])


def _candidate_delta(candidate: dict) -> tuple[str, FinishReason]:
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text") or "" for part in parts)
    return text, map_finish_reason(FINISH_REASONS, candidate.get("finishReason"))


def _usage(data: dict) -> TokenUsage | None:
    metadata = data.get("usageMetadata")
    if not metadata:
        return None
    return TokenUsage(
        prompt_tokens=metadata.get("promptTokenCount") or 0,
        completion_tokens=metadata.get("candidatesTokenCount") or 0,
        total_tokens=metadata.get("totalTokenCount") or 0,
    )
