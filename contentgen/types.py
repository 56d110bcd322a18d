"""
Canonical request/response vocabulary.

Every adapter consumes ``GenerateContentRequest`` and produces
``GenerateContentResponse``; provider-native shapes never leave an adapter.
"""
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FinishReason(str, Enum):
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"


class Part(BaseModel):
    text: Optional[str] = None


class Content(BaseModel):
    """One role-tagged message. ``user`` or ``model``; other roles count as non-user."""
    role: str = "user"
    parts: list[Part] = Field(default_factory=list)


class GenerationConfig(BaseModel):
    """Sampling parameters. Dumps with camelCase aliases (the Gemini wire shape)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    top_p: Optional[float] = None
    stop_sequences: Optional[list[str]] = None


class GenerateContentRequest(BaseModel):
    contents: Union[str, list[Union[Content, str]]]
    config: GenerationConfig = Field(default_factory=GenerationConfig)


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Candidate(BaseModel):
    content: Content
    finish_reason: FinishReason = FinishReason.UNSPECIFIED


class GenerateContentResponse(BaseModel):
    """A full response, or a stream chunk carrying only the text delta."""
    candidates: list[Candidate] = Field(min_length=1)
    usage: Optional[TokenUsage] = None

    @classmethod
    def from_text(
        cls,
        text: str,
        finish_reason: FinishReason,
        usage: Optional[TokenUsage] = None,
    ) -> "GenerateContentResponse":
        return cls(
            candidates=[
                Candidate(
                    content=Content(role="model", parts=[Part(text=text)]),
                    finish_reason=finish_reason,
                )
            ],
            usage=usage,
        )

    @property
    def text(self) -> str:
        return "".join(p.text or "" for p in self.candidates[0].content.parts)

    @property
    def finish_reason(self) -> FinishReason:
        return self.candidates[0].finish_reason


class CountTokensResponse(BaseModel):
    total_tokens: int
    # True when the count is the length/4 approximation rather than a tokenizer result
    estimated: bool = False


class ContentEmbedding(BaseModel):
    values: list[float] = Field(default_factory=list)


class EmbedContentResponse(BaseModel):
    embeddings: list[ContentEmbedding]
