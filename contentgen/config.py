"""
Configuration for the content generator factory.

Credentials come from the environment (or a ``.env`` file) through
``GeneratorSettings``. Only the credentials belonging to the selected auth
mode are copied into the frozen ``ContentGeneratorConfig``; missing ones are
left empty so the factory can fail fast.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthType(str, Enum):
    USE_GEMINI = "gemini-api-key"
    USE_VERTEX_AI = "vertex-ai"
    USE_OPENAI = "openai-api-key"
    USE_ANTHROPIC = "anthropic-api-key"
    USE_API = "api"


DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_API_MODEL = "gpt-4o"
DEFAULT_GEMINI_MODEL = "gemini-2.5-pro"


class GeneratorSettings(BaseSettings):
    """Environment variables read by the factory and the HTTP server.

    Field names match the variable names case-insensitively, e.g.
    ``OPENAI_API_KEY`` fills ``openai_api_key``. Empty values count as unset.
    """

    # Gemini / Vertex AI (express mode: API key only)
    gemini_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    gemini_model: Optional[str] = None

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: Optional[str] = None
    openai_base_url: Optional[str] = None

    # Anthropic
    anthropic_api_key: Optional[str] = None
    anthropic_model: Optional[str] = None

    # Generic gateway
    api_endpoint: Optional[str] = None
    api_auth_token: Optional[str] = None
    api_model: Optional[str] = None

    # HTTP server
    contentgen_auth_type: str = AuthType.USE_API.value
    contentgen_model: Optional[str] = None
    contentgen_session_id: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )


@dataclass(frozen=True)
class ContentGeneratorConfig:
    auth_type: AuthType | str | None = None
    proxy: str | None = None
    # Gemini / Vertex AI
    api_key: str | None = None
    vertexai: bool = False
    gemini_model: str | None = None
    # OpenAI
    openai_api_key: str | None = None
    openai_model: str | None = None
    openai_base_url: str | None = None
    # Anthropic
    anthropic_api_key: str | None = None
    anthropic_model: str | None = None
    # Generic gateway
    api_endpoint: str | None = None
    api_auth_token: str | None = None
    api_model: str | None = None


def create_content_generator_config(
    auth_type: AuthType | str | None,
    selected_model: str | None = None,
    proxy: str | None = None,
    settings: GeneratorSettings | None = None,
) -> ContentGeneratorConfig:
    if settings is None:
        settings = GeneratorSettings()

    try:
        auth_type = AuthType(auth_type) if auth_type is not None else None
    except ValueError:
        # left as-is; the factory rejects unknown modes
        return ContentGeneratorConfig(auth_type=auth_type, proxy=proxy)

    if auth_type in (AuthType.USE_GEMINI, AuthType.USE_VERTEX_AI):
        vertexai = auth_type == AuthType.USE_VERTEX_AI
        return ContentGeneratorConfig(
            auth_type=auth_type,
            proxy=proxy,
            api_key=settings.google_api_key if vertexai else settings.gemini_api_key,
            vertexai=vertexai,
            gemini_model=selected_model or settings.gemini_model or DEFAULT_GEMINI_MODEL,
        )

    if auth_type == AuthType.USE_OPENAI:
        return ContentGeneratorConfig(
            auth_type=auth_type,
            proxy=proxy,
            openai_api_key=settings.openai_api_key,
            openai_model=selected_model or settings.openai_model or DEFAULT_OPENAI_MODEL,
            openai_base_url=settings.openai_base_url,
        )

    if auth_type == AuthType.USE_ANTHROPIC:
        return ContentGeneratorConfig(
            auth_type=auth_type,
            proxy=proxy,
            anthropic_api_key=settings.anthropic_api_key,
            anthropic_model=selected_model or settings.anthropic_model or DEFAULT_ANTHROPIC_MODEL,
        )

    if auth_type == AuthType.USE_API:
        return ContentGeneratorConfig(
            auth_type=auth_type,
            proxy=proxy,
            api_endpoint=settings.api_endpoint,
            api_auth_token=settings.api_auth_token,
            api_model=selected_model or settings.api_model or DEFAULT_API_MODEL,
        )

    return ContentGeneratorConfig(auth_type=auth_type, proxy=proxy)
