import logging

import httpx

from .adapters import ADAPTERS, BaseAdapter
from .config import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_API_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_MODEL,
    AuthType,
    ContentGeneratorConfig,
)
from .errors import ConfigurationError
from .logging_generator import LoggingContentGenerator, UsageSink

logger = logging.getLogger("contentgen.factory")


def _build_adapter(
    auth_type: AuthType,
    config: ContentGeneratorConfig,
    transport: httpx.AsyncBaseTransport | None,
    privileged_user_id: str | None,
) -> BaseAdapter:
    common = {"proxy": config.proxy, "transport": transport}

    if auth_type in (AuthType.USE_GEMINI, AuthType.USE_VERTEX_AI):
        if not config.api_key:
            raise ConfigurationError(auth_type.value, "an API key is required for Gemini / Vertex AI authentication")
        return ADAPTERS["gemini"](
            api_key=config.api_key,
            model=config.gemini_model or DEFAULT_GEMINI_MODEL,
            vertexai=auth_type == AuthType.USE_VERTEX_AI,
            privileged_user_id=privileged_user_id,
            **common,
        )

    if auth_type == AuthType.USE_OPENAI:
        if not config.openai_api_key:
            raise ConfigurationError(auth_type.value, "OpenAI API key is required for OpenAI authentication")
        kwargs = dict(common)
        if config.openai_base_url:
            kwargs["base_url"] = config.openai_base_url
        return ADAPTERS["openai"](
            api_key=config.openai_api_key,
            model=config.openai_model or DEFAULT_OPENAI_MODEL,
            **kwargs,
        )

    if auth_type == AuthType.USE_ANTHROPIC:
        if not config.anthropic_api_key:
            raise ConfigurationError(auth_type.value, "Anthropic API key is required for Anthropic authentication")
        return ADAPTERS["anthropic"](
            api_key=config.anthropic_api_key,
            model=config.anthropic_model or DEFAULT_ANTHROPIC_MODEL,
            **common,
        )

    # AuthType.USE_API
    if not config.api_endpoint or not config.api_auth_token:
        raise ConfigurationError(
            auth_type.value, "API endpoint and auth token are required for API-based authentication"
        )
    return ADAPTERS["api"](
        endpoint=config.api_endpoint,
        auth_token=config.api_auth_token,
        model=config.api_model or DEFAULT_API_MODEL,
        **common,
    )


def create_content_generator(
    config: ContentGeneratorConfig,
    *,
    session_id: str | None = None,
    installation_id: str | None = None,
    usage_statistics_enabled: bool = False,
    usage_sink: UsageSink | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LoggingContentGenerator:
    """Build exactly one adapter for ``config.auth_type``, wrapped for usage logging.

    Raises ``ConfigurationError`` for an unknown auth type or a missing
    credential. There is no fallback to another provider.
    """
    try:
        auth_type = AuthType(config.auth_type)
    except ValueError:
        raise ConfigurationError(
            str(config.auth_type), f"Unsupported authType: {config.auth_type}"
        ) from None

    privileged_user_id = installation_id if usage_statistics_enabled else None
    adapter = _build_adapter(auth_type, config, transport, privileged_user_id)
    logger.info(
        "Created %s content generator (auth=%s, model=%s)",
        adapter.provider_name, auth_type.value, adapter.get_model(),
    )
    return LoggingContentGenerator(adapter, session_id=session_id, usage_sink=usage_sink)
