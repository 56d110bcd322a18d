import json

import httpx
import pytest

from contentgen.adapters import AnthropicAdapter, ApiAdapter, GeminiAdapter, OpenAIAdapter
from contentgen.config import (
    AuthType,
    ContentGeneratorConfig,
    GeneratorSettings,
    create_content_generator_config,
)
from contentgen.errors import ConfigurationError
from contentgen.factory import create_content_generator
from contentgen.logging_generator import LoggingContentGenerator
from contentgen.types import FinishReason

ENV = {
    "GEMINI_API_KEY": "gem-key",
    "GOOGLE_API_KEY": "goog-key",
    "OPENAI_API_KEY": "oa-key",
    "OPENAI_MODEL": "gpt-4o-mini",
    "ANTHROPIC_API_KEY": "an-key",
    "API_ENDPOINT": "https://gateway.test",
    "API_AUTH_TOKEN": "gw-token",
}


@pytest.fixture
def env(clean_env):
    for name, value in ENV.items():
        clean_env.setenv(name, value)
    return clean_env


# --- config ---

def test_config_copies_only_selected_credentials(env):
    config = create_content_generator_config(AuthType.USE_OPENAI)
    assert config.auth_type == AuthType.USE_OPENAI
    assert config.openai_api_key == "oa-key"
    assert config.openai_model == "gpt-4o-mini"
    assert config.anthropic_api_key is None
    assert config.api_auth_token is None


def test_selected_model_overrides_environment(env):
    config = create_content_generator_config("openai-api-key", selected_model="gpt-4-turbo")
    assert config.openai_model == "gpt-4-turbo"


@pytest.mark.parametrize("auth_type,attr,expected", [
    (AuthType.USE_ANTHROPIC, "anthropic_model", "claude-3-5-sonnet-20241022"),
    (AuthType.USE_API, "api_model", "gpt-4o"),
    (AuthType.USE_GEMINI, "gemini_model", "gemini-2.5-pro"),
])
def test_model_defaults(clean_env, auth_type, attr, expected):
    assert getattr(create_content_generator_config(auth_type), attr) == expected


def test_variable_names_are_case_insensitive(clean_env):
    clean_env.setenv("anthropic_api_key", "lower-key")
    config = create_content_generator_config(AuthType.USE_ANTHROPIC)
    assert config.anthropic_api_key == "lower-key"


def test_vertex_reads_google_api_key(env):
    config = create_content_generator_config(AuthType.USE_VERTEX_AI)
    assert config.vertexai is True
    assert config.api_key == "goog-key"


def test_empty_env_values_count_as_missing(clean_env):
    clean_env.setenv("API_ENDPOINT", "")
    clean_env.setenv("API_AUTH_TOKEN", "")
    config = create_content_generator_config(AuthType.USE_API)
    assert config.api_endpoint is None
    assert config.api_auth_token is None


def test_explicit_settings_object_is_used(clean_env):
    settings = GeneratorSettings(api_endpoint="https://other.test", api_auth_token="t", api_model="gpt-4o-mini")
    config = create_content_generator_config(AuthType.USE_API, settings=settings)
    assert config.api_endpoint == "https://other.test"
    assert config.api_model == "gpt-4o-mini"


def test_unknown_auth_type_is_kept_for_factory_to_reject(env):
    config = create_content_generator_config("oauth-personal")
    assert config.auth_type == "oauth-personal"
    assert config.openai_api_key is None


def test_config_is_immutable(env):
    config = create_content_generator_config(AuthType.USE_API)
    with pytest.raises(AttributeError):
        config.api_model = "other"


# --- factory ---

@pytest.mark.parametrize("auth_type,adapter_cls,model", [
    (AuthType.USE_API, ApiAdapter, "gpt-4o"),
    (AuthType.USE_OPENAI, OpenAIAdapter, "gpt-4o-mini"),
    (AuthType.USE_ANTHROPIC, AnthropicAdapter, "claude-3-5-sonnet-20241022"),
    (AuthType.USE_GEMINI, GeminiAdapter, "gemini-2.5-pro"),
    (AuthType.USE_VERTEX_AI, GeminiAdapter, "gemini-2.5-pro"),
])
def test_each_mode_selects_exactly_one_adapter(env, auth_type, adapter_cls, model):
    generator = create_content_generator(create_content_generator_config(auth_type))

    assert isinstance(generator, LoggingContentGenerator)
    assert type(generator.wrapped) is adapter_cls
    assert generator.get_model() == model


@pytest.mark.parametrize("auth_type", list(AuthType))
def test_missing_credential_fails_fast(clean_env, auth_type):
    config = create_content_generator_config(auth_type)
    with pytest.raises(ConfigurationError) as exc_info:
        create_content_generator(config)
    assert exc_info.value.provider == auth_type.value


def test_gateway_needs_both_endpoint_and_token():
    config = ContentGeneratorConfig(auth_type=AuthType.USE_API, api_endpoint="https://gateway.test")
    with pytest.raises(ConfigurationError, match="API endpoint and auth token are required"):
        create_content_generator(config)


@pytest.mark.parametrize("auth_type", ["oauth-personal", "cloud-shell", "", None])
def test_unrecognised_mode_is_rejected(auth_type):
    with pytest.raises(ConfigurationError, match="Unsupported authType"):
        create_content_generator(ContentGeneratorConfig(auth_type=auth_type, openai_api_key="k"))


def test_installation_id_only_sent_with_usage_statistics(env):
    config = create_content_generator_config(AuthType.USE_GEMINI)

    without = create_content_generator(config, installation_id="install-1")
    with_stats = create_content_generator(config, installation_id="install-1", usage_statistics_enabled=True)

    assert without.wrapped.privileged_user_id is None
    assert with_stats.wrapped.privileged_user_id == "install-1"


def test_proxy_and_base_url_reach_adapter(env):
    env.setenv("OPENAI_BASE_URL", "http://localhost:1234/v1")
    config = create_content_generator_config(AuthType.USE_OPENAI, proxy="http://proxy.local:3128")
    generator = create_content_generator(config)
    assert generator.wrapped.proxy == "http://proxy.local:3128"
    assert generator.wrapped.base_url == "http://localhost:1234/v1"


@pytest.mark.anyio
async def test_gateway_hello_scenario_end_to_end(env, hello_request):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"message": "Hello!", "metadata": {"tokens_used": 3}})

    records = []
    generator = create_content_generator(
        create_content_generator_config(AuthType.USE_API),
        session_id="session-9",
        usage_sink=records.append,
        transport=httpx.MockTransport(handler),
    )

    response = await generator.generate(hello_request, "prompt-7")

    assert seen == [{"message": "hello", "model_name": "gpt-4o", "stream": False}]
    assert response.candidates[0].content.role == "model"
    assert response.text == "Hello!"
    assert response.finish_reason == FinishReason.STOP
    assert len(records) == 1
    assert records[0].prompt_id == "prompt-7"
    assert records[0].session_id == "session-9"
    assert records[0].usage.total_tokens == 3
