"""Static lookup between caller-facing model ids and the ids providers expect.

Lookups fail open: an unknown name is returned unchanged, since it is most
likely a provider-native id passed straight through.
"""
from dataclasses import dataclass
from enum import Enum


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


@dataclass(frozen=True)
class ModelMapping:
    internal: str
    api: str
    provider: Provider
    legacy: bool = False  # alias collapsed onto another entry's wire id


API_MODEL_MAPPINGS: tuple[ModelMapping, ...] = (
    # OpenAI
    ModelMapping("gpt-4o", "gpt-4o", Provider.OPENAI),
    ModelMapping("gpt-4o-mini", "gpt-4o-mini", Provider.OPENAI),
    ModelMapping("gpt-4-turbo", "gpt-4-turbo", Provider.OPENAI),
    ModelMapping("gpt-3.5-turbo", "gpt-3.5-turbo", Provider.OPENAI),
    # Anthropic
    ModelMapping("claude-opus-4-1", "claude-opus-4-1-20250805", Provider.ANTHROPIC),
    ModelMapping("claude-opus-4-0", "claude-opus-4-20250514", Provider.ANTHROPIC),
    ModelMapping("claude-sonnet-4-0", "claude-sonnet-4-20250514", Provider.ANTHROPIC),
    ModelMapping("claude-3-7-sonnet-latest", "claude-3-7-sonnet-20250219", Provider.ANTHROPIC),
    ModelMapping("claude-3-5-haiku-latest", "claude-3-5-haiku-20241022", Provider.ANTHROPIC),
    # Google
    ModelMapping("gemini-2.5-pro", "gemini-2.5-pro", Provider.GOOGLE),
    ModelMapping("gemini-1.5-pro", "gemini-1.5-pro", Provider.GOOGLE),
    ModelMapping("gemini-1.5-flash", "gemini-1.5-flash", Provider.GOOGLE),
    ModelMapping("gemini-pro", "gemini-pro", Provider.GOOGLE),
    # Legacy Gemini names
    ModelMapping("gemini-2.5-flash", "gemini-1.5-flash", Provider.GOOGLE, legacy=True),
    ModelMapping("gemini-2.5-flash-lite", "gemini-1.5-flash", Provider.GOOGLE, legacy=True),
)


def _find_internal(name: str) -> ModelMapping | None:
    return next((m for m in API_MODEL_MAPPINGS if m.internal == name), None)


def _find_api(name: str) -> ModelMapping | None:
    return next((m for m in API_MODEL_MAPPINGS if m.api == name), None)


def map_to_api_model(internal_model: str) -> str:
    """Return the wire id for an internal model name, or the name unchanged."""
    mapping = _find_internal(internal_model)
    return mapping.api if mapping else internal_model


def map_from_api_model(api_model: str) -> str:
    """Return the internal name for a wire id, or the id unchanged.

    Several legacy names share one wire id; the first entry in table order wins.
    """
    mapping = _find_api(api_model)
    return mapping.internal if mapping else api_model


def get_model_provider(model_name: str) -> Provider | None:
    mapping = _find_internal(model_name) or _find_api(model_name)
    return mapping.provider if mapping else None


def get_models_for_provider(provider: Provider | str) -> list[ModelMapping]:
    provider = Provider(provider)
    return [m for m in API_MODEL_MAPPINGS if m.provider == provider]


def is_model_supported(model_name: str) -> bool:
    return any(m.internal == model_name or m.api == model_name for m in API_MODEL_MAPPINGS)


def models_by_provider() -> dict[Provider, list[ModelMapping]]:
    grouped: dict[Provider, list[ModelMapping]] = {p: [] for p in Provider}
    for mapping in API_MODEL_MAPPINGS:
        grouped[mapping.provider].append(mapping)
    return grouped


def validate_model(model_name: str) -> str | None:
    """Return an error message for unsupported models, ``None`` otherwise."""
    if not is_model_supported(model_name):
        return f"Model '{model_name}' is not supported. Please select a supported model."
    return None
