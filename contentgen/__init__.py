__version__ = "0.1.0"

from .config import AuthType, ContentGeneratorConfig, GeneratorSettings, create_content_generator_config
from .errors import (
    ConfigurationError,
    ContentGeneratorError,
    ConversionError,
    TransportError,
    ValidationError,
)
from .factory import create_content_generator
from .logging_generator import LoggingContentGenerator, UsageRecord
from .model_mapping import (
    API_MODEL_MAPPINGS,
    ModelMapping,
    Provider,
    get_model_provider,
    get_models_for_provider,
    is_model_supported,
    map_from_api_model,
    map_to_api_model,
    models_by_provider,
    validate_model,
)
from .types import (
    Candidate,
    Content,
    CountTokensResponse,
    EmbedContentResponse,
    FinishReason,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    TokenUsage,
)

__all__ = [
    "__version__",
    "API_MODEL_MAPPINGS",
    "AuthType",
    "Candidate",
    "ConfigurationError",
    "Content",
    "ContentGeneratorConfig",
    "ContentGeneratorError",
    "ConversionError",
    "CountTokensResponse",
    "EmbedContentResponse",
    "FinishReason",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "GenerationConfig",
    "GeneratorSettings",
    "LoggingContentGenerator",
    "ModelMapping",
    "Part",
    "Provider",
    "TokenUsage",
    "TransportError",
    "UsageRecord",
    "ValidationError",
    "create_content_generator",
    "create_content_generator_config",
    "get_model_provider",
    "get_models_for_provider",
    "is_model_supported",
    "map_from_api_model",
    "map_to_api_model",
    "models_by_provider",
    "validate_model",
]
