from .base import BaseAdapter, HttpAdapter
from .api_adapter import ApiAdapter
from .openai_adapter import OpenAIAdapter
from .anthropic_adapter import AnthropicAdapter
from .gemini_adapter import GeminiAdapter

ADAPTERS = {
    "api": ApiAdapter,
    "openai": OpenAIAdapter,
    "anthropic": AnthropicAdapter,
    "gemini": GeminiAdapter,
}

__all__ = ["BaseAdapter", "HttpAdapter", "ADAPTERS", "ApiAdapter", "OpenAIAdapter",
           "AnthropicAdapter", "GeminiAdapter"]
