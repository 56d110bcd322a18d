from contextlib import contextmanager
from typing import Iterator

import httpx
import pydantic


class ContentGeneratorError(Exception):
    """Base error. The message always names the provider and the cause."""

    kind = "error"

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"{provider} {self.kind}: {message}")


class ConfigurationError(ContentGeneratorError):
    kind = "configuration error"


class TransportError(ContentGeneratorError):
    kind = "transport error"

    def __init__(self, provider: str, message: str, status: int | None = None):
        self.status = status
        if status is not None:
            message = f"HTTP {status} - {message}"
        super().__init__(provider, message)


class ConversionError(ContentGeneratorError):
    kind = "unexpected response"


class ValidationError(ContentGeneratorError):
    kind = "invalid request"


@contextmanager
def provider_errors(provider: str) -> Iterator[None]:
    """Re-tag anything raised inside the block with ``provider``."""
    try:
        yield
    except ContentGeneratorError:
        raise
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise TransportError(provider, f"{type(e).__name__}: {e}") from e
    except (KeyError, IndexError, TypeError, AttributeError, ValueError, pydantic.ValidationError) as e:
        raise ConversionError(provider, f"{type(e).__name__}: {e}") from e


async def raise_for_status(response: httpx.Response, provider: str) -> None:
    """Raise ``TransportError`` with status and body text for non-2xx responses."""
    if not response.is_error:
        return
    await response.aread()
    message = " - ".join(p for p in (response.reason_phrase, response.text) if p)
    raise TransportError(provider, message, status=response.status_code)
