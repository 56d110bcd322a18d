import pytest

from contentgen.config import GeneratorSettings
from contentgen.types import GenerateContentRequest


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def hello_request():
    return GenerateContentRequest(contents="hello")


@pytest.fixture
def clean_env(monkeypatch):
    """Unset every variable GeneratorSettings reads; returns monkeypatch for setting new ones."""
    for name in GeneratorSettings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
    return monkeypatch
