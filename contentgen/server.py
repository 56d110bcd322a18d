import json
import uuid
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from sse_starlette.sse import EventSourceResponse

from . import __version__
from .adapters import BaseAdapter
from .config import GeneratorSettings, create_content_generator_config
from .errors import (
    ConfigurationError,
    ContentGeneratorError,
    ValidationError,
)
from .factory import create_content_generator
from .model_mapping import get_model_provider, models_by_provider, validate_model
from .types import GenerateContentRequest

app = FastAPI(title="contentgen API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class GenerateBody(GenerateContentRequest):
    prompt_id: str | None = None


def get_generator(request: Request) -> BaseAdapter:
    """Build the generator from the environment on first use and cache it on the app."""
    generator = getattr(request.app.state, "generator", None)
    if generator is None:
        settings = GeneratorSettings()
        config = create_content_generator_config(
            settings.contentgen_auth_type,
            selected_model=settings.contentgen_model,
            settings=settings,
        )
        generator = create_content_generator(config, session_id=settings.contentgen_session_id)
        request.app.state.generator = generator
    return generator


def _http_error(e: ContentGeneratorError) -> HTTPException:
    if isinstance(e, ValidationError):
        status = 400
    elif isinstance(e, ConfigurationError):
        status = 500
    else:
        status = 502
    return HTTPException(status_code=status, detail=str(e))


# --- Health ---

@app.get("/api/health")
async def health():
    return {"status": "ok"}


# --- Models ---

@app.get("/api/models")
async def list_models():
    return {
        provider.value: [asdict(m) for m in mappings]
        for provider, mappings in models_by_provider().items()
    }


@app.get("/api/models/validate")
async def validate(model: str = Query(...)):
    error = validate_model(model)
    return {
        "model": model,
        "supported": error is None,
        "provider": get_model_provider(model),
        "error": error,
    }


# --- Generation ---

@app.post("/api/generate")
async def generate(body: GenerateBody, request: Request):
    try:
        generator = get_generator(request)
        return await generator.generate(body, body.prompt_id or uuid.uuid4().hex)
    except ContentGeneratorError as e:
        raise _http_error(e)


@app.post("/api/generate/stream")
async def generate_stream(body: GenerateBody, request: Request):
    try:
        generator = get_generator(request)
    except ContentGeneratorError as e:
        raise _http_error(e)
    prompt_id = body.prompt_id or uuid.uuid4().hex

    async def event_generator():
        try:
            async for chunk in generator.generate_stream(body, prompt_id):
                yield {"event": "chunk", "data": chunk.model_dump_json()}
        except ContentGeneratorError as e:
            yield {"event": "error", "data": json.dumps({"error": str(e), "provider": e.provider})}
            return
        yield {"event": "done", "data": json.dumps({"prompt_id": prompt_id})}

    return EventSourceResponse(event_generator())


@app.post("/api/count-tokens")
async def count_tokens(body: GenerateBody, request: Request):
    try:
        return await get_generator(request).count_tokens(body)
    except ContentGeneratorError as e:
        raise _http_error(e)


@app.post("/api/embed")
async def embed(body: GenerateBody, request: Request):
    try:
        return await get_generator(request).embed(body)
    except ContentGeneratorError as e:
        raise _http_error(e)
