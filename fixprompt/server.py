"""fixprompt API Server — prompt improvement backend for the browser extension.

Usage:
    uvicorn fixprompt.server:app --host 0.0.0.0 --port 3000
    # or
    fixprompt serve --port 3000 --model gpt-4-turbo

Curl:
    curl http://localhost:3000/api/detect-domain -H 'Content-Type: application/json' \
         -d '{"prompt": "Fix this Python function"}'
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from cachetools import TTLCache
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, model_validator
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

import fixprompt
from fixprompt.context.store import ContextStore
from fixprompt.core import PromptImprover
from fixprompt.env_config import get_env_config
from fixprompt.errors import FixPromptError, InternalError
from fixprompt.gateway import CompletionGateway
from fixprompt.logging_setup import setup_logging
from fixprompt.models import GatewayConfig

logger = logging.getLogger("fixprompt.server")
access_logger = logging.getLogger("fixprompt.access")

# ============================================================
# Server config from env vars
# ============================================================

_env = get_env_config()

ENVIRONMENT = _env.environment
RATE_LIMIT = _env.rate_limit
RATE_WINDOW_SECONDS = 60
MAX_BODY_BYTES = _env.max_body_bytes

_rate_buckets: TTLCache = TTLCache(maxsize=10000, ttl=RATE_WINDOW_SECONDS)
_improver = PromptImprover(gateway=CompletionGateway(_env.gateway_config()))

# ============================================================
# Request models
# ============================================================
# Fields accept any JSON value; PromptImprover checks types and emptiness
# and raises InvalidInputError with a stable message.


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DetectDomainRequest(_WireModel):
    prompt: Any = None


class GenerateQuestionsRequest(_WireModel):
    prompt: Any = None
    domain: Any = None


class SaveContextRequest(_WireModel):
    conversation_id: Any = Field(default=None, alias="conversationId")
    context: Any = None


class ImprovePromptRequest(_WireModel):
    """Canonical shape: ``context`` is the flat conversation context object."""
    prompt: Any = None
    platform: Any = None
    domain: Any = None
    context: Any = None
    refinement_answers: Any = Field(default=None, alias="refinementAnswers")
    conversation_id: Any = Field(default=None, alias="conversationId")

    @model_validator(mode="before")
    @classmethod
    def _unwrap_legacy_context(cls, data: Any) -> Any:
        # older extension builds sent {"context": {"context": {...}}}
        if isinstance(data, dict):
            outer = data.get("context")
            if isinstance(outer, dict) and isinstance(outer.get("context"), dict):
                return {**data, "context": outer["context"]}
        return data


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: str = ""
    environment: str = ""
    version: str = ""
    model: str = ""


# ============================================================
# Middleware
# ============================================================

class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed one-minute window per client IP on /api/*. RATE_LIMIT <= 0 disables it."""

    async def dispatch(self, request: Request, call_next):
        if RATE_LIMIT <= 0 or not request.url.path.startswith("/api/") or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket = _rate_buckets.get(client_ip)
        if bucket is None:
            # mutated in place below so the window is not extended on each hit
            bucket = _rate_buckets[client_ip] = [0]
        bucket[0] += 1

        if bucket[0] > RATE_LIMIT:
            logger.warning(f"Rate limit exceeded for {client_ip}")
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": "Too many requests, please try again later"},
            )
        return await call_next(request)


BODY_TOO_LARGE = "Request body too large"


class BodySizeLimitMiddleware:
    """Cap request bodies at MAX_BODY_BYTES.

    A declared Content-Length over the cap is rejected before the app runs.
    Bodies without one (chunked uploads) are counted as they are received;
    the read that crosses the cap raises a 413 HTTPException, which the app's
    error handler renders.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = MAX_BODY_BYTES
        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > limit:
            response = JSONResponse(status_code=413, content={"success": False, "error": BODY_TOO_LARGE})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning(f"Request body over {limit} bytes on {scope.get('path', '')}")
                    raise HTTPException(status_code=413, detail=BODY_TOO_LARGE)
            return message

        await self.app(scope, limited_receive, send)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One ``fixprompt.access`` record per request: method, path, status, duration."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        access_logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)")
        return response


# ============================================================
# FastAPI app
# ============================================================

@asynccontextmanager
async def _lifespan(app: FastAPI):
    setup_logging(_env)
    logger.info(
        f"fixprompt {fixprompt.__version__} starting: model={_improver.gateway.config.model} "
        f"env={ENVIRONMENT} rate_limit={RATE_LIMIT}/min body_cap={MAX_BODY_BYTES}B"
    )
    yield


app = FastAPI(
    title="fixprompt API",
    description="Domain detection, clarifying questions, conversation context and prompt improvement.",
    version=fixprompt.__version__,
    lifespan=_lifespan,
)

app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(AccessLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_env.allowed_origins,
    allow_origin_regex=r"chrome-extension://.*",
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=86400,
)


@app.exception_handler(FixPromptError)
async def _fixprompt_error_handler(request: Request, exc: FixPromptError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request body"})


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": message})


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {type(exc).__name__}")
    return JSONResponse(status_code=500, content=InternalError().to_payload())


def _internal(message: str, exc: Exception) -> InternalError:
    logger.error(f"{message}: {type(exc).__name__}: {exc}")
    return InternalError(message)


# ============================================================
# Endpoints
# ============================================================

@app.get("/health")
async def health() -> HealthResponse:
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=ENVIRONMENT,
        version=fixprompt.__version__,
        model=_improver.gateway.config.model,
    )


@app.post("/api/detect-domain")
async def detect_domain(req: DetectDomainRequest) -> dict[str, Any]:
    try:
        result = _improver.classify(req.prompt)
    except FixPromptError:
        raise
    except Exception as e:
        raise _internal("Failed to detect domain", e) from e
    return {"success": True, **result.model_dump()}


@app.post("/api/generate-questions")
async def generate_questions(req: GenerateQuestionsRequest) -> dict[str, Any]:
    try:
        questions = _improver.generate_questions(req.prompt, req.domain)
    except FixPromptError:
        raise
    except Exception as e:
        raise _internal("Failed to generate questions", e) from e
    return {"success": True, "questions": [q.model_dump() for q in questions]}


@app.post("/api/context")
async def save_context(req: SaveContextRequest) -> dict[str, Any]:
    try:
        _improver.save_context(req.conversation_id, req.context)
    except FixPromptError:
        raise
    except Exception as e:
        raise _internal("Failed to save context", e) from e
    return {"success": True, "message": "Context saved successfully"}


@app.get("/api/context/{conversation_id}")
async def get_context(conversation_id: str) -> dict[str, Any]:
    try:
        context = _improver.get_context(conversation_id)
    except FixPromptError:
        raise
    except Exception as e:
        raise _internal("Failed to retrieve context", e) from e
    return {"success": True, "context": context, "found": True}


@app.delete("/api/context/{conversation_id}")
async def delete_context(conversation_id: str) -> dict[str, Any]:
    try:
        deleted = _improver.delete_context(conversation_id)
    except FixPromptError:
        raise
    except Exception as e:
        raise _internal("Failed to delete context", e) from e
    return {"success": True, "deleted": deleted}


@app.post("/api/improve-prompt")
async def improve_prompt(req: ImprovePromptRequest) -> dict[str, Any]:
    try:
        result = await _improver.improve(
            prompt=req.prompt,
            platform=req.platform,
            domain=req.domain,
            context=req.context,
            refinement_answers=req.refinement_answers,
            conversation_id=req.conversation_id,
        )
    except FixPromptError:
        raise
    except Exception as e:
        raise _internal("Failed to improve prompt. Please try again.", e) from e

    payload = result.model_dump(by_alias=True, exclude_none=True, exclude={"mode"})
    return {"success": True, **payload}


def get_improver() -> PromptImprover:
    return _improver


def create_app(
    model: str | None = None,
    environment: str | None = None,
    rate_limit: int | None = None,
    max_body_bytes: int | None = None,
    store: ContextStore | None = None,
    gateway_config: GatewayConfig | None = None,
    dotenv_path: str | None = None,
) -> FastAPI:
    """Configure the module-level app and return it.

    Reads the .env file first (when given), then overrides with explicit args.
    Passing ``rate_limit`` also resets the per-IP counters.
    """
    global _env, ENVIRONMENT, RATE_LIMIT, MAX_BODY_BYTES, _improver

    if dotenv_path:
        _env = get_env_config(dotenv_path)
        ENVIRONMENT = _env.environment
        RATE_LIMIT = _env.rate_limit
        MAX_BODY_BYTES = _env.max_body_bytes

    if environment:
        ENVIRONMENT = environment
    if rate_limit is not None:
        RATE_LIMIT = rate_limit
        _rate_buckets.clear()
    if max_body_bytes is not None:
        MAX_BODY_BYTES = max_body_bytes

    config = gateway_config or _env.gateway_config()
    if model:
        config = config.model_copy(update={"model": model})

    _improver = PromptImprover(
        store=store if store is not None else _improver.store,
        gateway=CompletionGateway(config),
    )
    return app
