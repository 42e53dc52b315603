"""
Provider Relay: FastAPI Application Entry Point

This module initializes the FastAPI application and defines the endpoints:
- /chat (and POST /): Text generation through the provider fallback chain
- /ocr, /ocr/{job_id}: OCR pass-through to EdenAI
- /github/{path}: GitHub API pass-through
- /health: Health check endpoint
- /config: Non-sensitive configuration values
- /providers: Provider chain information

The application uses a lifespan context manager to:
1. Load configuration and configure logging at startup
2. Report which providers are configured (never the keys themselves)
3. Close the shared outbound HTTP clients on shutdown
"""

from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError

from relay import __version__
from relay.config import Settings, get_settings, configure_logging, has_secret
from relay.dispatcher.aggregator import ResultAggregator
from relay.dispatcher.clients import close_clients
from relay.dispatcher.fallback import DispatchRequest, FallbackDispatcher
from relay.errors import InputError, ProviderNotConfiguredError
from relay.proxy.github import forward_github
from relay.proxy.ocr import poll_ocr_job, submit_ocr
from relay.registry.providers import ProviderCredentials, get_provider_registry
from relay.schemas.chat import (
    ChatRequest,
    ChatSuccessResponse,
    ChatFailureResponse,
    ComponentHealth,
    ErrorCodes,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    OcrRequest,
    chat_failure_from_aggregate,
    chat_success_from_attempt,
)

logger = logging.getLogger(__name__)

_start_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup/shutdown events.

    On startup:
    - Loads configuration from environment
    - Configures logging
    - Logs which providers take part in the fallback chain

    On shutdown:
    - Closes the shared outbound clients
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info("=" * 60)
    logger.info("Provider Relay starting up...")
    logger.info("=" * 60)
    logger.info(f"Attempt timeout: {settings.attempt_timeout_ms} ms")
    logger.info(f"Debug mode: {'enabled' if settings.debug else 'disabled'}")

    credentials = ProviderCredentials.from_settings(settings)
    for provider in get_provider_registry().list_providers():
        state = "configured" if credentials.is_configured(provider.provider_id) else "not configured (skipped)"
        logger.info(f"{provider.display_name} API key: {state}")
    logger.info(
        f"GitHub API token: {'configured' if has_secret(settings.github_api_token) else 'not configured'}"
    )

    if not any(credentials.is_configured(p.provider_id) for p in get_provider_registry().list_providers()):
        logger.warning("No AI provider keys configured; /chat will always report failure")

    global _start_time
    _start_time = time.time()

    logger.info("=" * 60)
    logger.info("Provider Relay ready to accept requests")

    yield  # Application runs here

    logger.info("Provider Relay shutting down...")
    await close_clients()


app = FastAPI(
    title="Provider Relay",
    description="Credential-keeping proxy with sequential AI provider fallback",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def get_dispatcher() -> FallbackDispatcher:
    """Dispatcher built from the current settings (overridden in tests)."""
    return FallbackDispatcher.from_settings()


@app.get("/")
async def root():
    """
    Root endpoint with API information.
    """
    return {
        "name": "Provider Relay",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "chat": "/chat",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(settings: Settings = Depends(get_settings)):
    """
    Health check endpoint for monitoring and orchestration.

    The service is "healthy" when at least one AI provider is configured
    and "degraded" when the fallback chain would be empty. Providers are
    not contacted.
    """
    credentials = ProviderCredentials.from_settings(settings)
    components = [
        ComponentHealth(
            name=provider.provider_id.value,
            status="configured" if credentials.is_configured(provider.provider_id) else "not_configured",
            message=f"Chain position {provider.priority}",
        )
        for provider in get_provider_registry().list_providers()
    ]
    components.append(
        ComponentHealth(
            name="github",
            status="configured" if has_secret(settings.github_api_token) else "not_configured",
        )
    )

    any_ai = any(c.status == "configured" for c in components[:-1])
    uptime = time.time() - _start_time if _start_time > 0 else 0.0

    return HealthResponse(
        status="healthy" if any_ai else "degraded",
        version=__version__,
        components=components,
        uptime_seconds=uptime,
    )


@app.get("/config")
async def show_config(settings: Settings = Depends(get_settings)):
    """
    Returns non-sensitive configuration values.

    API keys are SecretStr and are NOT exposed in this endpoint; only
    whether each one is present.
    """
    return {
        "dispatch": {
            "attempt_timeout_ms": settings.attempt_timeout_ms,
            "edenai_chat_provider": settings.edenai_chat_provider,
            "gemini_model": settings.gemini_model,
            "openrouter_default_model": settings.openrouter_default_model,
            "openrouter_backup_models": settings.openrouter_backup_models,
        },
        "server": {
            "host": settings.host,
            "port": settings.port,
            "debug": settings.debug,
        },
        "logging": {
            "level": settings.log_level,
        },
        "api_keys_configured": {
            "edenai": has_secret(settings.edenai_api_key),
            "gemini": has_secret(settings.gemini_api_key),
            "openrouter": has_secret(settings.openrouter_api_key),
            "github": has_secret(settings.github_api_token),
        },
    }


@app.get("/providers")
async def list_providers(dispatcher: FallbackDispatcher = Depends(get_dispatcher)):
    """
    List the provider chain and the candidates a request without a model
    hint would try, in order.
    """
    registry = get_provider_registry()
    return {
        "providers": [
            {
                "provider_id": provider.provider_id.value,
                "display_name": provider.display_name,
                "priority": provider.priority,
                "endpoint": provider.endpoint,
                "auth_scheme": provider.auth_scheme.value,
                "models": provider.models,
                "accepts_preferred_model": provider.accepts_preferred_model,
                "configured": dispatcher.credentials.is_configured(provider.provider_id),
            }
            for provider in registry.list_providers()
        ],
        "default_chain": [
            {"provider": c.provider_id.value, "model": c.model}
            for c in dispatcher.candidates()
        ],
    }


@app.post(
    "/chat",
    response_model=ChatSuccessResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ChatFailureResponse},
    },
    summary="Generate text",
    description="Try each configured AI provider in order until one returns text.",
)
async def chat(request: ChatRequest, dispatcher: FallbackDispatcher = Depends(get_dispatcher)):
    """
    Main text-generation endpoint.

    Flow:
    1. Validate the prompt (400 before any provider is contacted)
    2. Run the fallback chain
    3. Return the first success, or every failure in attempt order
    """
    dispatch_request = DispatchRequest(prompt=request.prompt, preferred_model=request.model)
    result = await dispatcher.dispatch(dispatch_request)

    if result.success:
        return chat_success_from_attempt(result.winner)

    failure = ResultAggregator().combine(result.failures)
    return JSONResponse(
        status_code=500,
        content=chat_failure_from_aggregate(failure).model_dump(exclude_none=True),
    )


# The browser client posts to the worker root
app.add_api_route(
    "/",
    chat,
    methods=["POST"],
    response_model=ChatSuccessResponse,
    include_in_schema=False,
)


@app.post("/ocr", summary="Extract text from a file")
async def ocr(request: OcrRequest):
    """
    OCR pass-through.

    PDFs start an asynchronous job (poll GET /ocr/{job_id}); other files
    are processed synchronously.
    """
    result = await submit_ocr(
        file=request.file,
        file_name=request.file_name,
        file_type=request.file_type,
        provider=request.provider,
    )
    return JSONResponse(status_code=result.status_code, content=result.body)


@app.get("/ocr/{job_id}", summary="Poll an asynchronous OCR job")
async def ocr_job(job_id: str):
    result = await poll_ocr_job(job_id)
    return JSONResponse(status_code=result.status_code, content=result.body)


@app.api_route("/github/{path:path}", methods=["GET", "POST"], summary="GitHub API proxy")
async def github(path: str, request: Request):
    """
    GitHub API pass-through.

    Example: /github/search/repositories?q=react&sort=stars
    """
    body = await request.body() if request.method == "POST" else None
    result = await forward_github(
        method=request.method,
        path=path,
        query=request.url.query,
        body=body,
    )
    if result.body is None:
        return Response(status_code=result.status_code)
    return JSONResponse(status_code=result.status_code, content=result.body)


def _error_response(status_code: int, code: str, message: str, field: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=code, message=message, field=field)
        ).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Malformed input is a caller error: it is answered with 400 before any
    provider is contacted. Unparsable JSON and a missing prompt get their
    own codes.
    """
    errors = exc.errors()
    first_error = errors[0] if errors else {}
    loc = [str(part) for part in first_error.get("loc", [])]
    field = ".".join(loc[1:] if loc[:1] == ["body"] else loc) or None

    if first_error.get("type") == "json_invalid":
        return _error_response(400, ErrorCodes.INVALID_JSON, "Invalid JSON body")

    if field == "prompt" or (field is None and request.url.path in ("/", "/chat")):
        return _error_response(400, ErrorCodes.PROMPT_REQUIRED, "Prompt is required", "prompt")

    return _error_response(
        400,
        ErrorCodes.VALIDATION_ERROR,
        first_error.get("msg", "Validation failed"),
        field,
    )


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError) -> JSONResponse:
    """Caller errors raised past schema validation (blank prompt, bad base64)."""
    code = {
        "prompt": ErrorCodes.PROMPT_REQUIRED,
        "file": ErrorCodes.INVALID_FILE,
    }.get(exc.field or "", ErrorCodes.VALIDATION_ERROR)
    return _error_response(400, code, exc.message, exc.field)


@app.exception_handler(ProviderNotConfiguredError)
async def not_configured_handler(
    request: Request, exc: ProviderNotConfiguredError
) -> JSONResponse:
    """A pass-through route whose credential is missing."""
    logger.error(f"{request.url.path}: {exc.message}")
    return _error_response(500, ErrorCodes.NOT_CONFIGURED, exc.message)


@app.exception_handler(HTTPException)
async def http_exception_handler(
    request: Request, exc: HTTPException
) -> JSONResponse:
    """
    Handle HTTP exceptions with consistent format.

    Ensures all HTTP errors return a consistent error response structure
    for predictable client-side error handling.
    """
    detail = exc.detail
    if isinstance(detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": detail})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "HTTP_ERROR", "message": str(detail)}},
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full exception for debugging and returns a generic error
    response to avoid leaking implementation details.
    """
    logger.exception("Unhandled exception")
    return _error_response(500, ErrorCodes.INTERNAL_ERROR, "An unexpected error occurred")
