"""
Pydantic Schemas for the Relay API

This module defines the request and response models for the relay:
- ChatRequest: prompt plus optional preferred model
- ChatSuccessResponse / ChatFailureResponse: fallback chain outcome
- OcrRequest: base64 file upload for OCR
- Error responses and health check schemas

All schemas follow Pydantic v2 patterns with field descriptions for the
OpenAPI documentation.
"""

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from relay.dispatcher.aggregator import AggregatedFailure
    from relay.dispatcher.outcomes import AttemptSuccess


# =============================================================================
# REQUEST MODELS
# =============================================================================


class ChatRequest(BaseModel):
    """
    Request body for the /chat endpoint.

    Example:
        {
            "prompt": "Summarize this resume in two sentences.",
            "model": "anthropic/claude-3.5-sonnet"
        }
    """

    prompt: str = Field(
        ...,
        min_length=1,
        description="Text to send to the AI providers",
    )

    model: str | None = Field(
        default=None,
        description="Preferred OpenRouter model, tried first in that provider group",
    )

    @field_validator("prompt")
    @classmethod
    def validate_prompt_not_whitespace(cls, v: str) -> str:
        """Ensure prompt is not empty or whitespace only."""
        if not v.strip():
            raise ValueError("Prompt is required")
        return v

    @field_validator("model")
    @classmethod
    def normalize_model(cls, v: str | None) -> str | None:
        """Treat a blank model hint as no hint."""
        if v is None or not v.strip():
            return None
        return v.strip()

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"prompt": "Hello"},
                {"prompt": "Write a haiku about proxies", "model": "openai/gpt-4o"},
            ]
        },
    )


class OcrRequest(BaseModel):
    """
    Request body for the /ocr endpoint.

    The file travels base64-encoded; field names follow the browser client
    (camelCase).
    """

    file: str = Field(..., min_length=1, description="Base64-encoded file content")

    file_name: str | None = Field(
        default=None, alias="fileName", description="Original file name"
    )

    file_type: str | None = Field(
        default=None, alias="fileType", description="MIME type of the file"
    )

    provider: str | None = Field(
        default=None, description="EdenAI OCR provider override (e.g. 'mistral')"
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class ChatSuccessResponse(BaseModel):
    """
    Response when a candidate in the fallback chain produced text.

    Example:
        {"success": true, "text": "Hi there", "provider": "gemini",
         "model": "gemini-1.5-flash"}
    """

    success: Literal[True] = True

    text: str = Field(..., description="Generated text")

    provider: str = Field(..., description="Provider that produced the text")

    model: str | None = Field(default=None, description="Model that produced the text")


class FailureDetail(BaseModel):
    """One failed attempt, in attempt order."""

    provider: str = Field(..., description="Provider attempted")

    model: str | None = Field(default=None, description="Model attempted, if any")

    reason: Literal["http_error", "empty_result", "transport_error"] = Field(
        ..., description="Failure category"
    )

    status: int | None = Field(default=None, description="HTTP status for http_error")

    error: str | None = Field(default=None, description="Provider message or exception text")


class ChatFailureResponse(BaseModel):
    """
    Response when every configured candidate failed.

    `details` is empty when no provider is configured at all.
    """

    success: Literal[False] = False

    error: str = Field(..., description="Summary error message")

    details: list[FailureDetail] = Field(
        default_factory=list, description="One entry per attempted candidate"
    )


# =============================================================================
# ERROR MODELS
# =============================================================================


class ErrorCodes:
    """
    Standard error codes for API responses.

    These codes enable programmatic error handling by clients
    without parsing human-readable messages.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_JSON = "INVALID_JSON"
    PROMPT_REQUIRED = "PROMPT_REQUIRED"
    INVALID_FILE = "INVALID_FILE"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    """Machine-readable code, human-readable message and offending field."""

    code: str = Field(..., description="Machine-readable error code")

    message: str = Field(..., description="Human-readable error message")

    field: str | None = Field(
        default=None, description="Field that caused the error (for validation errors)"
    )


class ErrorResponse(BaseModel):
    """
    Caller-error response, distinct from provider failure.

    Example:
        {"success": false,
         "error": {"code": "PROMPT_REQUIRED", "message": "Prompt is required",
                   "field": "prompt"}}
    """

    success: Literal[False] = False

    error: ErrorDetail = Field(..., description="Error details")


# =============================================================================
# HEALTH MODELS
# =============================================================================


class ComponentHealth(BaseModel):
    """Configuration status of one upstream provider."""

    name: str = Field(..., description="Component name (e.g., 'edenai', 'github')")

    status: Literal["configured", "not_configured"] = Field(
        ..., description="Whether the credential is present"
    )

    message: str | None = Field(default=None, description="Additional status information")


class HealthResponse(BaseModel):
    """
    Response from the /health endpoint.

    Example:
        {
            "status": "healthy",
            "service": "provider-relay",
            "version": "0.1.0",
            "components": [{"name": "edenai", "status": "configured"}],
            "uptime_seconds": 3600.5
        }
    """

    status: Literal["healthy", "degraded"] = Field(..., description="Overall status")

    service: str = Field(default="provider-relay", description="Service identifier")

    version: str = Field(..., description="Application version")

    components: list[ComponentHealth] = Field(
        default_factory=list, description="Per-provider configuration status"
    )

    uptime_seconds: float | None = Field(
        default=None, ge=0.0, description="Time since service start in seconds"
    )


# =============================================================================
# CONVERSION UTILITIES
# =============================================================================


def chat_success_from_attempt(success: "AttemptSuccess") -> ChatSuccessResponse:
    """Convert the winning AttemptSuccess into the API response."""
    return ChatSuccessResponse(
        text=success.text,
        provider=success.provider_id,
        model=success.model,
    )


def chat_failure_from_aggregate(failure: "AggregatedFailure") -> ChatFailureResponse:
    """Convert the aggregated failure into the API response."""
    return ChatFailureResponse(
        error=failure.error,
        details=[FailureDetail(**entry) for entry in failure.details],
    )
