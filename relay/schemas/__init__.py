"""
Schemas module: Pydantic request/response models.

Example usage:
    from relay.schemas import ChatRequest, ChatSuccessResponse

    request = ChatRequest(prompt="Hello")
"""

from relay.schemas.chat import (
    # Request models
    ChatRequest,
    OcrRequest,
    # Response models
    ChatSuccessResponse,
    ChatFailureResponse,
    FailureDetail,
    # Error models
    ErrorCodes,
    ErrorDetail,
    ErrorResponse,
    # Health models
    ComponentHealth,
    HealthResponse,
    # Conversion utilities
    chat_success_from_attempt,
    chat_failure_from_aggregate,
)

__all__ = [
    "ChatRequest",
    "OcrRequest",
    "ChatSuccessResponse",
    "ChatFailureResponse",
    "FailureDetail",
    "ErrorCodes",
    "ErrorDetail",
    "ErrorResponse",
    "ComponentHealth",
    "HealthResponse",
    "chat_success_from_attempt",
    "chat_failure_from_aggregate",
]
