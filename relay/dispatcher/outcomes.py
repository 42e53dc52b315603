"""
Attempt and dispatch result types.

Every attempt against a candidate yields exactly one AttemptOutcome, either
an AttemptSuccess or an AttemptFailure. A DispatchResult holds the first
success, or the ordered failures when no candidate produced usable text.
"""

from dataclasses import dataclass, field
from enum import Enum


class ReasonKind(str, Enum):
    """
    Why a single attempt failed.

    HTTP_ERROR: Provider answered with a non-2xx status
    EMPTY_RESULT: 2xx but no usable text (includes in-band status "fail")
    TRANSPORT_ERROR: Connection failure, unexpected exception or timeout
    """

    HTTP_ERROR = "http_error"
    EMPTY_RESULT = "empty_result"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class AttemptSuccess:
    """Usable text produced by one candidate."""

    text: str
    provider_id: str
    model: str | None = None
    latency_ms: float = 0.0

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class AttemptFailure:
    """
    A failed attempt, with enough detail to tell failure modes apart.

    Attributes:
        provider_id: Provider that was attempted
        model: Model name, when the provider group has one
        reason: Failure category
        detail: Provider error message or exception text, kept verbatim
        status_code: HTTP status for HTTP_ERROR failures
        latency_ms: Time spent on the attempt
    """

    provider_id: str
    reason: ReasonKind
    detail: str
    model: str | None = None
    status_code: int | None = None
    latency_ms: float = 0.0

    @property
    def success(self) -> bool:
        return False


AttemptOutcome = AttemptSuccess | AttemptFailure


@dataclass
class DispatchResult:
    """
    Result of one fallback dispatch.

    Exactly one of the two shapes holds: `winner` is set and `failures`
    lists the candidates that failed before it, or `winner` is None and
    `failures` has one entry per attempted candidate in attempt order.
    """

    winner: AttemptSuccess | None = None
    failures: list[AttemptFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if any candidate produced usable text."""
        return self.winner is not None

    @property
    def attempts(self) -> int:
        return len(self.failures) + (1 if self.winner else 0)
