"""
Dispatcher module: Sequential fallback across text-generation providers.

This module provides a unified interface for generating text through a
fixed, ordered chain of providers (EdenAI, Gemini, OpenRouter). It handles
provider-specific API calls, per-attempt deadlines, response validation
and aggregation of failures.

Key exports:
- AttemptSuccess / AttemptFailure / ReasonKind: per-attempt outcomes
- DispatchResult: first success or ordered failures
- TimeoutGuard: per-attempt deadline
- ProviderClients / get_clients(): lazy shared outbound clients
- FallbackDispatcher / DispatchRequest / dispatch_prompt(): chain execution
- ResultAggregator: caller-facing error for exhausted chains
"""

from relay.dispatcher.outcomes import (
    # Outcome types
    AttemptFailure,
    AttemptOutcome,
    AttemptSuccess,
    DispatchResult,
    ReasonKind,
)
from relay.dispatcher.timeout import TimeoutGuard, run_with_timeout
from relay.dispatcher.clients import ProviderClients, get_clients, close_clients
from relay.dispatcher.adapters import (
    ADAPTERS,
    attempt_edenai,
    attempt_gemini,
    attempt_openrouter,
)
from relay.dispatcher.aggregator import (
    ALL_PROVIDERS_FAILED,
    AggregatedFailure,
    ResultAggregator,
)
from relay.dispatcher.fallback import (
    DispatchRequest,
    FallbackDispatcher,
    dispatch_prompt,
)

__all__ = [
    # Outcome types
    "AttemptSuccess",
    "AttemptFailure",
    "AttemptOutcome",
    "ReasonKind",
    "DispatchResult",
    # Deadline
    "TimeoutGuard",
    "run_with_timeout",
    # Clients
    "ProviderClients",
    "get_clients",
    "close_clients",
    # Adapters
    "ADAPTERS",
    "attempt_edenai",
    "attempt_gemini",
    "attempt_openrouter",
    # Aggregation
    "ALL_PROVIDERS_FAILED",
    "AggregatedFailure",
    "ResultAggregator",
    # Dispatch
    "DispatchRequest",
    "FallbackDispatcher",
    "dispatch_prompt",
]
