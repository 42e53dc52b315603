"""
Fallback Dispatcher - Sequential provider chain execution.

Candidates are tried strictly one after another in the fixed chain order
(EdenAI, Gemini, OpenRouter models). The first usable answer ends the
dispatch; every failure is recorded and the next candidate is tried.
A failed candidate is never retried within the same request.

Worst-case latency is the sum of the per-attempt deadlines of the
configured candidates, since attempts never overlap.
"""

import logging
import time
from dataclasses import dataclass

from relay.config import Settings, get_settings
from relay.dispatcher.adapters import ADAPTERS, Adapter
from relay.dispatcher.clients import ProviderClients, get_clients
from relay.dispatcher.outcomes import (
    AttemptFailure,
    AttemptOutcome,
    DispatchResult,
    ReasonKind,
)
from relay.dispatcher.timeout import DEFAULT_TIMEOUT_MS, TimeoutGuard
from relay.errors import AttemptTimeoutError, InputError
from relay.registry.providers import (
    Candidate,
    ProviderCredentials,
    ProviderId,
    ProviderRegistry,
    get_provider_registry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchRequest:
    """A validated generation request."""

    prompt: str
    preferred_model: str | None = None

    def __post_init__(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise InputError("Prompt is required", field="prompt")
        hint = (self.preferred_model or "").strip() or None
        object.__setattr__(self, "preferred_model", hint)


class FallbackDispatcher:
    """
    Tries candidates in priority order until one succeeds.

    All collaborators are passed in at construction so tests can inject
    fake credentials, clients or adapters per case.
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        clients: ProviderClients,
        registry: ProviderRegistry,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        adapters: dict[ProviderId, Adapter] | None = None,
    ) -> None:
        self._credentials = credentials
        self._clients = clients
        self._registry = registry
        self._timeout_ms = timeout_ms
        self._adapters = adapters if adapters is not None else dict(ADAPTERS)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        clients: ProviderClients | None = None,
    ) -> "FallbackDispatcher":
        settings = settings or get_settings()
        return cls(
            credentials=ProviderCredentials.from_settings(settings),
            clients=clients or get_clients(),
            registry=get_provider_registry(),
            timeout_ms=settings.attempt_timeout_ms,
        )

    @property
    def credentials(self) -> ProviderCredentials:
        return self._credentials

    def candidates(self, preferred_model: str | None = None) -> list[Candidate]:
        """Return the ordered fallback chain for the given model hint."""
        return self._registry.build_candidates(self._credentials, preferred_model)

    async def _attempt(self, candidate: Candidate, prompt: str) -> AttemptOutcome:
        """
        Run one candidate under its own deadline.

        Timeouts and anything an adapter failed to catch become
        TRANSPORT_ERROR failures; nothing escapes to the caller.
        """
        adapter = self._adapters.get(candidate.provider_id)
        credential = self._credentials.get(candidate.provider_id) or ""
        start_time = time.perf_counter()

        if adapter is None:
            return AttemptFailure(
                provider_id=candidate.provider_id.value,
                model=candidate.model,
                reason=ReasonKind.TRANSPORT_ERROR,
                detail=f"No adapter registered for {candidate.provider_id.value}",
            )

        guard = TimeoutGuard(self._timeout_ms)
        try:
            return await guard.run(
                adapter(self._clients, prompt, candidate.model, credential)
            )
        except AttemptTimeoutError as e:
            detail = str(e)
        except Exception as e:
            logger.exception(f"Adapter for {candidate.provider_id.value} raised")
            detail = str(e) or type(e).__name__

        return AttemptFailure(
            provider_id=candidate.provider_id.value,
            model=candidate.model,
            reason=ReasonKind.TRANSPORT_ERROR,
            detail=detail.replace(credential, "***") if credential else detail,
            latency_ms=(time.perf_counter() - start_time) * 1000,
        )

    async def dispatch(self, request: DispatchRequest) -> DispatchResult:
        """
        Run the fallback chain for one request.

        Args:
            request: Validated prompt and optional preferred model.

        Returns:
            DispatchResult holding the first success, or every failure in
            attempt order. With no configured provider the failure list is
            empty.
        """
        result = DispatchResult()
        chain = self.candidates(request.preferred_model)

        if not chain:
            logger.warning("No AI providers configured; nothing to dispatch")
            return result

        logger.info(f"Dispatching prompt ({len(request.prompt)} chars) across {len(chain)} candidates")

        for candidate in chain:
            outcome = await self._attempt(candidate, request.prompt)

            if outcome.success:
                logger.info(
                    f"Candidate succeeded: provider={outcome.provider_id}, "
                    f"model={outcome.model}, latency={outcome.latency_ms:.0f}ms"
                )
                result.winner = outcome
                return result

            logger.warning(
                f"Candidate failed: provider={outcome.provider_id}, "
                f"model={outcome.model}, reason={outcome.reason.value}, "
                f"status={outcome.status_code}"
            )
            result.failures.append(outcome)

        logger.error(f"All {len(chain)} candidates failed")
        return result


async def dispatch_prompt(
    prompt: str,
    preferred_model: str | None = None,
    dispatcher: FallbackDispatcher | None = None,
) -> DispatchResult:
    """
    Dispatch a prompt with the application-wide configuration.

    Raises:
        InputError: If the prompt is empty after trimming. No provider is
            contacted in that case.
    """
    request = DispatchRequest(prompt=prompt, preferred_model=preferred_model)
    dispatcher = dispatcher or FallbackDispatcher.from_settings()
    return await dispatcher.dispatch(request)
