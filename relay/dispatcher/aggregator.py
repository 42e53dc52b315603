"""
Failure aggregation for exhausted fallback chains.

When every candidate fails, the caller receives one error payload listing
each attempt in order. Nothing is merged or summarized: a timeout, a
rejected credential and an empty answer from the same provider remain
separate, distinguishable entries.
"""

from dataclasses import dataclass, field

from relay.dispatcher.outcomes import AttemptFailure

ALL_PROVIDERS_FAILED = "All AI providers failed"


@dataclass
class AggregatedFailure:
    """Caller-facing error built from the ordered attempt failures."""

    error: str = ALL_PROVIDERS_FAILED
    details: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.error, "details": self.details}


def failure_entry(failure: AttemptFailure) -> dict:
    """
    Render one failure as a details entry.

    `model` and `status` only appear when they apply, matching the
    {provider, model?, status?, error?} shape callers already parse.
    """
    entry: dict = {"provider": failure.provider_id}
    if failure.model is not None:
        entry["model"] = failure.model
    entry["reason"] = failure.reason.value
    if failure.status_code is not None:
        entry["status"] = failure.status_code
    if failure.detail:
        entry["error"] = failure.detail
    return entry


class ResultAggregator:
    """Combines ordered AttemptFailures into a single reportable error."""

    def combine(self, failures: list[AttemptFailure]) -> AggregatedFailure:
        """
        Build the aggregated error.

        Args:
            failures: Failures in attempt order (may be empty when no
                provider is configured).

        Returns:
            AggregatedFailure with one details entry per failure.
        """
        return AggregatedFailure(details=[failure_entry(f) for f in failures])
