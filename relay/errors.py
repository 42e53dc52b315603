"""
Relay exception hierarchy.

Only caller mistakes and missing configuration ever leave a request handler
as exceptions. Provider failures during a dispatch are recorded as
AttemptFailure values instead and never raised.
"""


class RelayError(Exception):
    """Base class for errors raised inside the relay."""


class InputError(RelayError):
    """The caller sent a malformed or incomplete request."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class AttemptTimeoutError(RelayError):
    """A provider attempt did not finish within its deadline."""

    def __init__(self, duration_ms: int) -> None:
        super().__init__(f"Request timed out after {duration_ms} ms")
        self.duration_ms = duration_ms


class ProviderNotConfiguredError(RelayError):
    """A pass-through route was called without its credential configured."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
