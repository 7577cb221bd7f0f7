"""
Exceptions raised by the race engine.
"""


class RaceBenchError(Exception):
    """Base class for all race benchmark errors."""


class InvalidRequest(RaceBenchError, ValueError):
    """A benchmark request was malformed and rejected before any work started."""


class TransferFailure(RaceBenchError):
    """A single object write or read failed."""

    def __init__(self, provider: str, operation: str, key: str, reason: str):
        self.provider = provider
        self.operation = operation
        self.key = key
        self.reason = reason
        super().__init__(f"{provider} {operation} of {key} failed: {reason}")


class PassTimeout(TransferFailure):
    """A whole pass did not finish within the configured time budget."""

    def __init__(self, provider: str, operation: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            provider, operation, "*", f"pass timed out after {timeout_seconds:g}s"
        )


class AggregateFailure(RaceBenchError):
    """One or more transfers failed, so the whole pass failed.

    The first failure is kept as ``first_failure`` and chained as the cause.
    """

    def __init__(
        self,
        provider: str,
        operation: str,
        first_failure: BaseException,
        failed_count: int,
        total_count: int,
    ):
        self.provider = provider
        self.operation = operation
        self.first_failure = first_failure
        self.failed_count = failed_count
        self.total_count = total_count
        super().__init__(
            f"{provider} {operation} pass failed "
            f"({failed_count}/{total_count} transfers): {first_failure}"
        )
