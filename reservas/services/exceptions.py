"""Exceptions for the assistant and webhook services."""


class ServiceError(Exception):
    """Base exception for external service errors."""

    pass


class TransportError(ServiceError):
    """Raised when the remote service cannot be reached."""

    pass


class ServiceTimeoutError(TransportError):
    """Raised when a request exceeds its timeout."""

    pass


class UpstreamError(ServiceError):
    """Raised when the remote service answers with a non-2xx status."""

    def __init__(self, message: str, status: int = 0, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class AuthError(UpstreamError):
    """Raised when the credential is rejected."""

    pass


class RateLimitError(UpstreamError):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str,
        status: int = 429,
        body: str = "",
        retry_after: float = 60.0,
    ):
        super().__init__(message, status=status, body=body)
        self.retry_after = retry_after


class RunFailed(ServiceError):
    """Raised when a run ends in a terminal non-success status."""

    def __init__(self, status: str, run_id: str = "", detail: str | None = None):
        message = f"Run {run_id} ended with status {status!r}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.status = status
        self.run_id = run_id
        self.detail = detail


class PollTimeoutError(ServiceError):
    """Raised when a run does not finish within the polling budget."""

    def __init__(self, run_id: str, polls: int, elapsed: float):
        super().__init__(f"Run {run_id} still pending after {polls} polls ({elapsed:.1f}s)")
        self.run_id = run_id
        self.polls = polls
        self.elapsed = elapsed


class ExtractionExhausted(ServiceError):
    """Raised when every structured-data extraction attempt failed."""

    def __init__(self, attempts: int):
        super().__init__(f"Structured-data extraction failed after {attempts} attempts")
        self.attempts = attempts
