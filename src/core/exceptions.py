class PipelineError(Exception):
    """Base class for every error surfaced by a call through the request pipeline."""

    pass


class RequestConstructionError(PipelineError):
    """Raised when a request cannot be built (malformed method or URL). Never retried."""

    pass


class TransportError(PipelineError):
    """Raised when the transport fails to complete a round trip (connection, protocol)."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class RequestTimeoutError(TransportError):
    """Raised when a round trip exceeds the timeout installed on its execution handle."""

    pass


class RequestCancelledError(PipelineError):
    """Raised when the call context is cancelled before or during the call."""

    def __init__(self, message: str = "call cancelled") -> None:
        super().__init__(message)


class StatusCodeError(PipelineError):
    """
    Raised by the status-code policy when a structurally successful response
    carries a code that is not allowed, or that is blocked.
    The message holds the status line and a bounded prefix of the body.
    """

    def __init__(self, status: int, reason: str, body: bytes = b"") -> None:
        self.status = status
        self.reason = reason
        self.body = body
        text = body.decode("utf-8", errors="replace")
        super().__init__(f"{status} {reason} {text}".rstrip())


class DecodeError(PipelineError):
    """Raised when a response body cannot be parsed into structured data."""

    pass


class ConfigError(PipelineError):
    """Raised when a client configuration cannot be turned into runtime objects."""

    pass

