from __future__ import annotations
import io
import re
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import IO, Any, Callable, Mapping

from multidict import CIMultiDict
from yarl import URL

from core.exceptions import PipelineError, RequestConstructionError
from request_pipeline.body import RepeatableBuffer
from request_pipeline.context import CallContext
from request_pipeline.state import ExecutionState


_METHOD_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_URL_FORBIDDEN = re.compile(r"[\x00-\x20\x7f]")


class RequestType(str, Enum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"


RetryHook = Callable[["Request", int], None]


@dataclass(eq=False)
class Request:
    """
    Outbound call descriptor.
    • method: HTTP method token
    • url: absolute or relative URL
    • headers: case-insensitive request headers
    • body: once-readable byte stream, or a RepeatableBuffer when replay is needed
    • context: cancellable call context
    The ExecutionState of the call is attached to the request by the
    outermost pipeline stage.
    """
    method: str
    url: str
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    body: IO[bytes] | None = None
    context: CallContext = field(default_factory=CallContext)
    _state: ExecutionState | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, CIMultiDict):
            self.headers = CIMultiDict(self.headers or {})

    @classmethod
    def build(
        cls,
        method: str | RequestType,
        url: str | URL,
        body: bytes | IO[bytes] | None = None,
        context: CallContext | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> "Request":
        """Validate method and URL and build a request. Raises RequestConstructionError."""
        method = method.value if isinstance(method, RequestType) else str(method)
        if not _METHOD_TOKEN.fullmatch(method):
            raise RequestConstructionError(f"invalid method {method!r}")

        url = str(url)
        if _URL_FORBIDDEN.search(url):
            raise RequestConstructionError(f"parse {url!r}: invalid control character in URL")
        try:
            URL(url)
        except (ValueError, TypeError) as e:
            raise RequestConstructionError(f"parse {url!r}: {e}") from e

        if isinstance(body, (bytes, bytearray)):
            body = RepeatableBuffer(bytes(body))

        return cls(
            method=method.upper(),
            url=url,
            headers=CIMultiDict(headers or {}),
            body=body,
            context=context or CallContext(),
        )

    @property
    def state(self) -> ExecutionState | None:
        return self._state

    @property
    def host(self) -> str | None:
        return self.headers.get("Host")

    def set_headers(self, headers: Mapping[str, str]) -> None:
        for name, value in headers.items():
            self.headers[name] = value

    def add_retry_hook(self, hook: RetryHook) -> None:
        """Register a callback run before every retry of this call, in registration order."""
        ExecutionState.attach(self).add_retry_hook(hook)


@dataclass(eq=False)
class Response:
    """
    Inbound result of one attempt. The body is a once-readable stream unless a
    RepeatableBuffer has been installed by read_response_body.
    """
    status: int = 200
    reason: str = ""
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    body: IO[bytes] | None = None
    request: Request | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.headers, CIMultiDict):
            self.headers = CIMultiDict(self.headers or {})
        if not self.reason:
            try:
                self.reason = HTTPStatus(self.status).phrase
            except ValueError:
                self.reason = ""

    @classmethod
    def from_bytes(
        cls,
        body: bytes | str = b"",
        status: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> "Response":
        if isinstance(body, str):
            body = body.encode("utf-8")
        return cls(status=status, headers=CIMultiDict(headers or {}), body=io.BytesIO(body))

    @property
    def status_line(self) -> str:
        return f"{self.status} {self.reason}".rstrip()

    def close(self) -> None:
        """Drain and close the body so the attempt releases everything it holds."""
        if self.body is None:
            return
        if not self.body.closed:
            self.body.read()
        self.body.close()


@dataclass
class RequestExchange:
    """
    Data container passed through the middleware pipeline for one call.
    • request: the outgoing request, possibly modified by middleware
    • response: response of the latest attempt, if any
    • error: error of the latest attempt, if any; may coexist with a response
    • attempts: how many times the request reached the executor stage
    • metadata: observations recorded by listener middleware
    """
    request: Request
    response: Response | None = None
    error: PipelineError | None = None
    attempts: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> ExecutionState | None:
        return self.request.state

    @property
    def success(self) -> bool:
        return self.error is None and self.response is not None

    @property
    def status_code(self) -> int | None:
        return self.response.status if self.response is not None else None
