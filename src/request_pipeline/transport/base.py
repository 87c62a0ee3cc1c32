from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import TracebackType

from multidict import CIMultiDict

from request_pipeline.body import RepeatableBuffer
from request_pipeline.models import Request, Response


@dataclass
class TransportRequest:
    """
    Wire-level HTTP request container for the Transport Layer.
    This data structure allows for the decoupling of the HTTP
    engine from the rest of the pipeline.
    """
    method: str
    url: str
    headers: CIMultiDict[str]
    data: bytes | None = None

    @classmethod
    def from_request(cls, request: Request) -> "TransportRequest":
        """
        Materialize the request body. A RepeatableBuffer is read from its start
        and rewound; any other stream is consumed and stays exhausted.
        """
        body = request.body
        if body is None:
            data = None
        elif isinstance(body, RepeatableBuffer):
            data = body.read_all()
        else:
            data = body.read()

        return cls(
            method=request.method,
            url=request.url,
            headers=CIMultiDict(request.headers),
            data=data,
        )


class TransportEngine(ABC):
    """
    A structural interface that defines a pluggable HTTP engine abstraction.
    The HTTP Transport engine performs a single HTTP round trip and returns a
    Response, raising TransportError (or RequestTimeoutError) when the round
    trip fails. Implementations may wrap aiohttp, httpx, etc. Transport is also
    the lifecycle manager for an HTTP session and its connection pool, which
    every call shares.
    """

    @abstractmethod
    async def __aenter__(self) -> "TransportEngine":
        ...

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: BaseException | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        ...

    @abstractmethod
    async def round_trip(
        self,
        request: TransportRequest,
        timeout: float | None = None,
    ) -> Response:
        """Perform one round trip. timeout=None means no limit."""
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
