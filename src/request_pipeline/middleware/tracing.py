from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from typing import Mapping, Protocol

from core.exceptions import PipelineError
from request_pipeline.body import read_request_body, read_response_body
from request_pipeline.middleware.pipeline import (
    NEXT_CALL,
    Middleware,
    MiddlewareFactory,
    MiddlewareType,
)
from request_pipeline.models import RequestExchange
from request_pipeline.state import ExecutionState


logger = logging.getLogger(__name__)


@dataclass
class TraceRecord:
    """Fully materialized request/response pair of one call handed to a Tracer."""
    method: str
    url: str
    request_headers: Mapping[str, str] = field(default_factory=dict)
    request_body: bytes | None = None
    status_line: str | None = None
    response_headers: Mapping[str, str] = field(default_factory=dict)
    response_body: bytes | None = None
    error: PipelineError | None = None
    attempts: int = 0
    elapsed: float = 0.0


class Tracer(Protocol):

    def trace(self, record: TraceRecord) -> None: ...


def _format_body(prefix: str, body: bytes | None, limit: int) -> list[str]:
    if not body:
        return []
    text = body[:limit].decode("utf-8", errors="replace")
    if len(body) > limit:
        text += f"... ({len(body) - limit} more bytes)"
    return [f"{prefix} {line}" for line in text.splitlines()]


def format_trace(record: TraceRecord, body_limit: int = 4096) -> str:
    lines = [f"> {record.method} {record.url}"]
    lines += [f"> {k}: {v}" for k, v in record.request_headers.items()]
    lines += _format_body(">", record.request_body, body_limit)

    if record.status_line is not None:
        lines.append(f"< {record.status_line}")
        lines += [f"< {k}: {v}" for k, v in record.response_headers.items()]
        lines += _format_body("<", record.response_body, body_limit)

    if record.error is not None:
        lines.append(f"! {type(record.error).__name__}: {record.error}")

    lines.append(f"* attempts={record.attempts} elapsed={record.elapsed:.3f}s")
    return "\n".join(lines)


class LoggingTracer:
    """Debug-log formatter: writes one multi-line dump per call to a logger."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        level: int = logging.INFO,
        body_limit: int = 4096,
    ) -> None:
        self._logger = logger or logging.getLogger("request_pipeline.trace")
        self._level = level
        self._body_limit = body_limit

    def trace(self, record: TraceRecord) -> None:
        self._logger.log(self._level, "%s", format_trace(record, self._body_limit))


class TracingStage(Middleware):
    """
    Internal stage handing the call to the debugger of the ExecutionState.
    The request body is captured before dispatch and the response body after,
    both through RepeatableBuffer so downstream readers still see them.
    A failing tracer is logged and never fails the call.
    """

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        state = request_exchange.state
        tracer = state.debugger if state is not None else None
        if tracer is None:
            return await next_call(request_exchange)

        request = request_exchange.request
        try:
            request_body = read_request_body(request)
        except Exception:
            logger.warning("Could not capture request body for tracing", exc_info=True)
            request_body = None

        start = time.monotonic()
        request_exchange = await next_call(request_exchange)
        elapsed = time.monotonic() - start

        try:
            response = request_exchange.response
            tracer.trace(TraceRecord(
                method=request.method,
                url=request.url,
                request_headers=dict(request.headers),
                request_body=request_body,
                status_line=response.status_line if response is not None else None,
                response_headers=dict(response.headers) if response is not None else {},
                response_body=read_response_body(response),
                error=request_exchange.error,
                attempts=request_exchange.attempts,
                elapsed=elapsed,
            ))
        except Exception:
            logger.warning("Tracer %r failed", tracer, exc_info=True)

        return request_exchange


@MiddlewareFactory.register(MiddlewareType.DEBUG)
class DebugMiddleware(Middleware):
    """Sets the tracer of the call (a LoggingTracer when none is given)."""

    def __init__(self, tracer: Tracer | None = None) -> None:
        self.tracer = tracer or LoggingTracer()

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        ExecutionState.attach(request_exchange.request).debugger = self.tracer
        return await next_call(request_exchange)
