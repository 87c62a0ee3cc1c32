from __future__ import annotations
import asyncio
import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from core.exceptions import PipelineError, RequestTimeoutError, TransportError
from request_pipeline.models import RequestExchange, Response, Request
from request_pipeline.state import ExecutionState
from request_pipeline.transport.base import TransportEngine, TransportRequest


logger = logging.getLogger(__name__)

# Applies when no middleware configured a timeout for the call
DEFAULT_TIMEOUT = 30.0


class ExecutionHandle:
    """
    Disposable execution handle bound to the shared transport and configured
    with exactly one timeout for the call that checked it out.
    """

    __slots__ = ("transport", "timeout", "in_use")

    def __init__(self) -> None:
        self.transport: TransportEngine | None = None
        self.timeout: float | None = None
        self.in_use = False

    def configure(self, transport: TransportEngine, timeout: float | None) -> None:
        self.transport = transport
        self.timeout = timeout
        self.in_use = True

    def reset(self) -> None:
        self.transport = None
        self.timeout = None
        self.in_use = False

    async def round_trip(self, request: Request) -> Response:
        if self.transport is None:
            raise RuntimeError("ExecutionHandle used without being checked out")
        return await self.transport.round_trip(
            TransportRequest.from_request(request),
            timeout=self.timeout,
        )


class HandlePool:
    """
    Mutex protected free list of ExecutionHandle objects. A handle is never
    checked out to two calls at once, and it is reset before it is returned
    so no per-call configuration leaks into an unrelated call.
    """

    def __init__(self, max_idle: int = 64) -> None:
        self._max_idle = max_idle
        self._idle: list[ExecutionHandle] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._idle)

    def checkout(self, transport: TransportEngine, timeout: float | None) -> ExecutionHandle:
        with self._lock:
            handle = self._idle.pop() if self._idle else ExecutionHandle()
        handle.configure(transport, timeout)
        return handle

    def release(self, handle: ExecutionHandle) -> None:
        if not handle.in_use:
            raise RuntimeError("ExecutionHandle released twice")
        handle.reset()
        with self._lock:
            if len(self._idle) < self._max_idle:
                self._idle.append(handle)

    @contextmanager
    def lease(self, transport: TransportEngine, timeout: float | None) -> Iterator[ExecutionHandle]:
        handle = self.checkout(transport, timeout)
        try:
            yield handle
        finally:
            self.release(handle)


class PooledExecutor:
    """
    Terminal handler of the pipeline. Executes one attempt against the
    transport (or the mock endpoint of the call) and records the result on
    the RequestExchange instead of raising.
    """

    def __init__(
        self,
        transport: TransportEngine,
        pool: HandlePool | None = None,
        default_timeout: float | None = DEFAULT_TIMEOUT,
    ) -> None:
        self.transport = transport
        self.pool = pool if pool is not None else HandlePool()
        self.default_timeout = default_timeout

    def resolve_timeout(self, state: ExecutionState | None) -> float | None:
        """The call's own timeout when set, else the default. 0 (or None) means no limit."""
        if state is not None and state.has_timeout:
            timeout = state.timeout
        else:
            timeout = self.default_timeout

        if timeout is None or timeout <= 0:
            return None
        return float(timeout)

    async def __call__(self, request_exchange: RequestExchange) -> RequestExchange:
        request = request_exchange.request
        state = request_exchange.state
        request_exchange.response = None
        request_exchange.error = None

        cancelled = request.context.error()
        if cancelled is not None:
            request_exchange.error = cancelled
            return request_exchange

        request_exchange.attempts += 1
        timeout = self.resolve_timeout(state)

        try:
            if state is not None and state.mock_endpoint is not None:
                response = await request.context.guard(state.mock_endpoint(request))
            else:
                with self.pool.lease(self.transport, timeout) as handle:
                    response = await request.context.guard(handle.round_trip(request))
        except PipelineError as e:
            if isinstance(e, RequestTimeoutError):
                logger.info("%s %s timed out after %ss", request.method, request.url, timeout)
            request_exchange.error = e
        except asyncio.TimeoutError as e:
            request_exchange.error = RequestTimeoutError(
                f"{request.method} {request.url}: timeout after {timeout}s", cause=e
            )
        except Exception as e:
            request_exchange.error = TransportError(
                f"{request.method} {request.url}: {type(e).__name__}: {e}", cause=e
            )
        else:
            if response is None:
                response = Response()
            if response.request is None:
                response.request = request
            request_exchange.response = response

        return request_exchange
