from __future__ import annotations
from enum import Enum
from typing import Awaitable, Callable, Iterable, Protocol

from core.abstract_factory import TypeAbstractFactory
from request_pipeline.models import RequestExchange


NEXT_CALL = Callable[[RequestExchange], Awaitable[RequestExchange]]
MIDDLEWARE_FUNC = Callable[[RequestExchange, NEXT_CALL], Awaitable[RequestExchange]]


class MiddlewareType(str, Enum):
    HEADER = "header"
    BASIC_AUTH = "basic_auth"
    BEARER = "bearer"
    TIMEOUT = "timeout"
    RETRY = "retry"
    ALLOW_STATUS = "allow_status"
    BLOCK_STATUS = "block_status"
    DEBUG = "debug"
    LOGGING = "logging"
    TIMING = "timing"


class Middleware(Protocol):
    """
    Middleware wraps the rest of the pipeline for one call. Uses a chain
    pattern: each middleware receives the RequestExchange and the "next"
    function in the chain. It can transform the request, configure the
    ExecutionState, inspect the result on the way back, or short-circuit.
    """

    async def __call__(
        self,
        request_exchange: RequestExchange,
        next_call: NEXT_CALL
    ) -> RequestExchange:
        """
        Transform the exchange and pass it to the next middleware.
        Args:
            request_exchange: Current request exchange.
            next_call: Function to call next middleware in the chain.

        Returns:
            The RequestExchange produced by the downstream chain.
        """
        ...


class MiddlewareFactory(TypeAbstractFactory[MiddlewareType, Middleware]):
    """Registry for Middleware components"""
    ...


class MiddlewarePipeline:
    """
    This is an implementation of a middleware interceptor model pipeline. It is an
    hybrid of the wrapper and processing-stage models by leveraging the nested call structure
    of the wrapper model and the intercepter concept from  the processing-stage model.
    This can be achieved by adding a data container (RequestExchange) that is passed between
    each middleware element in the pipeline model.

    Ordering: appended middleware runs after everything added before it.
    Prepended middleware runs before every appended one; a group prepended
    later becomes the new outermost group, keeping its own internal order.
    """

    def __init__(self, middlewares: Iterable[MIDDLEWARE_FUNC] | None = None) -> None:
        self._middleware_list: list[MIDDLEWARE_FUNC] = list(middlewares or [])

    def __len__(self) -> int:
        return len(self._middleware_list)

    @property
    def middlewares(self) -> tuple[MIDDLEWARE_FUNC, ...]:
        return tuple(self._middleware_list)

    def add(self, middleware: MIDDLEWARE_FUNC) -> None:
        self._middleware_list.append(middleware)

    def append(self, *middlewares: MIDDLEWARE_FUNC) -> "MiddlewarePipeline":
        self._middleware_list.extend(middlewares)
        return self

    def prepend(self, *middlewares: MIDDLEWARE_FUNC) -> "MiddlewarePipeline":
        self._middleware_list[:0] = middlewares
        return self

    def copy(self) -> "MiddlewarePipeline":
        return MiddlewarePipeline(self._middleware_list)

    def compose(self, terminal_handler: NEXT_CALL) -> NEXT_CALL:
        """
        Nests the middleware by index in the order defined in _middleware_list
        and returns the outermost handler. The list is snapshotted, so changes
        made to the pipeline afterwards do not affect the returned handler.
        """
        chain = tuple(self._middleware_list)

        async def _run(index: int, req: RequestExchange) -> RequestExchange:
            if index < len(chain):
                mw = chain[index]

                async def next_step(r: RequestExchange) -> RequestExchange:
                    return await _run(index + 1, r)

                return await mw(req, next_step)
            else:
                return await terminal_handler(req)

        async def handler(req: RequestExchange) -> RequestExchange:
            return await _run(0, req)

        return handler

    async def execute(
        self,
        initial: RequestExchange,
        terminal_handler: NEXT_CALL,
    ) -> RequestExchange:
        return await self.compose(terminal_handler)(initial)
