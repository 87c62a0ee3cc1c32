from typing import Collection, Iterable

from core.exceptions import StatusCodeError
from request_pipeline.body import read_response_body
from request_pipeline.middleware.pipeline import (
    NEXT_CALL,
    Middleware,
    MiddlewareFactory,
    MiddlewareType,
)
from request_pipeline.models import RequestExchange
from request_pipeline.state import ExecutionState


# bytes of the response body copied into a StatusCodeError message
BODY_PREFIX_LIMIT = 1024


def is_status_allowed(status: int, allowed: Collection[int], blocked: Collection[int]) -> bool:
    if allowed and status not in allowed:
        return False
    return status not in blocked


class StatusCodeFilter(Middleware):
    """
    Internal stage applying the status-code policy of the call to every
    attempt. A disallowed response stays on the exchange next to the
    StatusCodeError, and its body is captured into a RepeatableBuffer so it
    remains readable after the error message has been built.
    """

    def __init__(self, body_prefix_limit: int = BODY_PREFIX_LIMIT) -> None:
        self.body_prefix_limit = body_prefix_limit

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        request_exchange = await next_call(request_exchange)

        state = request_exchange.state
        response = request_exchange.response
        if state is None or response is None or request_exchange.error is not None:
            return request_exchange

        if is_status_allowed(response.status, state.allowed_status_codes, state.blocked_status_codes):
            return request_exchange

        body = read_response_body(response) or b""
        request_exchange.error = StatusCodeError(
            response.status,
            response.reason,
            body[: self.body_prefix_limit],
        )
        return request_exchange


@MiddlewareFactory.register(MiddlewareType.ALLOW_STATUS)
class AllowStatusMiddleware(Middleware):
    """Adds codes to the allowed set of the call. An empty allowed set lets every code through."""

    def __init__(self, codes: Iterable[int] = ()) -> None:
        self.codes = frozenset(int(c) for c in codes)

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        ExecutionState.attach(request_exchange.request).allowed_status_codes.update(self.codes)
        return await next_call(request_exchange)


@MiddlewareFactory.register(MiddlewareType.BLOCK_STATUS)
class BlockStatusMiddleware(Middleware):
    """Adds codes to the blocked set of the call."""

    def __init__(self, codes: Iterable[int] = ()) -> None:
        self.codes = frozenset(int(c) for c in codes)

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        ExecutionState.attach(request_exchange.request).blocked_status_codes.update(self.codes)
        return await next_call(request_exchange)


def allow_status_codes(*codes: int) -> AllowStatusMiddleware:
    return AllowStatusMiddleware(codes)


def block_status_codes(*codes: int) -> BlockStatusMiddleware:
    return BlockStatusMiddleware(codes)
