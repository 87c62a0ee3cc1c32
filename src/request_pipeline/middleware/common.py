import base64
import inspect
from typing import Awaitable, Callable, Mapping

from yarl import URL

from request_pipeline.middleware.pipeline import (
    NEXT_CALL,
    Middleware,
    MiddlewareFactory,
    MiddlewareType,
)
from request_pipeline.models import Request, RequestExchange, Response
from request_pipeline.state import ExecutionState, MockEndpoint


# Standard middleware - these middleware objects mutate requests or configure the call

TokenSource = str | Callable[[], str] | Callable[[], Awaitable[str]]


@MiddlewareFactory.register(MiddlewareType.HEADER)
class HeaderMiddleware(Middleware):
    """Set request headers, replacing existing values case-insensitively."""

    def __init__(self, headers: Mapping[str, str]) -> None:
        self.headers = dict(headers)

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        request_exchange.request.set_headers(self.headers)
        return await next_call(request_exchange)


@MiddlewareFactory.register(MiddlewareType.BASIC_AUTH)
class BasicAuthMiddleware(Middleware):

    def __init__(self, username: str, password: str) -> None:
        self.username = username
        self.password = password

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        raw_credentials = f"{self.username}:{self.password}"
        b64_credentials = base64.b64encode(raw_credentials.encode("utf-8")).decode("utf-8")
        request_exchange.request.headers["Authorization"] = f"Basic {b64_credentials}"
        return await next_call(request_exchange)


@MiddlewareFactory.register(MiddlewareType.BEARER)
class BearerTokenMiddleware(Middleware):
    """
    Inject a bearer token into the Authorization header. The token may be a
    fixed string or a (sync or async) callable resolved once per call.
    """

    def __init__(self, token: TokenSource) -> None:
        self.token = token

    async def _resolve(self) -> str:
        if isinstance(self.token, str):
            return self.token
        value = self.token()
        if inspect.isawaitable(value):
            value = await value
        return value

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        token_value = await self._resolve()
        request_exchange.request.headers["Authorization"] = f"Bearer {token_value}"
        return await next_call(request_exchange)


@MiddlewareFactory.register(MiddlewareType.TIMEOUT)
class TimeoutMiddleware(Middleware):
    """Sets the timeout (seconds) of the call. 0 disables the timeout."""

    def __init__(self, timeout: float) -> None:
        if timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        self.timeout = timeout

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        ExecutionState.attach(request_exchange.request).timeout = self.timeout
        return await next_call(request_exchange)


class MockMiddleware(Middleware):
    """
    Installs a mock endpoint on the call. The executor then skips the
    transport and uses the mock's response (or raised error) instead.
    """

    def __init__(self, endpoint: MockEndpoint) -> None:
        self.endpoint = endpoint

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        ExecutionState.attach(request_exchange.request).mock_endpoint = self.endpoint
        return await next_call(request_exchange)


class BeforeHookMiddleware(Middleware):

    def __init__(self, hook: Callable[[Request], None]) -> None:
        self.hook = hook

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        self.hook(request_exchange.request)
        return await next_call(request_exchange)


class AfterHookMiddleware(Middleware):
    """Runs hook on the final response of a call that ended without error."""

    def __init__(self, hook: Callable[[Response], None]) -> None:
        self.hook = hook

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        result = await next_call(request_exchange)
        if result.error is None and result.response is not None:
            self.hook(result.response)
        return result


class DropQueryMiddleware(Middleware):
    """Removes every value of a query parameter from the request URL."""

    def __init__(self, key: str) -> None:
        self.key = key

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        request = request_exchange.request
        url = URL(request.url)
        if self.key in url.query:
            kept = [(k, v) for k, v in url.query.items() if k != self.key]
            request.url = str(url.with_query(kept))
        return await next_call(request_exchange)
