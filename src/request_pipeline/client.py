from __future__ import annotations
import json
import logging
from typing import IO, Any, Awaitable, Callable, Mapping
from urllib.parse import urlencode

from typing_extensions import Self

from core.exceptions import RequestConstructionError
from request_pipeline.context import CallContext
from request_pipeline.executor import DEFAULT_TIMEOUT, HandlePool, PooledExecutor
from request_pipeline.middleware.common import (
    AfterHookMiddleware,
    BeforeHookMiddleware,
    DropQueryMiddleware,
    HeaderMiddleware,
    MockMiddleware,
    TimeoutMiddleware,
)
from request_pipeline.middleware.internal import build_handler
from request_pipeline.middleware.pipeline import MIDDLEWARE_FUNC, MiddlewarePipeline
from request_pipeline.middleware.retry import RetryMiddleware, RetryOption
from request_pipeline.middleware.tracing import DebugMiddleware, Tracer
from request_pipeline.models import Request, RequestExchange, RequestType, Response
from request_pipeline.result import CallResult
from request_pipeline.rewriter import ProtocolRegistry
from request_pipeline.state import MockEndpoint
from request_pipeline.transport.base import TransportEngine
from request_pipeline.transport.engine import AiohttpEngine


Doer = Callable[[Request], Awaitable[Response]]

CLIENT_DEFAULT_TIMEOUT = 5.0


class CallOptions:
    """
    Middleware that applies to a single call. Options run after the
    client-level middleware, so a setting made here overrides the client's.
    """

    def __init__(self, middlewares: list[MIDDLEWARE_FUNC] | None = None) -> None:
        self.pipeline = MiddlewarePipeline(middlewares)

    def add(self, *middlewares: MIDDLEWARE_FUNC) -> Self:
        self.pipeline.append(*middlewares)
        return self

    def prepend(self, *middlewares: MIDDLEWARE_FUNC) -> Self:
        self.pipeline.prepend(*middlewares)
        return self

    def timeout(self, seconds: float) -> Self:
        return self.add(TimeoutMiddleware(seconds))

    def retry(self, option: RetryOption) -> Self:
        return self.add(RetryMiddleware(option=option))

    def header(self, name: str, value: str) -> Self:
        return self.add(HeaderMiddleware({name: value}))

    def headers(self, headers: Mapping[str, str]) -> Self:
        return self.add(HeaderMiddleware(headers))

    def before_hook(self, hook: Callable[[Request], None]) -> Self:
        return self.add(BeforeHookMiddleware(hook))

    def after_hook(self, hook: Callable[[Response], None]) -> Self:
        return self.add(AfterHookMiddleware(hook))

    def without_query(self, key: str) -> Self:
        return self.add(DropQueryMiddleware(key))

    def mock(self, endpoint: MockEndpoint) -> Self:
        return self.add(MockMiddleware(endpoint))

    def debug(self, tracer: Tracer | None = None) -> Self:
        return self.add(DebugMiddleware(tracer))


def _with_header(options: CallOptions | None, name: str, value: str) -> CallOptions:
    """A header placed ahead of the caller's options so the caller can still override it."""
    merged = CallOptions([HeaderMiddleware({name: value})])
    if options is not None:
        merged.add(*options.pipeline.middlewares)
    return merged


class HttpClient:
    """
    Facade over the request pipeline. The client is a thin orchestration layer:
    • Owns the client-level middleware pipeline.
    • Owns (or is given) the transport engine and the handle pool it shares with forks.
    • Rewrites URLs through its ProtocolRegistry before building requests.
    • Hands every call back as a CallResult instead of raising.

    A new client carries a 5 second default timeout as its first middleware.
    """

    def __init__(
        self,
        transport: TransportEngine | None = None,
        *,
        registry: ProtocolRegistry | None = None,
        pool: HandlePool | None = None,
        timeout: float | None = CLIENT_DEFAULT_TIMEOUT,
        default_timeout: float | None = DEFAULT_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        self.transport = transport or AiohttpEngine()
        self.registry = registry or ProtocolRegistry()
        self._pool = pool if pool is not None else HandlePool()
        self._executor = PooledExecutor(self.transport, self._pool, default_timeout)
        self._pipeline = MiddlewarePipeline()
        self._logger = logger or logging.getLogger(self.__class__.__name__)
        if timeout is not None:
            self.set_timeout(timeout)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.transport.close()

    @property
    def pipeline(self) -> MiddlewarePipeline:
        return self._pipeline

    @property
    def pool(self) -> HandlePool:
        return self._pool

    def fork(self, with_middlewares: bool = True) -> "HttpClient":
        """
        New client sharing this client's transport, handle pool and registry.
        Middleware is copied when with_middlewares is set; later changes to
        either client never reach the other.
        """
        forked = HttpClient(
            self.transport,
            registry=self.registry,
            pool=self._pool,
            timeout=None,
            default_timeout=self._executor.default_timeout,
            logger=self._logger,
        )
        if with_middlewares:
            forked._pipeline = self._pipeline.copy()
        return forked

    # -- client-level configuration ------------------------------------------

    def add_middleware(self, *middlewares: MIDDLEWARE_FUNC) -> Self:
        self._pipeline.append(*middlewares)
        return self

    def prepend_middleware(self, *middlewares: MIDDLEWARE_FUNC) -> Self:
        self._pipeline.prepend(*middlewares)
        return self

    def set_timeout(self, seconds: float) -> Self:
        return self.add_middleware(TimeoutMiddleware(seconds))

    def set_mock(self, endpoint: MockEndpoint) -> Self:
        return self.add_middleware(MockMiddleware(endpoint))

    def set_debug(self, tracer: Tracer | None = None) -> Self:
        return self.add_middleware(DebugMiddleware(tracer))

    def set_retry(self, option: RetryOption) -> Self:
        return self.add_middleware(RetryMiddleware(option=option))

    def set_header(self, name: str, value: str) -> Self:
        return self.add_middleware(HeaderMiddleware({name: value}))

    def set_headers(self, headers: Mapping[str, str]) -> Self:
        return self.add_middleware(HeaderMiddleware(headers))

    def add_before_hook(self, hook: Callable[[Request], None]) -> Self:
        return self.add_middleware(BeforeHookMiddleware(hook))

    def add_after_hook(self, hook: Callable[[Response], None]) -> Self:
        return self.add_middleware(AfterHookMiddleware(hook))

    def _engine(self) -> AiohttpEngine:
        if not isinstance(self.transport, AiohttpEngine):
            raise TypeError(
                f"connection settings need an AiohttpEngine, got {type(self.transport).__name__}"
            )
        return self.transport

    def disable_keep_alive(self, disable: bool = True) -> Self:
        self._engine().update_connector(force_close=disable)
        return self

    def set_max_idle_conns(self, count: int) -> Self:
        if count > 0:
            self._engine().update_connector(limit=count)
        return self

    def set_idle_conn_timeout(self, seconds: float) -> Self:
        if seconds > 0:
            self._engine().update_connector(keepalive_timeout=seconds)
        return self

    # -- calls ---------------------------------------------------------------

    async def _execute(self, request: Request, options: CallOptions | None) -> RequestExchange:
        call_pipeline = options.pipeline if options is not None else MiddlewarePipeline()
        handler = build_handler(self._pipeline, call_pipeline, self._executor)
        return await handler(RequestExchange(request=request))

    async def do_request(self, request: Request, options: CallOptions | None = None) -> CallResult:
        """Run an already built request through the pipeline."""
        request_exchange = await self._execute(request, options)
        if request_exchange.error is not None:
            self._logger.debug(
                "%s %s failed after %d attempt(s): %s",
                request.method, request.url, request_exchange.attempts, request_exchange.error,
            )
        return CallResult.from_exchange(request_exchange)

    async def do(
        self,
        method: str | RequestType,
        url: str,
        body: bytes | IO[bytes] | None = None,
        *,
        options: CallOptions | None = None,
        context: CallContext | None = None,
    ) -> CallResult:
        """
        Build and run a request. A request that cannot be built is never sent:
        the result carries the construction error and no attempt is made.
        """
        context = context or CallContext()
        url = self.registry.rewrite(str(url), context)
        try:
            request = Request.build(method, url, body, context=context)
        except RequestConstructionError as e:
            self._logger.debug("Could not build %s %s: %s", method, url, e)
            return CallResult(None, e)
        return await self.do_request(request, options)

    async def get(
        self, url: str, *, options: CallOptions | None = None, context: CallContext | None = None
    ) -> CallResult:
        return await self.do(RequestType.GET, url, options=options, context=context)

    async def delete(
        self,
        url: str,
        body: bytes | IO[bytes] | None = None,
        *,
        options: CallOptions | None = None,
        context: CallContext | None = None,
    ) -> CallResult:
        return await self.do(RequestType.DELETE, url, body, options=options, context=context)

    async def post(
        self,
        url: str,
        body: bytes | IO[bytes] | None = None,
        *,
        options: CallOptions | None = None,
        context: CallContext | None = None,
    ) -> CallResult:
        return await self.do(RequestType.POST, url, body, options=options, context=context)

    async def put(
        self,
        url: str,
        body: bytes | IO[bytes] | None = None,
        *,
        options: CallOptions | None = None,
        context: CallContext | None = None,
    ) -> CallResult:
        return await self.do(RequestType.PUT, url, body, options=options, context=context)

    async def post_json(
        self,
        url: str,
        data: Any = None,
        *,
        options: CallOptions | None = None,
        context: CallContext | None = None,
    ) -> CallResult:
        """
        POST data as JSON. str and bytes are sent as they are, a readable
        stream is read in full, anything else is serialized with json.dumps.
        """
        try:
            payload = _json_payload(data)
        except RequestConstructionError as e:
            self._logger.debug("Could not encode JSON body for %s: %s", url, e)
            return CallResult(None, e)

        return await self.post(
            url,
            payload,
            options=_with_header(options, "Content-Type", "application/json"),
            context=context,
        )

    async def post_form(
        self,
        url: str,
        data: Mapping[str, Any],
        *,
        options: CallOptions | None = None,
        context: CallContext | None = None,
    ) -> CallResult:
        """POST data url-encoded; values are converted with str()."""
        payload = urlencode({key: str(value) for key, value in data.items()}).encode("ascii")
        return await self.post(
            url,
            payload,
            options=_with_header(options, "Content-Type", "application/x-www-form-urlencoded"),
            context=context,
        )

    async def download(
        self,
        url: str,
        writer: IO[bytes],
        *,
        options: CallOptions | None = None,
        context: CallContext | None = None,
    ) -> int:
        """GET url and write the body to writer. Raises the call error; returns the byte count."""
        result = await self.get(url, options=options, context=context)
        return result.save(writer)

    def make_doer(self, options: CallOptions | None = None) -> Doer:
        """
        Adapt the client to a plain `await doer(request) -> Response` callable
        for code that expects a bare HTTP executor. Errors are raised.
        """

        async def doer(request: Request) -> Response:
            request_exchange = await self._execute(request, options)
            if request_exchange.error is not None:
                raise request_exchange.error
            return request_exchange.response or Response(status=0, request=request)

        return doer


def _json_payload(data: Any) -> bytes | None:
    if data is None:
        return None
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if hasattr(data, "read"):
        try:
            chunk = data.read()
        except (OSError, ValueError) as e:
            raise RequestConstructionError(f"read request body: {e}") from e
        return chunk.encode("utf-8") if isinstance(chunk, str) else chunk
    try:
        return json.dumps(data).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise RequestConstructionError(f"json encode request body: {e}") from e
