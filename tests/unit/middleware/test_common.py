"""Unit tests for request-shaping and listener middleware"""
import base64

import pytest

from core.exceptions import TransportError
from request_pipeline.middleware import (
    AfterHookMiddleware,
    BasicAuthMiddleware,
    BearerTokenMiddleware,
    BeforeHookMiddleware,
    DropQueryMiddleware,
    HeaderMiddleware,
    LoggingMiddleware,
    MiddlewareFactory,
    MiddlewarePipeline,
    MiddlewareType,
    RetryMiddleware,
    TimeoutMiddleware,
    TimingMiddleware,
)
from tests.fixtures.pipeline import base_exchange, terminal_handler_ok


async def run(*middlewares, terminal=terminal_handler_ok, exchange=None):
    return await MiddlewarePipeline(middlewares).execute(exchange or base_exchange(), terminal)


@pytest.mark.unit
@pytest.mark.middleware
class TestInjectors:
    """Tests for middleware that change the outgoing request"""

    @pytest.mark.asyncio
    async def test_header_replaces_case_insensitively(self):
        exchange = base_exchange()
        exchange.request.headers["content-type"] = "text/plain"

        result = await run(HeaderMiddleware({"Content-Type": "application/json"}), exchange=exchange)

        assert result.request.headers.getall("Content-Type") == ["application/json"]

    @pytest.mark.asyncio
    async def test_basic_auth_header(self):
        result = await run(BasicAuthMiddleware("user", "pass"))

        expected = base64.b64encode(b"user:pass").decode()
        assert result.request.headers["Authorization"] == f"Basic {expected}"

    @pytest.mark.asyncio
    async def test_bearer_token_from_async_provider(self):
        async def provide() -> str:
            return "fresh-token"

        result = await run(BearerTokenMiddleware(provide))

        assert result.request.headers["Authorization"] == "Bearer fresh-token"

    @pytest.mark.asyncio
    async def test_bearer_token_from_string(self):
        result = await run(BearerTokenMiddleware("static"))

        assert result.request.headers["Authorization"] == "Bearer static"

    @pytest.mark.asyncio
    async def test_drop_query_removes_every_value(self):
        exchange = base_exchange()
        exchange.request.url = "https://example.com/a?token=1&x=2&token=3"

        result = await run(DropQueryMiddleware("token"), exchange=exchange)

        assert result.request.url == "https://example.com/a?x=2"

    @pytest.mark.asyncio
    async def test_timeout_written_to_state(self):
        result = await run(TimeoutMiddleware(1.5), TimeoutMiddleware(0))

        assert result.state.timeout == 0

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError):
            TimeoutMiddleware(-1)


@pytest.mark.unit
@pytest.mark.middleware
class TestHooks:

    @pytest.mark.asyncio
    async def test_before_hook_sees_request(self):
        seen = []

        await run(BeforeHookMiddleware(lambda req: seen.append(req.method)))

        assert seen == ["GET"]

    @pytest.mark.asyncio
    async def test_after_hook_skipped_on_error(self):
        seen = []

        async def failing(req):
            req.error = TransportError("down")
            return req

        await run(AfterHookMiddleware(lambda resp: seen.append(resp.status)), terminal=failing)
        await run(AfterHookMiddleware(lambda resp: seen.append(resp.status)))

        assert seen == [200]


@pytest.mark.unit
@pytest.mark.middleware
class TestListeners:
    """Tests for middleware that observe the call"""

    @pytest.mark.asyncio
    async def test_logging_middleware_records_both_directions(self):
        result = await run(LoggingMiddleware())

        assert result.metadata["logs"] == [
            "-> GET https://example.com/resource",
            "<- 200 https://example.com/resource",
        ]

    @pytest.mark.asyncio
    async def test_timing_middleware_records_duration(self):
        result = await run(TimingMiddleware())

        assert result.metadata["timing"]["total_seconds"] >= 0.0


@pytest.mark.unit
@pytest.mark.middleware
class TestMiddlewareFactory:

    def test_create_by_key(self):
        mw = MiddlewareFactory.create(MiddlewareType.RETRY, max_attempts=2)

        assert isinstance(mw, RetryMiddleware)
        assert mw.option.max_attempts == 2

    def test_create_by_plain_string(self):
        assert isinstance(MiddlewareFactory.create("timing"), TimingMiddleware)

    def test_unknown_key_raises(self):
        with pytest.raises(KeyError, match="no implementation registered"):
            MiddlewareFactory.create("does-not-exist")
