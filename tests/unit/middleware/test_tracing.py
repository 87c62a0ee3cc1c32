"""Unit tests for call tracing"""
import logging

import pytest

from core.exceptions import TransportError
from request_pipeline.executor import PooledExecutor
from request_pipeline.middleware import (
    DebugMiddleware,
    LoggingTracer,
    MiddlewarePipeline,
    MockMiddleware,
    TraceRecord,
    build_handler,
    format_trace,
)
from request_pipeline.models import RequestExchange
from tests.fixtures.pipeline import (
    FailingTracer,
    FakeTransportEngine,
    RecordingTracer,
    ScriptedEndpoint,
    make_request,
)


async def run_call(request, *middlewares) -> RequestExchange:
    handler = build_handler(
        MiddlewarePipeline(),
        MiddlewarePipeline(middlewares),
        PooledExecutor(FakeTransportEngine()),
    )
    return await handler(RequestExchange(request=request))


@pytest.mark.unit
@pytest.mark.middleware
class TestTracingStage:

    @pytest.mark.asyncio
    async def test_tracer_receives_request_and_response(self):
        """
        GIVEN a call with a tracer installed
        WHEN the call completes
        THEN the tracer sees both bodies and the bodies remain readable
        """
        tracer = RecordingTracer()
        request = make_request("POST", body=b"ping")
        endpoint = ScriptedEndpoint((200, b"pong"))

        result = await run_call(request, MockMiddleware(endpoint), DebugMiddleware(tracer))

        [record] = tracer.records
        assert record.method == "POST"
        assert record.request_body == b"ping"
        assert record.response_body == b"pong"
        assert record.status_line == "200 OK"
        assert record.attempts == 1
        assert endpoint.bodies == [b"ping"]
        assert result.response.body.read() == b"pong"

    @pytest.mark.asyncio
    async def test_failing_tracer_never_fails_the_call(self, caplog):
        """
        GIVEN a tracer that raises
        WHEN the call completes
        THEN the call result is unaffected and the failure is logged
        """
        endpoint = ScriptedEndpoint((200, b"fine"))

        with caplog.at_level(logging.WARNING):
            result = await run_call(make_request(), MockMiddleware(endpoint), DebugMiddleware(FailingTracer()))

        assert result.error is None
        assert result.status_code == 200
        assert "failed" in caplog.text

    @pytest.mark.asyncio
    async def test_error_is_traced(self):
        tracer = RecordingTracer()
        endpoint = ScriptedEndpoint(ConnectionError("refused"))

        await run_call(make_request(), MockMiddleware(endpoint), DebugMiddleware(tracer))

        [record] = tracer.records
        assert isinstance(record.error, TransportError)
        assert record.status_line is None


@pytest.mark.unit
@pytest.mark.middleware
class TestTraceFormatting:

    def test_format_trace_lists_both_directions(self):
        record = TraceRecord(
            method="GET",
            url="https://example.com/a",
            request_headers={"Accept": "*/*"},
            status_line="200 OK",
            response_headers={"Content-Type": "text/plain"},
            response_body=b"hello\nworld",
            attempts=1,
        )

        text = format_trace(record)

        assert text.splitlines()[:6] == [
            "> GET https://example.com/a",
            "> Accept: */*",
            "< 200 OK",
            "< Content-Type: text/plain",
            "< hello",
            "< world",
        ]
        assert text.splitlines()[-1].startswith("* attempts=1")

    def test_long_body_is_truncated(self):
        record = TraceRecord(method="GET", url="/", response_body=b"abcdef", status_line="200 OK")

        text = format_trace(record, body_limit=3)

        assert "< abc... (3 more bytes)" in text

    def test_logging_tracer_writes_to_logger(self, caplog):
        tracer = LoggingTracer(logger=logging.getLogger("trace.test"))

        with caplog.at_level(logging.INFO, logger="trace.test"):
            tracer.trace(TraceRecord(method="DELETE", url="https://example.com/x"))

        assert "> DELETE https://example.com/x" in caplog.text
