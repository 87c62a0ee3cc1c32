"""Unit tests for request/response containers and execution state"""
import pytest

from core.exceptions import RequestConstructionError
from request_pipeline.body import RepeatableBuffer
from request_pipeline.models import Request, RequestExchange, RequestType, Response
from request_pipeline.state import UNSET, ExecutionState


@pytest.mark.unit
class TestRequestBuild:

    def test_bytes_body_becomes_repeatable(self):
        request = Request.build(RequestType.POST, "https://example.com", b"data")

        assert isinstance(request.body, RepeatableBuffer)
        assert request.method == "POST"

    @pytest.mark.parametrize("method", ["BAD METHOD", "", "GET\n"])
    def test_invalid_method_rejected(self, method):
        with pytest.raises(RequestConstructionError, match="invalid method"):
            Request.build(method, "https://example.com")

    def test_control_character_in_url_rejected(self):
        """
        GIVEN a URL containing a control character
        WHEN the request is built
        THEN a construction error names the problem
        """
        with pytest.raises(RequestConstructionError, match="invalid control character in URL"):
            Request.build("GET", "http://example.com/\x7f")

    def test_headers_are_case_insensitive(self):
        request = Request.build("GET", "https://example.com", headers={"X-Trace": "1"})

        assert request.headers["x-trace"] == "1"


@pytest.mark.unit
class TestResponse:

    def test_reason_defaults_from_status(self):
        assert Response(status=404).reason == "Not Found"
        assert Response(status=599).reason == ""

    def test_close_drains_body(self):
        response = Response.from_bytes(b"unread")

        response.close()

        assert response.body.closed


@pytest.mark.unit
class TestExecutionState:

    def test_attach_is_idempotent(self):
        request = Request.build("GET", "https://example.com")
        assert ExecutionState.of(request) is None

        first = ExecutionState.attach(request)
        second = ExecutionState.attach(request)

        assert first is second
        assert request.state is first
        assert ExecutionState.of(request) is first

    def test_unset_timeout_differs_from_zero(self):
        state = ExecutionState()
        assert state.timeout is UNSET
        assert not state.has_timeout

        state.timeout = 0
        assert state.has_timeout

    def test_retry_hooks_run_in_order(self):
        request = Request.build("GET", "https://example.com")
        calls = []
        request.add_retry_hook(lambda req, n: calls.append(("a", n)))
        request.add_retry_hook(lambda req, n: calls.append(("b", n)))

        request.state.run_retry_hooks(request, 3)

        assert calls == [("a", 3), ("b", 3)]

    def test_exchange_success_flag(self):
        request = Request.build("GET", "https://example.com")
        exchange = RequestExchange(request=request)
        assert not exchange.success

        exchange.response = Response()
        assert exchange.success
        assert exchange.status_code == 200
