"""Unit tests for CallResult"""
import io

import pytest

from core.exceptions import DecodeError, StatusCodeError, TransportError
from request_pipeline.body import RepeatableBuffer
from request_pipeline.models import Request, RequestExchange, Response
from request_pipeline.result import CallResult


def result_with(body: bytes, headers=None, error=None, status: int = 200) -> CallResult:
    response = Response.from_bytes(body, status=status, headers=headers)
    response.request = Request.build("GET", "https://example.com/data")
    return CallResult(response, error)


@pytest.mark.unit
class TestCallResult:

    def test_response_is_never_none(self):
        result = CallResult(None, TransportError("refused"))

        assert result.response is not None
        assert result.status == 0
        assert not result.ok

    def test_plain_body_consumed_once(self):
        result = result_with(b"once")

        assert result.read() == b"once"
        assert result.read() == b""

    def test_repeatable_body_reads_again(self):
        response = Response(status=200, body=RepeatableBuffer(b"again"))
        result = CallResult(response)

        assert result.read() == b"again"
        assert result.read() == b"again"

    def test_body_accessors_raise_call_error(self):
        """
        GIVEN a result carrying a status error next to its response
        WHEN the body is read
        THEN the error is raised while the response remains inspectable
        """
        error = StatusCodeError(500, "Internal Server Error", b"BODY")
        result = result_with(b"BODY", error=error, status=500)

        with pytest.raises(StatusCodeError):
            result.read()
        with pytest.raises(StatusCodeError):
            result.raise_for_error()
        assert result.status == 500
        assert result.response.status_line == "500 Internal Server Error"

    def test_json_decodes(self):
        assert result_with(b'{"a": [1, 2]}').json() == {"a": [1, 2]}

    def test_json_failure_raises_decode_error(self):
        with pytest.raises(DecodeError, match="https://example.com/data"):
            result_with(b"<html>").json()

    def test_text_uses_declared_charset(self):
        result = result_with("héllo".encode("latin-1"), headers={"Content-Type": "text/plain; charset=latin-1"})

        assert result.text() == "héllo"

    def test_unknown_charset_falls_back_to_utf8(self):
        """
        GIVEN a response declaring a charset no codec exists for
        WHEN its text is read
        THEN the body is decoded as utf-8 instead of raising
        """
        result = result_with("héllo".encode("utf-8"), headers={"Content-Type": "text/plain; charset=bogus"})

        assert result.text() == "héllo"

    def test_explicit_unknown_encoding_falls_back_to_utf8(self):
        assert result_with(b"hi").text(encoding="no-such-codec") == "hi"

    def test_save_writes_to_writer(self):
        writer = io.BytesIO()

        written = result_with(b"file contents").save(writer)

        assert written == len(b"file contents")
        assert writer.getvalue() == b"file contents"

    def test_exchange_details_exposed(self):
        request = Request.build("GET", "https://example.com")
        exchange = RequestExchange(request=request, response=Response(), attempts=3, metadata={"k": "v"})

        result = CallResult.from_exchange(exchange)

        assert result.attempts == 3
        assert result.metadata == {"k": "v"}
        assert result.ok

    def test_close_releases_body(self):
        result = result_with(b"unread")

        result.close()

        assert result.read() == b""
