from __future__ import annotations
import io
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from request_pipeline.models import Request, Response


class RepeatableBuffer(io.BytesIO):
    """
    A byte stream that can back any number of sequential read passes.
    close() rewinds instead of discarding, so the same bytes are available
    to retry replay, tracing and application code alike.
    """

    def rewind(self) -> None:
        self.seek(0)

    def close(self) -> None:
        self.rewind()

    def read_all(self) -> bytes:
        """Read the whole buffer from the start and rewind for the next pass."""
        self.rewind()
        try:
            return self.read()
        finally:
            self.rewind()


def is_repeatable(body: IO[bytes] | None) -> bool:
    return body is None or isinstance(body, RepeatableBuffer)


def capture(body: IO[bytes] | None) -> tuple[bytes | None, RepeatableBuffer | None]:
    """
    Read a once-readable stream into a RepeatableBuffer. Returns the bytes and
    the buffer that should replace the original stream.
    """
    if body is None:
        return None, None
    if isinstance(body, RepeatableBuffer):
        return body.read_all(), body

    try:
        data = body.read()
    finally:
        body.close()
    return data, RepeatableBuffer(data)


def read_request_body(request: Request) -> bytes | None:
    """
    Return the request body, installing a RepeatableBuffer on first use so
    every later reader observes the identical byte sequence.
    """
    data, buffer = capture(request.body)
    request.body = buffer
    return data


def read_response_body(response: Response | None) -> bytes | None:
    """Response-side counterpart of read_request_body."""
    if response is None:
        return None
    data, buffer = capture(response.body)
    response.body = buffer
    return data
