from __future__ import annotations
import json
import logging
from typing import IO, Any

from core.exceptions import DecodeError, PipelineError
from request_pipeline.body import RepeatableBuffer
from request_pipeline.models import RequestExchange, Response


logger = logging.getLogger(__name__)


class CallResult:
    """
    What a call hands back to application code: the terminal error (possibly
    None) next to a best-effort response that is never None.

    Consuming the body (read, text, json, save) is an explicit action. A plain
    body can be consumed once; later reads return empty data. A body captured
    into a RepeatableBuffer upstream returns the same bytes on every read.
    Body accessors raise the call error when there is one.
    """

    def __init__(
        self,
        response: Response | None,
        error: PipelineError | None = None,
        exchange: RequestExchange | None = None,
    ) -> None:
        self._response = response if response is not None else Response(status=0)
        self._error = error
        self._exchange = exchange

    @classmethod
    def from_exchange(cls, request_exchange: RequestExchange) -> "CallResult":
        return cls(request_exchange.response, request_exchange.error, request_exchange)

    def __repr__(self) -> str:
        return f"<CallResult status={self.status} error={self._error!r}>"

    @property
    def error(self) -> PipelineError | None:
        return self._error

    @property
    def response(self) -> Response:
        return self._response

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def headers(self):
        return self._response.headers

    @property
    def ok(self) -> bool:
        return self._error is None

    @property
    def attempts(self) -> int:
        return self._exchange.attempts if self._exchange is not None else 0

    @property
    def metadata(self) -> dict[str, Any]:
        return self._exchange.metadata if self._exchange is not None else {}

    def raise_for_error(self) -> None:
        if self._error is not None:
            raise self._error

    def _read_body(self) -> bytes:
        body = self._response.body
        if body is None or body.closed:
            return b""
        if isinstance(body, RepeatableBuffer):
            return body.read_all()
        try:
            return body.read()
        finally:
            body.close()

    def read(self) -> bytes:
        self.raise_for_error()
        return self._read_body()

    def text(self, encoding: str | None = None) -> str:
        data = self.read()
        if encoding is None:
            encoding = _charset(self._response) or "utf-8"
        try:
            return data.decode(encoding, errors="replace")
        except LookupError:
            logger.debug("Unknown charset %r, decoding body as utf-8", encoding)
            return data.decode("utf-8", errors="replace")

    def json(self) -> Any:
        data = self.read()
        try:
            return json.loads(data)
        except (ValueError, UnicodeDecodeError) as e:
            url = self._response.request.url if self._response.request is not None else ""
            raise DecodeError(
                f"unmarshal body {data[:256]!r} fail: {e}, url={url} "
                f"response_code={self._response.status_line}"
            ) from e

    def save(self, writer: IO[bytes] | None = None) -> int:
        """Write the body to writer (or discard it when writer is None); returns the byte count."""
        data = self.read()
        if writer is not None:
            writer.write(data)
        return len(data)

    def close(self) -> None:
        self._response.close()


def _charset(response: Response) -> str | None:
    content_type = response.headers.get("Content-Type", "")
    for part in content_type.split(";")[1:]:
        name, _, value = part.strip().partition("=")
        if name.lower() == "charset" and value:
            return value.strip('"')
    return None
