# Middleware components that observe but do not change the request or response
import logging
import time

from request_pipeline.middleware.pipeline import (
    NEXT_CALL,
    Middleware,
    MiddlewareFactory,
    MiddlewareType,
)
from request_pipeline.models import RequestExchange


@MiddlewareFactory.register(MiddlewareType.LOGGING)
class LoggingMiddleware(Middleware):
    """
    Allows logging from either direction in the middleware pipeline. Lines are
    added to RequestExchange.metadata["logs"] and, when a logger is given,
    written to it as well.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger

    def _emit(self, request_exchange: RequestExchange, line: str) -> None:
        request_exchange.metadata.setdefault("logs", []).append(line)
        if self._logger is not None:
            self._logger.info(line)

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        request = request_exchange.request
        self._emit(request_exchange, f"-> {request.method} {request.url}")

        result = await next_call(request_exchange)

        if result.error is None and result.response is not None:
            self._emit(result, f"<- {result.response.status} {result.request.url}")
        else:
            self._emit(result, f"<- FAILED {result.request.url}: {result.error}")

        return result


@MiddlewareFactory.register(MiddlewareType.TIMING)
class TimingMiddleware(Middleware):
    """
    Measure the elapsed time for the downstream pipeline and store
    the timing info in RequestExchange.metadata["timing"]
    """

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        start = time.monotonic()
        result: RequestExchange = await next_call(request_exchange)
        end = time.monotonic()
        duration = end - start

        timing = dict(result.metadata.get("timing", {}))
        timing["total_seconds"] = float(f"{duration:.2f}")
        result.metadata["timing"] = timing
        return result
