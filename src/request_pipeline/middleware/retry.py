from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import Callable, Iterable

from core.exceptions import (
    PipelineError,
    RequestCancelledError,
    RequestConstructionError,
    TransportError,
)
from request_pipeline.body import RepeatableBuffer
from request_pipeline.middleware.pipeline import (
    NEXT_CALL,
    Middleware,
    MiddlewareFactory,
    MiddlewareType,
)
from request_pipeline.models import Request, RequestExchange, Response
from request_pipeline.state import ExecutionState


logger = logging.getLogger(__name__)

ShouldRetry = Callable[[Response | None, PipelineError | None], bool]

# keeps min_wait * 2**n finite for very long retry budgets
_MAX_EXPONENT = 62


@dataclass(frozen=True)
class RetryOption:
    """
    Retry policy of a call.
    • max_attempts: retries allowed after the first attempt (0 disables retries)
    • min_wait / max_wait: bounds in seconds of the jittered exponential backoff
    • should_retry: predicate over the attempt's (response, error); when absent
      only transport errors without a received response are retried
    """
    max_attempts: int = 0
    min_wait: float = 1.0
    max_wait: float = 30.0
    should_retry: ShouldRetry | None = None


def default_should_retry(response: Response | None, error: PipelineError | None) -> bool:
    """Retry on transport errors only, never on a received response."""
    return response is None and isinstance(error, TransportError)


def compute_backoff(option: RetryOption, retry_index: int) -> float:
    """
    Exponential growth of min_wait bounded above by max_wait, with random
    jitter so concurrent callers do not retry in lockstep.
    """
    min_wait = max(0.0, option.min_wait)
    max_wait = max(min_wait, option.max_wait)
    bound = min(max_wait, min_wait * (2 ** min(retry_index, _MAX_EXPONENT)))
    if bound <= min_wait:
        return bound
    return random.uniform(min_wait, bound)


class RetryEngine(Middleware):
    """
    Internal retry stage. Drives the per-call state machine
    Attempting -> Evaluating -> (Retrying | Done) around the inner stages.

    Attempts are strictly sequential and share the call's ExecutionState.
    Before each retry the previous response is drained, the request body is
    rewound when it is a RepeatableBuffer, and every registered retry hook is
    run with the request and the zero-based retry index.
    """

    def _should_retry(
        self,
        request_exchange: RequestExchange,
        option: RetryOption | None,
        retry_index: int,
    ) -> bool:
        if option is None or option.max_attempts <= 0:
            return False
        if retry_index >= option.max_attempts:
            return False

        error = request_exchange.error
        if isinstance(error, (RequestCancelledError, RequestConstructionError)):
            return False
        if request_exchange.request.context.cancelled:
            return False

        predicate = option.should_retry or default_should_retry
        return bool(predicate(request_exchange.response, error))

    def _rewind_body(self, request: Request, retry_index: int) -> None:
        body = request.body
        if body is None:
            return
        if isinstance(body, RepeatableBuffer):
            body.rewind()
            return
        logger.warning(
            "Request body of %s %s is not repeatable; retry %d may send an empty body",
            request.method,
            request.url,
            retry_index + 1,
        )

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        request = request_exchange.request
        retry_index = 0

        while True:
            request_exchange = await next_call(request_exchange)

            state = request_exchange.state
            option = state.retry_option if state is not None else None
            if not self._should_retry(request_exchange, option, retry_index):
                request_exchange.metadata["retry_attempts"] = retry_index
                return request_exchange

            delay = compute_backoff(option, retry_index)
            logger.info(
                "Retrying %s %s (retry %d/%d) in %.3fs after %s",
                request.method,
                request.url,
                retry_index + 1,
                option.max_attempts,
                delay,
                request_exchange.error or request_exchange.status_code,
            )

            if request_exchange.response is not None:
                request_exchange.response.close()
                request_exchange.response = None

            self._rewind_body(request, retry_index)
            state.run_retry_hooks(request, retry_index)

            try:
                await request.context.sleep(delay)
            except RequestCancelledError as e:
                request_exchange.error = e
                request_exchange.metadata["retry_attempts"] = retry_index
                return request_exchange

            retry_index += 1


@MiddlewareFactory.register(MiddlewareType.RETRY)
class RetryMiddleware(Middleware):
    """
    Sets the retry policy of the call. The middleware closest to the executor
    wins, so a per-call RetryMiddleware overrides a client-level one.
    """

    def __init__(
        self,
        max_attempts: int = 0,
        min_wait: float = 1.0,
        max_wait: float = 30.0,
        should_retry: ShouldRetry | None = None,
        option: RetryOption | None = None,
        retry_status_codes: Iterable[int] = (),
    ) -> None:
        if should_retry is None and retry_status_codes:
            should_retry = retry_on_status(*retry_status_codes)
        self.option = option or RetryOption(
            max_attempts=max_attempts,
            min_wait=min_wait,
            max_wait=max_wait,
            should_retry=should_retry,
        )

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        ExecutionState.attach(request_exchange.request).retry_option = self.option
        return await next_call(request_exchange)


def retry_on_status(*codes: int) -> ShouldRetry:
    """Predicate retrying transport errors and responses carrying one of codes."""
    retry_codes = frozenset(codes)

    def should_retry(response: Response | None, error: PipelineError | None) -> bool:
        if default_should_retry(response, error):
            return True
        return response is not None and response.status in retry_codes

    return should_retry
