from request_pipeline.middleware.pipeline import NEXT_CALL, Middleware, MiddlewarePipeline
from request_pipeline.middleware.retry import RetryEngine
from request_pipeline.middleware.status import StatusCodeFilter
from request_pipeline.middleware.tracing import TracingStage
from request_pipeline.models import RequestExchange
from request_pipeline.state import ExecutionState


class StateInitializer(Middleware):
    """Outermost stage: attaches the ExecutionState before any user middleware runs."""

    async def __call__(self, request_exchange: RequestExchange, next_call: NEXT_CALL) -> RequestExchange:
        ExecutionState.attach(request_exchange.request)
        return await next_call(request_exchange)


def internal_stages() -> list[Middleware]:
    """Fixed stages between the user middleware and the executor, outermost first."""
    return [TracingStage(), RetryEngine(), StatusCodeFilter()]


def build_handler(
    client_pipeline: MiddlewarePipeline,
    call_pipeline: MiddlewarePipeline,
    executor: NEXT_CALL,
) -> NEXT_CALL:
    """
    Compose the handler of one call, outermost to innermost:
    state initializer, client-level middleware, per-call middleware,
    tracer, retry engine, status-code filter, executor.

    Per-call middleware runs closer to the executor than client-level
    middleware, so the settings it writes into the ExecutionState win.

    The status-code filter sits inside the retry engine and judges every
    attempt, so a retry predicate receives the StatusCodeError of a
    disallowed response. The final exchange matches what a filter placed
    outside the retry engine would produce.
    """
    pipeline = MiddlewarePipeline([StateInitializer()])
    pipeline.append(*client_pipeline.middlewares)
    pipeline.append(*call_pipeline.middlewares)
    pipeline.append(*internal_stages())
    return pipeline.compose(executor)
