from request_pipeline.middleware.pipeline import (
    MIDDLEWARE_FUNC,
    NEXT_CALL,
    Middleware,
    MiddlewareFactory,
    MiddlewarePipeline,
    MiddlewareType,
)
from request_pipeline.middleware.common import (
    AfterHookMiddleware,
    BasicAuthMiddleware,
    BearerTokenMiddleware,
    BeforeHookMiddleware,
    DropQueryMiddleware,
    HeaderMiddleware,
    MockMiddleware,
    TimeoutMiddleware,
)
from request_pipeline.middleware.listeners import LoggingMiddleware, TimingMiddleware
from request_pipeline.middleware.retry import (
    RetryEngine,
    RetryMiddleware,
    RetryOption,
    compute_backoff,
    default_should_retry,
    retry_on_status,
)
from request_pipeline.middleware.status import (
    AllowStatusMiddleware,
    BlockStatusMiddleware,
    StatusCodeFilter,
    allow_status_codes,
    block_status_codes,
)
from request_pipeline.middleware.tracing import (
    DebugMiddleware,
    LoggingTracer,
    TraceRecord,
    Tracer,
    TracingStage,
    format_trace,
)
from request_pipeline.middleware.internal import StateInitializer, build_handler

__all__ = [
    "MIDDLEWARE_FUNC",
    "NEXT_CALL",
    "Middleware",
    "MiddlewareFactory",
    "MiddlewarePipeline",
    "MiddlewareType",
    "AfterHookMiddleware",
    "BasicAuthMiddleware",
    "BearerTokenMiddleware",
    "BeforeHookMiddleware",
    "DropQueryMiddleware",
    "HeaderMiddleware",
    "MockMiddleware",
    "TimeoutMiddleware",
    "LoggingMiddleware",
    "TimingMiddleware",
    "RetryEngine",
    "RetryMiddleware",
    "RetryOption",
    "compute_backoff",
    "default_should_retry",
    "retry_on_status",
    "AllowStatusMiddleware",
    "BlockStatusMiddleware",
    "StatusCodeFilter",
    "allow_status_codes",
    "block_status_codes",
    "DebugMiddleware",
    "LoggingTracer",
    "TraceRecord",
    "Tracer",
    "TracingStage",
    "format_trace",
    "StateInitializer",
    "build_handler",
]
