from request_pipeline.body import RepeatableBuffer, read_request_body, read_response_body
from request_pipeline.client import CallOptions, HttpClient
from request_pipeline.context import CallContext
from request_pipeline.executor import DEFAULT_TIMEOUT, ExecutionHandle, HandlePool, PooledExecutor
from request_pipeline.models import Request, RequestExchange, RequestType, Response
from request_pipeline.result import CallResult
from request_pipeline.rewriter import ProtocolRegistry
from request_pipeline.state import UNSET, ExecutionState, MockEndpoint

__all__ = [
    "RepeatableBuffer",
    "read_request_body",
    "read_response_body",
    "CallOptions",
    "HttpClient",
    "CallContext",
    "DEFAULT_TIMEOUT",
    "ExecutionHandle",
    "HandlePool",
    "PooledExecutor",
    "Request",
    "RequestExchange",
    "RequestType",
    "Response",
    "CallResult",
    "ProtocolRegistry",
    "UNSET",
    "ExecutionState",
    "MockEndpoint",
]
