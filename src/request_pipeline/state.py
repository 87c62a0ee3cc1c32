from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TYPE_CHECKING

if TYPE_CHECKING:
    from request_pipeline.middleware.retry import RetryOption
    from request_pipeline.middleware.tracing import Tracer
    from request_pipeline.models import Request, Response, RetryHook


MockEndpoint = Callable[["Request"], Awaitable["Response"]]


class _Unset:
    """Sentinel for a timeout that was never configured (distinct from 0)."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class ExecutionState:
    """
    Per-call configuration consulted by the internal stages.

    Created once per logical call by the outermost pipeline stage and shared
    by every attempt of that call. Scalar fields are written by whichever
    middleware sets them last in execution order, so per-call middleware
    (which runs closer to the executor) overrides client-level defaults.
    retry_hooks and the status code sets accumulate instead.
    """
    timeout: float | _Unset = UNSET
    retry_option: RetryOption | None = None
    mock_endpoint: MockEndpoint | None = None
    debugger: Tracer | None = None
    retry_hooks: list[RetryHook] = field(default_factory=list)
    allowed_status_codes: set[int] = field(default_factory=set)
    blocked_status_codes: set[int] = field(default_factory=set)

    @classmethod
    def attach(cls, request: Request) -> "ExecutionState":
        """Return the state attached to request, creating it on first use."""
        if request._state is None:
            request._state = cls()
        return request._state

    @classmethod
    def of(cls, request: Request) -> "ExecutionState | None":
        return request._state

    @property
    def has_timeout(self) -> bool:
        return self.timeout is not UNSET

    def add_retry_hook(self, hook: RetryHook) -> None:
        self.retry_hooks.append(hook)

    def run_retry_hooks(self, request: Request, retry_index: int) -> None:
        for hook in list(self.retry_hooks):
            hook(request, retry_index)
