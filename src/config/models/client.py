from pydantic import BaseModel, Field

from config.models.middleware import MiddlewareConfigUnion, RetryMiddlewareModel
from config.models.transport import AiohttpEngineConfig


class ClientConfig(BaseModel):
    """
    Complete client configuration that can be loaded from JSON or YAML.
    The shorthand fields (timeout, headers, retry, status codes, debug) are
    installed first; `middleware` entries follow in the order listed.
    """
    timeout: float | None = Field(
        default=5.0,
        ge=0,
        description="Per-attempt timeout in seconds; 0 disables it, null keeps the executor default",
    )
    headers: dict[str, str] = Field(default_factory=dict)
    retry: RetryMiddlewareModel | None = None
    allowed_status_codes: list[int] = Field(default_factory=list)
    blocked_status_codes: list[int] = Field(default_factory=list)
    debug: bool = False
    middleware: list[MiddlewareConfigUnion] = Field(default_factory=list)
    transport: AiohttpEngineConfig = Field(default_factory=AiohttpEngineConfig)
