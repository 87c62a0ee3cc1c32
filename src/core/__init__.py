from core.abstract_factory import TypeAbstractFactory
from core.exceptions import (
    ConfigError,
    DecodeError,
    PipelineError,
    RequestCancelledError,
    RequestConstructionError,
    RequestTimeoutError,
    StatusCodeError,
    TransportError,
)
from core.logging import configure_logging

__all__ = [
    "TypeAbstractFactory",
    "ConfigError",
    "DecodeError",
    "PipelineError",
    "RequestCancelledError",
    "RequestConstructionError",
    "RequestTimeoutError",
    "StatusCodeError",
    "TransportError",
    "configure_logging",
]
