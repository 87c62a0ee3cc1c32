from request_pipeline.transport.base import TransportEngine, TransportRequest
from request_pipeline.transport.engine import AiohttpEngine, TransportEngineFactory

__all__ = [
    "TransportEngine",
    "TransportRequest",
    "AiohttpEngine",
    "TransportEngineFactory",
]
