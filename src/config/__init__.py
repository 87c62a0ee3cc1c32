from config.loader import ConfigLoader
from config.preprocessor import (
    ConfigPreprocessor,
    ConfigValue,
    EnvVarPreprocessor,
)
from config.models.client import ClientConfig
from config.models.middleware import (
    MiddlewareConfigModel,
    MiddlewareConfigUnion,
    RetryMiddlewareModel,
    SimpleMiddlewareModel,
    StatusPolicyModel,
)
from config.models.transport import (
    AiohttpEngineConfig,
    TcpConnectionConfig,
    TlsConfig,
    TransportEngineType,
)

__all__ = [
    "ConfigLoader",
    "ConfigPreprocessor",
    "ConfigValue",
    "EnvVarPreprocessor",
    "ClientConfig",
    "MiddlewareConfigModel",
    "MiddlewareConfigUnion",
    "RetryMiddlewareModel",
    "SimpleMiddlewareModel",
    "StatusPolicyModel",
    "AiohttpEngineConfig",
    "TcpConnectionConfig",
    "TlsConfig",
    "TransportEngineType",
]
