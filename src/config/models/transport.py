from enum import Enum
from pathlib import Path
from typing import Any
from pydantic import Field, BaseModel, model_validator


class TransportEngineType(str, Enum):
    AIOHTTP = "aiohttp"


class TlsConfig(BaseModel):
    enabled: bool = False
    verify: bool = True
    ca_bundle: Path | None = None
    client_cert: Path | None = None
    client_key: Path | None = None


class TcpConnectionConfig(BaseModel):
    """
    Connection pool settings of the shared transport. Field names match the
    keyword arguments of aiohttp.TCPConnector.
    """
    limit: int = 100
    limit_per_host: int = 0
    ttl_dns_cache: int = 300
    keepalive_timeout: float = 90.0
    force_close: bool = False
    enable_cleanup_closed: bool = False
    tls: TlsConfig | None = None

    @model_validator(mode="after")
    def _check_limits(self) -> "TcpConnectionConfig":
        if self.limit < 0 or self.limit_per_host < 0:
            raise ValueError("connection limits must be >= 0")
        if self.keepalive_timeout <= 0:
            raise ValueError("keepalive_timeout must be > 0")
        return self

    def to_connector_args(self) -> dict[str, Any]:
        kwargs = self.model_dump(exclude={"tls"})
        # aiohttp rejects keepalive_timeout together with force_close
        if self.force_close:
            kwargs.pop("keepalive_timeout")
        return kwargs


class TransportEngineModel(BaseModel):
    """Base config for transport engine"""
    type: TransportEngineType

    def to_runtime_args(self) -> dict[str, Any]:
        return {}


class AiohttpEngineConfig(TransportEngineModel):
    type: TransportEngineType = Field(default=TransportEngineType.AIOHTTP)
    base_timeout: float | None = 300.0
    tcp_connection: TcpConnectionConfig = Field(default_factory=TcpConnectionConfig)

    def to_runtime_args(self) -> dict[str, Any]:
        return {
            "connector_config": self.tcp_connection,
            "base_timeout": self.base_timeout,
        }
