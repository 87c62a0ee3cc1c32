"""Unit tests for pydantic config models"""
import pytest
from pydantic import ValidationError

from config.models.middleware import RetryMiddlewareModel, StatusPolicyModel, TimeoutMiddlewareModel
from config.models.transport import AiohttpEngineConfig, TcpConnectionConfig, TransportEngineType


@pytest.mark.unit
@pytest.mark.config
class TestTransportConfig:

    def test_defaults(self):
        cfg = AiohttpEngineConfig()

        assert cfg.type == TransportEngineType.AIOHTTP
        assert cfg.tcp_connection.limit == 100

    def test_runtime_args(self, aiohttp_config, tcp_config):
        args = aiohttp_config.to_runtime_args()

        assert args == {"connector_config": tcp_config, "base_timeout": 60.0}

    def test_force_close_drops_keepalive(self):
        args = TcpConnectionConfig(force_close=True).to_connector_args()

        assert "keepalive_timeout" not in args
        assert "tls" not in args

    def test_negative_limit_rejected(self):
        with pytest.raises(ValidationError):
            TcpConnectionConfig(limit=-1)


@pytest.mark.unit
@pytest.mark.config
class TestMiddlewareConfig:

    def test_retry_runtime_args(self):
        cfg = RetryMiddlewareModel(max_attempts=4, min_wait=0.5, max_wait=8, retry_status_codes=[429])

        assert cfg.to_runtime_args() == {
            "max_attempts": 4,
            "min_wait": 0.5,
            "max_wait": 8,
            "retry_status_codes": [429],
        }

    def test_retry_wait_bounds_checked(self):
        with pytest.raises(ValidationError):
            RetryMiddlewareModel(min_wait=5, max_wait=1)

    def test_status_policy_needs_codes(self):
        with pytest.raises(ValidationError):
            StatusPolicyModel(type="allow_status", codes=[])

    def test_timeout_must_be_non_negative(self):
        with pytest.raises(ValidationError):
            TimeoutMiddlewareModel(timeout=-0.1)
