import pytest

from request_pipeline.client import HttpClient
from request_pipeline.middleware.retry import RetryOption
from .fixtures.configs import (
    aiohttp_config,
    client_config_yaml,
    tcp_config,
    tls_config_disabled,
)
from .fixtures.pipeline import FakeTransportEngine


@pytest.fixture
def fake_transport() -> FakeTransportEngine:
    return FakeTransportEngine(200)


@pytest.fixture
def client(fake_transport) -> HttpClient:
    return HttpClient(fake_transport)


@pytest.fixture
def fast_retry():
    """Retry policy without backoff waits."""
    def build(max_attempts: int = 3, should_retry=None) -> RetryOption:
        return RetryOption(max_attempts=max_attempts, min_wait=0, max_wait=0, should_retry=should_retry)
    return build


__all__ = [
    'aiohttp_config',
    'client_config_yaml',
    'tcp_config',
    'tls_config_disabled',
]
