from abc import ABC, abstractmethod
from typing import Any, Callable

from config.models.client import ClientConfig
from config.models.middleware import MiddlewareConfigModel
from config.models.transport import TransportEngineModel
from request_pipeline.client import HttpClient
from request_pipeline.middleware import (
    AllowStatusMiddleware,
    BlockStatusMiddleware,
    DebugMiddleware,
    HeaderMiddleware,
    MiddlewareFactory,
    MIDDLEWARE_FUNC,
    RetryMiddleware,
)
from request_pipeline.transport import TransportEngine, TransportEngineFactory


class RuntimeFactory(ABC):

    @staticmethod
    @abstractmethod
    def build_factory(cfg: Any, *args, **kwargs) -> Callable[[], Any]: ...


class TransportRuntimeFactory(RuntimeFactory):

    @staticmethod
    def build_factory(cfg: TransportEngineModel) -> Callable[[], TransportEngine]:

        def factory() -> TransportEngine:
            return TransportEngineFactory.create(cfg.type, **cfg.to_runtime_args())

        return factory


class MiddlewareRuntimeFactory(RuntimeFactory):

    @staticmethod
    def build_factory(cfg: MiddlewareConfigModel) -> Callable[[], MIDDLEWARE_FUNC]:

        def factory() -> MIDDLEWARE_FUNC:
            return MiddlewareFactory.create(cfg.type, **cfg.to_runtime_args())

        return factory

    @staticmethod
    def get_factories(mw_cfgs: list[MiddlewareConfigModel]) -> list[Callable[[], MIDDLEWARE_FUNC]]:

        return [MiddlewareRuntimeFactory.build_factory(cfg) for cfg in mw_cfgs]


class ClientRuntimeFactory(RuntimeFactory):
    """
    Turns a validated ClientConfig into a ready HttpClient. The shorthand
    settings are installed before the configured middleware list.
    """

    @staticmethod
    def build_middlewares(cfg: ClientConfig) -> list[MIDDLEWARE_FUNC]:
        middlewares: list[MIDDLEWARE_FUNC] = []
        if cfg.headers:
            middlewares.append(HeaderMiddleware(cfg.headers))
        if cfg.retry is not None:
            middlewares.append(RetryMiddleware(**cfg.retry.to_runtime_args()))
        if cfg.allowed_status_codes:
            middlewares.append(AllowStatusMiddleware(cfg.allowed_status_codes))
        if cfg.blocked_status_codes:
            middlewares.append(BlockStatusMiddleware(cfg.blocked_status_codes))
        if cfg.debug:
            middlewares.append(DebugMiddleware())

        middlewares.extend(factory() for factory in MiddlewareRuntimeFactory.get_factories(cfg.middleware))
        return middlewares

    @staticmethod
    def build(cfg: ClientConfig) -> HttpClient:
        transport = TransportRuntimeFactory.build_factory(cfg.transport)()
        client = HttpClient(transport, timeout=cfg.timeout)
        client.add_middleware(*ClientRuntimeFactory.build_middlewares(cfg))
        return client

    @staticmethod
    def build_factory(cfg: ClientConfig) -> Callable[[], HttpClient]:

        def factory() -> HttpClient:
            return ClientRuntimeFactory.build(cfg)

        return factory
