import asyncio
import io
import logging
import ssl
from types import TracebackType
from typing_extensions import Self

import aiohttp
from aiohttp import ClientSession, ClientTimeout, TCPConnector
from multidict import CIMultiDict

from config.models.transport import TcpConnectionConfig, TlsConfig, TransportEngineType
from core.abstract_factory import TypeAbstractFactory
from core.exceptions import RequestTimeoutError, TransportError
from request_pipeline.models import Response
from request_pipeline.transport.base import TransportEngine, TransportRequest


logger = logging.getLogger(__name__)


class TransportEngineFactory(TypeAbstractFactory[TransportEngineType, TransportEngine]):
    pass


@TransportEngineFactory.register(TransportEngineType.AIOHTTP)
class AiohttpEngine(TransportEngine):
    """
    Transport adapter that uses one aiohttp.ClientSession (and its connection
    pool) for every call. The session is opened lazily inside the running
    event loop, or explicitly through `async with`.

    The per-call timeout is handed to aiohttp as the request's own
    ClientTimeout, so aiohttp decides how to finish or discard the connection
    when it fires.
    """

    def __init__(
        self,
        connector_config: TcpConnectionConfig | None = None,
        tls_config: TlsConfig | None = None,
        base_timeout: float | None = 300.0,
    ) -> None:
        self._connector_config = connector_config or TcpConnectionConfig()
        self._tls_config = tls_config
        self._timeout = ClientTimeout(total=base_timeout)

        self._session: ClientSession | None = None
        self._session_lock = asyncio.Lock()

    @property
    def session(self) -> ClientSession:
        if self._session is None:
            raise ValueError(f"{__class__.__name__} aiohttp ClientSession not assigned")
        return self._session

    @session.setter
    def session(self, session: ClientSession | None) -> None:
        self._session = session

    @property
    def connector_config(self) -> TcpConnectionConfig:
        return self._connector_config

    def update_connector(self, **changes) -> None:
        """
        Change connection pool settings. Takes effect for the next session
        opened by this engine; an open session keeps its connector.
        """
        self._connector_config = self._connector_config.model_copy(update=changes)

    def _build_ssl_context(self, cfg: TlsConfig) -> ssl.SSLContext | None:
        context = ssl.create_default_context(purpose=ssl.Purpose.SERVER_AUTH)

        if not cfg.verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        if cfg.ca_bundle:
            context.load_verify_locations(cafile=str(cfg.ca_bundle))

        if cfg.client_cert:
            context.load_cert_chain(
                certfile=str(cfg.client_cert),
                keyfile=str(cfg.client_key) if cfg.client_key else None,
            )

        return context

    def _build_tcp_connector(self, cfg: TcpConnectionConfig) -> TCPConnector:
        kwargs = cfg.to_connector_args()

        tls = cfg.tls or self._tls_config
        if tls and tls.enabled:
            kwargs["ssl"] = self._build_ssl_context(tls)

        return TCPConnector(**kwargs)

    async def _ensure_session(self) -> ClientSession:
        async with self._session_lock:
            if self._session is None or self._session.closed:
                connector = self._build_tcp_connector(self._connector_config)
                self._session = ClientSession(connector=connector, timeout=self._timeout)
                logger.debug("Opened aiohttp session (limit=%s)", self._connector_config.limit)
            return self._session

    async def __aenter__(self) -> Self:
        await self._ensure_session()
        return self

    async def __aexit__(
        self,
        exc_type: BaseException | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def round_trip(
        self,
        request: TransportRequest,
        timeout: float | None = None,
    ) -> Response:
        session = await self._ensure_session()

        try:
            async with session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.data,
                timeout=ClientTimeout(total=timeout),
            ) as response:
                # read the whole body so the connection goes back to the pool
                body = await response.read()
                return Response(
                    status=response.status,
                    reason=response.reason or "",
                    headers=CIMultiDict(response.headers),
                    body=io.BytesIO(body),
                )
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(
                f"{request.method} {request.url}: timeout after {timeout}s "
                f"(context deadline exceeded)",
                cause=e,
            ) from e
        except (aiohttp.ClientError, OSError, ValueError) as e:
            raise TransportError(
                f"{request.method} {request.url}: {type(e).__name__}: {e}",
                cause=e,
            ) from e
