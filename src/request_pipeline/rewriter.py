import threading
from typing import Callable

from request_pipeline.context import CallContext


URLRewriter = Callable[[str, CallContext], str]


class ProtocolRegistry:
    """
    Maps a URL scheme (the part before "://") to a rewrite function consulted
    once per call before the request is built. Registration and lookup are
    safe from concurrent callers. Each client owns a registry (forks share it)
    rather than relying on process-wide state.
    """

    def __init__(self) -> None:
        self._rewriters: dict[str, URLRewriter] = {}
        self._lock = threading.Lock()

    def register(self, scheme: str, rewriter: URLRewriter) -> None:
        with self._lock:
            self._rewriters[scheme.lower()] = rewriter

    def unregister(self, scheme: str) -> None:
        with self._lock:
            self._rewriters.pop(scheme.lower(), None)

    def get(self, scheme: str) -> URLRewriter | None:
        with self._lock:
            return self._rewriters.get(scheme.lower())

    def rewrite(self, url: str, context: CallContext) -> str:
        scheme, sep, _ = url.partition("://")
        if not sep:
            return url
        rewriter = self.get(scheme)
        if rewriter is None:
            return url
        return rewriter(url, context)
