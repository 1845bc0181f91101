"""
HttpServer - ASGI server facade.

Accepts ``(verb, path) -> handler`` registrations and dispatches requests
to them. Paths use ``/``-separated segments with a leading ``/``; a
``:name`` segment captures a path parameter.

Dispatch:
- Static paths use a dict lookup, parameterized paths are tried in
  registration order.
- Registering the same verb and path again replaces the earlier handler.
- HEAD falls back to the GET handler with the body dropped.
- Unknown path -> 404, known path with another verb -> 405, handler
  exception -> logged and answered with 500.

``listen`` serves the application with uvicorn on a background thread.
"""

import asyncio
import functools
import json
import logging
import re
import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import uvicorn

from ..faults import (
    DeclarationFault,
    Fault,
    HandlerFault,
    MethodNotAllowedFault,
    RouteNotFoundFault,
    ServerStartFault,
    Severity,
)
from .request import Request
from .response import RawResponse


Handler = Callable[[Request, RawResponse], Awaitable[None]]

_PARAM_SEGMENT = re.compile(r"^:([A-Za-z_][A-Za-z0-9_]*)$")

_FAULT_STATUS = {
    "ROUTE_NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
}

# Log level for faults answered with 500
_SEVERITY_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}


def _normalize(path: str) -> str:
    return path.rstrip("/") or "/"


def _compile_path(path: str) -> Tuple[Optional[re.Pattern], List[str]]:
    """Return (regex, param names), or (None, []) for a static path."""
    names: List[str] = []
    parts = []
    for segment in path.split("/"):
        match = _PARAM_SEGMENT.match(segment)
        if match:
            names.append(match.group(1))
            parts.append(f"(?P<{match.group(1)}>[^/]+)")
        else:
            parts.append(re.escape(segment))
    if not names:
        return None, []
    return re.compile("^" + "/".join(parts) + "$"), names


class HttpServer:
    """
    Minimal verb + path router exposed as an ASGI application.

    Example:
        server = HttpServer()
        server.get("/items/:id", handler)
        handle = server.listen(3000, lambda: print("ready"))
        handle.wait()
    """

    def __init__(self):
        self.logger = logging.getLogger("litroute.server")
        # {path: {VERB: handler}}
        self._static: Dict[str, Dict[str, Handler]] = {}
        # {path: (regex, {VERB: handler})}, registration order kept
        self._dynamic: Dict[str, Tuple[re.Pattern, Dict[str, Handler]]] = {}
        self._order: List[Tuple[str, str]] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, verb: str, path: str, handler: Handler) -> None:
        if not path.startswith("/"):
            raise DeclarationFault(path, "route paths must start with '/'")
        verb = verb.upper()
        path = _normalize(path)

        regex, _ = _compile_path(path)
        if regex is None:
            handlers = self._static.setdefault(path, {})
        else:
            handlers = self._dynamic.setdefault(path, (regex, {}))[1]

        if verb in handlers:
            self._order.remove((verb, path))
        handlers[verb] = handler
        self._order.append((verb, path))
        self.logger.debug(f"register {verb} {path}")

    get = functools.partialmethod(register, "GET")
    post = functools.partialmethod(register, "POST")
    put = functools.partialmethod(register, "PUT")
    patch = functools.partialmethod(register, "PATCH")
    delete = functools.partialmethod(register, "DELETE")
    head = functools.partialmethod(register, "HEAD")
    options = functools.partialmethod(register, "OPTIONS")

    def routes(self) -> List[Tuple[str, str]]:
        """Registered (VERB, path) pairs; a replaced route moves to the end."""
        return list(self._order)

    def handler_for(self, verb: str, path: str) -> Optional[Handler]:
        """The handler currently registered for exactly ``verb`` and ``path``."""
        path = _normalize(path)
        handlers = self._static.get(path)
        if handlers is None and path in self._dynamic:
            handlers = self._dynamic[path][1]
        return (handlers or {}).get(verb.upper())

    # ------------------------------------------------------------------
    # Matching and dispatch
    # ------------------------------------------------------------------

    def match(self, path: str) -> Tuple[Optional[Dict[str, Handler]], Dict[str, str]]:
        path = _normalize(path)
        handlers = self._static.get(path)
        if handlers:
            return handlers, {}
        for regex, handlers in self._dynamic.values():
            m = regex.match(path)
            if m is not None:
                return handlers, m.groupdict()
        return None, {}

    async def dispatch(self, scope: dict, receive: Callable) -> RawResponse:
        method = scope.get("method", "GET").upper()
        path = scope.get("path", "/")
        raw = RawResponse()

        try:
            handlers, params = self.match(path)
            if handlers is None:
                raise RouteNotFoundFault(method, path)

            handler = handlers.get(method)
            if handler is None and method == "HEAD":
                handler = handlers.get("GET")
            if handler is None:
                raise MethodNotAllowedFault(method, path, sorted(handlers))

            await handler(Request(scope, receive, params), raw)

        except Fault as fault:
            if fault.code not in _FAULT_STATUS:
                self.logger.log(
                    _SEVERITY_LEVELS.get(fault.severity, logging.ERROR),
                    f"{method} {path} failed: {fault}",
                    exc_info=True,
                )
            raw = self._fault_response(fault)
        except Exception as exc:
            self.logger.exception(f"{method} {path} failed")
            raw = self._fault_response(HandlerFault(exc, method, path))

        if method == "HEAD":
            raw.headers.setdefault("content-length", str(len(raw.body)))
            raw.body = b""
        return raw

    @staticmethod
    def _fault_response(fault: Fault) -> RawResponse:
        raw = RawResponse()
        headers = {"content-type": "application/json"}
        if isinstance(fault, MethodNotAllowedFault):
            headers["allow"] = ", ".join(fault.allowed_methods)
        raw.send(
            _FAULT_STATUS.get(fault.code, 500),
            headers,
            json.dumps(fault.to_dict()).encode("utf-8"),
        )
        return raw

    # ------------------------------------------------------------------
    # ASGI entry point
    # ------------------------------------------------------------------

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] == "lifespan":
            while True:
                message = await receive()
                if message["type"] == "lifespan.startup":
                    await send({"type": "lifespan.startup.complete"})
                elif message["type"] == "lifespan.shutdown":
                    await send({"type": "lifespan.shutdown.complete"})
                    return

        if scope["type"] != "http":
            return

        raw = await self.dispatch(scope, receive)
        headers = dict(raw.headers)
        headers.setdefault("content-length", str(len(raw.body)))
        await send({
            "type": "http.response.start",
            "status": raw.status,
            "headers": [
                (name.encode("latin-1"), str(value).encode("latin-1"))
                for name, value in headers.items()
            ],
        })
        await send({"type": "http.response.body", "body": raw.body})

    # ------------------------------------------------------------------
    # Serving
    # ------------------------------------------------------------------

    def listen(
        self,
        port: int,
        on_ready: Optional[Callable[[], Any]] = None,
        *,
        host: str = "127.0.0.1",
        log_level: str = "info",
        timeout: Optional[float] = 10.0,
    ) -> "ServerHandle":
        """
        Start uvicorn on a background thread and return a live handle.

        Returns once the socket is bound and ``on_ready`` has run. Port 0
        binds an ephemeral port, readable from ``handle.port``.

        Raises:
            ServerStartFault: uvicorn could not bind or did not start in time
        """
        config = uvicorn.Config(self, host=host, port=port, log_level=log_level)
        handle = ServerHandle(_ThreadedServer(config))
        handle.start(on_ready, timeout=timeout)
        return handle


class _ThreadedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the main thread."""

    def install_signal_handlers(self) -> None:
        pass


class ServerHandle:
    """Live handle on a listening server."""

    def __init__(self, server: uvicorn.Server):
        self.server = server
        self.logger = logging.getLogger("litroute.server")
        self.error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None
        self._settled = threading.Event()

    @property
    def port(self) -> int:
        """The bound port once started, else the configured one."""
        servers = getattr(self.server, "servers", None)
        if servers:
            sockets = list(servers)[0].sockets
            if sockets:
                return sockets[0].getsockname()[1]
        return self.server.config.port

    @property
    def started(self) -> bool:
        return self.server.started

    def start(
        self,
        on_ready: Optional[Callable[[], Any]] = None,
        timeout: Optional[float] = 10.0,
    ) -> None:
        """Run the server thread and block until it is listening or has failed."""
        self._thread = threading.Thread(
            target=self._run,
            args=(on_ready,),
            name="litroute-server",
            daemon=True,
        )
        self._thread.start()

        if not self._settled.wait(timeout):
            self.server.should_exit = True
            raise ServerStartFault(
                self.server.config.host, self.server.config.port,
                f"not listening after {timeout}s",
            )
        if not self.started:
            self.wait()
            reason = f"{type(self.error).__name__}: {self.error}" if self.error else "server exited"
            raise ServerStartFault(self.server.config.host, self.server.config.port, reason)

    def _run(self, on_ready: Optional[Callable[[], Any]]) -> None:
        try:
            asyncio.run(self._serve(on_ready))
        except (SystemExit, Exception) as exc:
            # uvicorn exits with SystemExit when the bind fails
            self.error = exc
            self.logger.error(f"server stopped: {type(exc).__name__}: {exc}")
        finally:
            self._settled.set()

    async def _serve(self, on_ready: Optional[Callable[[], Any]]) -> None:
        task = asyncio.create_task(self.server.serve())
        while not self.server.started and not task.done():
            await asyncio.sleep(0.05)
        if self.server.started:
            try:
                if on_ready is not None:
                    on_ready()
            finally:
                self._settled.set()
        await task

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the server stops."""
        if self._thread is not None:
            self._thread.join(timeout)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        self.server.should_exit = True
        self.wait(timeout)

    def __repr__(self) -> str:
        return f"<ServerHandle port={self.port} started={self.started}>"
