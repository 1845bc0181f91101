"""
Bootstrap - wires store, injector, compiler and server, then listens.

Usage:
    store = MetadataStore()

    @module(store, exports=[HelloComponent])
    class AppModule:
        pass

    handle = LitCompiler(store).bootstrap(AppModule)
    handle.wait()
"""

import logging
from typing import Any, Callable, Optional, Union

from .compiler import RouteCompiler
from .config import ConfigLoader, ServerConfig
from .http.server import HttpServer, ServerHandle
from .injector import Injector
from .metadata import MetadataStore
from .resolver import ModuleResolver


class LitCompiler:
    """
    Application compiler.

    Each ``compile``/``bootstrap`` call builds a fresh server and route
    table from the same store, so repeated runs give identical results.
    """

    def __init__(
        self,
        store: MetadataStore,
        injector: Optional[Injector] = None,
        config: Optional[ServerConfig] = None,
    ):
        self.store = store
        self.injector = injector or Injector()
        self._config = config
        self.logger = logging.getLogger("litroute.bootstrap")
        self.compiler: Optional[RouteCompiler] = None
        self.server: Optional[HttpServer] = None

    @property
    def config(self) -> ServerConfig:
        if self._config is None:
            self._config = ConfigLoader.load().server_config()
        return self._config

    def compile(self, root: type, server: Optional[HttpServer] = None) -> RouteCompiler:
        """Unpack ``root`` onto ``server`` (a new one by default)."""
        self.server = server or HttpServer()
        self.compiler = RouteCompiler(self.store, self.server, self.injector)
        ModuleResolver(self.compiler).unpack(root)
        return self.compiler

    def bootstrap(
        self,
        root: type,
        port: Optional[Union[int, str]] = None,
        on_ready: Optional[Callable[[], Any]] = None,
    ) -> ServerHandle:
        """
        Compile ``root`` and start listening.

        Args:
            root: Usually the app module
            port: Overrides the configured port (default 3000, or PORT/LIT_PORT)
            on_ready: Called once the listener is active

        An explicit ``port`` wins over the PORT and LIT_PORT variables. This
        reverses the environment-first ``PORT || port`` lookup; pass
        ``port=None`` to let the environment decide.

        Raises:
            ServerStartFault: the port could not be bound
        """
        config = self.config
        port = int(port) if port is not None else config.port

        compiler = self.compile(root)
        self.log_routes(compiler)

        return self.server.listen(
            port,
            self.greet(port, on_ready),
            host=config.host,
            log_level=config.log_level,
        )

    def log_routes(self, compiler: RouteCompiler) -> None:
        table = compiler.route_table()
        self.logger.info(f"Registered {len(table)} routes:")
        for route in table:
            self.logger.info(
                f"  {route.http_method.upper():7} {route.url:30} "
                f"-> {route.component.__qualname__}.{route.method_name}"
            )

    def greet(self, port: Union[int, str] = "", on_ready: Optional[Callable[[], Any]] = None):
        """
        Usage:
            LitCompiler(store).greet(1000)()

        logs: Application running on port 1000
        """
        def ready() -> None:
            self.logger.info(f"Application running on port {port}")
            if on_ready is not None:
                on_ready()
        return ready
