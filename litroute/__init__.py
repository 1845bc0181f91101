"""
litroute - declarative route composition.

Modules group exported components under a path prefix and import child
modules; the compiler walks that tree and registers every declared
component method as a route on an ASGI server.

    store = MetadataStore()

    @component(store)
    class HelloComponent:
        @GET("hello", produces="text/plain")
        def hello(self, req, res):
            res.success("Hello world")

    @module(store, path="api", exports=[HelloComponent])
    class AppModule:
        pass

    LitCompiler(store).bootstrap(AppModule, port=3000).wait()
"""

__version__ = "0.9.1"

from .metadata import MetadataStore
from .declarations import (
    ModuleConfig,
    RouteConfig,
    RouteDecorator,
    GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS,
    route,
    component,
    module,
    declare_module,
    declare_route,
    module_config,
)
from .injector import Injector
from .compiler import CompiledRoute, RouteCompiler, join_path
from .resolver import ModuleResolver
from .handler import make_handler
from .http import HttpResponse, HttpServer, RawResponse, Request, ServerHandle
from .config import ConfigLoader, ServerConfig
from .bootstrap import LitCompiler
from .faults import (
    Fault,
    FaultDomain,
    Severity,
    ConfigInvalidFault,
    DeclarationFault,
    ModuleCycleFault,
    ActivationFault,
    RouteNotFoundFault,
    MethodNotAllowedFault,
    HandlerFault,
    ResponseAlreadySentFault,
    ServerStartFault,
)

__all__ = [
    "__version__",
    # Metadata
    "MetadataStore",
    # Declarations
    "ModuleConfig", "RouteConfig", "RouteDecorator",
    "GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS",
    "route", "component", "module",
    "declare_module", "declare_route", "module_config",
    # Core
    "Injector",
    "CompiledRoute", "RouteCompiler", "join_path",
    "ModuleResolver",
    "make_handler",
    # HTTP
    "HttpResponse", "HttpServer", "RawResponse", "Request", "ServerHandle",
    # Config / bootstrap
    "ConfigLoader", "ServerConfig", "LitCompiler",
    # Faults
    "Fault", "FaultDomain", "Severity",
    "ConfigInvalidFault", "DeclarationFault", "ModuleCycleFault",
    "ActivationFault", "RouteNotFoundFault", "MethodNotAllowedFault",
    "HandlerFault", "ResponseAlreadySentFault", "ServerStartFault",
]
