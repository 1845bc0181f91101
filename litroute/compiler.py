"""
Route Compiler - compiles exported components into server routes.

For every exported component the compiler walks its declared method
scopes, activates a fresh instance per method, and registers each method
that carries an HTTP verb:

    module path "api" + method sub-path "items"  ->  GET /api/items

Methods without method-scoped verb metadata are skipped. Class-scope
metadata never makes a method routable.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .declarations import METHOD, PATH
from .handler import make_handler
from .http.server import HttpServer
from .injector import Injector
from .metadata import MetadataStore


def join_path(parts: Iterable[Optional[str]]) -> str:
    """
    Join non-empty path segments with '/'.

    Example:
        join_path(['some', '', 'path'])  # 'some/path'
    """
    return "/".join(part for part in parts if part)


@dataclass(frozen=True)
class CompiledRoute:
    """One resolved route: verb and full path bound to a component method."""

    http_method: str
    full_path: str
    component: type
    method_name: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.http_method, self.full_path)

    @property
    def url(self) -> str:
        return "/" + self.full_path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.http_method.upper(),
            "path": self.url,
            "component": f"{self.component.__module__}:{self.component.__qualname__}",
            "handler": self.method_name,
        }


class RouteCompiler:
    """
    Registers component routes on a server.

    Attributes:
        routes: Every registration in order, shadowed ones included
        table: Effective route per (verb, full path)
        collisions: (shadowed, winner) pairs
    """

    def __init__(
        self,
        store: MetadataStore,
        server: HttpServer,
        injector: Optional[Injector] = None,
    ):
        self.store = store
        self.server = server
        self.injector = injector or Injector()
        self.logger = logging.getLogger("litroute.compiler")
        self.routes: List[CompiledRoute] = []
        self.table: Dict[Tuple[str, str], CompiledRoute] = {}
        self.collisions: List[Tuple[CompiledRoute, CompiledRoute]] = []

    def get_method_list(self, component: type) -> List[str]:
        """Declared method scopes of ``component``, constructor excluded."""
        return [name for name in self.store.scopes(component) if name != "__init__"]

    def add_exported_components(self, path: str, components: Sequence[type]) -> None:
        """Add every route of each component, prefixed with ``path``."""
        for component in components:
            for method in self.get_method_list(component):
                self.add_route_from_method(component, method, path)

    def add_route_from_method(self, component: type, method: str, path: str) -> None:
        """
        Register ``component.method`` if it is eligible.

        If SomeComponent declares ``get_stuff`` as a GET route with sub-path
        ``stuff``, ``add_route_from_method(SomeComponent, 'get_stuff', 'api')``
        adds ``GET /api/stuff``.
        """
        instance = self.injector.resolve(component)
        verb = self.store.get(instance, METHOD, None, method, inherit=False)

        if not verb:
            self.logger.debug(f"skip {component.__qualname__}.{method}: no HTTP method")
            return

        full_path = join_path([
            path,
            self.store.get(instance, PATH, "", method, inherit=False),
        ])
        self.add_route(verb, full_path, instance, method)

    def add_route(self, method: str, path: str, instance: Any, name: str) -> None:
        """Register ``METHOD /path`` with a handler bound to ``instance.name``."""
        compiled = CompiledRoute(
            http_method=method.lower(),
            full_path=path,
            component=type(instance),
            method_name=name,
        )

        previous = self.table.get(compiled.key)
        if previous is not None:
            self.collisions.append((previous, compiled))
            self.logger.warning(
                f"{compiled.http_method.upper()} {compiled.url}: "
                f"{compiled.component.__qualname__}.{name} shadows "
                f"{previous.component.__qualname__}.{previous.method_name}"
            )

        self.server.register(method, compiled.url, make_handler(self.store, instance, name))
        self.routes.append(compiled)
        self.table[compiled.key] = compiled
        self.logger.debug(
            f"route {compiled.http_method.upper()} {compiled.url} -> "
            f"{compiled.component.__qualname__}.{name}"
        )

    def route_table(self) -> List[CompiledRoute]:
        """Effective routes in first-registration order."""
        return list(self.table.values())
