"""
Module, Component and Route Declarations

Explicit configuration structs plus the helpers that write them into a
MetadataStore. Route decorators only attach a RouteConfig to the function;
nothing reaches the store until the owning class is registered with
``component(store)``.

Example:
    store = MetadataStore()

    @component(store, produces="application/json")
    class ItemsComponent:

        @GET("items")
        def list_items(self, req, res):
            res.success([{"id": 1}])

        @POST("items", status=201)
        def create_item(self, req, res):
            res.success({"created": True})

    @module(store, path="api", exports=[ItemsComponent])
    class AppModule:
        pass
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, TypeVar

from .faults import DeclarationFault
from .metadata import MetadataStore


F = TypeVar('F', bound=Callable[..., Any])
C = TypeVar('C', bound=type)

HTTP_METHODS = ("get", "post", "put", "patch", "delete", "head", "options")

# Keys written to the store
PATH = "path"
EXPORTS = "exports"
IMPORTS = "imports"
METHOD = "method"
PRODUCES = "produces"
STATUS = "status"
HEADERS = "headers"


def normalize_path(path: Optional[str]) -> str:
    """Strip surrounding slashes so segments join cleanly."""
    return (path or "").strip("/")


@dataclass(frozen=True)
class ModuleConfig:
    """Module descriptor: base path, exported components, imported modules."""
    path: str = ""
    exports: Tuple[type, ...] = ()
    imports: Tuple[type, ...] = ()


@dataclass(frozen=True)
class RouteConfig:
    """
    Route descriptor for a single component method.

    Attributes:
        method: HTTP verb, lower-case ("get", "post", ...)
        path: Sub-path appended to the module path
        produces: Response content type
        status: Default success status
        headers: Default response headers
    """
    method: str
    path: str = ""
    produces: Optional[str] = None
    status: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def records(self) -> Dict[str, Any]:
        """Metadata records to write for this route (unset fields skipped)."""
        data: Dict[str, Any] = {METHOD: self.method, PATH: self.path}
        if self.produces is not None:
            data[PRODUCES] = self.produces
        if self.status is not None:
            data[STATUS] = self.status
        if self.headers:
            data[HEADERS] = dict(self.headers)
        return data


def _check_verb(verb: str, target: Any) -> str:
    if not isinstance(verb, str) or verb.lower() not in HTTP_METHODS:
        raise DeclarationFault(target, f"unsupported HTTP method {verb!r}")
    return verb.lower()


# ============================================================================
# Route decorators
# ============================================================================

class RouteDecorator:
    """
    Base route decorator.

    Attaches a RouteConfig to a component method without side effects.
    """

    method: Optional[str] = None

    def __init__(
        self,
        path: Optional[str] = None,
        *,
        produces: Optional[str] = None,
        status: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.path = path
        self.produces = produces
        self.status = status
        self.headers = headers or {}

    def __call__(self, func: F) -> F:
        existing = getattr(func, '__route_config__', None)
        if existing is not None:
            raise DeclarationFault(
                func, f"already declared as a {existing.method.upper()} route"
            )
        if self.path is not None and not isinstance(self.path, str):
            raise DeclarationFault(func, "route path must be a string")

        func.__route_config__ = RouteConfig(
            method=_check_verb(self.method, func),
            path=normalize_path(self.path),
            produces=self.produces,
            status=self.status,
            headers=dict(self.headers),
        )
        return func


class GET(RouteDecorator):
    """GET request decorator."""
    method = 'get'


class POST(RouteDecorator):
    """POST request decorator."""
    method = 'post'


class PUT(RouteDecorator):
    """PUT request decorator."""
    method = 'put'


class PATCH(RouteDecorator):
    """PATCH request decorator."""
    method = 'patch'


class DELETE(RouteDecorator):
    """DELETE request decorator."""
    method = 'delete'


class HEAD(RouteDecorator):
    """HEAD request decorator."""
    method = 'head'


class OPTIONS(RouteDecorator):
    """OPTIONS request decorator."""
    method = 'options'


def route(method: str, path: Optional[str] = None, **kwargs) -> RouteDecorator:
    """
    Generic route decorator.

    Example:
        @route("get", "health")
        def health(self, req, res): ...
    """
    decorator = RouteDecorator(path, **kwargs)
    decorator.method = method
    return decorator


# ============================================================================
# Registration calls
# ============================================================================

def declare_route(
    store: MetadataStore,
    component_class: type,
    name: str,
    config: RouteConfig,
) -> None:
    """Write one method's route descriptor into the store."""
    if name == "__init__":
        raise DeclarationFault(component_class, "the constructor cannot be a route")
    if not callable(getattr(component_class, name, None)):
        raise DeclarationFault(component_class, f"no method named {name!r}")

    config = replace(
        config,
        method=_check_verb(config.method, component_class),
        path=normalize_path(config.path),
    )
    for key, value in config.records().items():
        store.define(component_class, key, value, scope=name)


def component(
    store: MetadataStore,
    *,
    produces: Optional[str] = None,
    status: Optional[int] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Callable[[C], C]:
    """
    Register a class as a component.

    Collects the route descriptors attached by the method decorators, in
    class-body order, and records them as method-scoped metadata. The
    class-level response defaults are recorded at class scope and copied
    into every route that does not set its own.
    """
    def decorator(cls: C) -> C:
        defaults = {
            PRODUCES: produces,
            STATUS: status,
            HEADERS: dict(headers) if headers else None,
        }
        for key, value in defaults.items():
            if value is not None:
                store.define(cls, key, value)

        for name, member in vars(cls).items():
            if isinstance(member, (staticmethod, classmethod)):
                member = member.__func__
            config = getattr(member, '__route_config__', None)
            if config is None:
                continue
            declare_route(store, cls, name, config)
            for key, value in defaults.items():
                if value is not None and not store.has(cls, key, scope=name):
                    store.define(cls, key, value, scope=name)
        return cls

    return decorator


def module(
    store: MetadataStore,
    path: str = "",
    exports: Sequence[type] = (),
    imports: Sequence[type] = (),
) -> Callable[[C], C]:
    """
    Register a class as a module.

    Records the class-scope keys ``path``, ``exports`` and ``imports``.
    """
    def decorator(cls: C) -> C:
        if not isinstance(path, str):
            raise DeclarationFault(cls, "module path must be a string")
        config = ModuleConfig(
            path=normalize_path(path),
            exports=tuple(exports),
            imports=tuple(imports),
        )
        declare_module(store, cls, config)
        return cls

    return decorator


def declare_module(store: MetadataStore, module_class: type, config: ModuleConfig) -> None:
    store.define(module_class, PATH, config.path)
    store.define(module_class, EXPORTS, config.exports)
    store.define(module_class, IMPORTS, config.imports)


def module_config(store: MetadataStore, module_class: type) -> ModuleConfig:
    """Read a module descriptor back, applying the defaults for a bare class."""
    return ModuleConfig(
        path=store.get(module_class, PATH, ""),
        exports=tuple(store.get(module_class, EXPORTS, ())),
        imports=tuple(store.get(module_class, IMPORTS, ())),
    )
