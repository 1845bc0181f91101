"""
Component Injector

The activation mechanism: turns a component class into a usable instance,
resolving constructor parameters from their annotations.

Resolution per constructor parameter:
    1. annotated with a class that has a registered provider -> that instance
    2. annotated with any other class -> constructed recursively
    3. has a default -> left to the default
    4. otherwise -> ActivationFault
"""

import inspect
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, get_type_hints

from .faults import ActivationFault


T = TypeVar('T')

_EMPTY = inspect.Parameter.empty
_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def _injectable(annotation: Any) -> bool:
    return (
        annotation is not _EMPTY
        and isinstance(annotation, type)
        and annotation.__module__ != "builtins"
    )


class Injector:
    """
    Builds component instances.

    Every ``resolve`` call returns a new instance of the requested class;
    only instances registered with ``provide`` are shared.

    Example:
        injector = Injector()
        injector.provide(Database, Database("sqlite://"))

        class UsersComponent:
            def __init__(self, db: Database):
                self.db = db

        injector.resolve(UsersComponent).db  # the provided Database
    """

    def __init__(self):
        self._providers: Dict[type, Any] = {}
        self._ctor_cache: Dict[type, List[Tuple[str, Any, bool]]] = {}

    def provide(self, cls: Type[T], instance: T) -> None:
        """Register a shared instance for ``cls``."""
        self._providers[cls] = instance

    def resolve(self, cls: Type[T]) -> T:
        return self._resolve(cls, ())

    def _resolve(self, cls: type, chain: Tuple[type, ...]) -> Any:
        if cls in self._providers:
            return self._providers[cls]
        if cls in chain:
            raise ActivationFault(chain[0], cls.__name__, "depends on itself")

        kwargs = {}
        for name, annotation, has_default in self._analyze(cls):
            if _injectable(annotation):
                kwargs[name] = self._resolve(annotation, chain + (cls,))
            elif not has_default:
                raise ActivationFault(cls, name, "has no resolvable annotation")
        return cls(**kwargs)

    def _analyze(self, cls: type) -> List[Tuple[str, Any, bool]]:
        """Analyze the constructor once: (name, annotation, has_default) per parameter."""
        cached = self._ctor_cache.get(cls)
        if cached is not None:
            return cached

        init = cls.__init__
        if init is object.__init__:
            params: List[Tuple[str, Any, bool]] = []
        else:
            try:
                hints = get_type_hints(init)
            except (NameError, TypeError):
                hints = {}
            params = []
            for name, param in list(inspect.signature(init).parameters.items())[1:]:
                if param.kind in _SKIPPED_KINDS:
                    continue
                annotation: Optional[Any] = hints.get(name, param.annotation)
                params.append((name, annotation, param.default is not _EMPTY))

        self._ctor_cache[cls] = params
        return params
