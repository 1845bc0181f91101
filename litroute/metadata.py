"""
Metadata Store

Key/value association from (target, key[, scope]) to arbitrary values.

A record is either class-scoped, ``(target, key)``, or method-scoped,
``(target, key, method_name)``. Lookups never raise on a miss: absence is
a normal outcome that callers use for control decisions (for example a
method without a ``method`` record is not a route).

Resolution order for ``get``:
    1. exact method-scope record
    2. class-scope record (unless ``inherit=False``)
    3. the supplied default
    4. ``None``

Instances resolve to their class, so a lookup on a freshly activated
component sees the records declared on its class.
"""

from typing import Any, Dict, Hashable, List, Optional, Tuple


_MISSING = object()


class MetadataStore:
    """
    Append/overwrite-only metadata registry.

    The store is an explicit object: the application creates one, declares
    modules and components against it, and hands it to the compiler.

    Example:
        store = MetadataStore()
        store.define(UsersComponent, "produces", "application/json")
        store.define(UsersComponent, "method", "get", scope="list")

        store.get(UsersComponent, "method", scope="list")      # "get"
        store.get(UsersComponent, "produces", scope="list")    # inherited
        store.get(UsersComponent, "missing", "fallback")       # "fallback"
    """

    def __init__(self):
        self._records: Dict[Tuple[type, Optional[str]], Dict[Hashable, Any]] = {}
        self._scopes: Dict[type, List[str]] = {}

    @staticmethod
    def _owner(target: Any) -> Any:
        return target if isinstance(target, type) else type(target)

    def define(
        self,
        target: Any,
        key: Hashable,
        value: Any,
        scope: Optional[str] = None,
    ) -> None:
        """Record ``value`` under ``key`` for ``target`` (optionally method-scoped)."""
        owner = self._owner(target)
        self._records.setdefault((owner, scope), {})[key] = value
        if scope is not None:
            scopes = self._scopes.setdefault(owner, [])
            if scope not in scopes:
                scopes.append(scope)

    def get(
        self,
        target: Any,
        key: Hashable,
        default: Any = None,
        scope: Optional[str] = None,
        *,
        inherit: bool = True,
    ) -> Any:
        """Resolve ``key`` with method-scope, class-scope, default fallback."""
        owner = self._owner(target)

        if scope is not None:
            value = self._records.get((owner, scope), {}).get(key, _MISSING)
            if value is not _MISSING:
                return value
            if not inherit:
                return default

        value = self._records.get((owner, None), {}).get(key, _MISSING)
        if value is not _MISSING:
            return value

        return default

    def get_all(self, target: Any, scope: Optional[str] = None) -> Dict[Hashable, Any]:
        """Every key recorded for ``target`` in exactly ``scope``."""
        return dict(self._records.get((self._owner(target), scope), {}))

    def has(self, target: Any, key: Hashable, scope: Optional[str] = None) -> bool:
        return key in self._records.get((self._owner(target), scope), {})

    def scopes(self, target: Any) -> List[str]:
        """Method scopes declared on ``target``, in declaration order."""
        return list(self._scopes.get(self._owner(target), []))

    def __contains__(self, target: Any) -> bool:
        owner = self._owner(target)
        return any(o is owner for o, _ in self._records)

    def __repr__(self) -> str:
        return f"<MetadataStore targets={len({o for o, _ in self._records})}>"
