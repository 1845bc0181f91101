"""
litroute faults - Core types and fault taxonomy.

Defines:
- Fault base class (structured fault objects)
- FaultDomain (explicit fault domains)
- Severity levels
- Concrete faults raised by declarations, unpacking, activation and routing
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.

    Picks the logging level when the server reports a fault it answers
    with 500 (see ``HttpServer.dispatch``).
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.REGISTRY = FaultDomain("registry", "Module and component declaration errors")
FaultDomain.DI = FaultDomain("di", "Component activation errors")
FaultDomain.ROUTING = FaultDomain("routing", "Route matching errors")
FaultDomain.FLOW = FaultDomain("flow", "Handler execution errors")


DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: Severity.FATAL,
    FaultDomain.REGISTRY: Severity.FATAL,
    FaultDomain.DI: Severity.ERROR,
    FaultDomain.ROUTING: Severity.ERROR,
    FaultDomain.FLOW: Severity.ERROR,
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    Attributes:
        code: Stable machine-readable identifier (e.g., "MODULE_CYCLE")
        message: Human-readable summary
        domain: Fault domain (CONFIG, REGISTRY, ROUTING, ...)
        severity: Fault severity (INFO, WARN, ERROR, FATAL)
        public: Whether safe to expose to a client
        metadata: Additional context data

    Example:
        ```python
        raise Fault(
            code="ROUTE_NOT_FOUND",
            message="No route matches GET /missing",
            domain=FaultDomain.ROUTING,
            public=True,
        )
        ```
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        domain: FaultDomain,
        severity: Optional[Severity] = None,
        public: bool = False,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.domain = domain
        self.severity = severity or DOMAIN_DEFAULTS.get(domain, Severity.ERROR)
        self.public = public
        self.metadata = metadata or {}

    def to_dict(self) -> dict[str, Any]:
        """Public error body."""
        return {
            "error": {
                "code": self.code,
                "message": self.message if self.public else "Internal server error",
                "domain": self.domain.value,
            }
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"Fault(code={self.code!r}, domain={self.domain.value}, "
            f"severity={self.severity.value}, public={self.public})"
        )


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigInvalidFault(Fault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            domain=FaultDomain.CONFIG,
            metadata={"key": key, "reason": reason},
        )


# ============================================================================
# REGISTRY Faults
# ============================================================================

class DeclarationFault(Fault):
    """A module, component or route declaration is malformed."""

    def __init__(self, target: Any, reason: str):
        name = getattr(target, "__qualname__", repr(target))
        super().__init__(
            code="DECLARATION_INVALID",
            message=f"Invalid declaration on {name}: {reason}",
            domain=FaultDomain.REGISTRY,
            metadata={"target": name, "reason": reason},
        )


class ModuleCycleFault(Fault):
    """
    Circular import detected in the module tree.

    Example:
        AppModule imports ApiModule
        ApiModule imports AppModule  <- CYCLE
    """

    def __init__(self, chain: List[Any]):
        names = [getattr(m, "__name__", repr(m)) for m in chain]
        self.chain = chain
        super().__init__(
            code="MODULE_CYCLE",
            message=f"Circular module import: {' -> '.join(names)}",
            domain=FaultDomain.REGISTRY,
            metadata={"chain": names, "length": len(names) - 1},
        )


# ============================================================================
# DI Faults
# ============================================================================

class ActivationFault(Fault):
    """A component could not be instantiated."""

    def __init__(self, cls: type, parameter: str, reason: str):
        super().__init__(
            code="ACTIVATION_FAILED",
            message=(
                f"Cannot activate {cls.__qualname__}: "
                f"parameter '{parameter}' {reason}"
            ),
            domain=FaultDomain.DI,
            metadata={"component": cls.__qualname__, "parameter": parameter},
        )


# ============================================================================
# ROUTING Faults
# ============================================================================

class RouteNotFoundFault(Fault):
    """No route matches the request path."""

    def __init__(self, method: str, path: str):
        super().__init__(
            code="ROUTE_NOT_FOUND",
            message=f"No route matches {method} {path}",
            domain=FaultDomain.ROUTING,
            severity=Severity.WARN,
            public=True,
            metadata={"method": method, "path": path},
        )


class MethodNotAllowedFault(Fault):
    """HTTP method not allowed for route."""

    def __init__(self, method: str, path: str, allowed_methods: List[str]):
        self.allowed_methods = allowed_methods
        super().__init__(
            code="METHOD_NOT_ALLOWED",
            message=f"Method {method} not allowed for {path}",
            domain=FaultDomain.ROUTING,
            severity=Severity.WARN,
            public=True,
            metadata={
                "method": method,
                "path": path,
                "allowed_methods": allowed_methods,
            },
        )


class HandlerFault(Fault):
    """Wraps an unexpected exception raised by a route handler for reporting."""

    def __init__(self, exc: BaseException, method: str, path: str):
        super().__init__(
            code="HANDLER_FAILED",
            message=f"{type(exc).__name__}: {exc}",
            domain=FaultDomain.FLOW,
            metadata={"method": method, "path": path},
        )


class ResponseAlreadySentFault(Fault):
    """A handler tried to send a second response for the same request."""

    def __init__(self, status: int):
        super().__init__(
            code="RESPONSE_ALREADY_SENT",
            message=f"Response already sent; refusing second reply with status {status}",
            domain=FaultDomain.FLOW,
            metadata={"status": status},
        )


class ServerStartFault(Fault):
    """The listener could not be started (bind failure or startup timeout)."""

    def __init__(self, host: str, port: int, reason: str):
        super().__init__(
            code="SERVER_START_FAILED",
            message=f"Cannot listen on {host}:{port}: {reason}",
            domain=FaultDomain.FLOW,
            severity=Severity.FATAL,
            metadata={"host": host, "port": port, "reason": reason},
        )
