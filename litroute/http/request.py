"""
Request - read-only view over an ASGI HTTP scope.

Body parsing is left to the handler: ``await request.body()`` returns the
raw bytes and nothing more.
"""

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional
from urllib.parse import parse_qsl


class Request:
    """
    HTTP request handed to component methods.

    Attributes:
        scope: ASGI scope dict
        params: Path parameters captured from ``:name`` segments
        state: Free-form per-request storage
    """

    def __init__(
        self,
        scope: Mapping[str, Any],
        receive: Callable[[], Awaitable[dict]],
        params: Optional[Dict[str, str]] = None,
    ):
        self.scope = scope
        self._receive = receive
        self.params: Dict[str, str] = params or {}
        self.state: Dict[str, Any] = {}

        self._body: Optional[bytes] = None
        self._query: Optional[Dict[str, str]] = None
        self._headers: Optional[Dict[str, str]] = None

    @property
    def method(self) -> str:
        """HTTP method (GET, POST, etc.)."""
        return self.scope.get("method", "GET")

    @property
    def path(self) -> str:
        return self.scope.get("path", "/")

    @property
    def query_string(self) -> str:
        return self.scope.get("query_string", b"").decode("latin-1")

    @property
    def query(self) -> Dict[str, str]:
        """Query parameters (first value wins for repeated names)."""
        if self._query is None:
            query: Dict[str, str] = {}
            for key, value in parse_qsl(self.query_string, keep_blank_values=True):
                query.setdefault(key, value)
            self._query = query
        return self._query

    @property
    def headers(self) -> Dict[str, str]:
        """Request headers, lower-cased names."""
        if self._headers is None:
            self._headers = {
                name.decode("latin-1").lower(): value.decode("latin-1")
                for name, value in self.scope.get("headers", [])
            }
        return self._headers

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    async def body(self) -> bytes:
        """Read the full raw request body (cached)."""
        if self._body is None:
            chunks = []
            more_body = True
            while more_body:
                message = await self._receive()
                if message["type"] == "http.disconnect":
                    break
                chunks.append(message.get("body", b""))
                more_body = message.get("more_body", False)
            self._body = b"".join(chunks)
        return self._body

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.path}>"
