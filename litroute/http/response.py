"""
Responses.

RawResponse is the per-request buffer owned by the server. HttpResponse is
what component methods receive: it wraps the raw buffer together with the
response metadata resolved for the route (``produces``, ``status``,
``headers``) and fills any value the caller does not set from those
defaults.
"""

import json
from typing import Any, Dict, Mapping, Optional

from ..faults import ResponseAlreadySentFault


DEFAULT_CONTENT_TYPE = "application/json"


class RawResponse:
    """Status, headers and body for one request, flushed by the server."""

    __slots__ = ("status", "headers", "body", "sent")

    def __init__(self):
        self.status = 200
        self.headers: Dict[str, str] = {}
        self.body = b""
        self.sent = False

    def send(self, status: int, headers: Mapping[str, str], body: bytes) -> None:
        if self.sent:
            raise ResponseAlreadySentFault(status)
        self.status = status
        self.headers.update({k.lower(): v for k, v in headers.items()})
        self.body = body
        self.sent = True

    def __repr__(self) -> str:
        return f"<RawResponse [{self.status}] sent={self.sent} {len(self.body)}B>"


class HttpResponse:
    """
    Decorated response passed to component methods.

    Example:
        @GET("items/:id", produces="application/json")
        def get_item(self, req, res):
            res.success({"id": req.params["id"]})
    """

    def __init__(self, response: RawResponse, metadata: Optional[Mapping[str, Any]] = None):
        self.response = response
        self.metadata: Dict[str, Any] = dict(metadata or {})
        self._headers: Dict[str, str] = {}

    @property
    def produces(self) -> str:
        return self.metadata.get("produces") or DEFAULT_CONTENT_TYPE

    @property
    def sent(self) -> bool:
        return self.response.sent

    def set_header(self, name: str, value: str) -> "HttpResponse":
        self._headers[name.lower()] = value
        return self

    def success(self, content: Any = None, status: Optional[int] = None) -> None:
        """Reply with the route's default success status (200 unless declared)."""
        self.send(status or self.metadata.get("status") or 200, content)

    def created(self, content: Any = None) -> None:
        self.send(201, content)

    def no_content(self) -> None:
        self.send(204)

    def errored(self, status: int = 500, content: Any = None) -> None:
        self.send(status, content)

    def send(self, status: int, content: Any = None) -> None:
        """Merge default and caller-set headers and hand the reply to the raw response."""
        headers = {k.lower(): v for k, v in (self.metadata.get("headers") or {}).items()}
        headers.update(self._headers)

        if content is None or status == 204:
            body = b""
        else:
            headers.setdefault("content-type", self.produces)
            body = self._encode(content, headers["content-type"])

        self.response.send(status, headers, body)

    @staticmethod
    def _encode(content: Any, content_type: str) -> bytes:
        if isinstance(content, bytes):
            return content
        if "json" in content_type:
            return json.dumps(content, default=str).encode("utf-8")
        return str(content).encode("utf-8")

    def __repr__(self) -> str:
        return f"<HttpResponse produces={self.produces!r} sent={self.sent}>"
