"""
HTTP layer: request view, responses and the ASGI server facade.
"""

from .request import Request
from .response import DEFAULT_CONTENT_TYPE, HttpResponse, RawResponse
from .server import Handler, HttpServer, ServerHandle

__all__ = [
    "Request",
    "RawResponse",
    "HttpResponse",
    "DEFAULT_CONTENT_TYPE",
    "Handler",
    "HttpServer",
    "ServerHandle",
]
