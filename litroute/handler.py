"""
Request Handler Adapter

Turns a component method into a server handler. The method is called as
``method(request, response)`` where ``response`` is an HttpResponse carrying
every metadata record declared for that method. Sync and async methods are
both supported. Exceptions are not caught here; the server reports them.
"""

import inspect
from typing import Any

from .http.request import Request
from .http.response import HttpResponse, RawResponse
from .http.server import Handler
from .metadata import MetadataStore


def make_handler(store: MetadataStore, instance: Any, name: str) -> Handler:
    """Bind ``instance.name`` to a ``(request, raw_response)`` handler."""

    async def handler(request: Request, response: RawResponse) -> None:
        meta = store.get_all(instance, name)
        result = getattr(instance, name)(request, HttpResponse(response, meta))
        if inspect.isawaitable(result):
            await result

    handler.__qualname__ = f"{type(instance).__qualname__}.{name}"
    return handler
