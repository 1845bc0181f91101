"""
litroute testing - in-process HTTP test client.

Compiles a root module onto a fresh HttpServer and issues requests to it
through httpx's ASGI transport, without opening a socket.

Example:
    async with TestClient(AppModule, store) as client:
        response = await client.get("/api/items")
        assert response.status_code == 200
"""

from typing import Any, Optional

import httpx

from .bootstrap import LitCompiler
from .injector import Injector
from .metadata import MetadataStore


class TestClient:
    """In-process ASGI test client."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        root: type,
        store: MetadataStore,
        injector: Optional[Injector] = None,
        base_url: str = "http://testserver",
    ):
        self.app = LitCompiler(store, injector)
        self.compiler = self.app.compile(root)
        self.server = self.app.server
        self._client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=self.server),
            base_url=base_url,
        )

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return await self._client.request(method, path, **kwargs)

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    async def head(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("HEAD", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TestClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
