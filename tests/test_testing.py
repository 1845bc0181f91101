"""
Test client (testing.py)

End-to-end requests through a compiled module tree.
"""

import pytest

from litroute import (
    DELETE,
    GET,
    POST,
    Injector,
    MetadataStore,
    component,
    module,
)
from litroute.testing import TestClient


class ItemStore:
    def __init__(self):
        self.items = {"1": {"id": "1", "name": "widget"}}


def build_app(store: MetadataStore):
    @component(store, produces="application/json")
    class ItemsComponent:
        def __init__(self, items: ItemStore):
            self.items = items

        @GET("items")
        def list_items(self, req, res):
            res.success(list(self.items.items.values()))

        @GET("items/:item_id")
        def get_item(self, req, res):
            item = self.items.items.get(req.params["item_id"])
            if item is None:
                res.errored(404, {"error": "not found"})
            else:
                res.success(item)

        @POST("items", status=201)
        async def create_item(self, req, res):
            name = (await req.body()).decode()
            item = {"id": str(len(self.items.items) + 1), "name": name}
            self.items.items[item["id"]] = item
            res.success(item)

        @DELETE("items/:item_id")
        def delete_item(self, req, res):
            self.items.items.pop(req.params["item_id"], None)
            res.no_content()

    @component(store)
    class HealthComponent:
        @GET("health", produces="text/plain", headers={"Cache-Control": "no-store"})
        def health(self, req, res):
            res.success("ok")

    @module(store, path="v1", exports=[ItemsComponent])
    class V1Module:
        pass

    @module(store, path="api", exports=[HealthComponent], imports=[V1Module])
    class AppModule:
        pass

    return AppModule


@pytest.fixture
def client(store):
    injector = Injector()
    injector.provide(ItemStore, ItemStore())
    return TestClient(build_app(store), store, injector)


class TestClientRequests:

    @pytest.mark.asyncio
    async def test_list(self, client):
        async with client:
            response = await client.get("/api/v1/items")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == [{"id": "1", "name": "widget"}]

    @pytest.mark.asyncio
    async def test_path_param(self, client):
        async with client:
            found = await client.get("/api/v1/items/1")
            missing = await client.get("/api/v1/items/9")
        assert found.json()["name"] == "widget"
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_create_then_list(self, client):
        async with client:
            created = await client.post("/api/v1/items", content=b"gadget")
            listing = await client.get("/api/v1/items")
        assert created.status_code == 201
        assert created.json() == {"id": "2", "name": "gadget"}
        assert len(listing.json()) == 2

    @pytest.mark.asyncio
    async def test_delete(self, client):
        async with client:
            response = await client.delete("/api/v1/items/1")
        assert response.status_code == 204
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_text_route_with_headers(self, client):
        async with client:
            response = await client.get("/api/health")
        assert response.text == "ok"
        assert response.headers["content-type"] == "text/plain"
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        async with client:
            response = await client.get("/nope")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ROUTE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_wrong_method(self, client):
        async with client:
            response = await client.put("/api/health")
        assert response.status_code == 405
        assert response.headers["allow"] == "GET"

    def test_compiled_table(self, client):
        assert [(r.http_method, r.url) for r in client.compiler.route_table()] == [
            ("get", "/api/health"),
            ("get", "/api/v1/items"),
            ("get", "/api/v1/items/:item_id"),
            ("post", "/api/v1/items"),
            ("delete", "/api/v1/items/:item_id"),
        ]
