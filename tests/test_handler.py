"""
Request Handler Adapter (handler.py)

Tests that component methods receive the request and a response carrying
their metadata, for sync and async methods alike.
"""

import pytest

from litroute.declarations import GET, POST, component
from litroute.handler import make_handler
from litroute.http.request import Request
from litroute.http.response import HttpResponse, RawResponse

from conftest import make_receive, make_scope


def make_request(method="GET", path="/", body=b"") -> Request:
    return Request(make_scope(method, path), make_receive(body))


class TestMakeHandler:

    @pytest.mark.asyncio
    async def test_passes_request_and_metadata(self, store):
        seen = {}

        @component(store)
        class Items:
            @GET("items", produces="text/plain", status=202)
            def list_items(self, req, res):
                seen["req"] = req
                seen["res"] = res
                res.success("ok")

        handler = make_handler(store, Items(), "list_items")
        request = make_request(path="/items")
        raw = RawResponse()
        await handler(request, raw)

        assert seen["req"] is request
        assert isinstance(seen["res"], HttpResponse)
        assert seen["res"].metadata == {
            "method": "get",
            "path": "items",
            "produces": "text/plain",
            "status": 202,
        }
        assert raw.status == 202
        assert raw.headers["content-type"] == "text/plain"
        assert raw.body == b"ok"

    @pytest.mark.asyncio
    async def test_async_method_is_awaited(self, store):
        @component(store)
        class Echo:
            @POST("echo")
            async def echo(self, req, res):
                res.success({"body": (await req.body()).decode()})

        raw = RawResponse()
        await make_handler(store, Echo(), "echo")(make_request("POST", "/echo", b"hi"), raw)
        assert raw.body == b'{"body": "hi"}'

    @pytest.mark.asyncio
    async def test_bound_to_given_instance(self, store):
        @component(store)
        class Counter:
            def __init__(self):
                self.calls = 0

            @GET()
            def hit(self, req, res):
                self.calls += 1
                res.success(self.calls)

        instance = Counter()
        handler = make_handler(store, instance, "hit")
        for _ in range(3):
            await handler(make_request(), RawResponse())
        assert instance.calls == 3

    @pytest.mark.asyncio
    async def test_exceptions_propagate(self, store):
        @component(store)
        class Broken:
            @GET()
            def fail(self, req, res):
                raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await make_handler(store, Broken(), "fail")(make_request(), RawResponse())

    def test_qualname_names_component_method(self, store):
        class Health:
            def ping(self, req, res):
                pass

        handler = make_handler(store, Health(), "ping")
        assert handler.__qualname__.endswith("Health.ping")
