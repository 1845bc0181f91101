"""
Hello demo: a module tree with one imported child module.

Run with:
    litroute routes examples.hello_app:AppModule
    litroute serve examples.hello_app:AppModule --port 3000
"""

from litroute import GET, POST, Injector, MetadataStore, component, module


store = MetadataStore()
injector = Injector()


# ============================================================================
# Components
# ============================================================================

@component(store, produces="text/plain")
class HelloComponent:

    @GET("hello")
    def hello(self, req, res):
        res.success(f"Hello {req.query.get('name', 'world')}")


class Greetings:
    def __init__(self):
        self.sent = []


# one list shared by every activated GreetingsComponent
injector.provide(Greetings, Greetings())


@component(store)
class GreetingsComponent:
    """JSON endpoints backed by the shared Greetings provided above."""

    def __init__(self, greetings: Greetings):
        self.greetings = greetings

    @GET()
    def list_greetings(self, req, res):
        res.success(self.greetings.sent)

    @POST(status=201)
    async def send_greeting(self, req, res):
        text = (await req.body()).decode() or "hi"
        self.greetings.sent.append(text)
        res.success({"sent": text})

    @GET(":index")
    def get_greeting(self, req, res):
        try:
            res.success(self.greetings.sent[int(req.params["index"])])
        except (ValueError, IndexError):
            res.errored(404, {"error": "no such greeting"})


# ============================================================================
# Modules
# ============================================================================

@module(store, path="greetings", exports=[GreetingsComponent])
class GreetingsModule:
    pass


@module(store, path="api", exports=[HelloComponent], imports=[GreetingsModule])
class AppModule:
    pass
