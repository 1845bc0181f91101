"""
CLI (cli.py)

Tests target loading and the ``routes`` command against application
modules written to a temporary directory.
"""

import json
import sys
import textwrap

import httpx
import pytest
from click.testing import CliRunner

from litroute import __version__
from litroute.cli import cli
from litroute.http.server import ServerHandle


APP_SOURCE = textwrap.dedent('''
    from litroute import GET, POST, Injector, MetadataStore, component, module

    store = MetadataStore()


    @component(store)
    class ItemsComponent:
        @GET("items")
        def list_items(self, req, res):
            res.success([])

        @POST("items")
        def create_item(self, req, res):
            res.created({})


    @component(store)
    class OverrideComponent:
        @GET("items")
        def list_items(self, req, res):
            res.success(["override"])


    @module(store, exports=[OverrideComponent])
    class OverrideModule:
        pass


    @module(store, path="api", exports=[ItemsComponent])
    class AppModule:
        pass


    @module(store, path="api", exports=[ItemsComponent], imports=[OverrideModule])
    class ShadowModule:
        pass


    @module(store)
    class LoopModule:
        pass


    module(store, imports=[LoopModule])(LoopModule)


    class Settings:
        def __init__(self, prefix):
            self.prefix = prefix


    injector = Injector()
    injector.provide(Settings, Settings("shared"))


    @component(store)
    class SettingsComponent:
        def __init__(self, settings: Settings):
            self.settings = settings

        @GET("shared")
        def show(self, req, res):
            res.success(self.settings.prefix)


    @module(store, exports=[SettingsComponent])
    class InjectedModule:
        pass
''')


@pytest.fixture
def app_module(tmp_path, monkeypatch, request):
    """Write the sample application and return its import name."""
    name = f"cli_app_{request.node.name.replace('[', '_').replace(']', '_')}"
    (tmp_path / f"{name}.py").write_text(APP_SOURCE)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "path", list(sys.path))
    yield name
    sys.modules.pop(name, None)


@pytest.fixture
def runner():
    return CliRunner()


class TestRoutesCommand:

    def test_table(self, runner, app_module):
        result = runner.invoke(cli, ["routes", f"{app_module}:AppModule"])
        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines[0].split() == ["GET", "/api/items", "ItemsComponent.list_items"]
        assert lines[1].split() == ["POST", "/api/items", "ItemsComponent.create_item"]

    def test_json(self, runner, app_module):
        result = runner.invoke(cli, ["routes", f"{app_module}:AppModule", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [(r["method"], r["path"], r["handler"]) for r in data] == [
            ("GET", "/api/items", "list_items"),
            ("POST", "/api/items", "create_item"),
        ]

    def test_shadowed_route_warning(self, runner, app_module):
        result = runner.invoke(cli, ["routes", f"{app_module}:ShadowModule"])
        assert result.exit_code == 0, result.output
        assert "OverrideComponent.list_items" in result.output
        assert "is shadowed by OverrideComponent.list_items" in result.output

    def test_cycle_reported(self, runner, app_module):
        result = runner.invoke(cli, ["routes", f"{app_module}:LoopModule"])
        assert result.exit_code == 1
        assert "Circular module import" in result.output

    def test_explicit_store(self, runner, app_module):
        result = runner.invoke(cli, ["routes", f"{app_module}:AppModule", "--store", "store"])
        assert result.exit_code == 0, result.output

    def test_module_injector_is_used(self, runner, app_module):
        result = runner.invoke(cli, ["routes", f"{app_module}:InjectedModule"])
        assert result.exit_code == 0, result.output
        assert "GET     /shared" in result.output

    def test_missing_store(self, runner, app_module):
        result = runner.invoke(cli, ["routes", f"{app_module}:AppModule", "--store", "nope"])
        assert result.exit_code == 2
        assert "MetadataStore" in result.output


class TestServeCommand:

    def test_serves_until_stopped(self, runner, app_module, monkeypatch):
        seen = {}

        def stop_after_one_request(self, timeout=None):
            seen["status"] = httpx.get(
                f"http://127.0.0.1:{self.port}/api/items", trust_env=False
            ).status_code
            self.server.should_exit = True
            self._thread.join(5.0)

        monkeypatch.setattr(ServerHandle, "wait", stop_after_one_request)
        result = runner.invoke(cli, ["serve", f"{app_module}:AppModule", "--port", "0"])

        assert result.exit_code == 0, result.output
        assert seen["status"] == 200

    def test_occupied_port(self, runner, app_module, occupied_port):
        result = runner.invoke(
            cli, ["serve", f"{app_module}:AppModule", "--port", str(occupied_port)]
        )
        assert result.exit_code == 1
        assert "SERVER_START_FAILED" in result.output

    def test_invalid_port(self, runner, app_module):
        result = runner.invoke(cli, ["serve", f"{app_module}:AppModule", "--port", "70000"])
        assert result.exit_code == 1
        assert "server.port" in result.output


class TestTargets:

    def test_target_without_colon(self, runner):
        result = runner.invoke(cli, ["routes", "app"])
        assert result.exit_code == 2
        assert "module:RootModule" in result.output

    def test_unknown_module(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(sys, "path", list(sys.path))
        result = runner.invoke(cli, ["routes", "does_not_exist_anywhere:AppModule"])
        assert result.exit_code == 2
        assert "cannot import" in result.output

    def test_unknown_class(self, runner, app_module):
        result = runner.invoke(cli, ["routes", f"{app_module}:Missing"])
        assert result.exit_code == 2
        assert "has no class" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
