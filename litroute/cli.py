"""
litroute CLI.

Commands:
    serve  - compile a root module and listen
    routes - print the compiled route table

Targets are given as ``package.module:RootModule``; the metadata store is
read from the same module (attribute ``store`` unless ``--store`` says
otherwise).
"""

import importlib
import json
import logging
import os
import sys
from typing import Optional, Tuple

import click

from . import __version__
from .bootstrap import LitCompiler
from .config import ConfigLoader
from .faults import Fault
from .injector import Injector
from .metadata import MetadataStore


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def load_target(
    target: str,
    store_name: Optional[str] = None,
) -> Tuple[type, MetadataStore, Optional[Injector]]:
    """
    Import ``module:Attr`` and find the store that declares it.

    An ``injector`` attribute, when the module defines one, supplies the
    shared instances its components are activated with.
    """
    if ":" not in target:
        raise click.BadParameter(f"expected 'module:RootModule', got {target!r}", param_hint="TARGET")

    module_path, attr = target.split(":", 1)
    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_path!r}: {e}", param_hint="TARGET")

    root = getattr(module, attr, None)
    if not isinstance(root, type):
        raise click.BadParameter(f"{module_path!r} has no class {attr!r}", param_hint="TARGET")

    if store_name:
        store = getattr(module, store_name, None)
    else:
        stores = [v for v in vars(module).values() if isinstance(v, MetadataStore)]
        store = getattr(module, "store", None) or (stores[0] if len(stores) == 1 else None)

    if not isinstance(store, MetadataStore):
        raise click.BadParameter(
            f"no MetadataStore found in {module_path!r}; pass --store", param_hint="--store"
        )
    injector = getattr(module, "injector", None)
    if injector is not None and not isinstance(injector, Injector):
        raise click.BadParameter(f"{module_path!r}.injector is not an Injector", param_hint="TARGET")
    return root, store, injector


@click.group()
@click.version_option(__version__, prog_name="litroute")
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
@click.pass_context
def cli(ctx, verbose: bool):
    """litroute - declarative route composition."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@cli.command('routes')
@click.argument('target')
@click.option('--store', 'store_name', type=str, help='Name of the MetadataStore attribute')
@click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of a table')
@click.pass_context
def routes(ctx, target: str, store_name: Optional[str], as_json: bool):
    """
    Print the route table of a root module.

    Examples:
      litroute routes app:AppModule
      litroute routes app:AppModule --json
    """
    root, store, injector = load_target(target, store_name)
    try:
        compiler = LitCompiler(store, injector).compile(root)
    except Fault as fault:
        raise click.ClickException(str(fault))

    table = compiler.route_table()
    if as_json:
        click.echo(json.dumps([r.to_dict() for r in table], indent=2))
        return

    for route in table:
        click.echo(
            f"{route.http_method.upper():7} {route.url:30} "
            f"{route.component.__qualname__}.{route.method_name}"
        )
    for shadowed, winner in compiler.collisions:
        click.secho(
            f"warning: {shadowed.http_method.upper()} {shadowed.url} from "
            f"{shadowed.component.__qualname__}.{shadowed.method_name} is shadowed by "
            f"{winner.component.__qualname__}.{winner.method_name}",
            fg="yellow",
            err=True,
        )


@cli.command('serve')
@click.argument('target')
@click.option('--port', type=int, default=None, help='Server port (default: PORT, LIT_PORT or 3000)')
@click.option('--host', type=str, default=None, help='Server host')
@click.option('--store', 'store_name', type=str, help='Name of the MetadataStore attribute')
@click.option('--env-file', type=click.Path(), default='.env', show_default=True)
@click.pass_context
def serve(ctx, target: str, port: Optional[int], host: Optional[str],
          store_name: Optional[str], env_file: str):
    """
    Compile a root module and serve it.

    Examples:
      litroute serve app:AppModule
      litroute serve app:AppModule --port=8080
    """
    overrides = {"server": {k: v for k, v in (("host", host), ("port", port)) if v is not None}}
    try:
        config = ConfigLoader.load(env_file=env_file, overrides=overrides).server_config()
    except Fault as fault:
        raise click.ClickException(str(fault))

    logging.basicConfig(
        level=logging.DEBUG if ctx.obj['verbose'] else getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )

    root, store, injector = load_target(target, store_name)
    try:
        handle = LitCompiler(store, injector, config=config).bootstrap(root)
    except Fault as fault:
        raise click.ClickException(str(fault))

    try:
        handle.wait()
    except KeyboardInterrupt:
        click.echo("\n✓ Server stopped")
        handle.close()


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
