"""
Module Resolver - unpacks a module tree into routes.

Each module contributes its path segment to a cumulative prefix. A
module's exports are registered before any of its imports is unpacked,
and imports are unpacked in declaration order, so a child route with the
same verb and path as a parent route replaces it.

Import cycles raise ModuleCycleFault. A module reached through two
separate branches is unpacked once per branch.
"""

import logging
from typing import Tuple

from .compiler import RouteCompiler, join_path
from .declarations import module_config
from .faults import ModuleCycleFault


class ModuleResolver:
    """
    Walks the import graph of a root module.

    Example:
        resolver = ModuleResolver(compiler)
        resolver.unpack(AppModule)
    """

    def __init__(self, compiler: RouteCompiler):
        self.compiler = compiler
        self.store = compiler.store
        self.logger = logging.getLogger("litroute.resolver")

    def unpack(self, module: type, inherited_path: str = "") -> None:
        self._unpack(module, inherited_path, ())

    def _unpack(self, module: type, inherited_path: str, chain: Tuple[type, ...]) -> None:
        if module in chain:
            raise ModuleCycleFault(list(chain[chain.index(module):]) + [module])
        chain = chain + (module,)

        config = module_config(self.store, module)
        path = join_path([inherited_path, config.path])
        self.logger.debug(
            f"unpack {module.__qualname__} at '/{path}': "
            f"{len(config.exports)} exports, {len(config.imports)} imports"
        )

        # parent exports first
        self.compiler.add_exported_components(path, config.exports)

        for child in config.imports:
            self._unpack(child, path, chain)
