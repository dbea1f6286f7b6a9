"""Native function registry.

The interpreter resolves a function call against the scope chain first
and only then asks the registry of the root environment. The registry
also knows the built-in groups that `use "Name"` can import; each group
is produced by a factory so every import gets a fresh environment.
"""

from typing import Callable, Dict, List, Optional

from mpsl.builtin_function import NativeFunction


class NativeRegistry:
    def __init__(self):
        self.functions: Dict[str, NativeFunction] = {}
        self.group_factories: Dict[str, Callable] = {}

    def register(self, function: NativeFunction):
        self.functions[function.name] = function

    def register_group(self, name: str, factory: Callable):
        self.group_factories[name] = factory

    def get_function(self, name: str) -> Optional[NativeFunction]:
        return self.functions.get(name)

    def has_group(self, name: str) -> bool:
        return name in self.group_factories

    def make_group(self, name: str):
        return self.group_factories[name]()

    def group_names(self) -> List[str]:
        return sorted(self.group_factories)


def default_registry() -> NativeRegistry:
    """Return a registry with the global natives and the IO and Regex groups."""
    from mpsl.std.globals import populate_globals
    from mpsl.std.io import populate_io_environment
    from mpsl.std.regex import populate_regex_environment

    registry = NativeRegistry()
    populate_globals(registry)
    registry.register_group('IO', populate_io_environment)
    registry.register_group('Regex', populate_regex_environment)
    return registry
