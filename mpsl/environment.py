"""Lexical scopes for MPSL.

An `Environment` holds three independent namespaces (variables,
functions and groups) and a fixed parent. Lookups walk from a scope
toward the root and stop at the first scope that defines the name; the
root scope falls back to the native registry for functions.

Entries remember whether they are public and, for variables, where they
were declared, so that a read which appears earlier in the same source
than the declaration it resolves to is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from mpsl.errors import MPSLError
from mpsl.types import GroupVal, Produced


@dataclass
class Entry:
    value: Any
    public: bool = False
    offset: int = -1
    origin: Any = None
    # reached through a `use` import; only public entries are visible
    foreign: bool = False


KIND_LABELS = {'variables': 'Variable', 'functions': 'Function', 'groups': 'Group'}


class Environment:
    """Represents a scope mapping names to variables, functions and groups."""
    def __init__(self, parent: Optional['Environment'] = None, natives=None):
        self.parent = parent
        self.natives = natives
        self.variables: Dict[str, Entry] = {}
        self.functions: Dict[str, Entry] = {}
        self.groups: Dict[str, Entry] = {}
        # None while absent; Produced(value) while `@` has a value
        self.context: Optional[Produced] = None

    @property
    def root(self) -> 'Environment':
        env = self
        while env.parent is not None:
            env = env.parent
        return env

    @property
    def registry(self):
        root = self.root
        if root.natives is None:
            from mpsl.natives import default_registry
            root.natives = default_registry()
        return root.natives

    def is_within(self, other: 'Environment') -> bool:
        env = self
        while env is not None:
            if env is other:
                return True
            env = env.parent
        return False

    # Definitions

    def define_variable(self, name: str, value: Any, public: bool = False, token=None):
        if name in self.variables:
            raise MPSLError.at(token, f"Variable '{name}' has already been defined.")
        if name in self.groups:
            raise MPSLError.at(token, f"Cannot define a variable with the same name as the group '{name}'.")
        offset = token.start if token is not None else -1
        origin = token.origin if token is not None else None
        self.variables[name] = Entry(value, public, offset, origin)

    def define_function(self, name: str, function, public: bool = False, token=None):
        if name in self.functions:
            raise MPSLError.at(token, f"Function '@{name}' has already been defined.")
        self.functions[name] = Entry(function, public)

    def define_group(self, name: str, group: GroupVal, public: bool = False, token=None):
        if name in self.groups:
            raise MPSLError.at(token, f"Group '{name}' has already been defined.")
        if name in self.variables:
            raise MPSLError.at(token, f"Cannot define a group with the same name as the variable '{name}'.")
        self.groups[name] = Entry(group, public)

    # Lookups

    def _check_visible(self, kind: str, name: str, entry: Entry, token):
        if entry.foreign and not entry.public:
            raise MPSLError.at(token, f"{KIND_LABELS[kind]} '{name}' is inaccessible.")

    def _find(self, kind: str, name: str):
        env = self
        while env is not None:
            entry = getattr(env, kind).get(name)
            if entry is not None:
                return env, entry
            env = env.parent
        return None, None

    def get_variable(self, name: str, token=None) -> Any:
        _, entry = self._find('variables', name)
        if entry is None:
            raise MPSLError.at(token, f"Undefined variable '{name}'.")
        self._check_visible('variables', name, entry, token)
        if token is not None and not entry.foreign and token.origin is entry.origin \
                and token.start < entry.offset:
            raise MPSLError.at(token, f"Variable '{name}' is used before its declaration.")
        return entry.value

    def assign_variable(self, name: str, value: Any, token=None):
        _, entry = self._find('variables', name)
        if entry is None:
            raise MPSLError.at(token, f"Undefined variable '{name}'.")
        self._check_visible('variables', name, entry, token)
        entry.value = value

    def get_function(self, name: str, token=None):
        _, entry = self._find('functions', name)
        if entry is not None:
            self._check_visible('functions', name, entry, token)
            return entry.value
        native = self.registry.get_function(name)
        if native is not None:
            return native
        raise MPSLError.at(token, f"Undefined function '@{name}'.")

    def get_group(self, name: str, token=None) -> GroupVal:
        _, entry = self._find('groups', name)
        if entry is None:
            raise MPSLError.at(token, f"Undefined group '{name}'.")
        self._check_visible('groups', name, entry, token)
        return entry.value

    # Group members

    def member(self, kind: str, name: str, requester: 'Environment', token=None) -> Entry:
        """Return the entry for `group::name`, looked up in this group scope only.

        Private members are visible only to code running inside the group.
        """
        entry = getattr(self, kind).get(name)
        label = KIND_LABELS[kind]
        if entry is None:
            shown = '@' + name if kind == 'functions' else name
            raise MPSLError.at(token, f"Undefined {label.lower()} '{shown}'.")
        if not entry.public and (entry.foreign or not requester.is_within(self)):
            raise MPSLError.at(token, f"{label} '{name}' is inaccessible.")
        return entry

    # Imports

    def merge_from(self, other: 'Environment', token=None):
        """Bring every entry of `other` into this scope as imported entries.

        Groups are shared with `other` and keep their own parent scope.
        """
        for kind in ('variables', 'functions', 'groups'):
            own = getattr(self, kind)
            for name, entry in getattr(other, kind).items():
                if name in own:
                    shown = '@' + name if kind == 'functions' else name
                    raise MPSLError.at(token, f"{KIND_LABELS[kind]} '{shown}' has already been defined.")
                if kind == 'groups':
                    if name in self.variables:
                        raise MPSLError.at(token, f"Cannot define a group with the same name as the variable '{name}'.")
                elif kind == 'variables' and name in self.groups:
                    raise MPSLError.at(token, f"Cannot define a variable with the same name as the group '{name}'.")
                own[name] = replace(entry, foreign=True)
