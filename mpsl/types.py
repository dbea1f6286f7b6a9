"""Runtime values and value helpers for MPSL.

MPSL values map onto Python objects as follows:

    null     -> None
    boolean  -> bool
    number   -> float (always; natives returning int are converted)
    string   -> str
    array    -> ArrayVal   (mutable, shared by reference)
    object   -> ObjectVal  (mutable, shared by reference)
    function -> FunctionVal subclasses (see builtin_function.py)
    group    -> GroupVal

Statement and block evaluation report an `Outcome`: `NoValue()` when
nothing was produced, `Produced(value)` otherwise. `Produced(None)` is a
produced null and is distinct from `NoValue()`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
import math


@dataclass(frozen=True)
class NoValue:
    """Outcome of a statement that produced nothing to report."""
    pass


@dataclass(frozen=True)
class Produced:
    """Outcome of a statement that produced a value (possibly null)."""
    value: Any


Outcome = Union[NoValue, Produced]


@dataclass(eq=False)
class ArrayVal:
    """An MPSL array. Equality is identity, like every reference value."""
    items: List[Any]

    def __repr__(self) -> str:
        return f"Array({self.items!r})"


def _key(value: Any) -> Tuple[str, Any]:
    # bool must be tested before float so True and 1 stay distinct keys
    if isinstance(value, bool):
        return ('boolean', value)
    if isinstance(value, float):
        return ('number', value)
    if isinstance(value, str):
        return ('string', value)
    return ('ref', id(value))


class ObjectVal:
    """An MPSL object: a mutable mapping from non-null values to values.

    Primitive keys compare by value and reference keys (arrays, objects,
    functions, groups) by identity, matching `values_equal`.
    """
    def __init__(self):
        self.entries: Dict[Tuple[str, Any], Tuple[Any, Any]] = {}

    def __repr__(self) -> str:
        return f"Object({dict(self.items())!r})"

    def __len__(self) -> int:
        return len(self.entries)

    def contains(self, key: Any) -> bool:
        return _key(key) in self.entries

    def get(self, key: Any) -> Any:
        return self.entries[_key(key)][1]

    def set(self, key: Any, value: Any):
        self.entries[_key(key)] = (key, value)

    def items(self) -> Iterator[Tuple[Any, Any]]:
        return iter(list(self.entries.values()))


class FunctionVal:
    """Base class of MPSL callables."""
    name: str
    arity: int


class GroupVal:
    """A named namespace backed by its own environment."""
    def __init__(self, name: str, env):
        self.name = name
        self.env = env

    def __repr__(self) -> str:
        return f"<group {self.name}>"


def is_truthy(value: Any) -> bool:
    """null is false, booleans are themselves, every other value is true."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def values_equal(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, float) and isinstance(b, float):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return a is b


def type_name(value: Any) -> str:
    """Return the MPSL type name of a runtime value."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, ArrayVal):
        return 'array'
    if isinstance(value, ObjectVal):
        return 'object'
    if isinstance(value, FunctionVal):
        return 'function'
    if isinstance(value, GroupVal):
        return 'group'
    return type(value).__name__


def format_number(value: float) -> str:
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value.is_integer():
        return str(int(value))
    return repr(value)


def to_string(value: Any, quoted: bool = False, _seen: Optional[set] = None) -> str:
    """Convert an MPSL value to the text `print` and interpolation show.

    Strings nested in arrays and objects are shown quoted. Containers
    that contain themselves print as `[...]` / `(...)` at the cycle.
    """
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'True' if value else 'False'
    if isinstance(value, (int, float)):
        return format_number(float(value))
    if isinstance(value, str):
        return f'"{value}"' if quoted else value
    if isinstance(value, (ArrayVal, ObjectVal)):
        seen = _seen if _seen is not None else set()
        if id(value) in seen:
            return '[...]' if isinstance(value, ArrayVal) else '(...)'
        seen.add(id(value))
        try:
            if isinstance(value, ArrayVal):
                return '[' + ', '.join(to_string(item, True, seen) for item in value.items) + ']'
            entries = ', '.join(f"{to_string(k, True, seen)}: {to_string(v, True, seen)}"
                                for k, v in value.items())
            return '(' + entries + ')'
        finally:
            seen.discard(id(value))
    return repr(value)


def to_native_value(value: Any) -> Any:
    """Normalize a value returned by host code into an MPSL value."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return float(value)
    if isinstance(value, (list, tuple)):
        return ArrayVal([to_native_value(v) for v in value])
    return value
