from dataclasses import dataclass
from typing import Any, Callable, List, Tuple

from mpsl.errors import MPSLError
from mpsl.types import FunctionVal, to_native_value


@dataclass(eq=False)
class NativeFunction(FunctionVal):
    name: str
    arity: int
    fn: Callable[[List[Any]], Any]

    def call(self, args: List[Any]) -> Any:
        try:
            result = self.fn(args)
        except (OSError, ValueError, ArithmeticError, MemoryError) as e:
            raise MPSLError(str(e)) from e
        return to_native_value(result)

    def __repr__(self) -> str:
        return f"<builtin @{self.name}>"


class UserFunction(FunctionVal):
    """A function declared in MPSL code, closed over its defining scope."""
    def __init__(self, name: str, params: Tuple[str, ...], body, closure):
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure

    @property
    def arity(self) -> int:
        return len(self.params)

    def __repr__(self) -> str:
        return f"<function @{self.name}>"
