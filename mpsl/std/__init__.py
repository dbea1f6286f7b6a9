from typing import Any, List

from mpsl.errors import MPSLError
from mpsl.types import ArrayVal, type_name


def expect_string(args: List[Any], index: int, fn: str, param: str) -> str:
    value = args[index]
    if not isinstance(value, str):
        raise MPSLError(f"{fn} {param} argument must be a string, got {type_name(value)}.")
    return value


def expect_number(args: List[Any], index: int, fn: str, param: str) -> float:
    value = args[index]
    if not isinstance(value, float):
        raise MPSLError(f"{fn} {param} argument must be a number, got {type_name(value)}.")
    return value


def expect_array(args: List[Any], index: int, fn: str, param: str) -> ArrayVal:
    value = args[index]
    if not isinstance(value, ArrayVal):
        raise MPSLError(f"{fn} {param} argument must be an array, got {type_name(value)}.")
    return value
