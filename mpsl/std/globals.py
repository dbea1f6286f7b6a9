import math
import time
from typing import Any, List

import builtins

from mpsl.builtin_function import NativeFunction
from mpsl.errors import MPSLError
from mpsl.std import expect_array, expect_number, expect_string
from mpsl.types import ArrayVal, is_truthy, to_string, type_name


def populate_globals(registry):
    """Register the global native functions on `registry`."""

    def std_time(args: List[Any]) -> Any:
        return float(math.floor(time.time() * 1000))

    def std_print(args: List[Any]) -> Any:
        print(to_string(args[0]))

    def std_write(args: List[Any]) -> Any:
        print(to_string(args[0]), end='')

    def std_read(args: List[Any]) -> Any:
        try:
            return builtins.input()
        except EOFError:
            return None

    def std_parse_num(args: List[Any]) -> Any:
        s = expect_string(args, 0, 'parse_num', 'value')
        try:
            value = float(s)
        except ValueError:
            return None
        return None if math.isnan(value) else value

    def std_wait(args: List[Any]) -> Any:
        seconds = expect_number(args, 0, 'wait', 'seconds')
        if seconds < 0:
            raise MPSLError('Time to wait cannot be negative.')
        time.sleep(seconds)

    def std_length(args: List[Any]) -> Any:
        value = args[0]
        if value is None:
            raise MPSLError('Cannot get the length of null.')
        if isinstance(value, str):
            return len(value)
        if isinstance(value, ArrayVal):
            return len(value.items)
        raise MPSLError('Can only get the length of a string or array.')

    def std_fill_array(args: List[Any]) -> Any:
        size = expect_number(args, 0, 'fill_array', 'size')
        if size < 0:
            raise MPSLError('Size cannot be negative.')
        return ArrayVal([None] * int(size))

    def std_insert(args: List[Any]) -> Any:
        array = expect_array(args, 0, 'insert', 'array')
        index = expect_number(args, 1, 'insert', 'index')
        if index < 0:
            raise MPSLError('Index cannot be negative.')
        if int(index) > len(array.items):
            raise MPSLError(f'Index {int(index)} is out of range.')
        array.items.insert(int(index), args[2])

    def std_remove_at(args: List[Any]) -> Any:
        array = expect_array(args, 0, 'remove_at', 'array')
        index = expect_number(args, 1, 'remove_at', 'index')
        if index < 0:
            raise MPSLError('Index cannot be negative.')
        if int(index) >= len(array.items):
            raise MPSLError(f'Index {int(index)} is out of range.')
        del array.items[int(index)]

    def std_range(args: List[Any]) -> Any:
        start = expect_number(args, 0, 'range', 'from')
        stop = expect_number(args, 1, 'range', 'to')
        return ArrayVal([float(n) for n in builtins.range(int(start), int(stop))])

    def std_range_to(args: List[Any]) -> Any:
        stop = expect_number(args, 0, 'range_to', 'to')
        return ArrayVal([float(n) for n in builtins.range(int(stop))])

    def std_replace(args: List[Any]) -> Any:
        s = expect_string(args, 0, 'replace', 'string')
        pattern = expect_string(args, 1, 'replace', 'pattern')
        replacement = expect_string(args, 2, 'replace', 'replacement')
        return s.replace(pattern, replacement)

    def std_split(args: List[Any]) -> Any:
        s = expect_string(args, 0, 'split', 'string')
        delimiter = expect_string(args, 1, 'split', 'delimiter')
        if delimiter == '':
            raise MPSLError('Delimiter cannot be empty.')
        return ArrayVal(s.split(delimiter))

    def std_if(args: List[Any]) -> Any:
        condition, if_true, if_false = args
        return if_true if is_truthy(condition) else if_false

    def std_mod(args: List[Any]) -> Any:
        number = expect_number(args, 0, 'mod', 'number')
        by = expect_number(args, 1, 'mod', 'by')
        if by == 0:
            raise MPSLError('Cannot divide by zero.')
        return math.fmod(number, by)

    def std_str(args: List[Any]) -> Any:
        return to_string(args[0])

    def std_type(args: List[Any]) -> Any:
        return type_name(args[0])

    registry.register(NativeFunction('time', 0, std_time))
    registry.register(NativeFunction('print', 1, std_print))
    registry.register(NativeFunction('write', 1, std_write))
    registry.register(NativeFunction('read', 0, std_read))
    registry.register(NativeFunction('parse_num', 1, std_parse_num))
    registry.register(NativeFunction('wait', 1, std_wait))
    registry.register(NativeFunction('length', 1, std_length))
    registry.register(NativeFunction('fill_array', 1, std_fill_array))
    registry.register(NativeFunction('insert', 3, std_insert))
    registry.register(NativeFunction('remove_at', 2, std_remove_at))
    registry.register(NativeFunction('range', 2, std_range))
    registry.register(NativeFunction('range_to', 1, std_range_to))
    registry.register(NativeFunction('replace', 3, std_replace))
    registry.register(NativeFunction('split', 2, std_split))
    registry.register(NativeFunction('if', 3, std_if))
    registry.register(NativeFunction('mod', 2, std_mod))
    registry.register(NativeFunction('str', 1, std_str))
    registry.register(NativeFunction('type', 1, std_type))
    return registry
