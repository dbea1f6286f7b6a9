from .basic_io import BasicIO
from mpsl.builtin_function import NativeFunction
from mpsl.environment import Environment
from mpsl.std import expect_string
from typing import List, Any


def populate_io_environment() -> Environment:
    basic_io = BasicIO()
    io_env = Environment()

    def std_read_file(args: List[Any]) -> Any:
        path = expect_string(args, 0, 'read_file', 'path')
        return basic_io.read_file(path)

    def std_write_file(args: List[Any]) -> Any:
        path = expect_string(args, 0, 'write_file', 'path')
        data = expect_string(args, 1, 'write_file', 'data')
        basic_io.write_file(path, data)

    def std_del_file(args: List[Any]) -> Any:
        path = expect_string(args, 0, 'del_file', 'path')
        basic_io.delete_file(path)

    def std_del_dir(args: List[Any]) -> Any:
        path = expect_string(args, 0, 'del_dir', 'path')
        basic_io.delete_dir(path)

    def std_make_dir(args: List[Any]) -> Any:
        path = expect_string(args, 0, 'make_dir', 'path')
        basic_io.make_dir(path)

    def std_read_dir(args: List[Any]) -> Any:
        path = expect_string(args, 0, 'read_dir', 'path')
        return basic_io.read_dir(path)

    io_env.define_function('read_file', NativeFunction('read_file', 1, std_read_file), public=True)
    io_env.define_function('write_file', NativeFunction('write_file', 2, std_write_file), public=True)
    io_env.define_function('del_file', NativeFunction('del_file', 1, std_del_file), public=True)
    io_env.define_function('del_dir', NativeFunction('del_dir', 1, std_del_dir), public=True)
    io_env.define_function('make_dir', NativeFunction('make_dir', 1, std_make_dir), public=True)
    io_env.define_function('read_dir', NativeFunction('read_dir', 1, std_read_dir), public=True)

    return io_env
