import os
import shutil
from typing import List

from mpsl.errors import MPSLError


class BasicIO:
    """File system operations behind the `IO` group.

    Paths are relative to the process working directory, which
    `run_file` moves to the folder of the script being run.
    """

    def read_file(self, path: str) -> str:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            raise MPSLError(f"File '{path}' does not exist.")
        except OSError:
            raise MPSLError(f"Error reading file '{path}'.")

    def write_file(self, path: str, data: str):
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(data)
        except OSError:
            raise MPSLError(f"Error writing file '{path}'.")

    def delete_file(self, path: str):
        if not os.path.exists(path):
            return
        try:
            os.remove(path)
        except OSError:
            raise MPSLError(f"Error deleting file '{path}'.")

    def delete_dir(self, path: str):
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            raise MPSLError(f"Directory '{path}' does not exist.")
        except OSError:
            raise MPSLError(f"Error deleting directory '{path}'.")

    def make_dir(self, path: str):
        try:
            os.makedirs(path, exist_ok=True)
        except OSError:
            raise MPSLError(f"Error creating directory '{path}'.")

    def read_dir(self, path: str) -> List[str]:
        try:
            names = sorted(os.listdir(path))
        except FileNotFoundError:
            raise MPSLError(f"Directory '{path}' does not exist.")
        except OSError:
            raise MPSLError(f"Error reading directory '{path}'.")
        return [os.path.join(path, name) for name in names
                if os.path.isfile(os.path.join(path, name))]
