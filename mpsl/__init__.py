# MPSL language package
# This package provides a tokenizer, parser and tree-walking interpreter for MPSL.
from .interpreter import run, run_file, check, Interpreter, CheckResult, RunResult
from .environment import Environment
from .errors import MPSLError

__all__ = [
    'run',
    'run_file',
    'check',
    'Interpreter',
    'CheckResult',
    'RunResult',
    'Environment',
    'MPSLError',
]
