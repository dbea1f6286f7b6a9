import re
from typing import Any, List

from mpsl.builtin_function import NativeFunction
from mpsl.environment import Environment
from mpsl.errors import MPSLError
from mpsl.std import expect_string
from mpsl.types import ArrayVal


def _compile(pattern: str):
    try:
        return re.compile(pattern)
    except re.error as e:
        raise MPSLError(f"Invalid regular expression '{pattern}': {e}.")


def populate_regex_environment() -> Environment:
    """Build the environment of the `Regex` group (Python `re` syntax)."""
    regex_env = Environment()

    def std_match(args: List[Any]) -> Any:
        s = expect_string(args, 0, 'match', 'string')
        found = _compile(expect_string(args, 1, 'match', 'pattern')).search(s)
        return found.group(0) if found else ''

    def std_matches(args: List[Any]) -> Any:
        s = expect_string(args, 0, 'matches', 'string')
        pattern = _compile(expect_string(args, 1, 'matches', 'pattern'))
        return ArrayVal([m.group(0) for m in pattern.finditer(s)])

    def std_replace(args: List[Any]) -> Any:
        s = expect_string(args, 0, 'replace', 'string')
        pattern = _compile(expect_string(args, 1, 'replace', 'pattern'))
        replacement = expect_string(args, 2, 'replace', 'replacement')
        try:
            return pattern.sub(replacement, s)
        except re.error as e:
            raise MPSLError(f"Invalid replacement '{replacement}': {e}.")

    regex_env.define_function('match', NativeFunction('match', 2, std_match), public=True)
    regex_env.define_function('matches', NativeFunction('matches', 2, std_matches), public=True)
    regex_env.define_function('replace', NativeFunction('replace', 3, std_replace), public=True)
    return regex_env
