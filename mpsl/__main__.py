"""CLI entry point for the MPSL interpreter.

Usage:
    python -m mpsl [-v|-vv|-vvv] <program_file>
    python -m mpsl --check <program_file>
    python -m mpsl --tokens <program_file>
    python -m mpsl --emit-ast <program_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --check       Tokenize and parse only, reporting any errors
  --tokens      Print the token stream, one token per line
  --emit-ast    Parse the program and write `<program_file>.ast.json`

Debug information is written to `debug.txt` in the program's directory
when verbosity is greater than zero. The exit status is 1 when the file
is missing or the program fails.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .ast_json import program_to_obj
from .interpreter import check, run_file


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog='mpsl', description="MPSL language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--check', action='store_true', help='tokenize and parse only')
    group.add_argument('--tokens', action='store_true', help='print the token stream')
    group.add_argument('--emit-ast', action='store_true', help='write the AST as JSON next to the program')
    parser.add_argument('program', help='MPSL program file (.mpsl)')
    args = parser.parse_args(argv)

    program_file = Path(args.program)
    if not program_file.is_file():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)

    if args.check or args.tokens or args.emit_ast:
        with open(program_file, 'r', encoding='utf-8') as f:
            source = f.read()
        result = check(source)
        if args.tokens:
            for token in result.tokens:
                print(f"{token.line}:{token.column} {token}")
        for error in result.tokenizer_errors:
            print(error)
        for error in result.parser_errors:
            print(error)
        if not result.valid:
            sys.exit(1)
        if args.emit_ast:
            out_path = program_file.with_name(program_file.name + '.ast.json')
            with open(out_path, 'w', encoding='utf-8') as out:
                json.dump(program_to_obj(result.statements), out, ensure_ascii=False, indent=2)
            print(str(out_path))
        return

    result = run_file(str(program_file), debug_level=args.v)
    if not result.success:
        sys.exit(1)


if __name__ == '__main__':
    main()
