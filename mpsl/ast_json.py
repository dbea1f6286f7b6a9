"""JSON serialization for the MPSL AST.

This module converts AST dataclasses into plain Python dict/list
structures suitable for JSON encoding, as written by `--emit-ast`.
Tokens are reduced to their kind, text and position.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Dict, List

from .tokenizer import Token


def token_to_obj(token: Token) -> Dict[str, Any]:
    obj = {"token": token.type, "lexeme": token.lexeme, "line": token.line, "column": token.column}
    if token.value is not None:
        obj["value"] = token.value
    return obj


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None or isinstance(node, (bool, int, float, str)):
        return node
    if isinstance(node, Token):
        return token_to_obj(node)
    if isinstance(node, (list, tuple)):
        return [ast_to_obj(n) for n in node]

    # Node types (and their helper records: branches, arms, items)
    if is_dataclass(node):
        obj: Dict[str, Any] = {"type": type(node).__name__}
        for f in fields(node):
            obj[f.name] = ast_to_obj(getattr(node, f.name))
        return obj

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def program_to_obj(statements: List[Any]) -> Dict[str, Any]:
    return {"type": "Program", "body": [ast_to_obj(s) for s in statements]}
