"""Abstract Syntax Tree (AST) definitions for the MPSL language.

The AST is made of two closed families of immutable dataclasses:
expressions (`Expr` subclasses) and statements (`Stmt` subclasses).
The parser produces them and the interpreter consumes them by checking
node types in a single dispatch function per family.

Every node keeps the tokens needed to recompute its source span, exposed
as `start`, `end` (character offsets) and `first_token` (used to locate
runtime errors).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .tokenizer import Token


@dataclass(frozen=True)
class Node:
    """Base class for all AST nodes."""

    @property
    def first_token(self) -> Token:
        raise NotImplementedError

    @property
    def start(self) -> int:
        return self.first_token.start

    @property
    def end(self) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class Expr(Node):
    pass


@dataclass(frozen=True)
class Stmt(Node):
    pass


###############################################################################
# Expressions
###############################################################################


@dataclass(frozen=True)
class Binary(Expr):
    operator: Token
    left: Expr
    right: Expr

    @property
    def first_token(self) -> Token:
        return self.left.first_token

    @property
    def end(self) -> int:
        return self.right.end


@dataclass(frozen=True)
class Unary(Expr):
    operator: Token
    right: Expr

    @property
    def first_token(self) -> Token:
        return self.operator

    @property
    def end(self) -> int:
        return self.right.end


@dataclass(frozen=True)
class Literal(Expr):
    value: Any
    token: Token

    @property
    def first_token(self) -> Token:
        return self.token

    @property
    def end(self) -> int:
        return self.token.end


@dataclass(frozen=True)
class Grouping(Expr):
    expression: Expr
    open: Token
    close: Token

    @property
    def first_token(self) -> Token:
        return self.open

    @property
    def end(self) -> int:
        return self.close.end


@dataclass(frozen=True)
class Variable(Expr):
    name: Token

    @property
    def first_token(self) -> Token:
        return self.name

    @property
    def end(self) -> int:
        return self.name.end


@dataclass(frozen=True)
class VariableDeclaration(Expr):
    keyword: Token
    name: Token

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        return self.name.end


@dataclass(frozen=True)
class Assign(Expr):
    """Base of the assignment shapes; `value -> target`."""
    target: Expr
    value: Expr

    @property
    def first_token(self) -> Token:
        return self.value.first_token

    @property
    def end(self) -> int:
        return self.target.end


@dataclass(frozen=True)
class DeclarationAssign(Assign):
    target: VariableDeclaration


@dataclass(frozen=True)
class VariableAssign(Assign):
    target: Variable


@dataclass(frozen=True)
class IndexAssign(Assign):
    target: 'Index'


@dataclass(frozen=True)
class GroupMemberAssign(Assign):
    target: 'GroupAccess'


@dataclass(frozen=True)
class Call(Expr):
    callee: Expr  # FunctionRef or GroupAccess naming a command
    arguments: Tuple[Expr, ...]

    @property
    def first_token(self) -> Token:
        return self.callee.first_token

    @property
    def end(self) -> int:
        if self.arguments:
            return self.arguments[-1].end
        return self.callee.end


@dataclass(frozen=True)
class MatchArm:
    condition: Expr
    body: 'Block'


@dataclass(frozen=True)
class Match(Expr):
    keyword: Token
    value: Expr
    arms: Tuple[MatchArm, ...]
    else_body: Optional['Block']
    close: Token

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        return self.close.end


@dataclass(frozen=True)
class ContextValue(Expr):
    token: Token

    @property
    def first_token(self) -> Token:
        return self.token

    @property
    def end(self) -> int:
        return self.token.end


@dataclass(frozen=True)
class Block(Expr):
    open: Token
    statements: Tuple['Stmt', ...]
    close: Token

    @property
    def first_token(self) -> Token:
        return self.open

    @property
    def end(self) -> int:
        return self.close.end


@dataclass(frozen=True)
class ArrayItem:
    expression: Expr
    spread: bool = False


@dataclass(frozen=True)
class ArrayLiteral(Expr):
    open: Token
    items: Tuple[ArrayItem, ...]
    close: Token

    @property
    def first_token(self) -> Token:
        return self.open

    @property
    def end(self) -> int:
        return self.close.end


@dataclass(frozen=True)
class ObjectItem:
    """A `key: value` entry, or a `..value` spread when `key` is None."""
    key: Optional[Literal]
    value: Expr

    @property
    def spread(self) -> bool:
        return self.key is None


@dataclass(frozen=True)
class ObjectLiteral(Expr):
    open: Token
    items: Tuple[ObjectItem, ...]
    close: Token

    @property
    def first_token(self) -> Token:
        return self.open

    @property
    def end(self) -> int:
        return self.close.end


@dataclass(frozen=True)
class Index(Expr):
    expression: Expr
    index: Expr
    open: Token
    close: Token

    @property
    def first_token(self) -> Token:
        return self.expression.first_token

    @property
    def end(self) -> int:
        return self.close.end


@dataclass(frozen=True)
class Push(Expr):
    """`value ->[name]`"""
    target: Token
    value: Expr
    close: Token

    @property
    def first_token(self) -> Token:
        return self.value.first_token

    @property
    def end(self) -> int:
        return self.close.end


@dataclass(frozen=True)
class InterpolatedString(Expr):
    open: Token
    parts: Tuple[Expr, ...]  # literal text and embedded expressions, in order
    close: Token

    @property
    def first_token(self) -> Token:
        return self.open

    @property
    def end(self) -> int:
        return self.close.end


@dataclass(frozen=True)
class GroupAccess(Expr):
    """`group::name`; `name` is an IDENTIFIER or a COMMAND token."""
    group: Expr
    name: Token

    @property
    def first_token(self) -> Token:
        return self.group.first_token

    @property
    def end(self) -> int:
        return self.name.end


@dataclass(frozen=True)
class GroupRef(Expr):
    name: Token

    @property
    def first_token(self) -> Token:
        return self.name

    @property
    def end(self) -> int:
        return self.name.end


@dataclass(frozen=True)
class FunctionRef(Expr):
    name: Token

    @property
    def first_token(self) -> Token:
        return self.name

    @property
    def end(self) -> int:
        return self.name.end


###############################################################################
# Statements
###############################################################################


@dataclass(frozen=True)
class ExpressionStmt(Stmt):
    expression: Expr

    @property
    def first_token(self) -> Token:
        return self.expression.first_token

    @property
    def end(self) -> int:
        return self.expression.end


@dataclass(frozen=True)
class Branch:
    condition: Expr
    body: Block


@dataclass(frozen=True)
class If(Stmt):
    keyword: Token
    branches: Tuple[Branch, ...]  # the `if` branch followed by `else if` branches
    else_body: Optional[Block]

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        if self.else_body is not None:
            return self.else_body.end
        return self.branches[-1].body.end


@dataclass(frozen=True)
class While(Stmt):
    keyword: Token
    condition: Expr
    body: Block

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        return self.body.end


@dataclass(frozen=True)
class Each(Stmt):
    keyword: Token
    variable: Token
    collection: Expr
    body: Block

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        return self.body.end


@dataclass(frozen=True)
class FunctionDeclaration(Stmt):
    keyword: Token
    name: Token
    params: Tuple[Token, ...]
    body: Block

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        return self.body.end


@dataclass(frozen=True)
class Break(Stmt):
    keyword: Token

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        return self.keyword.end


@dataclass(frozen=True)
class Use(Stmt):
    keyword: Token
    path: Token

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        return self.path.end


@dataclass(frozen=True)
class GroupDeclaration(Stmt):
    keyword: Token
    name: Token
    body: Block

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        return self.body.end


@dataclass(frozen=True)
class Public(Stmt):
    keyword: Token
    declaration: Stmt

    @property
    def first_token(self) -> Token:
        return self.keyword

    @property
    def end(self) -> int:
        return self.declaration.end
