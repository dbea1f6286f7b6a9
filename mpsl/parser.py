"""Recursive-descent parser for the MPSL language.

The parser consumes the token list produced by `mpsl.tokenizer` and
builds the statement list of a program. Binary operators are parsed by
one method per precedence layer, from lowest to highest:

    logic_or (|) -> logic_and (&) -> equality (= !=)
    -> comparison (< > <= >=) -> term (+ -) -> factor (* /)
    -> unary (! -) -> access ([index], ::member) -> primary

Errors do not stop the parse. Each error is recorded as a `ParserError`
and a `ParseError` is raised to abandon the current statement; the
statement loop catches it, skips ahead to a safe boundary (the next line
or a statement keyword) and carries on, so one pass reports every
independent error it can find.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .ast import (
    ArrayItem, ArrayLiteral, Assign, Binary, Block, Branch, Break, Call,
    ContextValue, DeclarationAssign, Each, Expr, ExpressionStmt,
    FunctionDeclaration, FunctionRef, GroupAccess, GroupDeclaration,
    GroupMemberAssign, GroupRef, Grouping, If, Index, IndexAssign,
    InterpolatedString, Literal, Match, MatchArm, ObjectItem, ObjectLiteral,
    Public, Push, Stmt, Unary, Use, Variable, VariableAssign,
    VariableDeclaration, While,
)
from .tokenizer import Token


class ParseError(Exception):
    """Raised to abandon the statement being parsed after an error."""
    pass


@dataclass(frozen=True)
class ParserError:
    token: Token
    message: str

    def __str__(self) -> str:
        return f"[L{self.token.line}, C{self.token.column}] {self.message}"


# Expressions allowed to stand alone as a statement.
STATEMENT_EXPRESSIONS = (Assign, Call, VariableDeclaration, Push, Block, Match)

# Tokens that start a new statement; error recovery stops in front of them.
SYNC_KEYWORDS = {'fn', 'var', 'if', 'while', 'break'}

# Tokens that end an argument list when no `!` is given.
CALL_TERMINATORS = {
    '{', '}', ')', ']', ',', ':', '::', '->', '=>', '..', 'EOL', 'EOF',
    '|', '&', '=', '!=', '<', '>', '<=', '>=', '+', '*', '/',
    'INTERPOLATED_TEXT', 'INTERPOLATED_END',
}

# Tokens that can be an object key.
KEY_TOKENS = ('IDENTIFIER', 'STRING', 'NUMBER', 'true', 'false')


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.errors: List[ParserError] = []

    # Token helpers

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def peek_next(self) -> Token:
        if self.pos + 1 < len(self.tokens):
            return self.tokens[self.pos + 1]
        return self.tokens[-1]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type != 'EOF':
            self.pos += 1
        return token

    def check(self, *types: str) -> bool:
        return self.peek().type in types

    def match(self, *types: str) -> bool:
        if self.check(*types):
            self.advance()
            return True
        return False

    def consume(self, types, message: str) -> Token:
        if isinstance(types, str):
            types = (types,)
        if self.check(*types):
            return self.advance()
        raise self.error(self.peek(), message)

    def skip_eols(self):
        while self.match('EOL'):
            pass

    def report(self, token: Token, message: str):
        self.errors.append(ParserError(token, message))

    def error(self, token: Token, message: str) -> ParseError:
        self.report(token, message)
        return ParseError(message)

    def synchronize(self, in_block: bool = False):
        """Skip tokens until a statement boundary.

        Braces are counted so that recovery never stops inside a nested
        block, and inside a block it stops in front of the block's own
        closing brace.
        """
        depth = 0

        def step():
            nonlocal depth
            token = self.advance()
            if token.type == '{':
                depth += 1
            elif token.type == '}':
                depth = max(depth - 1, 0)

        if not self.check('EOF') and not (in_block and self.check('}')):
            step()
        while not self.check('EOF'):
            if depth == 0:
                if self.previous().type == 'EOL' or self.check(*SYNC_KEYWORDS):
                    return
                if in_block and self.check('}'):
                    return
            step()

    def skip_to_closing_brace(self):
        """Skip past the `}` matching an already consumed `{`."""
        depth = 1
        while not self.check('EOF'):
            token = self.advance()
            if token.type == '{':
                depth += 1
            elif token.type == '}':
                depth -= 1
                if depth == 0:
                    return

    # Program structure

    def parse(self) -> Tuple[List[Stmt], List[ParserError]]:
        statements: List[Stmt] = []
        self.skip_eols()
        while not self.check('EOF'):
            try:
                statements.append(self.declaration('top'))
            except ParseError:
                self.synchronize()
            self.skip_eols()
        return statements, self.errors

    @staticmethod
    def is_declaration(stmt: Stmt) -> bool:
        if isinstance(stmt, (FunctionDeclaration, GroupDeclaration)):
            return True
        return isinstance(stmt, ExpressionStmt) and \
            isinstance(stmt.expression, (VariableDeclaration, DeclarationAssign))

    def declaration(self, context: str) -> Stmt:
        """Parse one statement of a top-level ('top'), 'group' or 'block' body."""
        if self.match('public'):
            keyword = self.previous()
            if context == 'block':
                raise self.error(keyword, "The 'public' modifier can only be used at the top level or in a group body.")
            stmt = self.statement()
            if not self.is_declaration(stmt):
                self.report(keyword, "Only variable, function, and group declarations can be public.")
            return Public(keyword, stmt)
        stmt = self.statement()
        if context == 'group' and not (self.is_declaration(stmt) or isinstance(stmt, Use)):
            self.report(stmt.first_token, "Only variable, function, and group declarations can be used in a group body.")
        return stmt

    def statement(self) -> Stmt:
        if self.check('var'):
            keyword = self.advance()
            name = self.consume('IDENTIFIER', "Expected variable name.")
            self.end_statement()
            return ExpressionStmt(VariableDeclaration(keyword, name))
        if self.match('if'):
            return self.if_statement()
        if self.match('while'):
            return While(self.previous(), self.expression(), self.body())
        if self.match('each'):
            return self.each_statement()
        if self.match('break'):
            keyword = self.previous()
            self.end_statement()
            return Break(keyword)
        if self.match('fn'):
            return self.function_declaration()
        if self.match('use'):
            keyword = self.previous()
            path = self.consume('STRING', "Expected path to file or group name as a string.")
            self.end_statement()
            return Use(keyword, path)
        if self.match('group'):
            keyword = self.previous()
            name = self.consume('IDENTIFIER', "Expected group name.")
            self.match('EOL')
            body = self.block('group')
            return GroupDeclaration(keyword, name, body)
        return self.expression_statement()

    def end_statement(self):
        if self.match('EOL') or self.check('EOF', '}'):
            return
        raise self.error(self.peek(), "Expected <EOL>.")

    def expression_statement(self) -> ExpressionStmt:
        expr = self.expression()
        if not isinstance(expr, STATEMENT_EXPRESSIONS):
            self.report(expr.first_token, "Only assign, call, and match expressions can be used as statements.")
        self.end_statement()
        return ExpressionStmt(expr)

    def if_statement(self) -> If:
        keyword = self.previous()
        branches = [Branch(self.expression(), self.body())]
        else_body: Optional[Block] = None
        while self.match('else'):
            if self.match('if'):
                branches.append(Branch(self.expression(), self.body()))
            else:
                else_body = self.body()
                break
        return If(keyword, tuple(branches), else_body)

    def each_statement(self) -> Each:
        keyword = self.previous()
        variable = self.consume('IDENTIFIER', "Expected identifier.")
        self.consume(':', "Expected ':'.")
        collection = self.expression()
        return Each(keyword, variable, collection, self.body())

    def function_declaration(self) -> FunctionDeclaration:
        keyword = self.previous()
        name = self.consume('COMMAND', "Function names must start with an '@' character.")
        params: List[Token] = []
        if not self.check('{', '=>', 'EOL'):
            params.append(self.consume('IDENTIFIER', "Expected parameter name."))
            while self.match(','):
                params.append(self.consume('IDENTIFIER', "Expected parameter name."))
        return FunctionDeclaration(keyword, name, tuple(params), self.body())

    def body(self) -> Block:
        """Parse a `{ ... }` block or a single `=> statement`."""
        self.match('EOL')
        if self.check('{'):
            block = self.block()
        else:
            arrow = self.consume('=>', "Expected '=>' or '{'.")
            stmt = self.declaration('block')
            block = Block(arrow, (stmt,), self.previous())
        self.skip_eols()
        return block

    def block(self, context: str = 'block') -> Block:
        open_ = self.consume('{', "Expected '{'.")
        statements: List[Stmt] = []
        while True:
            self.skip_eols()
            if self.check('}'):
                break
            if self.check('EOF'):
                raise self.error(self.peek(), "Expected '}'.")
            try:
                statements.append(self.declaration(context))
            except ParseError:
                self.synchronize(in_block=True)
        close = self.advance()
        return Block(open_, tuple(statements), close)

    # Expressions

    def expression(self) -> Expr:
        return self.assignment()

    def assignment(self) -> Expr:
        expr = self.logic_or()
        if not self.match('->'):
            return expr
        arrow = self.previous()
        if self.match('break'):
            keyword = self.previous()
            return Block(arrow, (ExpressionStmt(expr), Break(keyword)), keyword)
        if self.match('['):
            name = self.consume('IDENTIFIER', "Expected variable name.")
            close = self.consume(']', "Expected ']'.")
            return Push(name, expr, close)
        return self.assignment_target(expr)

    def assignment_target(self, value: Expr) -> Assign:
        if self.match('var'):
            keyword = self.previous()
            name = self.consume('IDENTIFIER', "Expected variable name.")
            return DeclarationAssign(VariableDeclaration(keyword, name), value)
        if self.check('COMMAND'):
            raise self.error(self.peek(), "Cannot assign to a function.")
        if not self.check('IDENTIFIER'):
            raise self.error(self.peek(), "Expected variable name.")
        target = self.access()
        if isinstance(target, Variable):
            return VariableAssign(target, value)
        if isinstance(target, Index):
            return IndexAssign(target, value)
        if isinstance(target, GroupAccess):
            return GroupMemberAssign(target, value)
        if isinstance(target, Call):
            raise self.error(target.first_token, "Cannot assign to a function.")
        raise self.error(target.first_token, "Invalid assignment target.")

    def logic_or(self) -> Expr:
        expr = self.logic_and()
        while self.match('|'):
            operator = self.previous()
            expr = Binary(operator, expr, self.logic_and())
        return expr

    def logic_and(self) -> Expr:
        expr = self.equality()
        while self.match('&'):
            operator = self.previous()
            expr = Binary(operator, expr, self.equality())
        return expr

    def equality(self) -> Expr:
        expr = self.comparison()
        while self.match('=', '!='):
            operator = self.previous()
            expr = Binary(operator, expr, self.comparison())
        return expr

    def comparison(self) -> Expr:
        expr = self.term()
        while self.match('<', '>', '<=', '>='):
            operator = self.previous()
            expr = Binary(operator, expr, self.term())
        return expr

    def term(self) -> Expr:
        expr = self.factor()
        while self.match('+', '-'):
            operator = self.previous()
            expr = Binary(operator, expr, self.factor())
        return expr

    def factor(self) -> Expr:
        expr = self.unary()
        while self.match('*', '/'):
            operator = self.previous()
            expr = Binary(operator, expr, self.unary())
        return expr

    def unary(self) -> Expr:
        if self.match('!', '-'):
            operator = self.previous()
            return Unary(operator, self.unary())
        return self.access()

    def access(self) -> Expr:
        expr = self.primary()
        while True:
            if self.match('['):
                open_ = self.previous()
                index = self.expression()
                close = self.consume(']', "Expected ']'.")
                expr = Index(expr, index, open_, close)
            elif self.match('::'):
                if isinstance(expr, Variable):
                    expr = GroupRef(expr.name)
                name = self.consume(('IDENTIFIER', 'COMMAND'), "Expected member name after '::'.")
                member = GroupAccess(expr, name)
                if name.type == 'COMMAND':
                    expr = Call(member, self.arguments())
                else:
                    expr = member
            else:
                return expr

    def primary(self) -> Expr:
        token = self.peek()
        kind = token.type
        if kind == 'true':
            return Literal(True, self.advance())
        if kind == 'false':
            return Literal(False, self.advance())
        if kind == 'null':
            return Literal(None, self.advance())
        if kind in ('NUMBER', 'STRING'):
            return Literal(token.value, self.advance())
        if kind == 'IDENTIFIER':
            return Variable(self.advance())
        if kind == 'AT':
            return ContextValue(self.advance())
        if kind == 'COMMAND':
            self.advance()
            return Call(FunctionRef(token), self.arguments())
        if kind == 'match':
            self.advance()
            return self.match_expression(token)
        if kind == '[':
            self.advance()
            return self.array_literal(token)
        if kind == '(':
            self.advance()
            return self.paren_expression(token)
        if kind == '{':
            return self.block()
        if kind == 'INTERPOLATED_START':
            self.advance()
            return self.interpolated_string(token)
        raise self.error(token, "Expected expression.")

    def arguments(self) -> Tuple[Expr, ...]:
        """Parse the arguments of a call, up to a `!` or a terminator."""
        if self.match('!') or self.check(*CALL_TERMINATORS):
            return ()
        args = [self.logic_or()]
        while self.check(','):
            nxt = self.peek_next()
            # `, ..spread` or `, key:` belongs to an enclosing object literal
            if nxt.type == '..' or (nxt.type in KEY_TOKENS and self.tokens[self.pos + 2].type == ':'):
                return tuple(args)
            self.advance()
            args.append(self.logic_or())
        self.match('!')
        return tuple(args)

    def match_expression(self, keyword: Token) -> Match:
        value = self.expression()
        self.consume('{', "Expected '{'.")
        arms: List[MatchArm] = []
        else_body: Optional[Block] = None
        try:
            while True:
                self.skip_eols()
                if self.match('}'):
                    break
                if self.check('EOF'):
                    raise self.error(self.peek(), "Expected '}'.")
                if self.match('else'):
                    else_body = self.body()
                    self.consume('}', "Expected '}'. An else arm must be the last arm in a match expression.")
                    break
                condition = self.expression()
                arms.append(MatchArm(condition, self.body()))
        except ParseError:
            self.skip_to_closing_brace()
            raise
        return Match(keyword, value, tuple(arms), else_body, self.previous())

    def array_literal(self, open_: Token) -> ArrayLiteral:
        items: List[ArrayItem] = []
        if not self.check(']'):
            while True:
                spread = self.match('..')
                items.append(ArrayItem(self.expression(), spread))
                if not self.match(','):
                    break
        close = self.consume(']', "Expected ']'.")
        return ArrayLiteral(open_, tuple(items), close)

    def paren_expression(self, open_: Token) -> Expr:
        if self.check('..', ')') or (self.check(*KEY_TOKENS) and self.peek_next().type == ':'):
            return self.object_literal(open_)
        expr = self.logic_or()
        close = self.consume(')', "Expected ')'.")
        return Grouping(expr, open_, close)

    def object_literal(self, open_: Token) -> ObjectLiteral:
        items: List[ObjectItem] = []
        if not self.check(')'):
            while True:
                if self.match('..'):
                    items.append(ObjectItem(None, self.logic_or()))
                else:
                    key_token = self.consume(KEY_TOKENS, "Expected object key.")
                    if key_token.type == 'IDENTIFIER':
                        key = Literal(key_token.lexeme, key_token)
                    else:
                        key = Literal(key_token.type == 'true' if key_token.type in ('true', 'false')
                                      else key_token.value, key_token)
                    self.consume(':', "Expected ':'.")
                    items.append(ObjectItem(key, self.logic_or()))
                if not self.match(','):
                    break
        close = self.consume(')', "Expected ')'.")
        return ObjectLiteral(open_, tuple(items), close)

    def interpolated_string(self, open_: Token) -> InterpolatedString:
        parts: List[Expr] = []
        text = self.consume('INTERPOLATED_TEXT', "Expected interpolated text.")
        if text.value:
            parts.append(Literal(text.value, text))
        while not self.check('INTERPOLATED_END'):
            parts.append(self.expression())
            text = self.consume('INTERPOLATED_TEXT', "Expected '}' after interpolated expression.")
            if text.value:
                parts.append(Literal(text.value, text))
        close = self.advance()
        return InterpolatedString(open_, tuple(parts), close)


def parse(tokens: List[Token]) -> Tuple[List[Stmt], List[ParserError]]:
    """Parse a token list into statements, returning the recorded errors too."""
    return Parser(tokens).parse()
