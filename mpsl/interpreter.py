"""Tree-walking interpreter for the MPSL language.

`Interpreter.execute` runs one statement and returns its outcome:
`NoValue()`, `Produced(value)` or a `BreakSignal`. Breaks travel back up
as return values until a loop or a function call consumes them; a break
that reaches the top level or a value position is a runtime error.
`Interpreter.evaluate` computes the value of an expression.

Both functions receive the environment explicitly; blocks, loop
iterations and calls run in fresh child environments.

Runtime errors are `MPSLError`s. The first one aborts the run and is
printed as `[L{line}, C{column}] Runtime Error: {message}`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, List, Optional, Set

from .ast import (
    ArrayLiteral, Binary, Block, Break, Call, ContextValue, DeclarationAssign,
    Each, Expr, ExpressionStmt, FunctionDeclaration, FunctionRef, GroupAccess,
    GroupDeclaration, GroupMemberAssign, GroupRef, Grouping, If, Index,
    IndexAssign, InterpolatedString, Literal, Match, ObjectLiteral, Public,
    Push, Stmt, Unary, Use, Variable, VariableAssign, VariableDeclaration,
    While,
)
from .builtin_function import NativeFunction, UserFunction
from .environment import Environment
from .errors import BreakSignal, MPSLError
from .natives import NativeRegistry, default_registry
from .parser import ParserError, parse
from .tokenizer import Token, TokenizerError, tokenize
from .types import (
    ArrayVal, GroupVal, NoValue, ObjectVal, Outcome, Produced,
    is_truthy, to_string, type_name, values_equal,
)


###############################################################################
# Results
###############################################################################


@dataclass(frozen=True)
class CheckResult:
    tokens: List[Token]
    statements: List[Stmt]
    tokenizer_errors: List[TokenizerError]
    parser_errors: List[ParserError]

    @property
    def valid(self) -> bool:
        return not self.tokenizer_errors and not self.parser_errors


@dataclass(frozen=True)
class RunResult:
    success: bool
    tokenizer_errors: List[TokenizerError]
    parser_errors: List[ParserError]


def _accumulate(last: Outcome, result: Outcome) -> Outcome:
    """Fold a statement outcome into the running value of a block.

    A block yields its last non-null value; failing that, null if any
    statement produced null; failing that, no value.
    """
    if isinstance(result, Produced) and (result.value is not None or isinstance(last, NoValue)):
        return result
    return last


###############################################################################
# Interpreter
###############################################################################


class Interpreter:
    """Core interpreter that executes MPSL statements."""
    def __init__(self, registry: Optional[NativeRegistry] = None, debug_level: int = 0,
                 debug_file: str = 'debug.txt'):
        self.registry = registry if registry is not None else default_registry()
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None
        # absolute paths of files currently being imported by `use`
        self.using: Set[str] = set()

    def __enter__(self) -> 'Interpreter':
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    # Public API

    def new_environment(self) -> Environment:
        return Environment(natives=self.registry)

    def run(self, source: str, environment: Optional[Environment] = None) -> RunResult:
        """Tokenize, parse and, when both are error free, execute `source`.

        Tokenizer and parser errors are printed one per line. Definitions
        made by the program stay in `environment`.
        """
        env = environment if environment is not None else self.new_environment()
        tokens, tokenizer_errors = tokenize(source)
        statements, parser_errors = parse(tokens)
        for error in tokenizer_errors:
            print(error)
        for error in parser_errors:
            print(error)
        if tokenizer_errors or parser_errors:
            return RunResult(False, tokenizer_errors, parser_errors)
        return RunResult(self.interpret(statements, env), [], [])

    def interpret(self, statements: List[Stmt], env: Environment) -> bool:
        """Execute statements, printing the first runtime error. True on success."""
        self.debug(f"run: {len(statements)} statement(s)")
        try:
            for stmt in statements:
                result = self.execute(stmt, env)
                if isinstance(result, BreakSignal):
                    raise MPSLError.at(result.token, "Cannot use break outside of a loop or function body.")
        except MPSLError as e:
            print(e.message)
            self.debug("run: failed")
            return False
        self.debug("run: finished")
        return True

    # Statements

    def execute(self, node: Stmt, env: Environment) -> Any:
        if isinstance(node, ExpressionStmt):
            if isinstance(node.expression, (VariableDeclaration, DeclarationAssign)):
                return self.declare(node, env, public=False)
            return self.evaluate_outcome(node.expression, env)
        if isinstance(node, (FunctionDeclaration, GroupDeclaration)):
            return self.declare(node, env, public=False)
        if isinstance(node, Public):
            return self.declare(node.declaration, env, public=True)
        if isinstance(node, If):
            for branch in node.branches:
                cond = self.evaluate(branch.condition, env)
                truthy = is_truthy(cond)
                if self.debug_level >= 3:
                    self.debug(f"if condition {to_string(cond, True)} -> {truthy}")
                if truthy:
                    return self.execute_block(branch.body, env)
            if node.else_body is not None:
                return self.execute_block(node.else_body, env)
            return NoValue()
        if isinstance(node, While):
            result: Any = NoValue()
            while True:
                cond = self.evaluate(node.condition, env)
                if self.debug_level >= 3:
                    self.debug(f"while condition {to_string(cond, True)} -> {is_truthy(cond)}")
                if not is_truthy(cond):
                    break
                result = self.execute_block(node.body, env)
                if isinstance(result, BreakSignal):
                    return result.outcome
            return result
        if isinstance(node, Each):
            collection = self.evaluate(node.collection, env)
            if isinstance(collection, ArrayVal):
                values = list(collection.items)
            elif isinstance(collection, str):
                values = list(collection)
            else:
                raise MPSLError.at(node.variable, "Collection must be a string or array.")
            result = NoValue()
            for value in values:
                scope = Environment(env)
                scope.define_variable(node.variable.lexeme, value)
                result = self.execute_block(node.body, env, scope)
                if isinstance(result, BreakSignal):
                    return result.outcome
            return result
        if isinstance(node, Break):
            return BreakSignal(node.keyword, NoValue())
        if isinstance(node, Use):
            self.use(node, env)
            return NoValue()
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def execute_block(self, block: Block, env: Environment, scope: Optional[Environment] = None) -> Any:
        """Run a block in a fresh child scope (or in `scope` when given)."""
        scope = scope if scope is not None else Environment(env)
        last: Outcome = NoValue()
        for stmt in block.statements:
            result = self.execute(stmt, scope)
            if isinstance(result, BreakSignal):
                return BreakSignal(result.token, _accumulate(last, result.outcome))
            last = _accumulate(last, result)
        return last

    def declare(self, node: Stmt, env: Environment, public: bool) -> Outcome:
        if isinstance(node, FunctionDeclaration):
            params = tuple(p.lexeme for p in node.params)
            function = UserFunction(node.name.value, params, node.body, env)
            env.define_function(node.name.value, function, public, node.name)
            if self.debug_level >= 2:
                self.debug(f"define function {node.name.lexeme}({', '.join(params)}) public={public}")
            return NoValue()
        if isinstance(node, GroupDeclaration):
            name = node.name.lexeme
            group_env = Environment(env)
            result = self.execute_block(node.body, env, group_env)
            if isinstance(result, BreakSignal):
                raise MPSLError.at(result.token, "Cannot use break outside of a loop or function body.")
            env.define_group(name, GroupVal(name, group_env), public, node.name)
            if self.debug_level >= 2:
                self.debug(f"define group {name} public={public}")
            return NoValue()
        if isinstance(node, ExpressionStmt) and isinstance(node.expression, VariableDeclaration):
            self.declare_variable(node.expression, None, env, public)
            return NoValue()
        if isinstance(node, ExpressionStmt) and isinstance(node.expression, DeclarationAssign):
            return Produced(self.assign(node.expression, env, public))
        raise MPSLError.at(node.first_token, "Only variable, function, and group declarations can be public.")

    def declare_variable(self, decl: VariableDeclaration, value: Any, env: Environment, public: bool):
        env.define_variable(decl.name.lexeme, value, public, decl.name)
        if self.debug_level >= 2:
            self.debug(f"declare {decl.name.lexeme}: {type_name(value)} = {to_string(value, True)} public={public}")

    def use(self, node: Use, env: Environment):
        name = node.path.value
        registry = env.registry
        if registry.has_group(name):
            self.debug(f"use built-in group {name}")
            env.merge_from(registry.make_group(name), node.path)
            return
        path = os.path.abspath(name)
        if not os.path.isfile(path):
            raise MPSLError.at(node.path, f"File at '{path}' does not exist.")
        if path in self.using:
            raise MPSLError.at(node.path, f"Circular use of '{name}'.")
        self.debug(f"use file {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                source = f.read()
        except (OSError, UnicodeDecodeError):
            raise MPSLError.at(node.path, f"Failed to use '{name}'.")
        imported = Environment(natives=registry)
        self.using.add(path)
        try:
            result = self.run(source, imported)
        finally:
            self.using.discard(path)
        if not result.success:
            raise MPSLError.at(node.path, f"Failed to use '{name}'.")
        env.merge_from(imported, node.path)

    # Expressions

    def evaluate_outcome(self, node: Expr, env: Environment) -> Any:
        """Evaluate an expression in statement position, keeping NoValue and breaks."""
        if isinstance(node, Block):
            return self.execute_block(node, env)
        if isinstance(node, Match):
            return self.evaluate_match(node, env)
        return Produced(self.evaluate(node, env))

    def evaluate(self, node: Expr, env: Environment) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Grouping):
            return self.evaluate(node.expression, env)
        if isinstance(node, Variable):
            return env.get_variable(node.name.lexeme, node.name)
        if isinstance(node, ContextValue):
            if env.context is None:
                raise MPSLError.at(node.token, "'@' has no value here.")
            return env.context.value
        if isinstance(node, Binary):
            return self.evaluate_binary(node, env)
        if isinstance(node, Unary):
            value = self.evaluate(node.right, env)
            if node.operator.type == '-':
                return -self.check_number(node.operator, value)
            return not is_truthy(value)
        if isinstance(node, (Block, Match)):
            outcome = self.evaluate_outcome(node, env)
            if isinstance(outcome, BreakSignal):
                raise MPSLError.at(outcome.token, "Cannot use break inside an expression.")
            return outcome.value if isinstance(outcome, Produced) else None
        if isinstance(node, VariableDeclaration):
            self.declare_variable(node, None, env, False)
            return None
        if isinstance(node, DeclarationAssign):
            return self.assign(node, env, False)
        if isinstance(node, (VariableAssign, IndexAssign, GroupMemberAssign)):
            return self.assign(node, env)
        if isinstance(node, Call):
            return self.evaluate_call(node, env)
        if isinstance(node, ArrayLiteral):
            array = ArrayVal([])
            for item in node.items:
                value = self.evaluate(item.expression, env)
                if not item.spread:
                    array.items.append(value)
                elif isinstance(value, ArrayVal):
                    array.items.extend(value.items)
                else:
                    raise MPSLError.at(item.expression.first_token, "Can only spread array types in an array expression.")
            return array
        if isinstance(node, ObjectLiteral):
            obj = ObjectVal()
            for item in node.items:
                value = self.evaluate(item.value, env)
                if item.spread:
                    if not isinstance(value, ObjectVal):
                        raise MPSLError.at(item.value.first_token, "Can only spread object types in an object expression.")
                    for k, v in value.items():
                        obj.set(k, v)
                else:
                    key = self.evaluate(item.key, env)
                    if key is None:
                        raise MPSLError.at(item.key.token, "Cannot have null key on object.")
                    obj.set(key, value)
            return obj
        if isinstance(node, Index):
            return self.evaluate_index(node, env)
        if isinstance(node, Push):
            target = env.get_variable(node.target.lexeme, node.target)
            value = self.evaluate(node.value, env)
            if not isinstance(target, ArrayVal):
                raise MPSLError.at(node.target, "Can only push into an array.")
            target.items.append(value)
            return value
        if isinstance(node, InterpolatedString):
            return ''.join(to_string(self.evaluate(part, env)) for part in node.parts)
        if isinstance(node, GroupRef):
            return env.get_group(node.name.lexeme, node.name)
        if isinstance(node, GroupAccess):
            group = self.evaluate_group(node.group, env)
            name = node.name.lexeme
            kind = 'groups' if name in group.env.groups else 'variables'
            return group.env.member(kind, name, env, node.name).value
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def evaluate_group(self, node: Expr, env: Environment) -> GroupVal:
        group = self.evaluate(node, env)
        if not isinstance(group, GroupVal):
            raise MPSLError.at(node.first_token, f"Cannot access a member of a {type_name(group)} value.")
        return group

    def check_number(self, token: Token, value: Any, message: Optional[str] = None) -> float:
        if value is None:
            raise MPSLError.at(token, "Value cannot be null.")
        if not isinstance(value, float):
            raise MPSLError.at(token, message or "Value must be a number.")
        if value != value:
            raise MPSLError.at(token, "Value cannot be NaN.")
        return value

    def evaluate_binary(self, node: Binary, env: Environment) -> Any:
        left = self.evaluate(node.left, env)
        right = self.evaluate(node.right, env)
        op = node.operator.type
        if op == '+':
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            if isinstance(left, float) and isinstance(right, float):
                return self.check_number(node.operator, left) + self.check_number(node.operator, right)
            raise MPSLError.at(node.operator, "Operands must be two numbers or two strings.")
        if op == '=':
            return values_equal(left, right)
        if op == '!=':
            return not values_equal(left, right)
        if op == '&':
            return is_truthy(left) and is_truthy(right)
        if op == '|':
            return is_truthy(left) or is_truthy(right)
        a = self.check_number(node.operator, left)
        b = self.check_number(node.operator, right)
        if op == '/':
            if b == 0:
                raise MPSLError.at(node.operator, "Cannot divide by zero.")
            return a / b
        if op == '-':
            return a - b
        if op == '*':
            return a * b
        if op == '<':
            return a < b
        if op == '>':
            return a > b
        if op == '<=':
            return a <= b
        if op == '>=':
            return a >= b
        raise MPSLError.at(node.operator, f"Unknown operator '{op}'.")

    def index_value(self, node: Index, env: Environment, sequence) -> int:
        """Evaluate the index of `node` and check it against the current length of `sequence`."""
        index = self.check_number(node.first_token, self.evaluate(node.index, env),
                                  "Index of access expression must evaluate to a number.")
        if not index.is_integer():
            raise MPSLError.at(node.first_token, "Index of access expression must evaluate to a whole number.")
        self.check_bounds(node, index, sequence)
        return int(index)

    def check_bounds(self, node: Index, index: float, sequence):
        if index < 0 or index >= len(sequence):
            raise MPSLError.at(node.first_token, f"Index {int(index)} is out of range.")

    def object_key(self, node: Index, env: Environment, obj: ObjectVal) -> Any:
        key = self.evaluate(node.index, env)
        if key is None:
            raise MPSLError.at(node.first_token, "Cannot index object with null key.")
        if not obj.contains(key):
            raise MPSLError.at(node.first_token, f"Object does not contain key '{to_string(key)}'.")
        return key

    def evaluate_index(self, node: Index, env: Environment) -> Any:
        value = self.evaluate(node.expression, env)
        if isinstance(value, ArrayVal):
            return value.items[self.index_value(node, env, value.items)]
        if isinstance(value, str):
            return value[self.index_value(node, env, value)]
        if isinstance(value, ObjectVal):
            return value.get(self.object_key(node, env, value))
        if value is None:
            raise MPSLError.at(node.first_token, "Cannot index a null value.")
        raise MPSLError.at(node.first_token, "Only arrays, strings and objects can be indexed with an access expression.")

    def assign(self, node, env: Environment, public: bool = False) -> Any:
        """Evaluate `value -> target` and return the assigned value.

        While the value is evaluated, `@` holds the value being replaced.
        For a declaration `@` is absent.
        """
        saved = env.context
        try:
            if isinstance(node, DeclarationAssign):
                env.context = None
                value = self.evaluate(node.value, env)
                self.declare_variable(node.target, value, env, public)
                return value
            if isinstance(node, VariableAssign):
                name = node.target.name
                env.context = Produced(env.get_variable(name.lexeme, name))
                value = self.evaluate(node.value, env)
                env.assign_variable(name.lexeme, value, name)
                return value
            if isinstance(node, IndexAssign):
                target = node.target
                container = self.evaluate(target.expression, env)
                if isinstance(container, ArrayVal):
                    index = self.index_value(target, env, container.items)
                    env.context = Produced(container.items[index])
                    value = self.evaluate(node.value, env)
                    self.check_bounds(target, index, container.items)
                    container.items[index] = value
                    return value
                if isinstance(container, ObjectVal):
                    key = self.object_key(target, env, container)
                    env.context = Produced(container.get(key))
                    value = self.evaluate(node.value, env)
                    container.set(key, value)
                    return value
                raise MPSLError.at(target.first_token, "Only arrays and objects can be assigned to with an access expression.")
            if isinstance(node, GroupMemberAssign):
                target = node.target
                group = self.evaluate_group(target.group, env)
                entry = group.env.member('variables', target.name.lexeme, env, target.name)
                env.context = Produced(entry.value)
                value = self.evaluate(node.value, env)
                entry.value = value
                return value
            raise MPSLError.at(node.first_token, "Invalid assignment target.")
        finally:
            env.context = saved

    def evaluate_match(self, node: Match, env: Environment) -> Any:
        value = self.evaluate(node.value, env)
        saved = env.context
        try:
            for arm in node.arms:
                env.context = Produced(value)
                cond = self.evaluate(arm.condition, env)
                if self.debug_level >= 3:
                    self.debug(f"match arm condition {to_string(cond, True)} -> {is_truthy(cond)}")
                if is_truthy(cond):
                    env.context = None
                    return self.execute_block(arm.body, env)
            env.context = None
            if node.else_body is not None:
                return self.execute_block(node.else_body, env)
            return NoValue()
        finally:
            env.context = saved

    def resolve_callee(self, callee: Expr, env: Environment):
        if isinstance(callee, FunctionRef):
            return env.get_function(callee.name.value, callee.name)
        if isinstance(callee, GroupAccess):
            group = self.evaluate_group(callee.group, env)
            return group.env.member('functions', callee.name.value, env, callee.name).value
        raise MPSLError.at(callee.first_token, "Can only call functions.")

    def evaluate_call(self, node: Call, env: Environment) -> Any:
        args = [self.evaluate(arg, env) for arg in node.arguments]
        function = self.resolve_callee(node.callee, env)
        token = node.callee.name if isinstance(node.callee, (FunctionRef, GroupAccess)) else node.first_token
        if function.arity != len(args):
            raise MPSLError.at(token, f"Expected {function.arity} argument(s), but got {len(args)} argument(s).")
        if self.debug_level >= 3:
            self.debug(f"call {token.lexeme}({', '.join(to_string(a, True) for a in args)})")
        try:
            return self.call_function(function, args)
        except MPSLError as e:
            raise MPSLError(f"In function '{token.lexeme}', called from [L{token.line}, C{token.column}]:\n"
                            f"{e.message}") from e

    def call_function(self, function, args: List[Any]) -> Any:
        if isinstance(function, NativeFunction):
            return function.call(args)
        if isinstance(function, UserFunction):
            call_env = Environment(function.closure)
            for param, arg in zip(function.params, args):
                call_env.define_variable(param, arg)
            result = self.execute_block(function.body, function.closure, call_env)
            if isinstance(result, BreakSignal):
                result = result.outcome
            return result.value if isinstance(result, Produced) else None
        raise MPSLError(f"{function!r} is not callable.")


###############################################################################
# Entry points
###############################################################################


def check(source: str) -> CheckResult:
    """Tokenize and parse `source` without running it."""
    tokens, tokenizer_errors = tokenize(source)
    statements, parser_errors = parse(tokens)
    return CheckResult(tokens, statements, tokenizer_errors, parser_errors)


def run(source: str, environment: Optional[Environment] = None, debug_level: int = 0) -> RunResult:
    """Convenience function to run an MPSL program from a source string."""
    with Interpreter(debug_level=debug_level) as interpreter:
        return interpreter.run(source, environment)


def run_file(path: str, environment: Optional[Environment] = None, debug_level: int = 0,
             change_directory: bool = True) -> RunResult:
    """Run an MPSL file.

    The working directory moves to the file's folder first so relative
    paths in the script (and in `use`) resolve against it. A file that
    cannot be read is a failed run with no tokenizer or parser errors.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
    except (OSError, UnicodeDecodeError):
        return RunResult(False, [], [])
    if change_directory:
        os.chdir(os.path.dirname(os.path.abspath(path)))
    return run(source, environment, debug_level)
