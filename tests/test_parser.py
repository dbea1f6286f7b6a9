from mpsl.ast import (
    Binary, Block, Break, Call, DeclarationAssign, ExpressionStmt, FunctionDeclaration,
    GroupAccess, GroupDeclaration, Grouping, If, IndexAssign, InterpolatedString,
    Match, ObjectLiteral, Public, Push, Unary,
)
from mpsl.parser import parse
from mpsl.tokenizer import tokenize


def parse_source(source):
    tokens, errors = tokenize(source)
    assert errors == []
    return parse(tokens)


def parse_ok(source):
    statements, errors = parse_source(source)
    assert [str(e) for e in errors] == []
    return statements


def expr(source):
    return parse_ok(source)[0].expression


def test_empty_program():
    assert parse_ok('') == []
    assert parse_ok('\n\n') == []


def test_missing_declaration_name():
    statements, errors = parse_source('"test" -> var')
    assert len(errors) == 1
    assert errors[0].message == 'Expected variable name.'
    assert statements == []


def test_reports_every_independent_error():
    _, errors = parse_source('1 -> var\n+ 2\n3 -> @f\n@print 1\n')
    assert [str(e) for e in errors] == [
        '[L1, C9] Expected variable name.',
        '[L2, C1] Expected expression.',
        '[L3, C6] Cannot assign to a function.',
    ]


def test_only_statement_expressions_stand_alone():
    statements, errors = parse_source('1 + 2\n"x" -> var s\n')
    assert [e.message for e in errors] == ['Only assign, call, and match expressions can be used as statements.']
    assert len(statements) == 2


def test_precedence():
    e = expr('1 + 2 * 3 = 7 | !false -> var r').value
    assert isinstance(e, Binary) and e.operator.type == '|'
    equality = e.left
    assert equality.operator.type == '='
    assert equality.left.operator.type == '+'
    assert equality.left.right.operator.type == '*'
    assert isinstance(e.right, Unary)


def test_declaration_assign_and_push():
    assert isinstance(expr('5 -> var x'), DeclarationAssign)
    push = expr('5 -> [xs]')
    assert isinstance(push, Push)
    assert push.target.lexeme == 'xs'
    assert isinstance(expr('1 -> xs[0]'), IndexAssign)


def test_break_sugar():
    block = expr('1 -> break')
    assert isinstance(block, Block)
    assert isinstance(block.statements[1], Break)


def test_call_arguments():
    call = expr('@f 1, 2 + 3')
    assert isinstance(call, Call)
    assert len(call.arguments) == 2
    assert expr('@f!').arguments == ()
    nested = expr('@f @g 1, 2')
    assert len(nested.arguments) == 1
    assert len(nested.arguments[0].arguments) == 2


def test_call_stops_before_object_key():
    obj = expr('(a: @f 1, b: 2) -> var o').value
    assert isinstance(obj, ObjectLiteral)
    assert len(obj.items) == 2
    assert len(obj.items[0].value.arguments) == 1


def test_object_literal_versus_grouping():
    assert isinstance(expr('(a: 1, "b": 2, ..o) -> var o2').value, ObjectLiteral)
    assert isinstance(expr('() -> var o').value, ObjectLiteral)
    assert isinstance(expr('(1 + 2) -> var n').value, Grouping)


def test_group_declaration_and_access():
    statements = parse_ok('group G {\n  public 1 -> var a\n  fn @f => a -> break\n}\nG::@f!\nG::a -> var b\n')
    group = statements[0]
    assert isinstance(group, GroupDeclaration)
    assert isinstance(group.body.statements[0], Public)
    assert isinstance(group.body.statements[1], FunctionDeclaration)
    call = statements[1].expression
    assert isinstance(call, Call) and isinstance(call.callee, GroupAccess)
    assert isinstance(statements[2].expression.value, GroupAccess)


def test_group_body_rejects_statements():
    _, errors = parse_source('group G {\n  @print 1\n}\n')
    assert [e.message for e in errors] == [
        'Only variable, function, and group declarations can be used in a group body.'
    ]


def test_public_inside_block():
    _, errors = parse_source('if true {\n  public 1 -> var a\n}\n')
    assert len(errors) == 1
    assert "'public'" in errors[0].message


def test_if_else_chain():
    stmt = parse_ok('if a {\n  @f!\n} else if b => @g!\nelse => @h!\n')[0]
    assert isinstance(stmt, If)
    assert len(stmt.branches) == 2
    assert stmt.else_body is not None


def test_match_expression():
    m = expr('match x {\n  @ > 1 => @f!\n  else => @g!\n}')
    assert isinstance(m, Match)
    assert len(m.arms) == 1
    assert m.else_body is not None


def test_match_recovers_after_bad_arm():
    statements, errors = parse_source('match 1 {\n  + => @f!\n}\n@print 1\n')
    assert len(errors) == 1
    assert len(statements) == 1
    assert isinstance(statements[0].expression, Call)


def test_errors_inside_block_keep_block():
    statements, errors = parse_source('fn @f {\n  1 -> var\n  @print 2\n}\n@f!\n')
    assert len(errors) == 1
    assert isinstance(statements[0], FunctionDeclaration)
    assert len(statements[0].body.statements) == 1
    assert isinstance(statements[1], ExpressionStmt)


def test_interpolated_string_parts():
    s = expr('@"a {1 + 1} b" -> var s').value
    assert isinstance(s, InterpolatedString)
    assert len(s.parts) == 3


def test_node_spans():
    stmt = parse_ok('  5 -> var x')[0]
    assert stmt.start == 2
    assert stmt.end == len('  5 -> var x')
