import pytest

from mpsl.tokenizer import tokenize


def kinds(source):
    tokens, errors = tokenize(source)
    assert errors == []
    return [t.type for t in tokens]


def test_declaration_tokens():
    tokens, errors = tokenize('1 -> var x')
    assert errors == []
    assert [t.type for t in tokens] == ['NUMBER', '->', 'var', 'IDENTIFIER', 'EOF']
    assert tokens[0].value == 1.0
    assert (tokens[3].line, tokens[3].column) == (1, 10)


def test_commands_and_context():
    tokens, _ = tokenize('@print @')
    assert [t.type for t in tokens] == ['COMMAND', 'AT', 'EOF']
    assert tokens[0].value == 'print'
    assert tokens[0].lexeme == '@print'


def test_compound_operators():
    assert kinds('a != b >= c <= d => e :: f .. g') == [
        'IDENTIFIER', '!=', 'IDENTIFIER', '>=', 'IDENTIFIER', '<=', 'IDENTIFIER',
        '=>', 'IDENTIFIER', '::', 'IDENTIFIER', '..', 'IDENTIFIER', 'EOF',
    ]


def test_numbers_and_spread():
    tokens, errors = tokenize('1..2 .5 3.25')
    assert errors == []
    assert [t.type for t in tokens] == ['NUMBER', '..', 'NUMBER', 'NUMBER', 'NUMBER', 'EOF']
    assert [t.value for t in tokens if t.type == 'NUMBER'] == [1.0, 2.0, 0.5, 3.25]


def test_string_escapes():
    tokens, errors = tokenize(r'"a\tb\n\"q\""')
    assert errors == []
    assert tokens[0].value == 'a\tb\n"q"'


def test_blank_lines_collapse_to_one_eol():
    assert kinds('a\n\n\nb') == ['IDENTIFIER', 'EOL', 'IDENTIFIER', 'EOF']


def test_no_eol_after_open_bracket_or_comma():
    assert kinds('[\n1,\n2\n]') == ['[', 'NUMBER', ',', 'NUMBER', ']', 'EOF']
    assert kinds('{\n}') == ['{', '}', 'EOF']


def test_comments_are_transparent():
    assert kinds('a # note\nb') == ['IDENTIFIER', 'EOL', 'IDENTIFIER', 'EOF']
    assert kinds('a ## spans\nlines ## b') == ['IDENTIFIER', 'IDENTIFIER', 'EOF']
    assert kinds('[ # open\n1]') == ['[', 'NUMBER', ']', 'EOF']


def test_block_comment_keeps_line_numbers():
    tokens, _ = tokenize('## one\ntwo ##\nx')
    assert tokens[-2].type == 'IDENTIFIER'
    assert tokens[-2].line == 3


def test_interpolated_string():
    tokens, errors = tokenize('@"a{x}b"')
    assert errors == []
    assert [t.type for t in tokens] == [
        'INTERPOLATED_START', 'INTERPOLATED_TEXT', 'IDENTIFIER',
        'INTERPOLATED_TEXT', 'INTERPOLATED_END', 'EOF',
    ]
    assert tokens[1].value == 'a'
    assert tokens[3].value == 'b'


def test_interpolated_string_emits_empty_text_around_expressions():
    tokens, _ = tokenize('@"{x}"')
    texts = [t.value for t in tokens if t.type == 'INTERPOLATED_TEXT']
    assert texts == ['', '']


def test_nested_interpolation_and_escaped_braces():
    tokens, errors = tokenize('@"{{ {@"in {y}"} }}"')
    assert errors == []
    types = [t.type for t in tokens]
    assert types.count('INTERPOLATED_START') == 2
    assert types.count('INTERPOLATED_END') == 2
    outer_texts = [tokens[1].value, tokens[-3].value]
    assert outer_texts == ['{ ', ' }']


def nested_interpolation(depth, pad):
    """Interpolated string nested `depth` levels deep, with literal braces hugging each span."""
    if depth == 0:
        return '@"a{{}}b"', ['a{}b']
    inner, texts = nested_interpolation(depth - 1, pad)
    return '@"a{{{' + pad + inner + pad + '}}}b"', ['a{'] + texts + ['}b']


@pytest.mark.parametrize('pad', ['', ' '])
@pytest.mark.parametrize('depth', [0, 1, 2, 3])
def test_generated_nested_interpolation(depth, pad):
    source, expected = nested_interpolation(depth, pad)
    tokens, errors = tokenize(source)
    assert errors == []
    types = [t.type for t in tokens]
    assert types.count('INTERPOLATED_START') == depth + 1
    assert types.count('INTERPOLATED_END') == depth + 1
    open_strings = 0
    for t in types:
        open_strings += {'INTERPOLATED_START': 1, 'INTERPOLATED_END': -1}.get(t, 0)
        assert open_strings >= 0
    assert open_strings == 0
    assert [t.value for t in tokens if t.type == 'INTERPOLATED_TEXT'] == expected
    assert types[-1] == 'EOF'


def test_line_comment_inside_interpolation_ends_at_brace():
    tokens, errors = tokenize('@"a{x # note}b" -> var s')
    assert errors == []
    assert [t.type for t in tokens] == [
        'INTERPOLATED_START', 'INTERPOLATED_TEXT', 'IDENTIFIER', 'INTERPOLATED_TEXT',
        'INTERPOLATED_END', '->', 'var', 'IDENTIFIER', 'EOF',
    ]
    assert tokens[3].value == 'b'


def test_unknown_character():
    tokens, errors = tokenize('1 $ 2')
    assert [str(e) for e in errors] == ["[L1, C3] Unexpected character '$'."]
    assert [t.type for t in tokens] == ['NUMBER', 'NUMBER', 'EOF']


def test_recoverable_errors():
    _, errors = tokenize('"abc')
    assert [e.message for e in errors] == ['Unterminated string literal.']
    _, errors = tokenize(r'"\q"')
    assert [e.message for e in errors] == ["Invalid escape sequence '\\q'."]
    _, errors = tokenize('## never closed')
    assert [e.message for e in errors] == ["Expected '##', got <EOF>."]
    _, errors = tokenize('@"a } b"')
    assert len(errors) == 1


def test_tokenize_is_deterministic():
    source = 'fn @f a {\n  @"{a}" -> break\n}\n'
    assert tokenize(source)[0] == tokenize(source)[0]
