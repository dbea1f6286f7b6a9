"""Tokenizer for the MPSL language.

The tokenizer performs a single left-to-right scan over the source text
and produces a list of `Token` objects terminated by an ``EOF`` token.
It never raises: every anomaly (unknown character, malformed number,
bad escape, unterminated string or comment) is recorded as a
`TokenizerError` and scanning resumes at the next character, so the
parser always receives a complete token stream.

Token kinds are plain strings. Operators and keywords use their own
text as their kind (``'->'``, ``'fn'``); everything else uses an
upper-case name (``'IDENTIFIER'``, ``'NUMBER'``, ``'EOL'`` ...).

Newlines are significant: a newline becomes an ``EOL`` token unless the
previous token already ends a line or opens a bracket. Comments are
discarded and are transparent to this rule.

Interpolated strings (``@"a {expr} b"``) are scanned by re-entering the
token scanner for every embedded ``{ ... }`` span, emitting::

    INTERPOLATED_START TEXT (<expr tokens> TEXT)* INTERPOLATED_END

A text token is emitted around every embedded expression, even when the
text is empty, so the parser always sees strict alternation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple


KEYWORDS = {
    'true', 'false', 'if', 'else', 'while', 'var', 'break', 'match',
    'fn', 'each', 'null', 'use', 'group', 'public',
}

SINGLE_OPERATORS = set('+-*/><=,:{}()[]!&|')

COMPOUND_OPERATORS = {'..', '->', '=>', '!=', '>=', '<=', '::'}

ESCAPE_SEQUENCES = {
    'n': '\n',
    'r': '\r',
    't': '\t',
    '"': '"',
    '\\': '\\',
}

# A newline directly after one of these does not end a statement.
LINE_CONTINUATIONS = {'EOL', '{', '(', '[', ','}


@dataclass(frozen=True)
class Token:
    type: str
    lexeme: str
    line: int
    column: int
    start: int
    value: Any = None
    # Identifies the source text the token was read from. Excluded from
    # equality so identical sources produce equal token lists.
    origin: Any = field(default=None, compare=False, repr=False)

    @property
    def end(self) -> int:
        return self.start + len(self.lexeme)

    def __str__(self) -> str:
        return f"({self.type}, {self.lexeme!r})"


@dataclass(frozen=True)
class TokenizerError:
    line: int
    column: int
    message: str

    def __str__(self) -> str:
        return f"[L{self.line}, C{self.column}] {self.message}"


def _is_ident_start(c: str) -> bool:
    return c.isascii() and (c.isalpha() or c == '_')


def _is_ident_char(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c == '_')


def _is_digit(c: str) -> bool:
    return c.isascii() and c.isdigit()


class Tokenizer:
    """Converts MPSL source text into tokens.

    Usage:
        tokens, errors = Tokenizer(source).tokenize()
    """

    def __init__(self, source: str, origin: Any = None):
        self.source = source.replace('\r\n', '\n').replace('\r', '\n')
        self.origin = origin if origin is not None else object()
        self.tokens: List[Token] = []
        self.errors: List[TokenizerError] = []
        self.pos = 0
        self.line = 1
        self.line_start = 0
        # token start bookkeeping
        self.start = 0
        self.start_line = 1
        self.start_column = 1
        # > 0 while scanning the expression inside an interpolated string
        self.embed_depth = 0

    def tokenize(self) -> Tuple[List[Token], List[TokenizerError]]:
        while not self._at_end():
            self._begin_token()
            self._scan_token()
        self._begin_token()
        self._add_token('EOF')
        return self.tokens, self.errors

    # Character helpers

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.line_start = self.pos
        return ch

    def _column(self) -> int:
        return self.pos - self.line_start + 1

    def _begin_token(self):
        self.start = self.pos
        self.start_line = self.line
        self.start_column = self._column()

    def _add_token(self, type_: str, value: Any = None):
        lexeme = self.source[self.start:self.pos]
        self.tokens.append(Token(type_, lexeme, self.start_line, self.start_column,
                                 self.start, value, self.origin))

    def _last_type(self) -> Optional[str]:
        return self.tokens[-1].type if self.tokens else None

    def _report(self, message: str):
        self.errors.append(TokenizerError(self.line, self._column(), message))

    # Scanning

    def _scan_token(self):
        c = self._peek()
        if c == '@':
            self._advance()
            if self._peek() == '"':
                self._read_interpolated()
            elif _is_ident_char(self._peek()):
                while _is_ident_char(self._peek()):
                    self._advance()
                self._add_token('COMMAND', self.source[self.start + 1:self.pos])
            else:
                self._add_token('AT')
        elif c == '"':
            self._read_string()
        elif c + self._peek(1) in COMPOUND_OPERATORS:
            self._advance()
            self._advance()
            self._add_token(c + self.source[self.pos - 1])
        elif _is_ident_start(c):
            while _is_ident_char(self._peek()):
                self._advance()
            text = self.source[self.start:self.pos]
            self._add_token(text if text in KEYWORDS else 'IDENTIFIER')
        elif c == '.' or _is_digit(c):
            self._read_number()
        elif c in SINGLE_OPERATORS:
            self._advance()
            if c in ')]' and self._last_type() == 'EOL':
                self.tokens.pop()
            self._add_token(c)
        elif c == '#':
            self._skip_comment()
        elif c == '\n':
            self._advance()
            if self.embed_depth == 0 and self.tokens and self._last_type() not in LINE_CONTINUATIONS:
                self.tokens.append(Token('EOL', '\n', self.start_line, self.start_column,
                                         self.start, None, self.origin))
        elif c in ' \t':
            self._advance()
        else:
            self._report(f"Unexpected character '{c}'.")
            self._advance()

    def _read_number(self):
        while _is_digit(self._peek()) or (self._peek() == '.' and self._peek(1) != '.'):
            self._advance()
        text = self.source[self.start:self.pos]
        try:
            value = float(text)
        except ValueError:
            self._report(f"Invalid number '{text}'.")
            return
        self._add_token('NUMBER', value)

    def _skip_comment(self):
        if self._peek(1) == '#':
            self._advance()
            self._advance()
            while not self._at_end() and not (self._peek() == '#' and self._peek(1) == '#'):
                self._advance()
            if self._at_end():
                self._report("Expected '##', got <EOF>.")
                return
            self._advance()
            self._advance()
        else:
            # ends at '}' inside an interpolated expression
            stop = '\n}' if self.embed_depth > 0 else '\n'
            while not self._at_end() and self._peek() not in stop:
                self._advance()

    def _read_escape(self, chars: List[str]):
        """Consume a backslash escape, appending the decoded text to `chars`."""
        self._advance()
        if self._at_end():
            self._report("Invalid escape sequence '\\' at end of input.")
            chars.append('\\')
            return
        nxt = self._peek()
        if nxt in ESCAPE_SEQUENCES:
            chars.append(ESCAPE_SEQUENCES[nxt])
        else:
            self._report(f"Invalid escape sequence '\\{nxt}'.")
            chars.append('\\' + nxt)
        self._advance()

    def _read_string(self):
        self._advance()  # opening quote
        chars: List[str] = []
        while not self._at_end() and self._peek() != '"':
            if self._peek() == '\\':
                self._read_escape(chars)
            else:
                chars.append(self._advance())
        if self._at_end():
            self._report("Unterminated string literal.")
        else:
            self._advance()  # closing quote
        self._add_token('STRING', ''.join(chars))

    def _read_interpolated(self):
        self._advance()  # opening quote
        self._add_token('INTERPOLATED_START')
        self._begin_token()
        chars: List[str] = []
        while True:
            if self._at_end():
                self._report("Unterminated interpolated string.")
                break
            c = self._peek()
            if c == '"':
                break
            if c == '\\':
                self._read_escape(chars)
            elif c in '{}' and self._peek(1) == c:
                self._advance()
                self._advance()
                chars.append(c)
            elif c == '}':
                self._advance()
                self._report("Encountered '}' with no opening '{' in interpolated string.")
            elif c == '{':
                self._add_token('INTERPOLATED_TEXT', ''.join(chars))
                chars = []
                self._advance()
                self._read_embedded()
                self._begin_token()
            else:
                chars.append(self._advance())
        self._add_token('INTERPOLATED_TEXT', ''.join(chars))
        self._begin_token()
        if not self._at_end():
            self._advance()  # closing quote
        self._add_token('INTERPOLATED_END')

    def _read_embedded(self):
        """Scan tokens of one `{ expr }` span up to its matching close brace.

        Nested braces are tracked so a `}` belonging to the embedded
        expression does not end the span. Nested strings, including
        interpolated ones, are consumed whole by `_scan_token`.
        """
        depth = 0
        self.embed_depth += 1
        try:
            while True:
                if self._at_end():
                    self._report("Unterminated expression in interpolated string.")
                    return
                c = self._peek()
                if c == '}' and depth == 0:
                    self._advance()
                    return
                if c == '{':
                    depth += 1
                elif c == '}':
                    depth -= 1
                self._begin_token()
                self._scan_token()
        finally:
            self.embed_depth -= 1


def tokenize(source: str, origin: Any = None) -> Tuple[List[Token], List[TokenizerError]]:
    """Tokenize `source`, returning the token list and the recorded errors."""
    return Tokenizer(source, origin).tokenize()
