"""
Lexer/Tokenizer for the Wisp language.

Converts raw program text into a lazy stream of tokens. Blocks are delimited
by indentation (two spaces per level), so the lexer synthesizes INDENT/DEDENT
tokens from leading whitespace, one per call, before any other token of the
line is produced.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .errors import make_lex_error

INDENT_WIDTH = 2


class TokenType(Enum):
    """Token types in the Wisp language."""

    # Valued tokens
    NUMBER = "Number"
    ID = "Id"
    CHAR = "Char"
    STRING = "String"

    # Keywords
    CLASS = "Class"
    RETURN = "Return"
    IF = "If"
    ELSE = "Else"
    DEF = "Def"
    PRINT = "Print"
    AND = "And"
    OR = "Or"
    NOT = "Not"
    NONE = "None"
    TRUE = "True"
    FALSE = "False"

    # Two-character comparison operators
    EQ = "Eq"
    NOT_EQ = "NotEq"
    LESS_OR_EQ = "LessOrEq"
    GREATER_OR_EQ = "GreaterOrEq"

    # Structure
    NEWLINE = "Newline"
    INDENT = "Indent"
    DEDENT = "Dedent"
    EOF = "Eof"


VALUED_TOKENS = frozenset({TokenType.NUMBER, TokenType.ID, TokenType.CHAR, TokenType.STRING})

KEYWORDS = {
    "class": TokenType.CLASS,
    "return": TokenType.RETURN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "def": TokenType.DEF,
    "print": TokenType.PRINT,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "None": TokenType.NONE,
    "True": TokenType.TRUE,
    "False": TokenType.FALSE,
}

# First character of a two-character comparison; the second is always "="
COMPARE_OPERATORS = {
    "=": TokenType.EQ,
    "!": TokenType.NOT_EQ,
    "<": TokenType.LESS_OR_EQ,
    ">": TokenType.GREATER_OR_EQ,
}

ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(r"[0-9]+")


@dataclass
class Token:
    """
    A single token of a Wisp program.

    Two tokens are equal when they have the same type and, for valued
    tokens, the same value. The source position is informational only.

    Attributes:
        type: Type of token
        value: Payload of valued tokens (int for NUMBER, str otherwise)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """

    type: TokenType
    value: int | str | None = None
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)

    def is_char(self, char: str) -> bool:
        """True for the CHAR token carrying ``char``."""
        return self.type == TokenType.CHAR and self.value == char

    def __str__(self) -> str:
        if self.type in VALUED_TOKENS:
            return f"{self.type.value}{{{self.value}}}"
        return self.type.value

    def __repr__(self) -> str:
        return f"Token({self.type.value}, {self.value!r}, {self.line}:{self.column})"


class Lexer:
    """
    Lazy lexer for Wisp programs.

    The lexer buffers one non-blank line at a time. ``indent`` counts the
    INDENT tokens emitted so far and never goes negative; ``new_indent`` is
    the level of the buffered line. The first token is produced on
    construction and is available through ``current_token()``.
    """

    def __init__(self, text: str, file: Path | None = None):
        """
        Initialize lexer.

        Args:
            text: Source text to tokenize
            file: Source file path (for error reporting)
        """
        self.file = file
        # Only "\n" ends a line; other line-break characters may sit inside strings
        lines = (line.removesuffix("\r") for line in text.split("\n"))
        self._lines = enumerate(lines, start=1)
        self.line_text = ""
        self.line = 0
        self.pos = 0
        self.indent = 0
        self.new_indent = 0
        self._read_next_line()
        self._current = self._read_token()

    def current_token(self) -> Token:
        """Return the most recently produced token without advancing."""
        return self._current

    def next_token(self) -> Token:
        """Advance to and return the next token."""
        self._current = self._read_token()
        return self._current

    def current_char(self) -> str | None:
        """Get current character of the buffered line or None if exhausted."""
        if self.pos >= len(self.line_text):
            return None
        return self.line_text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        """Peek ahead at character."""
        pos = self.pos + offset
        if pos >= len(self.line_text):
            return None
        return self.line_text[pos]

    def _read_next_line(self) -> bool:
        """
        Buffer the next line that holds something other than spaces or a comment.

        Returns:
            False when the input is exhausted
        """
        for number, raw in self._lines:
            stripped = raw.lstrip(" ")
            if not stripped or stripped.startswith("#"):
                continue
            self.new_indent = (len(raw) - len(stripped)) // INDENT_WIDTH
            self.line_text = raw + "\n"
            self.line = number
            self.pos = 0
            return True

        self.line_text = ""
        self.pos = 0
        return False

    def _make(self, token_type: TokenType, value: int | str | None = None, column: int | None = None) -> Token:
        if column is None:
            column = self.pos + 1
        return Token(token_type, value, self.line, column)

    def _read_token(self) -> Token:
        while True:
            if self.indent < self.new_indent:
                self.indent += 1
                return self._make(TokenType.INDENT, column=1)
            if self.indent > self.new_indent:
                self.indent -= 1
                return self._make(TokenType.DEDENT, column=1)

            ch = self.current_char()

            if ch is None:
                if self._read_next_line():
                    continue
                # End of input closes every open block before EOF
                self.new_indent = 0
                if self.indent > 0:
                    continue
                return self._make(TokenType.EOF)

            if ch == " ":
                while self.current_char() == " ":
                    self.pos += 1
                continue

            column = self.pos + 1

            if ch == "\n":
                self.pos += 1
                return self._make(TokenType.NEWLINE, column=column)

            # Comment runs to the end of the line and still ends it
            if ch == "#":
                self.pos = len(self.line_text)
                return self._make(TokenType.NEWLINE, column=column)

            if ch in COMPARE_OPERATORS and self.peek_char() == "=":
                self.pos += 2
                return self._make(COMPARE_OPERATORS[ch], column=column)

            if ch in ('"', "'"):
                return self._make(TokenType.STRING, self.read_string(), column)

            if _NUMBER_RE.match(ch):
                return self._make(TokenType.NUMBER, self.read_number(), column)

            if _IDENT_RE.match(ch):
                word = self.read_identifier()
                if word in KEYWORDS:
                    return self._make(KEYWORDS[word], column=column)
                return self._make(TokenType.ID, word, column)

            self.pos += 1
            return self._make(TokenType.CHAR, ch, column)

    def read_string(self) -> str:
        """Read a quoted string; the buffered line must contain its closing quote."""
        start_col = self.pos + 1
        quote = self.line_text[self.pos]
        self.pos += 1

        chars = []
        while True:
            current = self.current_char()
            if current is None or current == "\n":
                raise make_lex_error(
                    "Unterminated string literal",
                    self.file,
                    self.line,
                    start_col,
                    self.line_text.rstrip("\n"),
                )
            self.pos += 1
            if current == quote:
                break
            if current == "\\":
                escape_char = self.current_char()
                self.pos += 1
                # Unknown escapes are dropped along with the backslash
                if escape_char in ESCAPES:
                    chars.append(ESCAPES[escape_char])
            else:
                chars.append(current)

        return "".join(chars)

    def read_number(self) -> int:
        """Read an integer literal."""
        match = _NUMBER_RE.match(self.line_text, self.pos)
        assert match is not None
        self.pos = match.end()
        return int(match.group(0))

    def read_identifier(self) -> str:
        """Read an identifier or keyword."""
        match = _IDENT_RE.match(self.line_text, self.pos)
        assert match is not None
        self.pos = match.end()
        return match.group(0)


def tokenize(text: str, file: Path | None = None) -> list[Token]:
    """
    Convenience function to tokenize a whole program.

    Args:
        text: Source text
        file: Source file path

    Returns:
        List of tokens, ending with EOF
    """
    lexer = Lexer(text, file)
    tokens = [lexer.current_token()]
    while tokens[-1].type != TokenType.EOF:
        tokens.append(lexer.next_token())
    return tokens
