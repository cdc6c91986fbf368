"""
Lexical analyzer for the FLYUX scripting language.

This module converts raw source text into the ordered token sequence consumed by
the parser:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: Represents a single token with kind, text, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Features:
    - Drops whitespace; keeps `//` line comments as COMMENT tokens (the parser discards them)
    - Two-character keyword sigils `F>`, `R>`, `L>` built from an identifier-shaped letter
    - Longest-match recognition of the fixed sigils (`:=`, `=>`, `=::`, `<=>`, `.>`)
    - Identifiers made of any non-structural, non-control characters, including
      non-ASCII letters and multi-byte glyphs
    - Numbers captured greedily as digits and dots, strings kept verbatim
      (no escape processing, embedded newlines allowed)
    - Everything else is an UNKNOWN token carrying its character, which the parser
      interprets as an operator where it can

Example:
    >>> [t.kind for t in tokenize("F>main(){}")]
    ['FN', 'IDENT', 'LPAREN', 'RPAREN', 'LBRACE', 'RBRACE']

Exports:
    - CharacterStream
    - Token
    - Lexer
    - tokenize
"""

import unicodedata
from collections.abc import Callable
from typing import Any

from flyux.flyux_constants import (
    ident_continue_excluded,
    keyword_sigils,
    operator_chars,
    reserved_symbols,
    token_hashmap,
    word_keywords,
)

MAX_SIGIL_LEN = max(len(k) for k in token_hashmap)


class CharacterStream:
    """
    Cursor over FLYUX source text that knows where it is.

    Lines and columns are 1-based and count characters, not bytes, so a
    multi-byte identifier advances the column by its glyph count. A newline,
    including one inside a string literal, moves to column 1 of the next line.

    Attributes:
        source (str): The text being scanned.
        position (int): Index of the next unread character.
        line (int): Line of the next unread character.
        column (int): Column of the next unread character.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.position = 0
        self.line = 1
        self.column = 1

    @property
    def at_end(self) -> bool:
        return self.position >= len(self.source)

    def location(self) -> tuple[int, int]:
        return self.line, self.column

    def peek(self, offset: int = 0) -> str:
        """Character `offset` places ahead, or "" past either end."""
        index = self.position + offset
        return self.source[index] if 0 <= index < len(self.source) else ""

    def advance(self) -> str:
        """Consume one character.

        Raises:
            EOFError: If the stream is exhausted.
        """
        if self.at_end:
            raise EOFError(f"read past end of FLYUX source at line {self.line}")
        ch = self.source[self.position]
        self.position += 1
        if ch == "\n":
            self.line, self.column = self.line + 1, 1
        else:
            self.column += 1
        return ch

    def take_while(self, accept: Callable[[str], bool]) -> str:
        """Consume the longest run of characters satisfying `accept`."""
        start = self.position
        while not self.at_end and accept(self.source[self.position]):
            self.advance()
        return self.source[start : self.position]


class Token:
    """Represents a single lexical token.

    Attributes:
        kind (str): The token kind (e.g. 'IDENT', 'NUMBER', 'FN', 'UNKNOWN').
        value (str): The source text of the token (string contents without quotes,
            comment text without the leading `//`).
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    def __init__(self, kind: str, value: str, line: int = 0, col: int = 0):
        self.kind = kind
        self.value = value
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, {self.line}:{self.col})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.kind == other.kind
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.value, self.line, self.col))

    def is_op(self, char: str) -> bool:
        """True if this is the UNKNOWN token carrying `char`."""
        return self.kind == "UNKNOWN" and self.value == char


def is_ident_start(ch: str) -> bool:
    return not (
        unicodedata.category(ch) == "Cc"
        or ch.isspace()
        or ch in reserved_symbols
        or ch in operator_chars
    )


def is_ident_continue(ch: str) -> bool:
    return not (
        unicodedata.category(ch) == "Cc"
        or ch.isspace()
        or ch in reserved_symbols
        or ch in ident_continue_excluded
    )


def is_number_char(ch: str) -> bool:
    return ch == "." or (ch.isascii() and ch.isdigit())


class Lexer:
    """Lexical analyzer for FLYUX.

    Single forward pass over a CharacterStream with at most two characters of
    lookahead (for the three-character sigils).

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def read_comment(self, line: int, col: int) -> Token:
        """Consumes `//` and the rest of the line, excluding the newline."""
        self.stream.advance()
        self.stream.advance()
        return Token("COMMENT", self.stream.take_while(lambda ch: ch != "\n"), line, col)

    def read_string(self, line: int, col: int) -> Token:
        """Consumes a double-quoted string; an unclosed string runs to end of input."""
        self.stream.advance()
        text = self.stream.take_while(lambda ch: ch != '"')
        if not self.stream.at_end:
            self.stream.advance()
        return Token("STRING", text, line, col)

    def read_identifier(self, line: int, col: int) -> Token:
        ident = self.stream.advance() + self.stream.take_while(is_ident_continue)
        if ident in keyword_sigils and self.stream.peek() == ">":
            self.stream.advance()
            return Token(keyword_sigils[ident], ident + ">", line, col)
        if ident in word_keywords:
            return Token(word_keywords[ident], ident, line, col)
        return Token("IDENT", ident, line, col)

    def match_operator(self) -> Token | None:
        """Attempts to match the longest fixed sigil from the current position."""
        line, col = self.stream.location()
        best = ""
        for size in range(1, MAX_SIGIL_LEN + 1):
            candidate = "".join(self.stream.peek(i) for i in range(size))
            if len(candidate) < size:
                break
            if candidate in token_hashmap:
                best = candidate
        if not best:
            return None
        for _ in best:
            self.stream.advance()
        return Token(token_hashmap[best], best, line, col)

    def next_token(self) -> Token:
        """Consumes and returns the next Token, or an EOF token at end of input."""
        self.stream.take_while(str.isspace)
        line, col = self.stream.location()
        if self.stream.at_end:
            return Token("EOF", "EOF", line, col)

        ch = self.stream.peek()
        if ch == "/" and self.stream.peek(1) == "/":
            return self.read_comment(line, col)
        if ch == '"':
            return self.read_string(line, col)
        if is_number_char(ch) and ch != ".":
            return Token("NUMBER", self.stream.take_while(is_number_char), line, col)
        if ch in operator_chars:
            return Token("UNKNOWN", self.stream.advance(), line, col)

        token = self.match_operator()
        if token:
            return token
        if is_ident_start(ch):
            return self.read_identifier(line, col)

        # `<`, `/`, `;` and control characters
        return Token("UNKNOWN", self.stream.advance(), line, col)


def tokenize(source: str) -> list[Token]:
    """Tokenizes `source` completely, returning every token except the final EOF."""
    lexer = Lexer(CharacterStream(source))
    tokens = []
    while True:
        tok = lexer.next_token()
        if tok.kind == "EOF":
            break
        tokens.append(tok)
    return tokens


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
