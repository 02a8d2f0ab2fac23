# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for the body of ``${...}`` expressions.

Converts raw expression text into a sequence of tokens for subsequent parsing.
"""

import enum
from dataclasses import dataclass

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """All token types produced by the expression scanner."""

    # Keywords
    TRUE = "true"
    FALSE = "false"

    # Operators
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    EQ = "=="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    AND = "&&"
    OR = "||"
    BANG = "!"
    QUESTION = "?"
    COLON = ":"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","

    # Literals
    STRING = "STRING"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"

    # Identifiers
    IDENTIFIER = "IDENTIFIER"

    # End of input
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token with its offset in the expression text.

    Attributes:
        type: The kind of token.
        value: The raw text of the token (or decoded content for STRING tokens).
        column: 1-based column at which the token starts.
    """

    type: TokenType
    value: str
    column: int


class ScanError(Exception):
    """Raised when the scanner encounters an invalid character or unterminated literal.

    Attributes:
        column: 1-based column of the error.
    """

    def __init__(self, message: str, column: int) -> None:
        super().__init__(f"column {column}: {message}")
        self.column = column


def tokenize(source: str) -> list[Token]:
    """Tokenize expression text into a sequence of tokens.

    Args:
        source: The text between ``${`` and ``}``.

    Returns:
        A list of Token objects ending with a single EOF token.

    Raises:
        ScanError: On unexpected characters or unterminated string literals.
    """
    return _Scanner(source).tokenize()


# ################
# Implementation
# ################

_KEYWORDS: dict[str, TokenType] = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}

_TWO_CHAR_TOKENS: dict[str, TokenType] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
}

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "!": TokenType.BANG,
    "?": TokenType.QUESTION,
    ":": TokenType.COLON,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
}


class _Scanner:
    """Internal scanner state machine."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Run the scanner and return all tokens including the terminal EOF."""
        while self._pos < len(self._source):
            if self._current() in " \t\r\n":
                self._pos += 1
                continue
            self._scan_token()
        self._tokens.append(Token(TokenType.EOF, "", self._pos + 1))
        return self._tokens

    def _current(self) -> str:
        """Return the character at the current position, or '' at end of input."""
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self) -> str:
        """Return the character one position ahead, or '' at end of input."""
        if self._pos + 1 < len(self._source):
            return self._source[self._pos + 1]
        return ""

    def _scan_token(self) -> None:
        """Dispatch to the appropriate handler based on the current character."""
        ch = self._current()
        col = self._pos + 1

        pair = ch + self._peek()
        if pair in _TWO_CHAR_TOKENS:
            self._pos += 2
            self._tokens.append(Token(_TWO_CHAR_TOKENS[pair], pair, col))
        elif ch in _SINGLE_CHAR_TOKENS:
            self._pos += 1
            self._tokens.append(Token(_SINGLE_CHAR_TOKENS[ch], ch, col))
        elif ch in "\"'":
            self._scan_string(ch, col)
        elif ch.isdigit() or (ch == "." and self._peek().isdigit()):
            self._scan_number(col)
        elif ch.isalpha() or ch == "_":
            self._scan_identifier_or_keyword(col)
        else:
            raise ScanError(f"Unexpected character: {ch!r}", col)

    def _scan_string(self, quote: str, col: int) -> None:
        """Scan a single- or double-quoted string literal with escape sequences."""
        self._pos += 1  # opening quote
        chars: list[str] = []
        while self._pos < len(self._source):
            ch = self._current()
            if ch == quote:
                self._pos += 1  # closing quote
                self._tokens.append(Token(TokenType.STRING, "".join(chars), col))
                return
            if ch == "\\":
                self._pos += 1
                if self._pos >= len(self._source):
                    break
                esc = self._current()
                chars.append({"n": "\n", "t": "\t"}.get(esc, esc))
            else:
                chars.append(ch)
            self._pos += 1
        raise ScanError("Unterminated string literal", col)

    def _scan_number(self, col: int) -> None:
        """Scan an integer or floating-point literal."""
        start = self._pos
        while self._current().isdigit():
            self._pos += 1
        if self._current() == "." and self._peek().isdigit():
            self._pos += 1  # consume the '.'
            while self._current().isdigit():
                self._pos += 1
            self._tokens.append(Token(TokenType.FLOAT, self._source[start : self._pos], col))
        else:
            self._tokens.append(Token(TokenType.INTEGER, self._source[start : self._pos], col))

    def _scan_identifier_or_keyword(self, col: int) -> None:
        """Scan an identifier and map it to a keyword token type if applicable."""
        start = self._pos
        while self._current().isalnum() or self._current() == "_":
            self._pos += 1
        value = self._source[start : self._pos]
        self._tokens.append(Token(_KEYWORDS.get(value, TokenType.IDENTIFIER), value, col))
