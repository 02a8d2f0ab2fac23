# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Recursive-descent parser for expression bodies.

Converts a token stream produced by the scanner into a syntax tree. The
grammar, from lowest to highest precedence::

    expression  := logical_or ( "?" expression ":" expression )?
    logical_or  := logical_and ( "||" logical_and )*
    logical_and := equality ( "&&" equality )*
    equality    := comparison ( ( "==" | "!=" ) comparison )*
    comparison  := additive ( ( "<" | ">" | "<=" | ">=" ) additive )*
    additive    := term ( ( "+" | "-" ) term )*
    term        := unary ( ( "*" | "/" | "%" ) unary )*
    unary       := ( "-" | "!" ) unary | primary
    primary     := NUMBER | STRING | "true" | "false"
                 | IDENTIFIER ( "(" arguments? ")" )?
                 | "(" expression ")"
"""

from nncircuit.expressions.nodes import Binary, Call, Conditional, Literal, Name, Node, Unary
from nncircuit.expressions.scanner import Token, TokenType, tokenize

# ###############
# Public Interface
# ###############


class ParseError(Exception):
    """Raised when the parser encounters a syntactically invalid expression.

    Attributes:
        column: 1-based column of the offending token.
    """

    def __init__(self, message: str, column: int) -> None:
        super().__init__(f"column {column}: {message}")
        self.column = column


def parse(source: str) -> Node:
    """Parse expression text into a syntax tree.

    Args:
        source: The text between ``${`` and ``}``.

    Returns:
        The root node of the parsed expression.

    Raises:
        ScanError: If the source contains invalid characters or unterminated literals.
        ParseError: If the source is syntactically invalid.
    """
    tokens = tokenize(source)
    return _Parser(tokens).parse()


# ################
# Implementation
# ################

_EQUALITY_TYPES: frozenset[TokenType] = frozenset({TokenType.EQ, TokenType.NE})
_COMPARISON_TYPES: frozenset[TokenType] = frozenset({TokenType.LT, TokenType.GT, TokenType.LE, TokenType.GE})
_ADDITIVE_TYPES: frozenset[TokenType] = frozenset({TokenType.PLUS, TokenType.MINUS})
_TERM_TYPES: frozenset[TokenType] = frozenset({TokenType.STAR, TokenType.SLASH, TokenType.PERCENT})


class _Parser:
    """Recursive-descent parser for expression token streams."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> Node:
        """Parse the full token stream and return the expression tree."""
        if self._check(TokenType.EOF):
            raise ParseError("Empty expression", self._current().column)
        node = self._parse_expression()
        tok = self._current()
        if tok.type != TokenType.EOF:
            raise ParseError(f"Unexpected token {tok.value!r}", tok.column)
        return node

    # ------------------------------------------------------------------
    # Token access helpers
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        """Return the current (un-consumed) token."""
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        """Consume and return the current token, stopping at EOF."""
        tok = self._tokens[self._pos]
        if self._pos < len(self._tokens) - 1:
            self._pos += 1
        return tok

    def _check(self, *types: TokenType) -> bool:
        """Return True if the current token matches any of the given types."""
        return self._current().type in types

    def _expect(self, *types: TokenType) -> Token:
        """Consume the current token if it matches any of the given types.

        Raises ParseError if the current token does not match.
        """
        tok = self._current()
        if tok.type not in types:
            expected = ", ".join(repr(t.value) for t in types)
            got = tok.value if tok.type != TokenType.EOF else "end of expression"
            raise ParseError(f"Expected {expected}, got {got!r}", tok.column)
        return self._advance()

    # ------------------------------------------------------------------
    # Grammar rules
    # ------------------------------------------------------------------

    def _parse_expression(self) -> Node:
        """Parse a ternary conditional (right-associative)."""
        condition = self._parse_logical_or()
        if not self._check(TokenType.QUESTION):
            return condition
        self._advance()  # consume ?
        then = self._parse_expression()
        self._expect(TokenType.COLON)
        otherwise = self._parse_expression()
        return Conditional(condition, then, otherwise)

    def _parse_logical_or(self) -> Node:
        node = self._parse_logical_and()
        while self._check(TokenType.OR):
            self._advance()
            node = Binary("||", node, self._parse_logical_and())
        return node

    def _parse_logical_and(self) -> Node:
        node = self._parse_equality()
        while self._check(TokenType.AND):
            self._advance()
            node = Binary("&&", node, self._parse_equality())
        return node

    def _parse_equality(self) -> Node:
        return self._parse_binary_level(_EQUALITY_TYPES, self._parse_comparison)

    def _parse_comparison(self) -> Node:
        return self._parse_binary_level(_COMPARISON_TYPES, self._parse_additive)

    def _parse_additive(self) -> Node:
        return self._parse_binary_level(_ADDITIVE_TYPES, self._parse_term)

    def _parse_term(self) -> Node:
        return self._parse_binary_level(_TERM_TYPES, self._parse_unary)

    def _parse_binary_level(self, types: frozenset[TokenType], operand) -> Node:
        """Parse a left-associative chain of operators drawn from *types*."""
        node = operand()
        while self._current().type in types:
            op = self._advance().value
            node = Binary(op, node, operand())
        return node

    def _parse_unary(self) -> Node:
        if self._check(TokenType.MINUS, TokenType.BANG):
            op = self._advance().value
            return Unary(op, self._parse_unary())
        return self._parse_primary()

    def _parse_primary(self) -> Node:
        tok = self._current()
        if tok.type == TokenType.INTEGER:
            self._advance()
            return Literal(int(tok.value))
        if tok.type == TokenType.FLOAT:
            self._advance()
            return Literal(float(tok.value))
        if tok.type == TokenType.STRING:
            self._advance()
            return Literal(tok.value)
        if tok.type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return Literal(tok.type == TokenType.TRUE)
        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            if self._check(TokenType.LPAREN):
                return Call(tok.value, self._parse_arguments())
            return Name(tok.value)
        if tok.type == TokenType.LPAREN:
            self._advance()  # consume (
            node = self._parse_expression()
            self._expect(TokenType.RPAREN)
            return node
        got = tok.value if tok.type != TokenType.EOF else "end of expression"
        raise ParseError(f"Unexpected token {got!r}", tok.column)

    def _parse_arguments(self) -> tuple[Node, ...]:
        """Parse: ( [expression ( , expression )*] )"""
        self._expect(TokenType.LPAREN)
        arguments: list[Node] = []
        if not self._check(TokenType.RPAREN):
            arguments.append(self._parse_expression())
            while self._check(TokenType.COMMA):
                self._advance()  # consume ,
                arguments.append(self._parse_expression())
        self._expect(TokenType.RPAREN)
        return tuple(arguments)
