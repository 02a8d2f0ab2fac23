# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Scanner, parser and interpreter for ``${...}`` parameter expressions."""

from nncircuit.errors import ExpressionError
from nncircuit.expressions.evaluator import ExpressionEvaluator, evaluate, is_expression, to_text
from nncircuit.expressions.parser import ParseError, parse
from nncircuit.expressions.scanner import ScanError, Token, TokenType, tokenize

__all__ = [
    "evaluate",
    "is_expression",
    "to_text",
    "ExpressionEvaluator",
    "ExpressionError",
    "parse",
    "ParseError",
    "tokenize",
    "Token",
    "TokenType",
    "ScanError",
]
