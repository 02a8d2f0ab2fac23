# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Evaluation of ``${...}`` parameter expressions.

A string may embed any number of ``${...}`` spans. Each span is parsed by the
recursive-descent parser and interpreted against a namespace built from the
caller's parameters and an optional context (for example a loop iterator).
Nothing is ever handed to the host interpreter.
"""

from __future__ import annotations

import json
import math
from collections import ChainMap
from collections.abc import Callable, Mapping
from typing import Any

from nncircuit.errors import ExpressionError
from nncircuit.expressions.nodes import Binary, Call, Conditional, Literal, Name, Node, Unary
from nncircuit.expressions.parser import ParseError, parse
from nncircuit.expressions.scanner import ScanError

# ###############
# Public Interface
# ###############


def evaluate(
    expression: Any,
    params: Mapping[str, Any] | None = None,
    context: Mapping[str, Any] | None = None,
) -> Any:
    """Evaluate *expression* without caching.

    Non-string values and strings without ``${`` are returned unchanged. When
    the whole string is a single ``${...}`` span, the native value of the
    expression is returned (``"${2+3}"`` gives ``5``); otherwise every span is
    rendered as text and substituted in place (``"reg_${i}"`` gives ``"reg_2"``
    for ``i = 2``).

    Args:
        expression: The value to evaluate.
        params: Parameter values visible to the expression.
        context: Additional bindings that take precedence over *params*.

    Returns:
        The evaluated value.

    Raises:
        ExpressionError: On malformed expressions, unknown identifiers, type
            errors or division by zero.
    """
    if not is_expression(expression):
        return expression
    return _evaluate_template(expression, ChainMap(dict(context or {}), params or {}), {})


def is_expression(value: Any) -> bool:
    """Return True if *value* is a string containing at least one ``${`` span."""
    return isinstance(value, str) and "${" in value


def to_text(value: Any) -> str:
    """Render an evaluated value the way it appears when substituted into text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float):
        value = _normalize(value)
    return str(value)


class ExpressionEvaluator:
    """Evaluator with a result cache keyed by expression content.

    Identical ``(expression, params, context)`` triples return the cached
    result. Parsed syntax trees are cached per span body as well. The caches
    belong to this instance only; create one evaluator per elaboration run.
    """

    def __init__(self) -> None:
        self._results: dict[str, Any] = {}
        self._trees: dict[str, Node] = {}

    def evaluate(
        self,
        expression: Any,
        params: Mapping[str, Any] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> Any:
        """Evaluate *expression*; see the module-level :func:`evaluate`."""
        if not is_expression(expression):
            return expression
        params = params or {}
        context = context or {}
        key = _cache_key(expression, params, context)
        if key in self._results:
            return self._results[key]
        result = _evaluate_template(expression, ChainMap(dict(context), params), self._trees)
        self._results[key] = result
        return result

    def clear_cache(self) -> None:
        """Drop all cached results and syntax trees."""
        self._results.clear()
        self._trees.clear()

    def __len__(self) -> int:
        return len(self._results)


# ################
# Implementation
# ################


def _cache_key(expression: str, params: Mapping[str, Any], context: Mapping[str, Any]) -> str:
    """Return a content-equality key for an evaluation request."""
    return json.dumps([expression, dict(params), dict(context)], sort_keys=True, default=repr)


def _split_template(text: str) -> list[tuple[bool, str]]:
    """Split *text* into literal segments and expression bodies.

    Returns a list of ``(is_expression, content)`` pairs. Closing braces inside
    quoted string literals do not terminate a span.
    """
    parts: list[tuple[bool, str]] = []
    pos = 0
    while True:
        start = text.find("${", pos)
        if start == -1:
            break
        if start > pos:
            parts.append((False, text[pos:start]))
        end = _find_span_end(text, start + 2)
        parts.append((True, text[start + 2 : end]))
        pos = end + 1
    if pos < len(text):
        parts.append((False, text[pos:]))
    return parts


def _find_span_end(text: str, pos: int) -> int:
    """Return the index of the ``}`` closing the span whose body starts at *pos*."""
    quote = ""
    while pos < len(text):
        ch = text[pos]
        if quote:
            if ch == "\\":
                pos += 1
            elif ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif ch == "}":
            return pos
        pos += 1
    raise ExpressionError(text, "unterminated '${' span")


def _evaluate_template(text: str, namespace: Mapping[str, Any], trees: dict[str, Node]) -> Any:
    parts = _split_template(text)
    if len(parts) == 1 and parts[0][0]:
        return _evaluate_body(text, parts[0][1], namespace, trees)
    pieces: list[str] = []
    for is_expr, content in parts:
        if is_expr:
            pieces.append(to_text(_evaluate_body(text, content, namespace, trees)))
        else:
            pieces.append(content)
    return "".join(pieces)


def _evaluate_body(text: str, body: str, namespace: Mapping[str, Any], trees: dict[str, Node]) -> Any:
    tree = trees.get(body)
    if tree is None:
        try:
            tree = parse(body)
        except (ScanError, ParseError) as exc:
            raise ExpressionError(text, f"syntax error in '{body}' at {exc}") from exc
        except RecursionError as exc:
            raise ExpressionError(text, "expression nested too deeply") from exc
        trees[body] = tree
    try:
        return _Interpreter(text, namespace).run(tree)
    except RecursionError as exc:
        raise ExpressionError(text, "expression nested too deeply") from exc


def _normalize(value: Any) -> Any:
    """Collapse integral floats to ints so that ``6/2`` renders as ``3``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float))


def _js_round(value: float) -> int:
    return math.floor(value + 0.5)


_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "abs": abs,
    "min": min,
    "max": max,
    "floor": math.floor,
    "ceil": math.ceil,
    "round": _js_round,
}


class _Interpreter:
    """Walks a syntax tree and computes its value."""

    def __init__(self, text: str, namespace: Mapping[str, Any]) -> None:
        self._text = text
        self._namespace = namespace

    def run(self, node: Node) -> Any:
        return _normalize(self._eval(node))

    def _fail(self, reason: str) -> ExpressionError:
        return ExpressionError(self._text, reason)

    def _eval(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Name):
            if node.name not in self._namespace:
                raise self._fail(f"unknown identifier '{node.name}'")
            return self._namespace[node.name]
        if isinstance(node, Unary):
            return self._eval_unary(node)
        if isinstance(node, Binary):
            return self._eval_binary(node)
        if isinstance(node, Conditional):
            branch = node.then if self._eval(node.condition) else node.otherwise
            return self._eval(branch)
        if isinstance(node, Call):
            return self._eval_call(node)
        raise self._fail(f"unsupported syntax node {type(node).__name__}")

    def _eval_unary(self, node: Unary) -> Any:
        value = self._eval(node.operand)
        if node.op == "!":
            return not value
        if not _is_number(value):
            raise self._fail(f"cannot negate {to_text(value)!r}")
        return -value

    def _eval_binary(self, node: Binary) -> Any:
        # Logical operators short-circuit and yield an operand, not a bool.
        if node.op == "&&":
            left = self._eval(node.left)
            return self._eval(node.right) if left else left
        if node.op == "||":
            left = self._eval(node.left)
            return left if left else self._eval(node.right)

        left = self._eval(node.left)
        right = self._eval(node.right)
        op = node.op
        if op == "==":
            return left == right
        if op == "!=":
            return left != right
        if op == "+" and (isinstance(left, str) or isinstance(right, str)):
            return to_text(left) + to_text(right)
        if op in ("<", ">", "<=", ">="):
            return self._compare(op, left, right)
        if not (_is_number(left) and _is_number(right)):
            raise self._fail(f"operator '{op}' needs numbers, got {to_text(left)!r} and {to_text(right)!r}")
        if op == "+":
            return _normalize(left + right)
        if op == "-":
            return _normalize(left - right)
        if op == "*":
            return _normalize(left * right)
        if right == 0:
            raise self._fail("division by zero")
        if op == "/":
            return _normalize(left / right)
        return _normalize(math.fmod(left, right))

    def _compare(self, op: str, left: Any, right: Any) -> bool:
        try:
            if op == "<":
                return left < right
            if op == ">":
                return left > right
            if op == "<=":
                return left <= right
            return left >= right
        except TypeError:
            raise self._fail(f"cannot compare {to_text(left)!r} and {to_text(right)!r}") from None

    def _eval_call(self, node: Call) -> Any:
        function = _FUNCTIONS.get(node.function)
        if function is None:
            raise self._fail(f"unknown function '{node.function}'")
        arguments = [self._eval(arg) for arg in node.arguments]
        if not arguments or not all(_is_number(arg) for arg in arguments):
            raise self._fail(f"'{node.function}' needs numeric arguments")
        if node.function in ("min", "max"):
            return function(arguments)
        if len(arguments) != 1:
            raise self._fail(f"'{node.function}' takes exactly one argument")
        return function(arguments[0])
