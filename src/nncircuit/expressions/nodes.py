# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Syntax tree produced by the expression parser."""

from __future__ import annotations

from dataclasses import dataclass

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class Literal:
    """A number, string or boolean constant."""

    value: int | float | str | bool


@dataclass(frozen=True)
class Name:
    """A reference to a parameter or loop iterator."""

    name: str


@dataclass(frozen=True)
class Unary:
    """A prefix operator applied to one operand (``-`` or ``!``)."""

    op: str
    operand: Node


@dataclass(frozen=True)
class Binary:
    """An infix arithmetic, comparison or logical operator."""

    op: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Conditional:
    """The ternary ``cond ? then : otherwise`` operator."""

    condition: Node
    then: Node
    otherwise: Node


@dataclass(frozen=True)
class Call:
    """A call of one of the whitelisted math functions."""

    function: str
    arguments: tuple[Node, ...]


Node = Literal | Name | Unary | Binary | Conditional | Call
