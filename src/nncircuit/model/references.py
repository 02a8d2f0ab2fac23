# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Structured connection references.

A connection string names where a signal comes from:

* ``$.name`` or ``$.name[3]``: an input port of the enclosing module.
* ``comp.port`` or ``comp.port[3]``: an output port of a sibling component.

The ``$.`` prefix decides the variant. An index selects one element of a
vector port; its absence means the whole port.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from nncircuit.errors import InvalidReferenceError

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ModuleInputRef:
    """A reference to an input port of the enclosing module."""

    name: str
    index: int | None = None

    def __str__(self) -> str:
        return f"$.{self.name}{_index_suffix(self.index)}"


@dataclass(frozen=True)
class ComponentOutputRef:
    """A reference to an output port of a sibling component."""

    component_id: str
    port_name: str
    index: int | None = None

    def __str__(self) -> str:
        return f"{self.component_id}.{self.port_name}{_index_suffix(self.index)}"


ConnectionReference = ModuleInputRef | ComponentOutputRef


def parse_reference(text: str) -> ConnectionReference:
    """Parse a fully evaluated connection string.

    Args:
        text: A string such as ``"$.x[1]"`` or ``"reg_0.out"``.

    Returns:
        The matching reference variant.

    Raises:
        InvalidReferenceError: If *text* is not a well-formed reference.
    """
    if not isinstance(text, str):
        raise InvalidReferenceError(str(text), "connection must be a string")
    stripped = text.strip()
    if stripped.startswith("$."):
        match = _MODULE_INPUT_RE.fullmatch(stripped)
        if match is None:
            raise InvalidReferenceError(text, "expected '$.<input>' or '$.<input>[<index>]'")
        return ModuleInputRef(name=match.group("name"), index=_parse_index(match.group("index")))
    match = _COMPONENT_OUTPUT_RE.fullmatch(stripped)
    if match is None:
        raise InvalidReferenceError(text, "expected '<component>.<port>' or '<component>.<port>[<index>]'")
    return ComponentOutputRef(
        component_id=match.group("component"),
        port_name=match.group("port"),
        index=_parse_index(match.group("index")),
    )


# ################
# Implementation
# ################

_NAME = r"[A-Za-z0-9_]+"
_INDEX = r"(?:\[\s*(?P<index>\d+)\s*\])?"

_MODULE_INPUT_RE = re.compile(rf"\$\.(?P<name>{_NAME}){_INDEX}")
_COMPONENT_OUTPUT_RE = re.compile(rf"(?P<component>{_NAME})\.(?P<port>{_NAME}){_INDEX}")


def _parse_index(raw: str | None) -> int | None:
    return int(raw) if raw is not None else None


def _index_suffix(index: int | None) -> str:
    return "" if index is None else f"[{index}]"
