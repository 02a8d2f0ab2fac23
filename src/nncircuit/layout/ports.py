# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Port arrangement styles and module port placement.

Every style is a pure function of the ordered port list, the spacing and the
center line it is arranged around:

* ``sequential``: one after another, centered on the line.
* ``interleaved``: even-indexed ports on a ``2 * spacing`` grid, odd-indexed
  ports in the gaps between them.
* ``alternating``: pairs around a shared baseline, the first port of a pair a
  quarter spacing above it and the second a quarter spacing below.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from nncircuit.model.instances import ModuleInstance, Port, PortGroup, Position

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

ARRANGEMENT_STYLES = ("sequential", "interleaved", "alternating")


def port_offsets(style: str, count: int, spacing: float, center: float) -> list[float]:
    """Return the vertical coordinate of each of *count* ports arranged around *center*.

    Unknown styles fall back to ``sequential`` with a logged warning.
    """
    if count <= 0:
        return []
    if style == "interleaved":
        return _interleaved(count, spacing, center)
    if style == "alternating":
        return _alternating(count, spacing, center)
    if style != "sequential":
        logger.warning("Unknown port arrangement '%s', using 'sequential'", style)
    return _sequential(count, spacing, center)


def arrange_ports(style: str, ports: Sequence[str], spacing: float, available_height: float) -> dict[str, float]:
    """Arrange *ports* within *available_height* using *style*.

    Args:
        style: One of :data:`ARRANGEMENT_STYLES`.
        ports: Port names in arrangement order.
        spacing: Distance unit between neighbouring ports.
        available_height: Height of the edge the ports sit on; ports are
            centered on its midpoint.

    Returns:
        The vertical offset of each port, keyed by port name.
    """
    offsets = port_offsets(style, len(ports), spacing, available_height / 2)
    return dict(zip(ports, offsets))


def arrange_module_ports(module: ModuleInstance, min_port_spacing: float) -> None:
    """Set ``position`` on every input and output port of *module*.

    The module's ``width`` and ``height`` must already be known. Inputs sit on
    the left edge and outputs on the right edge. On each edge the port groups
    in use, followed by one slot for ungrouped ports, are spread evenly over
    the module height; each group is arranged around its slot with its own
    style and spacing, ungrouped ports sequentially with *min_port_spacing*.
    """
    _arrange_edge(module.inputs, module.port_groups, module.height, 0.0, min_port_spacing)
    _arrange_edge(module.outputs, module.port_groups, module.height, module.width, min_port_spacing)


# ################
# Implementation
# ################


def _sequential(count: int, spacing: float, center: float) -> list[float]:
    start = center - (count - 1) * spacing / 2
    return [start + index * spacing for index in range(count)]


def _interleaved(count: int, spacing: float, center: float) -> list[float]:
    total = (math.ceil(count / 2) - 1) * spacing * 2
    start = center - total / 2
    offsets = []
    for index in range(count):
        if index % 2 == 0:
            offsets.append(start + (index // 2) * spacing * 2)
        else:
            offsets.append(start + math.ceil(index / 2) * spacing * 2 - spacing)
    return offsets


def _alternating(count: int, spacing: float, center: float) -> list[float]:
    pairs = math.ceil(count / 2)
    start = center - (pairs - 1) * spacing / 2
    offsets = []
    for index in range(count):
        baseline = start + (index // 2) * spacing
        offsets.append(baseline - spacing / 4 if index % 2 == 0 else baseline + spacing / 4)
    return offsets


def _group_of(port: Port, groups: dict[str, PortGroup]) -> str | None:
    if port.group is not None and port.group in groups:
        return port.group
    for name, group in groups.items():
        if port.name in group.ports:
            return name
    return None


def _arrange_edge(
    ports: list[Port], groups: dict[str, PortGroup], height: float, x: float, min_port_spacing: float
) -> None:
    if not ports:
        return

    grouped: dict[str, list[Port]] = {name: [] for name in groups}
    ungrouped: list[Port] = []
    for port in ports:
        name = _group_of(port, groups)
        if name is None:
            ungrouped.append(port)
        else:
            grouped[name].append(port)
    in_use = {name: members for name, members in grouped.items() if members}

    slots = len(in_use) + (1 if ungrouped else 0)
    slot_spacing = height / (slots + 1)
    center = slot_spacing
    for name, members in in_use.items():
        group = groups[name]
        spacing = group.spacing or min_port_spacing
        _place(members, port_offsets(group.arrangement, len(members), spacing, center), x)
        center += slot_spacing

    _place(ungrouped, port_offsets("sequential", len(ungrouped), min_port_spacing, center), x)


def _place(ports: list[Port], offsets: list[float], x: float) -> None:
    for port, y in zip(ports, offsets):
        port.position = Position(x=x, y=y)
