# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Two-dimensional placement of an elaborated module.

Columns come straight from the latency analysis: a component sits in the
column of its clock cycle. Rows follow the signal flow:

* ``input`` primitives take rows ``1, 2, 3, ...`` per column, in declaration
  order, and so do ``output`` primitives;
* every other component takes the rounded mean row of the sibling
  components feeding it, or row 1 without any.

Columns are processed left to right. After a column's rows are known,
components sharing a row are shifted down: the first keeps the row, the
second moves to ``row + 1``, the third to ``row + 2``, and so on. The shift
is a single pass and does not guarantee a layout free of overlaps.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from nncircuit.analysis.latency import LatencyAnalyzer
from nncircuit.layout.config import LayoutConfig
from nncircuit.layout.ports import arrange_module_ports
from nncircuit.model.instances import ComponentInstance, ModuleInstance, Position

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


@dataclass
class ModuleLayout:
    """Placement of one module's children.

    Attributes:
        module_id: Id of the laid out module.
        columns: Column of each child, keyed by child id.
        rows: Row of each child after overlap shifting, keyed by child id.
        width: Module width.
        height: Module height.
        children: Layouts of child modules, keyed by child id.
    """

    module_id: str
    columns: dict[str, int] = field(default_factory=dict)
    rows: dict[str, int] = field(default_factory=dict)
    width: float = 0.0
    height: float = 0.0
    children: dict[str, ModuleLayout] = field(default_factory=dict)


class LayoutEngine:
    """Positions the children of a module and, recursively, of its child modules."""

    def __init__(self, config: LayoutConfig | None = None, analyzer: LatencyAnalyzer | None = None) -> None:
        self._config = config if config is not None else LayoutConfig()
        self._analyzer = analyzer if analyzer is not None else LatencyAnalyzer()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def layout(self, module: ModuleInstance) -> ModuleLayout:
        """Lay out *module* and every module below it.

        Sets ``position`` on every child, ``width`` and ``height`` on every
        module, and ``position`` on every module port.

        Raises:
            CycleDetectedError: If the module contains a dependency cycle.
        """
        columns = {child_id: self._analyzer.cycle(module, child_id) for child_id in module.children}
        rows = self.assign_rows(module, columns)

        config = self._config
        for child in module.children.values():
            child.position = Position(
                x=columns[child.id] * config.column_spacing + config.column_spacing / 2,
                y=rows[child.id] * config.row_spacing,
            )

        module.width = (max(columns.values(), default=0) + 1) * config.column_spacing
        module.height = self.module_height(module)
        arrange_module_ports(module, config.min_port_spacing)

        result = ModuleLayout(module.id, columns, rows, module.width, module.height)
        for child in module.children.values():
            if isinstance(child, ModuleInstance):
                result.children[child.id] = self.layout(child)
        logger.debug("Laid out '%s' at %gx%g", module.id, module.width, module.height)
        return result

    def assign_rows(self, module: ModuleInstance, columns: dict[str, int]) -> dict[str, int]:
        """Return the row of every child of *module*, given its column."""
        by_column: dict[int, list[ComponentInstance]] = {}
        for child in module.children.values():
            by_column.setdefault(columns[child.id], []).append(child)

        rows: dict[str, int] = {}
        for members in by_column.values():
            for kind in ("input", "output"):
                terminals = [child for child in members if child.is_primitive and child.type_name == kind]
                for index, child in enumerate(terminals):
                    rows[child.id] = index + 1

        for column in sorted(by_column):
            members = by_column[column]
            for child in members:
                self._row(module, child, rows)
            _shift_overlaps(members, rows)
        return rows

    def module_height(self, module: ModuleInstance) -> float:
        """Return the display height of *module*, or one derived from its port count."""
        config = self._config
        if module.display_height is not None:
            return module.display_height * config.row_spacing
        ports = max(len(module.inputs), len(module.outputs))
        return max(config.min_module_height, math.ceil(ports / 2)) * config.row_spacing

    def _row(self, module: ModuleInstance, child: ComponentInstance, rows: dict[str, int]) -> int:
        if child.id in rows:
            return rows[child.id]
        source_rows = []
        for source_id in child.source_ids():
            source = module.child(source_id)
            if source is not None:
                source_rows.append(self._row(module, source, rows))
        row = _round_half_up(sum(source_rows) / len(source_rows)) if source_rows else 1
        rows[child.id] = row
        return row


# ################
# Implementation
# ################


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _shift_overlaps(members: list[ComponentInstance], rows: dict[str, int]) -> None:
    by_row: dict[int, list[str]] = {}
    for child in members:
        by_row.setdefault(rows[child.id], []).append(child.id)
    for row, ids in by_row.items():
        for index, child_id in enumerate(ids):
            rows[child_id] = row + index
