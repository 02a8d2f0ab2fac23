# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Instance models: the elaborated, concrete circuit tree.

A :class:`ModuleInstance` owns its children by id. Connections between
siblings are structured references resolved through that id table, never
object pointers, so the tree stays acyclic and serializable.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from nncircuit.errors import DuplicateIdError
from nncircuit.model.references import ComponentOutputRef, ConnectionReference

# ###############
# Public Interface
# ###############


@dataclass
class Position:
    """A 2-D point relative to the owning module's origin."""

    x: float = 0.0
    y: float = 0.0


@dataclass
class Port:
    """A resolved port; ``size`` is always a positive integer.

    ``position`` is relative to the component that declares the port and is
    only computed for module ports.
    """

    name: str
    size: int = 1
    group: str | None = None
    position: Position = field(default_factory=Position, compare=False)


@dataclass
class PortGroup:
    """A resolved port group of a module instance."""

    name: str
    ports: list[str] = field(default_factory=list)
    arrangement: str = "sequential"
    color: str = "#808080"
    spacing: float | None = None


# A wired input: one reference, or one scalar reference per vector element.
InputConnection = ConnectionReference | tuple[ConnectionReference, ...]


@dataclass
class ComponentInstance:
    """A concrete component produced by elaboration.

    Attributes:
        id: Unique id within the owning module.
        type_name: Registry type the instance was created from.
        is_primitive: Whether the type is a primitive.
        parameters: Merged parameter values (definition defaults, then overrides).
        inputs: Resolved input ports.
        outputs: Resolved output ports.
        input_connections: Structured source of each wired input port.
        declared_latency: Latency declared by the definition, if any.
        latency: Latency computed by the analyzer.
        cycle: Clock cycle computed by the analyzer.
        position: Placement computed by the layout engine.
        display: Presentation metadata, copied from the definition unmodified.
        label: Display label evaluated against ``parameters``.
    """

    id: str
    type_name: str
    is_primitive: bool = True
    parameters: dict[str, Any] = field(default_factory=dict)
    inputs: list[Port] = field(default_factory=list)
    outputs: list[Port] = field(default_factory=list)
    input_connections: dict[str, InputConnection] = field(default_factory=dict)
    declared_latency: int | None = None
    latency: int | None = None
    cycle: int | None = None
    position: Position = field(default_factory=Position)
    display: dict[str, Any] = field(default_factory=dict)
    label: str = ""

    @property
    def is_module(self) -> bool:
        return not self.is_primitive

    def input_port(self, name: str) -> Port | None:
        return next((port for port in self.inputs if port.name == name), None)

    def output_port(self, name: str) -> Port | None:
        return next((port for port in self.outputs if port.name == name), None)

    def sources(self) -> list[ConnectionReference]:
        """Return every reference feeding this instance, in input declaration order."""
        result: list[ConnectionReference] = []
        for connection in self.input_connections.values():
            if isinstance(connection, tuple):
                result.extend(connection)
            else:
                result.append(connection)
        return result

    def source_ids(self) -> list[str]:
        """Return the ids of sibling components feeding this instance, without duplicates."""
        ids: list[str] = []
        for ref in self.sources():
            if isinstance(ref, ComponentOutputRef) and ref.component_id not in ids:
                ids.append(ref.component_id)
        return ids


@dataclass
class ModuleInstance(ComponentInstance):
    """A component instance with internal structure.

    ``children`` is the module's id table in declaration order: explicit
    components first, then loop-generated ones. Latency and per-child cycle
    values computed by the analyzer are memoized on the instance and cleared
    by any structural edit.
    """

    is_primitive: bool = False
    children: dict[str, ComponentInstance] = field(default_factory=dict)
    output_mappings: dict[str, ComponentOutputRef] = field(default_factory=dict)
    port_groups: dict[str, PortGroup] = field(default_factory=dict)
    display_height: float | None = None
    width: float = 0.0
    height: float = 0.0
    latency_cache: int | None = field(default=None, repr=False, compare=False)
    cycle_cache: dict[str, int] = field(default_factory=dict, repr=False, compare=False)

    def child(self, component_id: str) -> ComponentInstance | None:
        return self.children.get(component_id)

    def add_child(self, child: ComponentInstance, ancestors: Sequence[ModuleInstance] = ()) -> None:
        """Insert *child* into the id table.

        Args:
            child: The instance to add.
            ancestors: The enclosing modules, innermost first, whose cached
                latency must be invalidated as well.

        Raises:
            DuplicateIdError: If a child with the same id already exists.
        """
        if child.id in self.children:
            raise DuplicateIdError(child.id, self.id)
        self.children[child.id] = child
        self.invalidate_latency(ancestors)

    def remove_child(self, component_id: str, ancestors: Sequence[ModuleInstance] = ()) -> ComponentInstance:
        """Remove and return the child called *component_id*.

        Raises:
            KeyError: If no such child exists.
        """
        child = self.children.pop(component_id)
        self.invalidate_latency(ancestors)
        return child

    def invalidate_latency(self, ancestors: Sequence[ModuleInstance] = ()) -> None:
        """Clear memoized timing on this module and every module in *ancestors*."""
        for module in (self, *ancestors):
            module.latency_cache = None
            module.cycle_cache.clear()

    def walk(self) -> Iterator[tuple[tuple[str, ...], ComponentInstance]]:
        """Yield ``(path, instance)`` for every descendant, depth first in declaration order.

        The path is relative to this module and ends with the instance id.
        """
        for child in self.children.values():
            yield (child.id,), child
            if isinstance(child, ModuleInstance):
                for path, descendant in child.walk():
                    yield (child.id, *path), descendant
