# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Flattening of an elaborated module into renderer-facing graph records.

The graph is stored as compact JSON. The format is versioned so renderers
can detect schema changes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nncircuit.model.instances import ComponentInstance, InputConnection, ModuleInstance, Port, Position
from nncircuit.model.references import ComponentOutputRef, ConnectionReference, ModuleInputRef

# ###############
# Public Interface
# ###############

GRAPH_FORMAT_VERSION = "1"


@dataclass
class FlatInstance:
    """One instance of the tree, addressed by its id path from the top module.

    Positions are relative to the directly enclosing module.
    """

    path: tuple[str, ...]
    type_name: str
    is_primitive: bool
    inputs: list[Port] = field(default_factory=list)
    outputs: list[Port] = field(default_factory=list)
    connections: dict[str, InputConnection] = field(default_factory=dict)
    cycle: int | None = None
    latency: int | None = None
    position: Position = field(default_factory=Position)
    width: float | None = None
    height: float | None = None
    label: str = ""
    display: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.path[-1]

    @property
    def parent_path(self) -> tuple[str, ...]:
        return self.path[:-1]


def flatten(module: ModuleInstance) -> list[FlatInstance]:
    """Return every descendant of *module* as a flat record, depth first."""
    return [_flat_instance(path, instance) for path, instance in module.walk()]


def serialize_graph(module: ModuleInstance) -> str:
    """Serialize *module* and its flattened descendants to a compact JSON string."""
    return json.dumps(_graph_to_dict(module), separators=(",", ":"))


def deserialize_graph(data: str) -> list[FlatInstance]:
    """Reconstruct the flat instance records from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize_graph`.

    Returns:
        The flat records in their serialized order.

    Raises:
        ValueError: If the graph format version is not recognised.
    """
    obj = json.loads(data)
    version = obj.get("v")
    if version != GRAPH_FORMAT_VERSION:
        raise ValueError(f"Unsupported graph format version: {version!r}")
    return [_instance_from_dict(i) for i in obj.get("instances", [])]


def write_graph(module: ModuleInstance, path: Path) -> None:
    """Write the graph of *module* to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_graph(module), encoding="utf-8")


def read_graph(path: Path) -> list[FlatInstance]:
    """Read and deserialize a graph written by :func:`write_graph`."""
    return deserialize_graph(path.read_text(encoding="utf-8"))


# ################
# Implementation
# ################


def _flat_instance(path: tuple[str, ...], instance: ComponentInstance) -> FlatInstance:
    flat = FlatInstance(
        path=path,
        type_name=instance.type_name,
        is_primitive=instance.is_primitive,
        inputs=list(instance.inputs),
        outputs=list(instance.outputs),
        connections=dict(instance.input_connections),
        cycle=instance.cycle,
        latency=instance.latency,
        position=instance.position,
        label=instance.label,
        display=dict(instance.display),
    )
    if isinstance(instance, ModuleInstance):
        flat.width = instance.width
        flat.height = instance.height
    return flat


def _graph_to_dict(module: ModuleInstance) -> dict[str, Any]:
    return {
        "v": GRAPH_FORMAT_VERSION,
        "module": {
            "id": module.id,
            "type": module.type_name,
            "latency": module.latency,
            "width": module.width,
            "height": module.height,
            "inputs": [_port_to_dict(p, with_position=True) for p in module.inputs],
            "outputs": [_port_to_dict(p, with_position=True) for p in module.outputs],
        },
        "instances": [_instance_to_dict(i) for i in flatten(module)],
    }


def _position_to_dict(position: Position) -> dict[str, float]:
    return {"x": position.x, "y": position.y}


def _position_from_dict(obj: dict[str, Any]) -> Position:
    return Position(x=obj["x"], y=obj["y"])


def _port_to_dict(port: Port, with_position: bool = False) -> dict[str, Any]:
    d: dict[str, Any] = {"name": port.name, "size": port.size}
    if port.group is not None:
        d["group"] = port.group
    if with_position:
        d["position"] = _position_to_dict(port.position)
    return d


def _port_from_dict(obj: dict[str, Any]) -> Port:
    port = Port(name=obj["name"], size=obj.get("size", 1), group=obj.get("group"))
    if "position" in obj:
        port.position = _position_from_dict(obj["position"])
    return port


def _reference_to_dict(ref: ConnectionReference) -> dict[str, Any]:
    """Encode a reference as a tagged dict with compact keys."""
    if isinstance(ref, ModuleInputRef):
        d: dict[str, Any] = {"k": "input", "port": ref.name}
    else:
        d = {"k": "output", "component": ref.component_id, "port": ref.port_name}
    if ref.index is not None:
        d["index"] = ref.index
    return d


def _reference_from_dict(obj: dict[str, Any]) -> ConnectionReference:
    kind = obj["k"]
    if kind == "input":
        return ModuleInputRef(obj["port"], obj.get("index"))
    if kind == "output":
        return ComponentOutputRef(obj["component"], obj["port"], obj.get("index"))
    raise ValueError(f"Unknown reference kind: {kind!r}")


def _connection_to_dict(connection: InputConnection) -> Any:
    if isinstance(connection, tuple):
        return [_reference_to_dict(ref) for ref in connection]
    return _reference_to_dict(connection)


def _connection_from_dict(obj: Any) -> InputConnection:
    if isinstance(obj, list):
        return tuple(_reference_from_dict(ref) for ref in obj)
    return _reference_from_dict(obj)


def _instance_to_dict(flat: FlatInstance) -> dict[str, Any]:
    d: dict[str, Any] = {
        "path": list(flat.path),
        "type": flat.type_name,
        "primitive": flat.is_primitive,
        "inputs": [_port_to_dict(p, with_position=not flat.is_primitive) for p in flat.inputs],
        "outputs": [_port_to_dict(p, with_position=not flat.is_primitive) for p in flat.outputs],
        "connections": {name: _connection_to_dict(c) for name, c in flat.connections.items()},
        "cycle": flat.cycle,
        "latency": flat.latency,
        "position": _position_to_dict(flat.position),
        "label": flat.label,
        "display": flat.display,
    }
    if flat.width is not None:
        d["width"] = flat.width
    if flat.height is not None:
        d["height"] = flat.height
    return d


def _instance_from_dict(obj: dict[str, Any]) -> FlatInstance:
    return FlatInstance(
        path=tuple(obj["path"]),
        type_name=obj["type"],
        is_primitive=obj.get("primitive", True),
        inputs=[_port_from_dict(p) for p in obj.get("inputs", [])],
        outputs=[_port_from_dict(p) for p in obj.get("outputs", [])],
        connections={name: _connection_from_dict(c) for name, c in obj.get("connections", {}).items()},
        cycle=obj.get("cycle"),
        latency=obj.get("latency"),
        position=_position_from_dict(obj["position"]),
        width=obj.get("width"),
        height=obj.get("height"),
        label=obj.get("label", ""),
        display=obj.get("display", {}),
    )
