# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Definition models: the templates read from a diagram document.

Definitions are unevaluated. Port sizes, loop bounds, component ids, input
connections and output mappings may all still contain ``${...}`` expressions;
the elaborator resolves them per instance.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, field_validator, model_validator
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############


class PortDef(BaseModel):
    """A declared input or output port.

    ``size`` is either a positive integer or a parameter expression such as
    ``"${WIDTH}"``.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = _Field(min_length=1)
    size: int | str = 1
    group: str | None = None


class ComponentRef(BaseModel):
    """A component placed inside a module, or a template inside a loop body.

    An ``inputs`` value is a single connection string, or a list of scalar
    connection strings that wires a vector input element by element.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = _Field(min_length=1)
    type: str = _Field(min_length=1)
    parameters: dict[str, Any] = _Field(default_factory=dict)
    inputs: dict[str, str | list[str]] = _Field(default_factory=dict)


class LoopDef(BaseModel):
    """A loop that generates components for each value of an inclusive range."""

    model_config = ConfigDict(extra="forbid")

    iterator: str = _Field(min_length=1)
    range: tuple[int | str, int | str]
    components: list[ComponentRef] = _Field(default_factory=list)


class PortGroupDef(BaseModel):
    """A named set of module ports sharing one arrangement style."""

    model_config = ConfigDict(extra="forbid")

    ports: list[str] = _Field(default_factory=list)
    arrangement: str = "sequential"
    color: str = "#808080"
    spacing: float | None = None


class ComponentDefinition(BaseModel):
    """A primitive or module template registered under a type name."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    is_primitive: bool = _Field(default=False, validation_alias=AliasChoices("is_primitive", "isPrimitive"))
    description: str | None = None
    parameters: dict[str, Any] = _Field(default_factory=dict)
    inputs: list[PortDef] = _Field(default_factory=list)
    outputs: list[PortDef] = _Field(default_factory=list)
    latency: int | None = _Field(default=None, ge=0)
    components: list[ComponentRef] = _Field(default_factory=list)
    component_loops: list[LoopDef] = _Field(
        default_factory=list, validation_alias=AliasChoices("component_loops", "componentLoops")
    )
    output_mappings: dict[str, str] = _Field(
        default_factory=dict, validation_alias=AliasChoices("outputMappings", "output_mappings")
    )
    port_groups: dict[str, PortGroupDef] = _Field(
        default_factory=dict, validation_alias=AliasChoices("port_groups", "portGroups")
    )
    display: dict[str, Any] = _Field(default_factory=dict)

    @field_validator("inputs", "outputs", mode="before")
    @classmethod
    def _expand_bare_port_names(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value

    @model_validator(mode="after")
    def _primitives_have_no_structure(self) -> ComponentDefinition:
        if self.is_primitive and (self.components or self.component_loops or self.output_mappings):
            raise ValueError("a primitive definition cannot declare components, component_loops or outputMappings")
        return self

    @property
    def is_module(self) -> bool:
        return not self.is_primitive

    def input_port(self, name: str) -> PortDef | None:
        """Return the declared input port called *name*, if any."""
        return next((port for port in self.inputs if port.name == name), None)

    def output_port(self, name: str) -> PortDef | None:
        """Return the declared output port called *name*, if any."""
        return next((port for port in self.outputs if port.name == name), None)


class DiagramDocument(BaseModel):
    """Top-level model of a diagram JSON document."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    entry_point_module: str = _Field(alias="entryPointModule", min_length=1)
    module_definitions: dict[str, ComponentDefinition] = _Field(alias="moduleDefinitions")
    primitive_definitions: dict[str, ComponentDefinition] = _Field(
        default_factory=dict, alias="primitiveDefinitions"
    )

    @model_validator(mode="after")
    def _definitions_match_their_section(self) -> DiagramDocument:
        for name, definition in self.primitive_definitions.items():
            if not definition.is_primitive:
                raise ValueError(f"primitive definition '{name}' must set is_primitive to true")
        for name, definition in self.module_definitions.items():
            if definition.is_primitive:
                raise ValueError(f"module definition '{name}' must not set is_primitive to true")
        return self
