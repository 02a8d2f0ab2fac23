# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Definition, reference and instance models."""

from nncircuit.model.definitions import (
    ComponentDefinition,
    ComponentRef,
    DiagramDocument,
    LoopDef,
    PortDef,
    PortGroupDef,
)
from nncircuit.model.instances import ComponentInstance, InputConnection, ModuleInstance, Port, PortGroup, Position
from nncircuit.model.references import ComponentOutputRef, ConnectionReference, ModuleInputRef, parse_reference

__all__ = [
    "ComponentDefinition",
    "ComponentRef",
    "DiagramDocument",
    "LoopDef",
    "PortDef",
    "PortGroupDef",
    "ComponentInstance",
    "InputConnection",
    "ModuleInstance",
    "Port",
    "PortGroup",
    "Position",
    "ComponentOutputRef",
    "ConnectionReference",
    "ModuleInputRef",
    "parse_reference",
]
