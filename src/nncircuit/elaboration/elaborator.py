# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Elaboration of component definitions into concrete instance trees.

Instantiating a module definition proceeds in a fixed order:

1. Merge the definition's default parameters with the override parameters.
2. Resolve every port size against the merged parameters.
3. Instantiate the explicit ``components`` in declaration order.
4. Expand each ``component_loops`` entry over its inclusive range.
5. Resolve ``outputMappings`` to internal component outputs.
6. Resolve every child's input connections against the finished id table.

Names a module does not define itself are looked up in the parameters of its
enclosing modules through a read-only :class:`collections.ChainMap` scope. Any
error aborts the whole elaboration; no partial tree is ever returned.
"""

from __future__ import annotations

import logging
from collections import ChainMap
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from nncircuit.elaboration.registry import Registry
from nncircuit.errors import (
    CycleDetectedError,
    DefinitionNotFoundError,
    ExpressionError,
    InvalidPortSizeError,
    InvalidReferenceError,
    PortSizeMismatchError,
)
from nncircuit.expressions import ExpressionEvaluator, to_text
from nncircuit.model.definitions import ComponentDefinition, ComponentRef, PortDef, PortGroupDef
from nncircuit.model.instances import ComponentInstance, InputConnection, ModuleInstance, Port, PortGroup
from nncircuit.model.references import ComponentOutputRef, ModuleInputRef, parse_reference

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class Elaborator:
    """Turns definitions from a :class:`Registry` into instance trees.

    One elaborator owns one expression cache. Use a fresh elaborator for
    independent elaboration runs.
    """

    def __init__(self, registry: Registry, evaluator: ExpressionEvaluator | None = None) -> None:
        self._registry = registry
        self._evaluator = evaluator if evaluator is not None else ExpressionEvaluator()

    @property
    def registry(self) -> Registry:
        return self._registry

    def instantiate(
        self,
        component_id: str,
        definition: ComponentDefinition | Mapping[str, Any],
        override_params: Mapping[str, Any] | None = None,
        type_name: str = "",
    ) -> ComponentInstance:
        """Instantiate *definition* as a top-level component called *component_id*.

        Args:
            component_id: Id of the new instance.
            definition: The template to instantiate, as a model or a raw mapping.
            override_params: Parameter values replacing the definition defaults.
            type_name: Registry name of *definition*. It is recorded on the
                instance and used to detect recursive module definitions;
                defaults to *component_id*.

        Returns:
            A :class:`ModuleInstance` for module definitions, otherwise a
            primitive :class:`ComponentInstance`.

        Raises:
            CircuitError: Any subclass, on the first problem found.
        """
        if not isinstance(definition, ComponentDefinition):
            definition = ComponentDefinition.model_validate(definition)
        return self._instantiate(
            component_id, type_name or component_id, definition, dict(override_params or {}), ChainMap(), ()
        )

    def instantiate_type(
        self,
        type_name: str,
        component_id: str | None = None,
        override_params: Mapping[str, Any] | None = None,
    ) -> ComponentInstance:
        """Instantiate the registered type *type_name*.

        Raises:
            DefinitionNotFoundError: If *type_name* is not registered.
        """
        definition = self._registry.get(type_name)
        if definition is None:
            raise DefinitionNotFoundError(type_name)
        return self.instantiate(component_id or type_name, definition, override_params, type_name=type_name)

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------

    def _instantiate(
        self,
        component_id: str,
        type_name: str,
        definition: ComponentDefinition,
        overrides: dict[str, Any],
        enclosing_scope: ChainMap[str, Any],
        type_stack: tuple[str, ...],
    ) -> ComponentInstance:
        params = {**definition.parameters, **overrides}
        scope = enclosing_scope.new_child(params)
        inputs = [self._resolve_port(port, scope, component_id) for port in definition.inputs]
        outputs = [self._resolve_port(port, scope, component_id) for port in definition.outputs]
        label = self._resolve_label(definition.display, scope, component_id)

        if definition.is_primitive:
            return ComponentInstance(
                id=component_id,
                type_name=type_name,
                is_primitive=True,
                parameters=params,
                inputs=inputs,
                outputs=outputs,
                declared_latency=definition.latency,
                display=dict(definition.display),
                label=label,
            )

        if type_name in type_stack:
            raise CycleDetectedError([*type_stack[type_stack.index(type_name) :], type_name])
        type_stack = (*type_stack, type_name)

        module = ModuleInstance(
            id=component_id,
            type_name=type_name,
            parameters=params,
            inputs=inputs,
            outputs=outputs,
            declared_latency=definition.latency,
            display=dict(definition.display),
            label=label,
            port_groups=self._resolve_port_groups(definition.port_groups, scope),
            display_height=self._resolve_display_height(definition.display, scope),
        )
        frame = _Frame(module, scope)

        for ref in definition.components:
            self._instantiate_child(frame, ref, {}, type_stack)

        for loop in definition.component_loops:
            start = self._loop_bound(loop.range[0], scope)
            end = self._loop_bound(loop.range[1], scope)
            logger.debug("Expanding loop '%s' over [%d, %d] in '%s'", loop.iterator, start, end, component_id)
            for value in range(start, end + 1):
                context = {loop.iterator: value}
                for template in loop.components:
                    self._instantiate_child(frame, template, context, type_stack)

        for port_name, raw in definition.output_mappings.items():
            module.output_mappings[port_name] = self._resolve_output_mapping(frame, port_name, raw)

        for binding in frame.pending:
            binding.child.input_connections[binding.port_name] = self._resolve_binding(frame, binding)

        logger.debug("Elaborated '%s' (%s) with %d component(s)", component_id, type_name, len(module.children))
        return module

    def _instantiate_child(
        self, frame: _Frame, ref: ComponentRef, context: dict[str, Any], type_stack: tuple[str, ...]
    ) -> None:
        child_id = to_text(self._evaluate(ref.id, frame.scope, context))
        child_type = to_text(self._evaluate(ref.type, frame.scope, context))
        definition = self._registry.get(child_type)
        if definition is None:
            raise DefinitionNotFoundError(child_type, f"'{child_id}' in '{frame.module.id}'")

        overrides = {name: self._evaluate(value, frame.scope, context) for name, value in ref.parameters.items()}
        child = self._instantiate(child_id, child_type, definition, overrides, frame.scope, type_stack)
        frame.module.add_child(child)

        for port_name, raw in ref.inputs.items():
            if isinstance(raw, list):
                value: Any = [self._evaluate(item, frame.scope, context) for item in raw]
            else:
                value = self._evaluate(raw, frame.scope, context)
            frame.pending.append(_PendingBinding(child, port_name, value))

    # ------------------------------------------------------------------
    # Parameters, ports and display
    # ------------------------------------------------------------------

    def _evaluate(self, value: Any, scope: Mapping[str, Any], context: Mapping[str, Any] | None = None) -> Any:
        return self._evaluator.evaluate(value, scope, context)

    def _resolve_port(self, port: PortDef, scope: Mapping[str, Any], owner: str) -> Port:
        size = self._evaluate(port.size, scope)
        if not _is_int(size) or size < 1:
            raise InvalidPortSizeError(port.name, size, owner)
        return Port(name=port.name, size=size, group=port.group)

    def _loop_bound(self, bound: int | str, scope: Mapping[str, Any]) -> int:
        value = self._evaluate(bound, scope)
        if not _is_int(value):
            raise ExpressionError(str(bound), f"loop bound must evaluate to an integer, got {value!r}")
        return value

    def _resolve_port_groups(
        self, groups: Mapping[str, PortGroupDef], scope: Mapping[str, Any]
    ) -> dict[str, PortGroup]:
        return {
            name: PortGroup(
                name=name,
                ports=[to_text(self._evaluate(port, scope)) for port in group.ports],
                arrangement=group.arrangement,
                color=group.color,
                spacing=group.spacing,
            )
            for name, group in groups.items()
        }

    def _resolve_label(self, display: Mapping[str, Any], scope: Mapping[str, Any], component_id: str) -> str:
        raw = display.get("label")
        if raw is None:
            return component_id
        try:
            return to_text(self._evaluate(raw, scope))
        except ExpressionError as exc:
            # Labels are presentation only; keep the literal.
            logger.debug("Keeping literal label of '%s': %s", component_id, exc)
            return to_text(raw)

    def _resolve_display_height(self, display: Mapping[str, Any], scope: Mapping[str, Any]) -> float | None:
        raw = display.get("height")
        if raw is None:
            return None
        value = self._evaluate(raw, scope)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ExpressionError(str(raw), f"display height must be a positive number, got {value!r}")
        return value

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def _resolve_output_mapping(self, frame: _Frame, port_name: str, raw: str) -> ComponentOutputRef:
        module = frame.module
        if module.output_port(port_name) is None:
            raise InvalidReferenceError(raw, f"'{module.type_name}' declares no output '{port_name}'")
        text = to_text(self._evaluate(raw, frame.scope))
        ref, _ = self._resolve_source(frame, text)
        if not isinstance(ref, ComponentOutputRef):
            raise InvalidReferenceError(text, "an output mapping must name an internal component output")
        return ref

    def _resolve_binding(self, frame: _Frame, binding: _PendingBinding) -> InputConnection:
        child = binding.child
        port = child.input_port(binding.port_name)
        if port is None:
            raise InvalidReferenceError(
                f"{child.id}.{binding.port_name}", f"'{child.type_name}' has no input port '{binding.port_name}'"
            )

        if isinstance(binding.raw, list):
            refs = []
            for item in binding.raw:
                ref, width = self._resolve_source(frame, item)
                if width != 1:
                    raise PortSizeMismatchError(port.name, 1, width, f"element '{item}' of '{child.id}'")
                refs.append(ref)
            if len(refs) != port.size:
                raise PortSizeMismatchError(port.name, port.size, len(refs), f"'{child.id}'")
            return tuple(refs)

        ref, width = self._resolve_source(frame, binding.raw)
        if width != port.size:
            raise PortSizeMismatchError(port.name, port.size, width, f"'{child.id}'")
        return ref

    def _resolve_source(self, frame: _Frame, text: Any) -> tuple[ModuleInputRef | ComponentOutputRef, int]:
        """Parse *text* and check it against the module being elaborated.

        Returns:
            The reference and the number of scalar signals it carries.
        """
        module = frame.module
        ref = parse_reference(text)
        if isinstance(ref, ModuleInputRef):
            port = module.input_port(ref.name)
            if port is None:
                raise InvalidReferenceError(text, f"'{module.type_name}' has no input '{ref.name}'")
        else:
            source = module.child(ref.component_id)
            if source is None:
                raise InvalidReferenceError(text, f"no component '{ref.component_id}' in '{module.id}'")
            port = source.output_port(ref.port_name)
            if port is None:
                raise InvalidReferenceError(text, f"'{source.type_name}' has no output '{ref.port_name}'")
        if ref.index is None:
            return ref, port.size
        if ref.index >= port.size:
            raise InvalidReferenceError(text, f"index {ref.index} out of bounds for port of size {port.size}")
        return ref, 1


def instantiate(
    component_id: str,
    definition: ComponentDefinition | Mapping[str, Any],
    override_params: Mapping[str, Any] | None = None,
    registry: Registry | None = None,
    type_name: str = "",
) -> ComponentInstance:
    """Instantiate *definition* with a fresh :class:`Elaborator`.

    A registry holding only the builtin primitives is used when *registry* is
    not given.
    """
    elaborator = Elaborator(registry if registry is not None else Registry())
    return elaborator.instantiate(component_id, definition, override_params, type_name=type_name)


# ################
# Implementation
# ################


@dataclass
class _PendingBinding:
    """An evaluated input connection of a child, resolved once all siblings exist."""

    child: ComponentInstance
    port_name: str
    raw: Any


@dataclass
class _Frame:
    """The module being elaborated and its evaluation scope."""

    module: ModuleInstance
    scope: ChainMap[str, Any]
    pending: list[_PendingBinding] = field(default_factory=list)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
