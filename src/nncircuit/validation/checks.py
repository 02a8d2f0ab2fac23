# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Static checks of diagram documents.

These checks run on the unevaluated document, before any elaboration, and
report every problem they find instead of stopping at the first one. Values
that still contain ``${...}`` expressions cannot be checked statically and are
skipped; the elaborator validates them once they are resolved.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from nncircuit.elaboration.builtins import BUILTIN_PRIMITIVES
from nncircuit.errors import InvalidReferenceError
from nncircuit.expressions import is_expression
from nncircuit.model.definitions import ComponentDefinition, ComponentRef, DiagramDocument, PortDef
from nncircuit.model.references import ComponentOutputRef, ModuleInputRef, parse_reference

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ValidationWarning:
    """A non-fatal issue detected during validation.

    The document can still be elaborated, but the issue indicates an
    incomplete or potentially unintentional design.

    Attributes:
        message: Human-readable description of the warning.
    """

    message: str


@dataclass(frozen=True)
class ValidationError:
    """A fatal issue detected during validation.

    Attributes:
        message: Human-readable description of the error.
    """

    message: str


@dataclass
class ValidationResult:
    """Result of running the document checks.

    Attributes:
        warnings: Non-fatal issues found during validation.
        errors: Fatal errors that would make elaboration fail.
    """

    warnings: list[ValidationWarning] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Return True if any fatal validation errors were found."""
        return len(self.errors) > 0


def validate_document(document: DiagramDocument) -> ValidationResult:
    """Run all static checks on *document*.

    Checks performed:

    1. **Entry point** (error): ``entryPointModule`` names a module definition.

    2. **Definition kinds** (error): entries of ``moduleDefinitions`` are not
       primitives and entries of ``primitiveDefinitions`` are.

    3. **Ports** (error): literal port sizes are positive; string sizes are
       parameter expressions.

    4. **Components** (error): explicit ids are unique within a module, types
       are registered, input keys name input ports of the component type, and
       literal connections name existing module inputs or components (or ids a
       loop may generate) with in-bounds indices.

    5. **Loops** (error): string range bounds are parameter expressions and
       the loop body is not empty.

    6. **Output mappings** (error): each key names a declared output and each
       literal value names an internal component output.

    7. **Port groups and display** (error): port groups name declared ports;
       a literal display height is positive.

    8. **Recursive modules** (error): no module instantiates itself,
       directly or through other modules.

    9. **Connection cycles** (error): explicit components whose literal
       connections form a cycle.

    10. **Missing mappings** (warning): a module with outputs but no output
        mappings.

    11. **Unused modules** (warning): a module definition that is neither the
        entry point nor used by another module.

    Args:
        document: The parsed document.

    Returns:
        A :class:`ValidationResult`; an empty result means no problems were found.
    """
    warnings: list[ValidationWarning] = []
    errors: list[ValidationError] = []

    known: dict[str, ComponentDefinition] = {
        name: ComponentDefinition.model_validate(raw) for name, raw in BUILTIN_PRIMITIVES.items()
    }
    known.update(document.primitive_definitions)
    known.update(document.module_definitions)

    if document.entry_point_module not in document.module_definitions:
        errors.append(
            ValidationError(
                message=f"Entry point module '{document.entry_point_module}' is not defined in moduleDefinitions."
            )
        )

    for name, definition in document.primitive_definitions.items():
        errors.extend(_check_ports(name, definition))

    for name, definition in document.module_definitions.items():
        errors.extend(_check_ports(name, definition))
        errors.extend(_check_components(name, definition, known))
        errors.extend(_check_loops(name, definition))
        errors.extend(_check_output_mappings(name, definition))
        errors.extend(_check_port_groups_and_display(name, definition))
        errors.extend(_check_connection_cycles(name, definition))
        if definition.outputs and not definition.output_mappings:
            warnings.append(ValidationWarning(message=f"Module '{name}' declares outputs but has no output mappings."))

    errors.extend(_check_recursive_modules(document))
    warnings.extend(_check_unused_modules(document))

    return ValidationResult(warnings=warnings, errors=errors)


# ################
# Implementation
# ################


def _find_cycle(edges: dict[str, list[str]]) -> list[str] | None:
    """Return one dependency cycle among components or module types.

    *edges* maps a name to the names that depend on it: a component to the
    components it feeds, or a module type to the types it instantiates.
    Names that only appear as targets have no outgoing edges.

    Returns:
        The names along the cycle with the first one repeated at the end
        (``["a", "b", "a"]``), or ``None`` if there is none.
    """
    done: set[str] = set()
    for root in edges:
        if root in done:
            continue
        trail = [root]
        pending = [iter(edges.get(root, []))]
        while pending:
            target = next(pending[-1], None)
            if target is None:
                done.add(trail.pop())
                pending.pop()
            elif target in trail:
                return trail[trail.index(target) :] + [target]
            elif target not in done:
                trail.append(target)
                pending.append(iter(edges.get(target, [])))
    return None


def _check_ports(name: str, definition: ComponentDefinition) -> list[ValidationError]:
    """Return errors for literal port sizes that are not positive integers."""
    errors: list[ValidationError] = []
    for kind, ports in (("input", definition.inputs), ("output", definition.outputs)):
        for port in ports:
            if isinstance(port.size, str):
                if not is_expression(port.size):
                    errors.append(
                        ValidationError(
                            message=(
                                f"Invalid size '{port.size}' for {kind} '{port.name}' in '{name}': "
                                "a string size must be a parameter expression."
                            )
                        )
                    )
            elif port.size < 1:
                errors.append(
                    ValidationError(
                        message=f"Invalid size {port.size} for {kind} '{port.name}' in '{name}': must be positive."
                    )
                )
    return errors


def _loop_may_generate(definition: ComponentDefinition) -> bool:
    """Return True if a loop of *definition* has a templated component id."""
    return any(is_expression(ref.id) for loop in definition.component_loops for ref in loop.components)


def _literal_size(port: PortDef) -> int | None:
    return port.size if isinstance(port.size, int) else None


def _check_reference(
    text: str, owner: str, module_name: str, definition: ComponentDefinition, explicit_ids: set[str]
) -> ValidationError | None:
    """Check one literal connection string of *owner* in module *module_name*."""
    where = f"component '{owner}' in module '{module_name}'"
    try:
        ref = parse_reference(text)
    except InvalidReferenceError as exc:
        return ValidationError(message=f"Invalid connection '{text}' for {where}: {exc.reason}.")

    if isinstance(ref, ModuleInputRef):
        port = definition.input_port(ref.name)
        if port is None:
            return ValidationError(message=f"Connection '{text}' of {where} references non-existent module input.")
        size = _literal_size(port)
        if ref.index is not None and size is not None and ref.index >= size:
            return ValidationError(
                message=f"Index out of bounds in '{text}' for {where}: input '{ref.name}' has size {size}."
            )
        return None

    if ref.component_id not in explicit_ids and not _loop_may_generate(definition):
        return ValidationError(message=f"Connection '{text}' of {where} references non-existent component.")
    return None


def _check_component_inputs(
    ref: ComponentRef,
    module_name: str,
    definition: ComponentDefinition,
    known: dict[str, ComponentDefinition],
    explicit_ids: set[str],
) -> list[ValidationError]:
    errors: list[ValidationError] = []
    component_type = known.get(ref.type)
    for port_name, binding in ref.inputs.items():
        if component_type is not None and component_type.input_port(port_name) is None:
            errors.append(
                ValidationError(
                    message=(
                        f"Component '{ref.id}' in module '{module_name}' wires unknown input '{port_name}' "
                        f"of type '{ref.type}'."
                    )
                )
            )
        for text in binding if isinstance(binding, list) else [binding]:
            if is_expression(text):
                continue
            error = _check_reference(text, ref.id, module_name, definition, explicit_ids)
            if error is not None:
                errors.append(error)
    return errors


def _check_components(
    name: str, definition: ComponentDefinition, known: dict[str, ComponentDefinition]
) -> list[ValidationError]:
    """Return errors for duplicate ids, unknown types and dangling connections."""
    errors: list[ValidationError] = []
    explicit_ids: set[str] = set()
    for ref in definition.components:
        if ref.id in explicit_ids:
            errors.append(ValidationError(message=f"Duplicate component id '{ref.id}' in module '{name}'."))
        explicit_ids.add(ref.id)

    templates = [ref for loop in definition.component_loops for ref in loop.components]
    for ref in [*definition.components, *templates]:
        if not is_expression(ref.type) and ref.type not in known:
            errors.append(
                ValidationError(message=f"Component '{ref.id}' in module '{name}' has unknown type '{ref.type}'.")
            )
    for ref in definition.components:
        errors.extend(_check_component_inputs(ref, name, definition, known, explicit_ids))
    return errors


def _check_loops(name: str, definition: ComponentDefinition) -> list[ValidationError]:
    """Return errors for malformed loop bounds and empty loop bodies."""
    errors: list[ValidationError] = []
    for loop in definition.component_loops:
        for bound in loop.range:
            if isinstance(bound, str) and not is_expression(bound):
                errors.append(
                    ValidationError(
                        message=(
                            f"Range value '{bound}' of loop '{loop.iterator}' in module '{name}' "
                            "must be a number or a parameter expression."
                        )
                    )
                )
        if not loop.components:
            errors.append(
                ValidationError(message=f"Loop '{loop.iterator}' in module '{name}' must have a non-empty body.")
            )
    return errors


def _check_output_mappings(name: str, definition: ComponentDefinition) -> list[ValidationError]:
    """Return errors for mappings of undeclared outputs or to non-component sources."""
    errors: list[ValidationError] = []
    explicit_ids = {ref.id for ref in definition.components}
    for port_name, text in definition.output_mappings.items():
        if definition.output_port(port_name) is None:
            errors.append(
                ValidationError(
                    message=f"Output mapping '{port_name}' in module '{name}' does not name a declared output."
                )
            )
        if is_expression(text):
            continue
        try:
            ref = parse_reference(text)
        except InvalidReferenceError as exc:
            errors.append(ValidationError(message=f"Invalid output mapping '{text}' in module '{name}': {exc.reason}."))
            continue
        if not isinstance(ref, ComponentOutputRef):
            errors.append(
                ValidationError(
                    message=(
                        f"Output mapping '{text}' for '{port_name}' in module '{name}' must refer to an internal "
                        "component output."
                    )
                )
            )
        elif ref.component_id not in explicit_ids and not _loop_may_generate(definition):
            errors.append(
                ValidationError(
                    message=(
                        f"Output mapping '{text}' for '{port_name}' in module '{name}' refers to non-existent "
                        f"component '{ref.component_id}'."
                    )
                )
            )
    return errors


def _check_port_groups_and_display(name: str, definition: ComponentDefinition) -> list[ValidationError]:
    errors: list[ValidationError] = []
    port_names = {port.name for port in (*definition.inputs, *definition.outputs)}
    for group_name, group in definition.port_groups.items():
        for port in group.ports:
            if not is_expression(port) and port not in port_names:
                errors.append(
                    ValidationError(
                        message=f"Port group '{group_name}' in module '{name}' names unknown port '{port}'."
                    )
                )
    for port in (*definition.inputs, *definition.outputs):
        if port.group is not None and port.group not in definition.port_groups:
            errors.append(
                ValidationError(message=f"Port '{port.name}' in module '{name}' names unknown group '{port.group}'.")
            )

    height = definition.display.get("height")
    if height is not None and not is_expression(height):
        if isinstance(height, bool) or not isinstance(height, (int, float)) or height <= 0:
            errors.append(
                ValidationError(message=f"Display height of module '{name}' must be a positive number.")
            )
    return errors


def _check_connection_cycles(name: str, definition: ComponentDefinition) -> list[ValidationError]:
    """Return an error if the literal connections between explicit components form a cycle."""
    graph: dict[str, list[str]] = {}
    for ref in definition.components:
        for binding in ref.inputs.values():
            for text in binding if isinstance(binding, list) else [binding]:
                if is_expression(text):
                    continue
                try:
                    source = parse_reference(text)
                except InvalidReferenceError:
                    continue
                if isinstance(source, ComponentOutputRef):
                    graph.setdefault(source.component_id, []).append(ref.id)
    cycle = _find_cycle(graph)
    if cycle is None:
        return []
    return [ValidationError(message=f"Connection cycle detected in module '{name}': {' -> '.join(cycle)}.")]


def _module_types_used(definition: ComponentDefinition) -> list[str]:
    refs = [*definition.components, *(ref for loop in definition.component_loops for ref in loop.components)]
    return [ref.type for ref in refs if not is_expression(ref.type)]


def _check_recursive_modules(document: DiagramDocument) -> list[ValidationError]:
    """Return an error for a module that instantiates itself through the module hierarchy."""
    modules = document.module_definitions
    graph = {
        name: [used for used in _module_types_used(definition) if used in modules]
        for name, definition in modules.items()
    }
    cycle = _find_cycle(graph)
    if cycle is None:
        return []
    return [ValidationError(message=f"Recursive module definition detected: {' -> '.join(cycle)}.")]


def _check_unused_modules(document: DiagramDocument) -> list[ValidationWarning]:
    """Return warnings for module definitions that nothing instantiates."""
    used = {used for definition in document.module_definitions.values() for used in _module_types_used(definition)}
    return [
        ValidationWarning(message=f"Module '{name}' is never used.")
        for name in document.module_definitions
        if name != document.entry_point_module and name not in used
    ]
