# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Error taxonomy shared by the elaboration, analysis and layout stages.

Every error raised while turning definitions into an instance graph derives
from :class:`CircuitError`, so callers such as the loader or the CLI can
translate any core failure into a user-visible message with one handler.
"""

from __future__ import annotations

# ###############
# Public Interface
# ###############


class CircuitError(Exception):
    """Base class for all errors raised by the NNCircuit core."""


class DefinitionNotFoundError(CircuitError):
    """Raised when a component references a type that is not registered.

    Attributes:
        type_name: The unregistered type name.
    """

    def __init__(self, type_name: str, context: str = "") -> None:
        where = f" (referenced from {context})" if context else ""
        super().__init__(f"Component type '{type_name}' not found in registry{where}")
        self.type_name = type_name


class DuplicateIdError(CircuitError):
    """Raised when two components of one module scope share the same id.

    Attributes:
        component_id: The colliding id.
        module_id: Id of the module scope in which the collision happened.
    """

    def __init__(self, component_id: str, module_id: str) -> None:
        super().__init__(f"Duplicate component id '{component_id}' in module '{module_id}'")
        self.component_id = component_id
        self.module_id = module_id


class InvalidReferenceError(CircuitError):
    """Raised for malformed, dangling or out-of-bounds connection references.

    Attributes:
        reference: The raw reference text.
    """

    def __init__(self, reference: str, reason: str) -> None:
        super().__init__(f"Invalid reference '{reference}': {reason}")
        self.reference = reference
        self.reason = reason


class ExpressionError(CircuitError):
    """Raised when a ``${...}`` expression cannot be parsed or evaluated.

    Attributes:
        expr: The expression text that failed.
        reason: Human-readable cause of the failure.
    """

    def __init__(self, expr: str, reason: str) -> None:
        super().__init__(f"Cannot evaluate expression '{expr}': {reason}")
        self.expr = expr
        self.reason = reason


class CycleDetectedError(CircuitError):
    """Raised when a dependency cycle prevents latency computation or elaboration.

    Attributes:
        path: The nodes forming the cycle, with the first node repeated at the end.
    """

    def __init__(self, path: list[str]) -> None:
        super().__init__(f"Dependency cycle detected: {' -> '.join(path)}")
        self.path = path


class InvalidPortSizeError(CircuitError):
    """Raised when a port size does not resolve to a positive integer.

    Attributes:
        port_name: Name of the offending port.
        size: The resolved (invalid) size value.
    """

    def __init__(self, port_name: str, size: object, context: str = "") -> None:
        where = f" of {context}" if context else ""
        super().__init__(f"Port '{port_name}'{where} has invalid size {size!r}: must be a positive integer")
        self.port_name = port_name
        self.size = size


class PortSizeMismatchError(CircuitError):
    """Raised when a vector input is wired with the wrong number of elements.

    Attributes:
        port_name: Name of the destination input port.
        expected: Declared size of the destination port.
        actual: Number of elements supplied by the connection.
    """

    def __init__(self, port_name: str, expected: int, actual: int, context: str = "") -> None:
        where = f" of {context}" if context else ""
        super().__init__(f"Input '{port_name}'{where} expects {expected} element(s) but is wired with {actual}")
        self.port_name = port_name
        self.expected = expected
        self.actual = actual
