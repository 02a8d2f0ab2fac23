# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Registry of named component definitions (primitives and modules).

The registry holds templates only. It performs no instantiation and no
cross-reference checks; those belong to the elaborator and the validator.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from nncircuit.elaboration.builtins import BUILTIN_PRIMITIVES
from nncircuit.model.definitions import ComponentDefinition, DiagramDocument

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class Registry:
    """Type name to definition table, preloaded with the builtin primitives.

    Create one registry per document or elaboration run; registries are never
    shared through module-level state.
    """

    def __init__(self, load_builtins: bool = True) -> None:
        self._definitions: dict[str, ComponentDefinition] = {}
        if load_builtins:
            for type_name, raw in BUILTIN_PRIMITIVES.items():
                self.register(type_name, raw)

    def register(self, type_name: str, definition: ComponentDefinition | Mapping[str, Any]) -> Registry:
        """Register *definition* under *type_name*.

        Re-registering an existing type replaces the previous definition and
        logs a warning.

        Args:
            type_name: The name components use in their ``type`` field.
            definition: A definition model, or a raw mapping in document format.

        Returns:
            The registry itself, to allow chaining.

        Raises:
            pydantic.ValidationError: If a raw mapping is not a valid definition.
        """
        if not isinstance(definition, ComponentDefinition):
            definition = ComponentDefinition.model_validate(definition)
        if type_name in self._definitions:
            logger.warning("Component type '%s' already registered, overwriting", type_name)
        self._definitions[type_name] = definition
        return self

    def register_document(self, document: DiagramDocument) -> Registry:
        """Register every primitive and module definition of *document*.

        Primitives are registered before modules. Document types replace
        builtins of the same name.
        """
        for type_name, definition in document.primitive_definitions.items():
            self.register(type_name, definition)
        for type_name, definition in document.module_definitions.items():
            self.register(type_name, definition)
        return self

    def get(self, type_name: str) -> ComponentDefinition | None:
        return self._definitions.get(type_name)

    def is_primitive(self, type_name: str) -> bool:
        definition = self._definitions.get(type_name)
        return definition is not None and definition.is_primitive

    def is_module(self, type_name: str) -> bool:
        definition = self._definitions.get(type_name)
        return definition is not None and not definition.is_primitive

    def types(self) -> list[str]:
        """Return all registered type names in registration order."""
        return list(self._definitions)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._definitions

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)
