# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Loading diagram documents and running the elaboration pipeline.

The pipeline is one pass per requested module:

    document -> registry -> elaborated tree -> cycles/latencies -> positions

Any module definition of a document can be elaborated as an independent
entry point; drilling down into a sub-module is just another run with a
different ``module_name``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pydantic

from nncircuit.analysis.latency import LatencyAnalyzer
from nncircuit.elaboration.elaborator import Elaborator
from nncircuit.elaboration.registry import Registry
from nncircuit.errors import DefinitionNotFoundError
from nncircuit.layout.config import LayoutConfig
from nncircuit.layout.engine import LayoutEngine, ModuleLayout
from nncircuit.model.definitions import DiagramDocument
from nncircuit.model.instances import ModuleInstance

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class DocumentError(Exception):
    """Raised when a diagram document cannot be read or does not match the document schema."""


@dataclass
class Elaboration:
    """Result of running the pipeline on one module of a document.

    Attributes:
        module: The elaborated, annotated and positioned module tree.
        layout: Column and row assignment of every module in the tree.
        registry: The registry the module was elaborated from.
    """

    module: ModuleInstance
    layout: ModuleLayout
    registry: Registry


def load_document(path: Path) -> DiagramDocument:
    """Load and parse a diagram JSON document.

    Args:
        path: Path to the document.

    Returns:
        The parsed document.

    Raises:
        DocumentError: If the file cannot be read, is not JSON, or does not
            match the document schema.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise DocumentError(f"Document not found: {path}") from None
    except OSError as exc:
        raise DocumentError(f"Cannot read document: {exc}") from exc
    return parse_document(text, source_label=str(path))


def parse_document(text: str, source_label: str = "<string>") -> DiagramDocument:
    """Parse diagram JSON text.

    Raises:
        DocumentError: If *text* is not JSON or does not match the document schema.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentError(f"Invalid JSON in {source_label}: {exc}") from exc
    return document_from_dict(data, source_label)


def document_from_dict(data: Any, source_label: str = "<string>") -> DiagramDocument:
    """Validate already decoded JSON *data* into a :class:`DiagramDocument`.

    Raises:
        DocumentError: If *data* does not match the document schema.
    """
    if not isinstance(data, dict):
        raise DocumentError(f"{source_label}: a diagram document must be a JSON object")
    try:
        return DiagramDocument.model_validate(data)
    except pydantic.ValidationError as exc:
        raise DocumentError(f"{source_label}: invalid diagram document:\n{exc}") from exc


def build_registry(document: DiagramDocument) -> Registry:
    """Return a registry with the builtins and every definition of *document*."""
    return Registry().register_document(document)


def elaborate_document(
    document: DiagramDocument,
    module_name: str | None = None,
    config: LayoutConfig | None = None,
    override_params: Mapping[str, Any] | None = None,
) -> Elaboration:
    """Elaborate, analyze and lay out one module of *document*.

    Args:
        document: The parsed document.
        module_name: Module definition to use as the top level; defaults to
            the document's entry point.
        config: Layout configuration; defaults to :class:`LayoutConfig`.
        override_params: Parameter values for the top-level module.

    Returns:
        The positioned module tree and its layout.

    Raises:
        DefinitionNotFoundError: If *module_name* is not a module definition.
        CircuitError: Any other elaboration, analysis or layout failure.
    """
    name = module_name or document.entry_point_module
    registry = build_registry(document)
    if name not in document.module_definitions or not registry.is_module(name):
        raise DefinitionNotFoundError(name, "the pipeline entry point")

    module = Elaborator(registry).instantiate_type(name, override_params=override_params)
    if not isinstance(module, ModuleInstance):
        raise DefinitionNotFoundError(name, "the pipeline entry point")

    analyzer = LatencyAnalyzer()
    analyzer.annotate(module)
    layout = LayoutEngine(config, analyzer).layout(module)
    logger.info("Elaborated '%s': %d component(s), latency %d", name, len(module.children), module.latency)
    return Elaboration(module=module, layout=layout, registry=registry)
