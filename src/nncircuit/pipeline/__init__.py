# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Document loading, the elaboration pipeline and graph artifacts."""

from nncircuit.pipeline.artifact import (
    GRAPH_FORMAT_VERSION,
    FlatInstance,
    deserialize_graph,
    flatten,
    read_graph,
    serialize_graph,
    write_graph,
)
from nncircuit.pipeline.loader import (
    DocumentError,
    Elaboration,
    build_registry,
    document_from_dict,
    elaborate_document,
    load_document,
    parse_document,
)

__all__ = [
    "GRAPH_FORMAT_VERSION",
    "FlatInstance",
    "deserialize_graph",
    "flatten",
    "read_graph",
    "serialize_graph",
    "write_graph",
    "DocumentError",
    "Elaboration",
    "build_registry",
    "document_from_dict",
    "elaborate_document",
    "load_document",
    "parse_document",
]
