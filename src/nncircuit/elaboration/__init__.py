# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Definition registry and elaborator."""

from nncircuit.elaboration.builtins import BUILTIN_PRIMITIVES
from nncircuit.elaboration.elaborator import Elaborator, instantiate
from nncircuit.elaboration.registry import Registry

__all__ = [
    "BUILTIN_PRIMITIVES",
    "Elaborator",
    "instantiate",
    "Registry",
]
