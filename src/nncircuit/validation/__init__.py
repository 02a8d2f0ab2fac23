# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Static document checks."""

from nncircuit.validation.checks import ValidationError, ValidationResult, ValidationWarning, validate_document

__all__ = [
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "validate_document",
]
