# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Timing analysis of elaborated circuits."""

from nncircuit.analysis.latency import LatencyAnalyzer, primitive_latency

__all__ = [
    "LatencyAnalyzer",
    "primitive_latency",
]
