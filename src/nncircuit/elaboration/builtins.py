# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Builtin primitive types preloaded into every registry."""

from __future__ import annotations

from typing import Any


def _primitive(
    inputs: list[str], outputs: list[str], latency: int, symbol: str, color: str, shape: str, size: int = 1
) -> dict[str, Any]:
    return {
        "is_primitive": True,
        "inputs": [{"name": name, "size": size} for name in inputs],
        "outputs": [{"name": name, "size": size} for name in outputs],
        "latency": latency,
        "display": {"symbol": symbol, "color": color, "shape": shape},
    }


BUILTIN_PRIMITIVES: dict[str, dict[str, Any]] = {
    "add": _primitive(["in1", "in2"], ["out"], 1, "+", "#4CAF50", "circle"),
    "mul": _primitive(["in1", "in2"], ["out"], 1, "×", "#2196F3", "circle"),
    "reg": _primitive(["in"], ["out"], 1, "D", "#9C27B0", "rect"),
    "bus_reg": _primitive(["in"], ["out"], 1, "D[8]", "#9C27B0", "rect", size=8),
    "relu2": _primitive(["in"], ["out"], 1, "ReLU²", "#FF9800", "rect"),
    "clamp": _primitive(["in"], ["out"], 1, "◊", "#F44336", "diamond"),
    "input": _primitive([], ["out"], 0, "▶", "#3F51B5", "triangle"),
    "output": _primitive(["in"], [], 0, "◀", "#3F51B5", "triangle"),
}
