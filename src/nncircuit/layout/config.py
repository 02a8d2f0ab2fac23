# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the layout configuration file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

DEFAULT_CONFIG_FILENAME = ".nncircuit.yaml"


class LayoutConfigError(Exception):
    """Raised when a layout configuration file is invalid or cannot be loaded."""


@dataclass(frozen=True)
class LayoutConfig:
    """Grid and port spacing used by the layout engine.

    Attributes:
        column_spacing: Horizontal distance between clock-cycle columns.
        row_spacing: Vertical distance between rows.
        min_port_spacing: Spacing of ports that have no group spacing of their own.
        min_module_height: Minimum module height, in rows, when the module
            does not specify a display height.
    """

    column_spacing: float = 100
    row_spacing: float = 60
    min_port_spacing: float = 20
    min_module_height: int = 2


def load_layout_config(path: Path) -> LayoutConfig:
    """Load and parse a layout configuration file.

    Args:
        path: Path to the `.nncircuit.yaml` file.

    Returns:
        A LayoutConfig populated from the file; keys not present keep their defaults.

    Raises:
        LayoutConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise LayoutConfigError(f"Layout config file not found: {path}") from None
    except OSError as exc:
        raise LayoutConfigError(f"Cannot read layout config file: {exc}") from exc

    return _parse_layout_config(text, source_label=str(path))


# ################
# Implementation
# ################

_KEYS = {
    "column-spacing": "column_spacing",
    "row-spacing": "row_spacing",
    "min-port-spacing": "min_port_spacing",
    "min-module-height": "min_module_height",
}


def _parse_layout_config(text: str, source_label: str = "<string>") -> LayoutConfig:
    """Parse layout config YAML text into a LayoutConfig.

    Args:
        text: Raw YAML content.
        source_label: Human-readable label used in error messages (e.g. the file path).

    Raises:
        LayoutConfigError: If the YAML is invalid, a key is unknown or a value
            is not a positive number.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise LayoutConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return LayoutConfig()
    if not isinstance(data, dict):
        raise LayoutConfigError(f"{source_label}: layout config must be a YAML mapping")

    values: dict[str, float] = {}
    for key, value in data.items():
        if key not in _KEYS:
            raise LayoutConfigError(f"{source_label}: unknown field '{key}'")
        values[_KEYS[key]] = _require_positive(value, key, source_label)

    height = values.get("min_module_height")
    if height is not None:
        if not float(height).is_integer():
            raise LayoutConfigError(f"{source_label}: 'min-module-height' must be an integer")
        values["min_module_height"] = int(height)
    return LayoutConfig(**values)


def _require_positive(value: object, key: str, source_label: str) -> float:
    """Return *value* if it is a positive number, raising LayoutConfigError otherwise."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise LayoutConfigError(f"{source_label}: '{key}' must be a number")
    if value <= 0:
        raise LayoutConfigError(f"{source_label}: '{key}' must be positive")
    return value
