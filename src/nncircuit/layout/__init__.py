# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Column/row placement, port arrangement and layout configuration."""

from nncircuit.layout.config import DEFAULT_CONFIG_FILENAME, LayoutConfig, LayoutConfigError, load_layout_config
from nncircuit.layout.engine import LayoutEngine, ModuleLayout
from nncircuit.layout.ports import ARRANGEMENT_STYLES, arrange_module_ports, arrange_ports, port_offsets

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "LayoutConfig",
    "LayoutConfigError",
    "load_layout_config",
    "LayoutEngine",
    "ModuleLayout",
    "ARRANGEMENT_STYLES",
    "arrange_module_ports",
    "arrange_ports",
    "port_offsets",
]
