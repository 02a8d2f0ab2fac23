# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for port arrangement styles and module port placement."""

import logging

import pytest

from nncircuit.layout import arrange_module_ports, arrange_ports, port_offsets
from nncircuit.model import ModuleInstance, Port, PortGroup, Position

# ###############
# Arrangement Styles
# ###############


class TestPortOffsets:
    def test_sequential(self) -> None:
        assert port_offsets("sequential", 3, 10, 0) == [-10, 0, 10]

    def test_sequential_single_port_sits_on_center(self) -> None:
        assert port_offsets("sequential", 1, 10, 42) == [42]

    def test_interleaved(self) -> None:
        assert port_offsets("interleaved", 4, 10, 0) == [-10, 0, 10, 20]

    def test_interleaved_odd_count(self) -> None:
        assert port_offsets("interleaved", 3, 10, 0) == [-10, 0, 10]

    def test_alternating(self) -> None:
        assert port_offsets("alternating", 4, 20, 0) == [-15, -5, 5, 15]

    def test_alternating_single_pair_straddles_center(self) -> None:
        assert port_offsets("alternating", 2, 20, 100) == [95, 105]

    @pytest.mark.parametrize("style", ["sequential", "interleaved", "alternating"])
    def test_no_ports(self, style: str) -> None:
        assert port_offsets(style, 0, 10, 0) == []

    def test_unknown_style_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="nncircuit.layout.ports"):
            offsets = port_offsets("zigzag", 2, 10, 0)
        assert offsets == port_offsets("sequential", 2, 10, 0)
        assert "zigzag" in caplog.text


def test_arrange_ports_centers_on_available_height() -> None:
    assert arrange_ports("sequential", ["a", "b"], 20, 100) == {"a": 40, "b": 60}


# ###############
# Module Ports
# ###############


def _module(inputs: list[Port], outputs: list[Port], height: float, **groups: PortGroup) -> ModuleInstance:
    return ModuleInstance(
        id="m", type_name="m", inputs=inputs, outputs=outputs, width=300, height=height, port_groups=groups
    )


class TestArrangeModulePorts:
    def test_ungrouped_ports_on_both_edges(self) -> None:
        module = _module([Port("x"), Port("y")], [Port("z")], height=120)
        arrange_module_ports(module, min_port_spacing=20)
        assert module.inputs[0].position == Position(0, 50)
        assert module.inputs[1].position == Position(0, 70)
        assert module.outputs[0].position == Position(300, 60)

    def test_groups_take_slots_before_ungrouped_ports(self) -> None:
        module = _module(
            [Port("a0", group="a"), Port("b"), Port("a1", group="a")],
            [],
            height=180,
            a=PortGroup("a", ["a0", "a1"], arrangement="interleaved", spacing=30),
        )
        arrange_module_ports(module, min_port_spacing=20)
        positions = {port.name: port.position for port in module.inputs}
        assert positions["a0"] == Position(0, 60)
        assert positions["a1"] == Position(0, 90)
        assert positions["b"] == Position(0, 120)

    def test_group_membership_from_group_port_list(self) -> None:
        module = _module(
            [Port("p"), Port("q")],
            [],
            height=120,
            pair=PortGroup("pair", ["p", "q"], arrangement="alternating", spacing=40),
        )
        arrange_module_ports(module, min_port_spacing=20)
        assert [port.position.y for port in module.inputs] == [50, 70]

    def test_group_without_spacing_uses_minimum(self) -> None:
        module = _module([Port("p", group="g"), Port("q", group="g")], [], height=120, g=PortGroup("g", ["p", "q"]))
        arrange_module_ports(module, min_port_spacing=10)
        assert [port.position.y for port in module.inputs] == [55, 65]

    def test_groups_unused_on_an_edge_take_no_slot(self) -> None:
        module = _module(
            [Port("a", group="left")],
            [Port("z")],
            height=120,
            left=PortGroup("left", ["a"]),
        )
        arrange_module_ports(module, min_port_spacing=20)
        assert module.outputs[0].position == Position(300, 60)
