# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for elaborating definitions into instance trees."""

from typing import Any

import pytest

from nncircuit.elaboration import Elaborator, Registry, instantiate
from nncircuit.errors import (
    CycleDetectedError,
    DefinitionNotFoundError,
    DuplicateIdError,
    ExpressionError,
    InvalidPortSizeError,
    InvalidReferenceError,
    PortSizeMismatchError,
)
from nncircuit.model import ComponentInstance, ComponentOutputRef, ModuleInputRef, ModuleInstance

# ###############
# Test Helpers
# ###############

DELAY_CHAIN: dict[str, Any] = {
    "parameters": {"DELAY": 3},
    "inputs": ["in"],
    "outputs": ["out"],
    "componentLoops": [
        {
            "iterator": "i",
            "range": [0, "${DELAY - 1}"],
            "components": [
                {
                    "id": "reg_${i}",
                    "type": "reg",
                    "inputs": {"in": "${i == 0 ? '$.in' : 'reg_' + (i - 1) + '.out'}"},
                }
            ],
        }
    ],
    "outputMappings": {"out": "reg_${DELAY - 1}.out"},
}


def _module(**body: Any) -> dict[str, Any]:
    return {"inputs": [], "outputs": [], **body}


def _elaborate(type_name: str, override_params: dict[str, Any] | None = None, **modules: Any) -> ModuleInstance:
    registry = Registry()
    for name, definition in modules.items():
        registry.register(name, definition)
    result = Elaborator(registry).instantiate_type(type_name, override_params=override_params)
    assert isinstance(result, ModuleInstance)
    return result


# ###############
# Structure
# ###############


class TestStructure:
    def test_primitive_instance(self) -> None:
        result = instantiate("m0", Registry().get("mul"), type_name="mul")
        assert type(result) is ComponentInstance
        assert result.is_primitive
        assert result.type_name == "mul"
        assert [port.name for port in result.inputs] == ["in1", "in2"]
        assert result.declared_latency == 1
        assert result.display["symbol"] == "×"

    def test_module_from_raw_mapping(self) -> None:
        definition = _module(
            inputs=["x"],
            outputs=["y"],
            components=[{"id": "r", "type": "reg", "inputs": {"in": "$.x"}}],
            outputMappings={"y": "r.out"},
        )
        result = instantiate("top", definition)
        assert isinstance(result, ModuleInstance)
        assert result.type_name == "top"
        assert list(result.children) == ["r"]
        assert result.children["r"].input_connections == {"in": ModuleInputRef("x")}
        assert result.output_mappings == {"y": ComponentOutputRef("r", "out")}

    def test_explicit_components_precede_loop_components(self) -> None:
        definition = _module(
            components=[{"id": "first", "type": "reg"}],
            componentLoops=[{"iterator": "k", "range": [0, 1], "components": [{"id": "l_${k}", "type": "reg"}]}],
        )
        assert list(_elaborate("top", top=definition).children) == ["first", "l_0", "l_1"]

    def test_child_modules_are_elaborated_recursively(self) -> None:
        result = _elaborate(
            "top",
            chain=DELAY_CHAIN,
            top=_module(
                inputs=["x"],
                outputs=["y"],
                components=[{"id": "d", "type": "chain", "inputs": {"in": "$.x"}}],
                outputMappings={"y": "d.out"},
            ),
        )
        inner = result.children["d"]
        assert isinstance(inner, ModuleInstance)
        assert inner.type_name == "chain"
        assert list(inner.children) == ["reg_0", "reg_1", "reg_2"]

    def test_elaboration_is_deterministic(self) -> None:
        first = _elaborate("chain", chain=DELAY_CHAIN)
        second = _elaborate("chain", chain=DELAY_CHAIN)
        assert first == second
        assert list(first.children) == list(second.children)


# ###############
# Loops
# ###############


class TestLoops:
    def test_delay_chain_is_generated(self) -> None:
        result = _elaborate("chain", chain=DELAY_CHAIN)
        assert list(result.children) == ["reg_0", "reg_1", "reg_2"]
        assert result.children["reg_0"].input_connections["in"] == ModuleInputRef("in")
        assert result.children["reg_1"].input_connections["in"] == ComponentOutputRef("reg_0", "out")
        assert result.children["reg_2"].input_connections["in"] == ComponentOutputRef("reg_1", "out")
        assert result.output_mappings["out"] == ComponentOutputRef("reg_2", "out")

    def test_override_changes_loop_length(self) -> None:
        result = _elaborate("chain", {"DELAY": 5}, chain=DELAY_CHAIN)
        assert len(result.children) == 5
        assert result.parameters["DELAY"] == 5
        assert result.output_mappings["out"] == ComponentOutputRef("reg_4", "out")

    def test_empty_range_generates_nothing(self) -> None:
        loop = {"iterator": "i", "range": [2, 1], "components": [{"id": "r", "type": "reg"}]}
        definition = _module(componentLoops=[loop])
        assert _elaborate("top", top=definition).children == {}

    def test_non_integer_bound(self) -> None:
        definition = _module(
            parameters={"N": 2.5},
            componentLoops=[{"iterator": "i", "range": [0, "${N}"], "components": [{"id": "r_${i}", "type": "reg"}]}],
        )
        with pytest.raises(ExpressionError, match="integer"):
            _elaborate("top", top=definition)

    def test_generated_duplicate_id(self) -> None:
        definition = _module(
            componentLoops=[{"iterator": "i", "range": [0, 1], "components": [{"id": "same", "type": "reg"}]}],
        )
        with pytest.raises(DuplicateIdError) as exc_info:
            _elaborate("top", top=definition)
        assert exc_info.value.component_id == "same"


# ###############
# Parameters
# ###############


class TestParameters:
    WIDE = _module(parameters={"W": 4}, inputs=[{"name": "x", "size": "${W}"}])

    def test_default_parameters(self) -> None:
        result = _elaborate("wide", wide=self.WIDE)
        assert result.inputs[0].size == 4

    def test_instance_parameter_overrides_default(self) -> None:
        top = _module(
            components=[
                {"id": "narrow", "type": "wide"},
                {"id": "wider", "type": "wide", "parameters": {"W": 8}},
            ]
        )
        result = _elaborate("top", top=top, wide=self.WIDE)
        assert result.children["narrow"].inputs[0].size == 4
        assert result.children["wider"].inputs[0].size == 8
        assert result.children["wider"].parameters == {"W": 8}

    def test_override_is_evaluated_in_parent_scope(self) -> None:
        top = _module(
            parameters={"BASE": 3},
            components=[{"id": "w", "type": "wide", "parameters": {"W": "${BASE * 2}"}}],
        )
        assert _elaborate("top", top=top, wide=self.WIDE).children["w"].inputs[0].size == 6

    def test_undefined_names_resolve_through_ancestors(self) -> None:
        inner = _module(inputs=[{"name": "x", "size": "${LANES}"}])
        top = _module(parameters={"LANES": 2}, components=[{"id": "i", "type": "inner"}])
        assert _elaborate("top", top=top, inner=inner).children["i"].inputs[0].size == 2

    def test_unknown_parameter(self) -> None:
        definition = _module(inputs=[{"name": "x", "size": "${MISSING}"}])
        with pytest.raises(ExpressionError, match="MISSING"):
            _elaborate("top", top=definition)


# ###############
# Ports and Connections
# ###############


class TestPorts:
    @pytest.mark.parametrize("size", ["${W - 4}", "wide", 0, -1, "${W / 8}"])
    def test_invalid_port_size(self, size: Any) -> None:
        definition = _module(parameters={"W": 4}, inputs=[{"name": "x", "size": size}])
        with pytest.raises(InvalidPortSizeError) as exc_info:
            _elaborate("top", top=definition)
        assert exc_info.value.port_name == "x"

    def test_index_within_bounds(self) -> None:
        definition = _module(
            inputs=[{"name": "x", "size": 2}],
            components=[
                {"id": "a", "type": "reg", "inputs": {"in": "$.x[0]"}},
                {"id": "b", "type": "reg", "inputs": {"in": "$.x[1]"}},
            ],
        )
        result = _elaborate("top", top=definition)
        assert result.children["b"].input_connections["in"] == ModuleInputRef("x", 1)

    def test_index_out_of_bounds(self) -> None:
        definition = _module(
            inputs=[{"name": "x", "size": 2}],
            components=[{"id": "a", "type": "reg", "inputs": {"in": "$.x[2]"}}],
        )
        with pytest.raises(InvalidReferenceError, match="out of bounds"):
            _elaborate("top", top=definition)

    def test_forward_reference_between_siblings(self) -> None:
        definition = _module(
            components=[
                {"id": "late", "type": "reg", "inputs": {"in": "early.out"}},
                {"id": "early", "type": "reg"},
            ],
        )
        result = _elaborate("top", top=definition)
        assert result.children["late"].input_connections["in"] == ComponentOutputRef("early", "out")

    def test_missing_source_component(self) -> None:
        definition = _module(components=[{"id": "a", "type": "reg", "inputs": {"in": "ghost.out"}}])
        with pytest.raises(InvalidReferenceError, match="ghost"):
            _elaborate("top", top=definition)

    def test_missing_module_input(self) -> None:
        definition = _module(components=[{"id": "a", "type": "reg", "inputs": {"in": "$.nope"}}])
        with pytest.raises(InvalidReferenceError):
            _elaborate("top", top=definition)

    def test_unknown_destination_port(self) -> None:
        definition = _module(inputs=["x"], components=[{"id": "a", "type": "reg", "inputs": {"data": "$.x"}}])
        with pytest.raises(InvalidReferenceError, match="no input port 'data'"):
            _elaborate("top", top=definition)

    def test_width_mismatch(self) -> None:
        definition = _module(
            inputs=["x"],
            components=[{"id": "b", "type": "bus_reg", "inputs": {"in": "$.x"}}],
        )
        with pytest.raises(PortSizeMismatchError) as exc_info:
            _elaborate("top", top=definition)
        assert exc_info.value.expected == 8
        assert exc_info.value.actual == 1

    def test_whole_vector_connection(self) -> None:
        definition = _module(
            inputs=[{"name": "x", "size": 8}],
            components=[
                {"id": "b0", "type": "bus_reg", "inputs": {"in": "$.x"}},
                {"id": "b1", "type": "bus_reg", "inputs": {"in": "b0.out"}},
            ],
        )
        result = _elaborate("top", top=definition)
        assert result.children["b1"].input_connections["in"] == ComponentOutputRef("b0", "out")

    def test_list_binding_of_scalar_elements(self) -> None:
        definition = _module(
            inputs=[{"name": "x", "size": 8}],
            components=[{"id": "b", "type": "bus_reg", "inputs": {"in": [f"$.x[{i}]" for i in range(8)]}}],
        )
        result = _elaborate("top", top=definition)
        connection = result.children["b"].input_connections["in"]
        assert isinstance(connection, tuple)
        assert connection[7] == ModuleInputRef("x", 7)

    def test_list_binding_with_wrong_length(self) -> None:
        definition = _module(
            inputs=[{"name": "x", "size": 8}],
            components=[{"id": "b", "type": "bus_reg", "inputs": {"in": ["$.x[0]", "$.x[1]"]}}],
        )
        with pytest.raises(PortSizeMismatchError):
            _elaborate("top", top=definition)

    def test_list_binding_with_vector_element(self) -> None:
        definition = _module(
            inputs=[{"name": "x", "size": 2}],
            components=[{"id": "a", "type": "add", "inputs": {"in1": ["$.x"]}}],
        )
        with pytest.raises(PortSizeMismatchError):
            _elaborate("top", top=definition)


class TestOutputMappings:
    def test_mapping_to_undeclared_output(self) -> None:
        definition = _module(components=[{"id": "r", "type": "reg"}], outputMappings={"y": "r.out"})
        with pytest.raises(InvalidReferenceError, match="no output 'y'"):
            _elaborate("top", top=definition)

    def test_mapping_to_module_input_is_rejected(self) -> None:
        definition = _module(inputs=["x"], outputs=["y"], outputMappings={"y": "$.x"})
        with pytest.raises(InvalidReferenceError, match="internal component output"):
            _elaborate("top", top=definition)

    def test_mapping_to_missing_component(self) -> None:
        definition = _module(outputs=["y"], outputMappings={"y": "nothing.out"})
        with pytest.raises(InvalidReferenceError):
            _elaborate("top", top=definition)


# ###############
# Types
# ###############


class TestTypes:
    def test_unknown_child_type(self) -> None:
        definition = _module(components=[{"id": "a", "type": "flux_capacitor"}])
        with pytest.raises(DefinitionNotFoundError) as exc_info:
            _elaborate("top", top=definition)
        assert exc_info.value.type_name == "flux_capacitor"

    def test_unknown_top_type(self) -> None:
        with pytest.raises(DefinitionNotFoundError):
            Elaborator(Registry()).instantiate_type("missing")

    def test_type_from_parameter(self) -> None:
        definition = _module(parameters={"OP": "mul"}, components=[{"id": "op", "type": "${OP}"}])
        assert _elaborate("top", top=definition).children["op"].type_name == "mul"

    def test_self_recursive_module(self) -> None:
        definition = _module(components=[{"id": "again", "type": "top"}])
        with pytest.raises(CycleDetectedError) as exc_info:
            _elaborate("top", top=definition)
        assert exc_info.value.path == ["top", "top"]

    def test_mutually_recursive_modules(self) -> None:
        with pytest.raises(CycleDetectedError) as exc_info:
            _elaborate(
                "a",
                a=_module(components=[{"id": "b0", "type": "b"}]),
                b=_module(components=[{"id": "a0", "type": "a"}]),
            )
        assert exc_info.value.path == ["a", "b", "a"]

    def test_same_module_used_twice_is_not_recursion(self) -> None:
        top = _module(components=[{"id": "c0", "type": "chain"}, {"id": "c1", "type": "chain"}])
        result = _elaborate("top", top=top, chain=DELAY_CHAIN)
        assert list(result.children) == ["c0", "c1"]


# ###############
# Display
# ###############


class TestDisplay:
    def test_label_defaults_to_id(self) -> None:
        assert _elaborate("chain", chain=DELAY_CHAIN).children["reg_0"].label == "reg_0"

    def test_label_is_evaluated(self) -> None:
        definition = _module(parameters={"N": 4}, display={"label": "Delay ${N}"})
        assert _elaborate("top", top=definition).label == "Delay 4"

    def test_unresolvable_label_keeps_literal(self) -> None:
        definition = _module(display={"label": "Delay ${UNKNOWN}"})
        assert _elaborate("top", top=definition).label == "Delay ${UNKNOWN}"

    def test_display_height(self) -> None:
        definition = _module(parameters={"ROWS": 3}, display={"height": "${ROWS}"})
        assert _elaborate("top", top=definition).display_height == 3

    def test_invalid_display_height(self) -> None:
        definition = _module(display={"height": 0})
        with pytest.raises(ExpressionError, match="display height"):
            _elaborate("top", top=definition)

    def test_port_groups_are_resolved(self) -> None:
        definition = _module(
            parameters={"P": "x"},
            inputs=["x0", "x1"],
            portGroups={"data": {"ports": ["${P}0", "${P}1"], "arrangement": "interleaved", "spacing": 30}},
        )
        group = _elaborate("top", top=definition).port_groups["data"]
        assert group.ports == ["x0", "x1"]
        assert group.arrangement == "interleaved"
        assert group.spacing == 30
