# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for document loading and the elaboration pipeline."""

import json
from pathlib import Path
from typing import Any

import pytest

from nncircuit.errors import CircuitError, DefinitionNotFoundError, InvalidReferenceError
from nncircuit.layout import LayoutConfig
from nncircuit.model import ComponentDefinition, ComponentOutputRef, DiagramDocument, ModuleInstance
from nncircuit.pipeline import DocumentError, build_registry, elaborate_document, load_document, parse_document

# ###############
# Test Helpers
# ###############

DOCUMENT: dict[str, Any] = {
    "entryPointModule": "mac",
    "moduleDefinitions": {
        "mac": {
            "inputs": ["x", "w"],
            "outputs": ["y"],
            "components": [
                {"id": "m", "type": "mul", "inputs": {"in1": "$.x", "in2": "$.w"}},
                {"id": "d", "type": "delay_chain", "inputs": {"in": "m.out"}},
            ],
            "outputMappings": {"y": "d.out"},
        },
        "delay_chain": {
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
        },
    },
    "primitiveDefinitions": {"sat": {"isPrimitive": True, "inputs": ["in"], "outputs": ["out"], "latency": 2}},
}


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "diagram.json"
    path.write_text(content, encoding="utf-8")
    return path


# ###############
# Loading
# ###############


class TestLoadDocument:
    def test_valid_document(self, tmp_path: Path) -> None:
        document = load_document(_write(tmp_path, json.dumps(DOCUMENT)))
        assert document.entry_point_module == "mac"
        assert set(document.module_definitions) == {"mac", "delay_chain"}
        assert document.primitive_definitions["sat"].latency == 2

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentError, match="not found"):
            load_document(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentError, match="Invalid JSON"):
            load_document(_write(tmp_path, "{"))

    def test_not_an_object(self) -> None:
        with pytest.raises(DocumentError, match="JSON object"):
            parse_document("[1, 2]")

    def test_schema_violation(self) -> None:
        with pytest.raises(DocumentError, match="invalid diagram document"):
            parse_document(json.dumps({"entryPointModule": "top"}))

    def test_unknown_definition_key(self) -> None:
        document = {"entryPointModule": "top", "moduleDefinitions": {"top": {"wires": []}}}
        with pytest.raises(DocumentError):
            parse_document(json.dumps(document))

    def test_primitive_without_flag_is_rejected(self) -> None:
        document = json.loads(json.dumps(DOCUMENT))
        document["primitiveDefinitions"]["sq"] = {"inputs": ["in"], "outputs": ["out"], "latency": 3}
        with pytest.raises(DocumentError, match="primitive definition 'sq' must set is_primitive to true"):
            parse_document(json.dumps(document))

    def test_module_with_primitive_flag_is_rejected(self) -> None:
        document = json.loads(json.dumps(DOCUMENT))
        document["moduleDefinitions"]["mac"]["isPrimitive"] = True
        document["moduleDefinitions"]["mac"].pop("components")
        document["moduleDefinitions"]["mac"].pop("outputMappings")
        with pytest.raises(DocumentError, match="module definition 'mac' must not set is_primitive to true"):
            parse_document(json.dumps(document))


def test_build_registry_contains_document_and_builtin_types() -> None:
    registry = build_registry(parse_document(json.dumps(DOCUMENT)))
    assert registry.is_module("mac")
    assert registry.is_primitive("sat")
    assert registry.is_primitive("reg")


# ###############
# Pipeline
# ###############


class TestElaborateDocument:
    def test_entry_point_is_elaborated_and_placed(self) -> None:
        result = elaborate_document(parse_document(json.dumps(DOCUMENT)))
        module = result.module
        assert module.id == "mac"
        assert module.latency == 4
        assert module.children["m"].cycle == 1
        assert module.children["d"].cycle == 4
        assert module.width == 500
        assert result.layout.columns == {"m": 1, "d": 4}
        assert "d" in result.layout.children

    def test_any_module_can_be_the_entry_point(self) -> None:
        result = elaborate_document(parse_document(json.dumps(DOCUMENT)), module_name="delay_chain")
        assert result.module.type_name == "delay_chain"
        assert list(result.module.children) == ["reg_0", "reg_1", "reg_2"]
        assert result.module.latency == 3

    def test_override_params(self) -> None:
        document = parse_document(json.dumps(DOCUMENT))
        result = elaborate_document(document, module_name="delay_chain", override_params={"DELAY": 5})
        assert result.module.latency == 5
        assert result.module.output_mappings["out"] == ComponentOutputRef("reg_4", "out")

    def test_layout_config_is_used(self) -> None:
        document = parse_document(json.dumps(DOCUMENT))
        result = elaborate_document(document, module_name="delay_chain", config=LayoutConfig(column_spacing=10))
        assert result.module.width == 40

    def test_unknown_module(self) -> None:
        with pytest.raises(DefinitionNotFoundError):
            elaborate_document(parse_document(json.dumps(DOCUMENT)), module_name="nope")

    def test_primitive_is_not_an_entry_point(self) -> None:
        with pytest.raises(DefinitionNotFoundError):
            elaborate_document(parse_document(json.dumps(DOCUMENT)), module_name="sat")

    def test_primitive_flagged_entry_point_is_not_elaborated(self) -> None:
        document = DiagramDocument.model_construct(
            entry_point_module="top",
            module_definitions={"top": ComponentDefinition.model_validate({"isPrimitive": True, "outputs": ["out"]})},
            primitive_definitions={},
        )
        with pytest.raises(DefinitionNotFoundError):
            elaborate_document(document)

    def test_core_errors_propagate(self) -> None:
        broken = json.loads(json.dumps(DOCUMENT))
        broken["moduleDefinitions"]["mac"]["outputMappings"] = {"y": "ghost.out"}
        with pytest.raises(InvalidReferenceError) as exc_info:
            elaborate_document(parse_document(json.dumps(broken)))
        assert isinstance(exc_info.value, CircuitError)

    def test_result_module_is_a_module_instance(self) -> None:
        result = elaborate_document(parse_document(json.dumps(DOCUMENT)))
        assert isinstance(result.module, ModuleInstance)
        assert result.registry.is_module("delay_chain")
