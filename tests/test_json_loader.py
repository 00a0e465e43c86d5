from __future__ import annotations

import json

import pytest

from cimgui_go_generator.models import ArgDef, FuncDef
from cimgui_go_generator.parsing.json_loader import (
    DescriptorError,
    descriptors_from_dict,
    load_descriptors,
)


DOCUMENT = {
    "enums": [
        {"name": "ImGuiDir_", "values": [{"name": "ImGuiDir_None", "value": -1}, {"name": "ImGuiDir_Left", "value": 0}]},
        {"name": "Color_", "values": [["Red", 0], ["Green", 1]]},
    ],
    "structs": [{"name": "ImGuiIO"}, "ImDrawList"],
    "funcs": [
        {
            "funcName": "ImGuiIO_SetFontGlobalScale",
            "args": [{"name": "self", "type": "ImGuiIO*"}, {"name": "v", "type": "float"}],
            "ret": "void",
            "structSetter": True,
        },
        {"funcName": "igNewFrame"},
    ],
}


class TestDescriptorsFromDict:
    def test_canonical_layout(self):
        api = descriptors_from_dict(DOCUMENT)
        assert [e.name for e in api.enums] == ["ImGuiDir_", "Color_"]
        assert [(v.name, v.value) for v in api.enums[1].values] == [("Red", 0), ("Green", 1)]
        assert api.enums[0].values[0].value == -1
        assert [s.name for s in api.structs] == ["ImGuiIO", "ImDrawList"]
        assert api.funcs[0] == FuncDef(
            func_name="ImGuiIO_SetFontGlobalScale",
            args=(ArgDef("self", "ImGuiIO*"), ArgDef("v", "float")),
            ret="void",
            struct_setter=True,
        )

    def test_defaults(self):
        func = descriptors_from_dict(DOCUMENT).funcs[1]
        assert func.ret == "void"
        assert func.args == ()
        assert not (func.struct_setter or func.struct_getter or func.constructor)

    def test_variants(self):
        api = descriptors_from_dict({
            "enums": {"ImGuiKey_": [{"name": "ImGuiKey_A", "value": "1 << 2", "calc_value": 4}, {"name": "ImGuiKey_B", "value": "0x10"}]},
            "structs": {"ImFont": [], "ImFontAtlas": []},
            "funcs": [
                {"func_name": "ImFont_GetSize", "argsT": [{"name": "self", "type": "ImFont*"}], "ret": "float", "struct_getter": True},
            ],
        })
        assert [(v.name, v.value) for v in api.enums[0].values] == [("ImGuiKey_A", 4), ("ImGuiKey_B", 16)]
        assert [s.name for s in api.structs] == ["ImFont", "ImFontAtlas"]
        assert api.funcs[0].struct_getter
        assert api.funcs[0].args == (ArgDef("self", "ImFont*"),)

    def test_missing_sections_are_empty(self):
        api = descriptors_from_dict({})
        assert api.enums == () and api.structs == () and api.funcs == ()

    @pytest.mark.parametrize(
        "data, message",
        [
            ([], "JSON object"),
            ({"funcs": {}}, "funcs must be a list"),
            ({"funcs": [{"args": []}]}, "funcs[0]: missing or invalid 'funcName'"),
            ({"funcs": [{"funcName": "igX", "args": [{"name": "a"}]}]}, "funcs[0] (igX).args[0]: missing or invalid 'type'"),
            ({"funcs": [{"funcName": "igX", "constructor": "yes"}]}, "'constructor' must be a boolean"),
            ({"enums": [{"name": "E_", "values": [{"name": "A", "value": True}]}]}, "must be an integer"),
            ({"enums": [{"name": "E_", "values": [{"name": "A", "value": "1 << x"}]}]}, "not an integer"),
            ({"enums": [{"name": "E_", "values": [["A"]]}]}, "[name, value] pair"),
            ({"structs": [42]}, "structs[0]"),
        ],
    )
    def test_errors_name_the_entry(self, data, message):
        with pytest.raises(DescriptorError) as excinfo:
            descriptors_from_dict(data)
        assert message in str(excinfo.value)

    def test_type_vocabulary(self):
        api = descriptors_from_dict(DOCUMENT)
        assert api.type_vocabulary() == ["ImGuiIO*", "float", "void"]


class TestLoadDescriptors:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "definitions.json"
        path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
        api = load_descriptors(path)
        assert len(api.funcs) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(DescriptorError, match="cannot read descriptors"):
            load_descriptors(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DescriptorError, match="invalid JSON"):
            load_descriptors(str(path))

    def test_is_a_value_error(self):
        assert issubclass(DescriptorError, ValueError)
