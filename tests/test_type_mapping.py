from __future__ import annotations

import pytest

from cimgui_go_generator.models import ArgDef, EnumDescriptor, FuncDef, StructDescriptor
from cimgui_go_generator.type_mapping import (
    ARG_RULES,
    ArgumentMarshaller,
    MappedKind,
    MappingConfig,
    MappingRule,
    ReturnMarshaller,
    TypeMapper,
)
from cimgui_go_generator.type_registry import TypeRegistry


def free(name: str, *args, ret: str = "void", **flags) -> FuncDef:
    return FuncDef(func_name=name, args=tuple(ArgDef(n, t) for n, t in args), ret=ret, **flags)


def resolve_arg(registry, raw: str, name: str = "v", func: FuncDef = None, index: int = 1):
    func = func or free("igDummy", ("first", "int"), (name, raw))
    return ArgumentMarshaller(registry).resolve(func, index, ArgDef(name, raw))


class TestArgumentTable:
    @pytest.mark.parametrize(
        "raw, exposed, call",
        [
            ("unsigned char", "uint", "C.uchar(v)"),
            ("unsigned char**", "*C.uchar", "&v"),
            ("size_t", "uint64", "C.xlong(v)"),
            ("size_t*", "*uint64", "(*C.xlong)(v)"),
            ("float", "float32", "C.float(v)"),
            ("short", "int", "C.short(v)"),
            ("unsigned short", "uint", "C.ushort(v)"),
            ("ImU8", "uint", "C.ImU8(v)"),
            ("ImU16", "uint", "C.ImU16(v)"),
            ("ImU64", "uint64", "C.ImU64(v)"),
            ("ImS8", "int", "C.ImS8(v)"),
            ("ImS16", "int", "C.ImS16(v)"),
            ("ImS32", "int", "C.ImS32(v)"),
            ("int", "int32", "C.int(v)"),
            ("unsigned int", "uint32", "C.uint(v)"),
            ("double", "float64", "C.double(v)"),
            ("double*", "*float64", "(*C.double)(v)"),
            ("bool", "bool", "C.bool(v)"),
            ("ImU32", "uint32", "C.ImU32(v)"),
            ("ImWchar", "ImWchar", "C.ImWchar(v)"),
            ("const ImWchar*", "*ImWchar", "(*C.ImWchar)(v)"),
            ("ImGuiID", "ImGuiID", "C.ImGuiID(v)"),
            ("ImTextureID", "ImTextureID", "C.ImTextureID(v)"),
            ("ImDrawIdx", "ImDrawIdx", "C.ImDrawIdx(v)"),
            ("ImGuiTableColumnIdx", "ImGuiTableColumnIdx", "C.ImGuiTableColumnIdx(v)"),
            ("ImGuiTableDrawChannelIdx", "ImGuiTableDrawChannelIdx", "C.ImGuiTableDrawChannelIdx(v)"),
            ("void*", "unsafe.Pointer", "v"),
            ("const void*", "unsafe.Pointer", "v"),
            ("ImVec2", "ImVec2", "v.toC()"),
            ("const ImVec2", "ImVec2", "v.toC()"),
            ("ImVec4", "ImVec4", "v.toC()"),
            ("const ImVec4", "ImVec4", "v.toC()"),
            ("ImRect", "ImRect", "v.toC()"),
        ],
    )
    def test_direct_conversions(self, registry, raw, exposed, call):
        p = resolve_arg(registry, raw)
        assert p.mapping.exposed_spelling == exposed
        assert p.mapping.call_expr(p.name) == call
        assert p.mapping.setup_lines(p.name) == []

    def test_strings_use_scoped_buffer(self, registry):
        for raw in ("const char*", "char*"):
            p = resolve_arg(registry, raw, name="label")
            assert p.mapping.kind == MappedKind.STRING
            assert p.mapping.exposed_spelling == "string"
            assert p.mapping.setup_lines("label") == [
                "labelArg, labelFin := wrapString(label)",
                "defer labelFin()",
            ]
            assert p.mapping.call_expr("label") == "labelArg"

    @pytest.mark.parametrize(
        "raw, exposed, helper",
        [
            ("float*", "*float32", "wrapFloat"),
            ("const float*", "*float32", "wrapFloat"),
            ("int*", "*int32", "wrapInt32"),
            ("bool*", "*bool", "wrapBool"),
        ],
    )
    def test_scalar_cells(self, registry, raw, exposed, helper):
        p = resolve_arg(registry, raw, name="open")
        assert p.mapping.kind == MappedKind.SCALAR_CELL
        assert p.mapping.exposed_spelling == exposed
        assert p.mapping.setup_lines("open") == [f"openArg, openFin := {helper}(open)", "defer openFin()"]
        assert p.mapping.call_expr("open") == "openArg"

    def test_fixed_arrays(self, registry):
        p = resolve_arg(registry, "float[3]", name="col")
        assert p.mapping.kind == MappedKind.ARRAY
        assert p.mapping.exposed_spelling == "[3]*float32"
        assert p.mapping.call_expr("col") == "(*C.float)(&colArg[0])"
        lines = p.mapping.setup_lines("col")
        assert lines[0] == "colArg := make([]C.float, len(col))"
        assert "\tcolArg[i] = C.float(*colV)" in lines
        assert "\t\t*col[i] = float32(colV)" in lines
        assert lines[-1] == "}()"

        assert resolve_arg(registry, "int[2]").mapping.exposed_spelling == "[2]*int32"
        assert resolve_arg(registry, "int[4]").mapping.call_expr("v") == "(*C.int)(&vArg[0])"

    def test_value_struct_pointers_use_wrap(self, registry):
        for raw, exposed in (("ImVec2*", "*ImVec2"), ("const ImVec4*", "*ImVec4"), ("ImColor*", "*ImColor")):
            p = resolve_arg(registry, raw, name="c")
            assert p.mapping.kind == MappedKind.VALUE_STRUCT_PTR
            assert p.mapping.exposed_spelling == exposed
            assert p.mapping.setup_lines("c") == ["cArg, cFin := c.wrap()", "defer cFin()"]

    def test_table_has_no_entry_for_unlisted_widths(self):
        assert "int[5]" not in ARG_RULES
        assert "float[1]" not in ARG_RULES


class TestArgumentCascade:
    def test_enum_by_name(self, registry):
        p = resolve_arg(registry, "ImGuiDir", name="dir")
        assert p.mapping.kind == MappedKind.ENUM
        assert p.mapping.exposed_spelling == "ImGuiDir"
        assert p.mapping.call_expr("dir") == "C.ImGuiDir(dir)"

    def test_pointer_to_opaque_struct(self, registry):
        for raw in ("ImDrawList*", "const ImDrawList*"):
            p = resolve_arg(registry, raw, name="draw_list")
            assert p.mapping.kind == MappedKind.OPAQUE_STRUCT
            assert p.mapping.exposed_spelling == "ImDrawList"
            assert p.mapping.call_expr("draw_list") == "draw_list.handle()"

    def test_double_pointer_to_opaque_is_unsupported(self, registry):
        assert resolve_arg(registry, "ImDrawList**").mapping.kind == MappedKind.UNSUPPORTED

    def test_opaque_by_value_needs_getter_flag(self, registry):
        assert resolve_arg(registry, "ImGuiIO").mapping.kind == MappedKind.UNSUPPORTED

        getter = free("ImGuiIO_GetFoo", ("self", "ImGuiIO"), ret="int", struct_getter=True)
        p = ArgumentMarshaller(registry).resolve(getter, 0, getter.args[0])
        assert p.mapping.kind == MappedKind.OPAQUE_STRUCT
        assert p.mapping.exposed_spelling == "ImGuiIO"
        assert p.mapping.call_expr("self") == "self.handle()"

    def test_setter_receiver(self, registry):
        setter = free("ImGuiIO_SetFontGlobalScale", ("self", "ImGuiIO*"), ("v", "float"), struct_setter=True)
        p = ArgumentMarshaller(registry).resolve(setter, 0, setter.args[0])
        assert p.mapping.kind == MappedKind.RECEIVER
        assert p.name == "self"
        assert p.mapping.exposed_spelling == "ImGuiIO"
        assert p.mapping.call_expr(p.name) == "self.handle()"

        second = ArgumentMarshaller(registry).resolve(setter, 1, setter.args[1])
        assert second.mapping.kind == MappedKind.SCALAR

    def test_table_wins_over_enum(self):
        reg = TypeRegistry.from_descriptors([], [EnumDescriptor("ImU32_")])
        p = resolve_arg(reg, "ImU32")
        assert p.mapping.kind == MappedKind.SCALAR

    def test_getter_struct_wins_over_table(self):
        reg = TypeRegistry.from_descriptors([StructDescriptor("ImGuiID")], [])
        getter = free("ImGuiID_Get", ("id", "ImGuiID"), ret="int", struct_getter=True)
        p = ArgumentMarshaller(reg).resolve(getter, 0, getter.args[0])
        assert p.mapping.kind == MappedKind.OPAQUE_STRUCT

    def test_unknown_type(self, registry):
        p = resolve_arg(registry, "unknownType")
        assert p.mapping.kind == MappedKind.UNSUPPORTED
        assert p.mapping.notes == "Unknown arg: unknownType"

    def test_go_keyword_names_are_renamed(self, registry):
        p = resolve_arg(registry, "int", name="type")
        assert p.name == "typeArg"
        assert p.mapping.call_expr(p.name) == "C.int(typeArg)"

    def test_resolution_depends_only_on_raw_type(self, registry):
        marshaller = ArgumentMarshaller(registry)
        func = free("igThing", ("a", "float*"), ("b", "int"), ("c", "float*"))
        first = marshaller.resolve(func, 0, func.args[0])
        third = marshaller.resolve(func, 2, func.args[2])
        assert first.mapping.exposed_spelling == third.mapping.exposed_spelling
        assert first.mapping.pre_call_lines == third.mapping.pre_call_lines
        assert first.mapping.to_native_expr == third.mapping.to_native_expr

    def test_custom_rule_takes_precedence(self, registry):
        cfg = MappingConfig().with_arg_rule(MappingRule(
            match="ImGuiInputTextCallback",
            exposed_spelling="unsafe.Pointer",
            kind=MappedKind.RAW_POINTER,
            to_native_expr="(C.ImGuiInputTextCallback)({var})",
        ))
        func = free("igInputText", ("callback", "ImGuiInputTextCallback"))
        p = ArgumentMarshaller(registry, cfg).resolve(func, 0, func.args[0])
        assert p.mapping.call_expr("callback") == "(C.ImGuiInputTextCallback)(callback)"


class TestReturns:
    @pytest.mark.parametrize(
        "raw, exposed, converted",
        [
            ("bool", "bool", "X == C.bool(true)"),
            ("const char*", "string", "C.GoString(X)"),
            ("const ImWchar*", "*ImWchar", "(*ImWchar)(X)"),
            ("float", "float32", "float32(X)"),
            ("double", "float64", "float64(X)"),
            ("int", "int", "int(X)"),
            ("short", "int", "int(X)"),
            ("ImS16", "int", "int(X)"),
            ("unsigned int", "uint32", "uint32(X)"),
            ("ImU8", "uint32", "uint32(X)"),
            ("ImU32", "uint32", "uint32(X)"),
            ("ImU64", "uint64", "uint64(X)"),
            ("ImVec2", "ImVec2", "newImVec2FromC(X)"),
            ("const ImVec2*", "ImVec2", "newImVec2FromCPtr(X)"),
            ("ImVec4", "ImVec4", "newImVec4FromC(X)"),
            ("const ImVec4*", "ImVec4", "newImVec4FromCPtr(X)"),
            ("ImRect", "ImRect", "newImRectFromC(X)"),
            ("ImGuiID", "ImGuiID", "ImGuiID(X)"),
            ("ImTextureID", "ImTextureID", "ImTextureID(X)"),
            ("ImGuiTableColumnIdx", "ImGuiTableColumnIdx", "ImGuiTableColumnIdx(X)"),
            ("void*", "unsafe.Pointer", "unsafe.Pointer(X)"),
            ("size_t", "float64", "float64(X)"),
        ],
    )
    def test_table(self, registry, raw, exposed, converted):
        r = ReturnMarshaller(registry).resolve(free("igThing", ret=raw))
        assert r.supported and r.has_value
        assert r.mapping.exposed_spelling == exposed
        assert r.mapping.return_expr("X") == converted

    def test_void(self, registry):
        r = ReturnMarshaller(registry).resolve(free("igNewFrame"))
        assert r.supported
        assert not r.has_value

    def test_enum(self, registry):
        r = ReturnMarshaller(registry).resolve(free("igGetDir", ret="ImGuiDir"))
        assert r.mapping.kind == MappedKind.ENUM
        assert r.mapping.return_expr("X") == "ImGuiDir(X)"

    def test_pointer_to_opaque_aliases(self, registry):
        r = ReturnMarshaller(registry).resolve(free("igGetIO", ret="ImGuiIO*"))
        assert r.mapping.exposed_spelling == "ImGuiIO"
        assert r.mapping.return_expr("X") == "(ImGuiIO)(unsafe.Pointer(X))"

    def test_getter_value_copies(self, registry):
        r = ReturnMarshaller(registry).resolve(free("ImGuiIO_GetStyle", ret="ImGuiStyle", struct_getter=True))
        assert r.mapping.return_expr("X") == "newImGuiStyleFromC(X)"

        plain = ReturnMarshaller(registry).resolve(free("ImGuiIO_GetStyle", ret="ImGuiStyle"))
        assert not plain.supported
        assert plain.diagnostic == "Unknown ret: ImGuiStyle"

    def test_constructor_prefix_order(self, registry):
        r = ReturnMarshaller(registry).resolve(free("FontAtlas_FontAtlas", ret="FontAtlas*", constructor=True))
        assert r.mapping.kind == MappedKind.CONSTRUCTOR
        assert r.constructor_target == "ImFontAtlas"
        assert r.constructor_name == "NewFontAtlas"
        assert r.mapping.return_expr("X") == "(ImFontAtlas)(unsafe.Pointer(X))"

        r = ReturnMarshaller(registry).resolve(free("Style_Style", ret="Style*", constructor=True))
        assert r.constructor_target == "ImGuiStyle"
        assert r.constructor_name == "NewStyle"

    def test_unresolved_constructor_is_silent(self, registry, pkg_caplog):
        r = ReturnMarshaller(registry).resolve(free("Widget_Widget", ret="Widget*", constructor=True))
        assert not r.supported
        assert r.diagnostic is None
        assert not [rec for rec in pkg_caplog.records if rec.levelname == "WARNING"]

    def test_unknown(self, registry):
        r = ReturnMarshaller(registry).resolve(free("igThing", ret="ImFont*"))
        assert not r.supported
        assert r.diagnostic == "Unknown ret: ImFont*"


class TestTypeMapper:
    def test_zero_arg_function_is_supported(self, registry):
        mapped = TypeMapper(registry).map_function(free("igNewFrame"))
        assert mapped.supported
        assert mapped.params == []
        assert mapped.call_expression() == "C.igNewFrame()"

    def test_first_unknown_argument_stops_resolution(self, registry):
        mapped = TypeMapper(registry).map_function(
            free("igThing", ("a", "int"), ("b", "unknownType"), ("c", "otherUnknown"), ret="alsoUnknown")
        )
        assert not mapped.supported
        assert mapped.diagnostic == "Unknown arg: unknownType"
        assert mapped.ret is None
        assert [p.name for p in mapped.params] == ["a"]

    def test_unknown_return_after_arguments(self, registry):
        mapped = TypeMapper(registry).map_function(free("igThing", ("a", "int"), ret="ImFont*"))
        assert not mapped.supported
        assert mapped.diagnostic == "Unknown ret: ImFont*"

    def test_call_expression_and_setup(self, registry):
        mapped = TypeMapper(registry).map_function(
            free("igButton", ("label", "const char*"), ("size", "const ImVec2"), ret="bool")
        )
        assert mapped.supported
        assert mapped.go_params == [("label", "string"), ("size", "ImVec2")]
        assert mapped.call_expression() == "C.igButton(labelArg, size.toC())"
        assert mapped.setup_blocks() == [["labelArg, labelFin := wrapString(label)", "defer labelFin()"]]

    def test_validate_vocabulary(self, registry, pkg_caplog):
        gaps = TypeMapper(registry).validate_vocabulary(
            ["int", "ImGuiDir", "ImDrawList*", "void", "unknownType", "ImFont*", "unknownType"]
        )
        assert gaps == ["unknownType", "ImFont*"]
        assert "unknownType" in pkg_caplog.text

    def test_validate_vocabulary_clean(self, registry):
        assert TypeMapper(registry).validate_vocabulary(["float", "const char*"]) == []
