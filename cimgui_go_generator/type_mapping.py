#!/usr/bin/env python3
"""
Type mapping for cimgui cgo wrappers.

This module decides how each raw native type crosses the Go/C boundary. It provides:

- A closed catalog of argument rules (exact raw type -> Go parameter type,
  setup/teardown statements and the expression handed to the C call)
- A closed catalog of return rules (exact raw type -> Go return type and a
  conversion template around the C call expression)
- Registry-driven rules for enums and opaque-handle structs
- Per-function mapping decisions with diagnostics for unsupported shapes

Typical usage (high level):

    from .type_registry import TypeRegistry
    from .type_mapping import TypeMapper

    mapper = TypeMapper(registry)
    for f in funcs:
        mapped = mapper.map_function(f)
        if not mapped.supported:
            # skip emitting this function; mapped.diagnostic names the offending type
            continue
        # mapped.params / mapped.ret carry Go types and conversion snippets

Design notes:
- Rules are keyed by the exact raw type string handed over by the parser. The
  tables are not derived from a C grammar: 'const float*' and 'float*' are two
  separate entries.
- Argument snippets use a "{var}" placeholder (the Go parameter name); return
  snippets use an "{expr}" placeholder (the C call expression).
- This module is independent from the Jinja templates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from .models import ArgDef, FuncDef
from .shaping import DEFAULT_CONVENTIONS, NamingConventions, constructor_name, constructor_target, split_symbol
from .type_registry import TypeRegistry

logger = logging.getLogger(__name__)


# --------------------------
# Mapping model
# --------------------------

class MappedKind(Enum):
    SCALAR = auto()
    SCALAR_CELL = auto()
    ARRAY = auto()
    STRING = auto()
    RAW_POINTER = auto()
    VALUE_STRUCT = auto()
    VALUE_STRUCT_PTR = auto()
    OPAQUE_STRUCT = auto()
    ENUM = auto()
    RECEIVER = auto()
    CONSTRUCTOR = auto()
    VOID = auto()
    UNSUPPORTED = auto()


@dataclass
class MappedType:
    """
    Describes a single type mapping between the native C spelling and the exposed Go type.
    """
    native_spelling: str
    exposed_spelling: str
    kind: MappedKind
    # For call-site conversions:
    # - 'to_native_expr' is a Go expression template with a "{var}" placeholder
    #   (the Go parameter name). It evaluates to the value passed to the C function.
    # - 'pre_call_lines' are statements emitted before the call (allocation plus
    #   the matching `defer`), also with "{var}" placeholders.
    # - For returns, 'from_native_expr' has an "{expr}" placeholder standing for
    #   the C call expression being converted to the exposed Go value.
    to_native_expr: Optional[str] = None
    from_native_expr: Optional[str] = None
    pre_call_lines: List[str] = field(default_factory=list)
    notes: Optional[str] = None

    def call_expr(self, var: str) -> str:
        return (self.to_native_expr or "{var}").replace("{var}", var)

    def setup_lines(self, var: str) -> List[str]:
        return [line.replace("{var}", var) for line in self.pre_call_lines]

    def return_expr(self, expr: str) -> str:
        return (self.from_native_expr or "{expr}").replace("{expr}", expr)


@dataclass
class MappedParameter:
    name: str
    raw_type: str
    mapping: MappedType

    @property
    def supported(self) -> bool:
        return self.mapping.kind != MappedKind.UNSUPPORTED

    @property
    def go_param(self) -> Tuple[str, str]:
        return (self.name, self.mapping.exposed_spelling)


@dataclass
class MappedReturn:
    mapping: MappedType
    # Diagnostic line for unsupported returns; None for silent skips
    diagnostic: Optional[str] = None
    constructor_target: Optional[str] = None
    constructor_name: Optional[str] = None

    @property
    def supported(self) -> bool:
        return self.mapping.kind != MappedKind.UNSUPPORTED

    @property
    def has_value(self) -> bool:
        return self.mapping.kind != MappedKind.VOID


@dataclass
class MappedFunction:
    """
    Full mapping for a function, ready for shaping and emission.
    """
    func: FuncDef
    params: List[MappedParameter]
    ret: Optional[MappedReturn]
    supported: bool
    diagnostic: Optional[str] = None
    reason: Optional[str] = None

    @property
    def go_params(self) -> List[Tuple[str, str]]:
        return [p.go_param for p in self.params]

    def call_expression(self) -> str:
        """
        The C call with every argument converted, e.g. 'C.igButton(labelArg, size.toC())'.
        """
        args = ", ".join(p.mapping.call_expr(p.name) for p in self.params)
        return f"C.{self.func.func_name}({args})"

    def setup_blocks(self) -> List[List[str]]:
        return [p.mapping.setup_lines(p.name) for p in self.params if p.mapping.pre_call_lines]


# --------------------------
# Configuration
# --------------------------

@dataclass
class MappingRule:
    """
    Rule for one raw type. Placeholders:
      - "{var}" in to_native_expr/pre_call_lines, "{expr}" in from_native_expr (see MappedType).
    """
    match: str  # exact raw type string, e.g. "const float*"
    exposed_spelling: str
    kind: MappedKind
    to_native_expr: Optional[str] = None
    from_native_expr: Optional[str] = None
    pre_call_lines: List[str] = field(default_factory=list)
    notes: Optional[str] = None

    def to_mapped(self) -> MappedType:
        return MappedType(
            native_spelling=self.match,
            exposed_spelling=self.exposed_spelling,
            kind=self.kind,
            to_native_expr=self.to_native_expr,
            from_native_expr=self.from_native_expr,
            pre_call_lines=list(self.pre_call_lines),
            notes=self.notes,
        )


@dataclass
class MappingConfig:
    """
    Settings and extensions for the type mapper.
    """
    conventions: NamingConventions = DEFAULT_CONVENTIONS
    # Extra rules keyed by exact raw type; they take precedence over the built-in tables
    arg_rules: Dict[str, MappingRule] = field(default_factory=dict)
    return_rules: Dict[str, MappingRule] = field(default_factory=dict)

    def with_arg_rule(self, rule: MappingRule) -> "MappingConfig":
        self.arg_rules[rule.match] = rule
        return self

    def with_return_rule(self, rule: MappingRule) -> "MappingConfig":
        self.return_rules[rule.match] = rule
        return self


# --------------------------
# Argument rule builders
# --------------------------

def _scalar(raw: str, go_type: str, c_type: str) -> MappingRule:
    return MappingRule(raw, go_type, MappedKind.SCALAR, to_native_expr=f"C.{c_type}({{var}})")


def _cast_ptr(raw: str, go_type: str, c_type: str) -> MappingRule:
    return MappingRule(raw, go_type, MappedKind.RAW_POINTER, to_native_expr=f"(*C.{c_type})({{var}})")


def _finisher(raw: str, go_type: str, kind: MappedKind, acquire: str, notes: str) -> MappingRule:
    """
    Rule whose setup acquires a temporary and defers its release/flush.
    `acquire` is the right-hand side producing (value, finisher).
    """
    return MappingRule(
        raw,
        go_type,
        kind,
        to_native_expr="{var}Arg",
        pre_call_lines=[f"{{var}}Arg, {{var}}Fin := {acquire}", "defer {var}Fin()"],
        notes=notes,
    )


def _cell(raw: str, go_type: str, helper: str) -> MappingRule:
    return _finisher(raw, go_type, MappedKind.SCALAR_CELL, f"{helper}({{var}})", "copied back after the call")


def _array(raw: str, size: int, c_type: str, go_elem: str) -> MappingRule:
    return MappingRule(
        raw,
        f"[{size}]*{go_elem}",
        MappedKind.ARRAY,
        to_native_expr=f"(*C.{c_type})(&{{var}}Arg[0])",
        pre_call_lines=[
            f"{{var}}Arg := make([]C.{c_type}, len({{var}}))",
            "for i, {var}V := range {var} {",
            f"\t{{var}}Arg[i] = C.{c_type}(*{{var}}V)",
            "}",
            "defer func() {",
            "\tfor i, {var}V := range {var}Arg {",
            f"\t\t*{{var}}[i] = {go_elem}({{var}}V)",
            "\t}",
            "}()",
        ],
        notes="element-wise copy in, deferred copy back",
    )


def _value_struct(raw: str, name: str) -> MappingRule:
    return MappingRule(raw, name, MappedKind.VALUE_STRUCT, to_native_expr="{var}.toC()")


def _value_struct_ptr(raw: str, name: str) -> MappingRule:
    return _finisher(raw, f"*{name}", MappedKind.VALUE_STRUCT_PTR, "{var}.wrap()", "written back by the finisher")


def _alias(raw: str) -> MappingRule:
    return _scalar(raw, raw, raw)


def _table(rules: Iterable[MappingRule]) -> Dict[str, MappingRule]:
    return {r.match: r for r in rules}


ARG_RULES: Dict[str, MappingRule] = _table([
    _finisher("char*", "string", MappedKind.STRING, "wrapString({var})", "C copy freed after the call"),
    _finisher("const char*", "string", MappedKind.STRING, "wrapString({var})", "C copy freed after the call"),
    _scalar("unsigned char", "uint", "uchar"),
    MappingRule("unsigned char**", "*C.uchar", MappedKind.RAW_POINTER, to_native_expr="&{var}"),
    _scalar("size_t", "uint64", "xlong"),
    _cast_ptr("size_t*", "*uint64", "xlong"),
    _scalar("float", "float32", "float"),
    _cell("float*", "*float32", "wrapFloat"),
    _cell("const float*", "*float32", "wrapFloat"),
    _scalar("short", "int", "short"),
    _scalar("unsigned short", "uint", "ushort"),
    _scalar("ImU8", "uint", "ImU8"),
    _scalar("ImU16", "uint", "ImU16"),
    _scalar("ImU64", "uint64", "ImU64"),
    _scalar("ImS8", "int", "ImS8"),
    _scalar("ImS16", "int", "ImS16"),
    _scalar("ImS32", "int", "ImS32"),
    _scalar("int", "int32", "int"),
    _cell("int*", "*int32", "wrapInt32"),
    _scalar("unsigned int", "uint32", "uint"),
    _scalar("double", "float64", "double"),
    _cast_ptr("double*", "*float64", "double"),
    _scalar("bool", "bool", "bool"),
    _cell("bool*", "*bool", "wrapBool"),
    _array("int[2]", 2, "int", "int32"),
    _array("int[3]", 3, "int", "int32"),
    _array("int[4]", 4, "int", "int32"),
    _array("float[2]", 2, "float", "float32"),
    _array("float[3]", 3, "float", "float32"),
    _array("float[4]", 4, "float", "float32"),
    _scalar("ImU32", "uint32", "ImU32"),
    _alias("ImWchar"),
    _cast_ptr("const ImWchar*", "*ImWchar", "ImWchar"),
    _alias("ImGuiID"),
    _alias("ImTextureID"),
    _alias("ImDrawIdx"),
    _alias("ImGuiTableColumnIdx"),
    _alias("ImGuiTableDrawChannelIdx"),
    MappingRule("void*", "unsafe.Pointer", MappedKind.RAW_POINTER, to_native_expr="{var}"),
    MappingRule("const void*", "unsafe.Pointer", MappedKind.RAW_POINTER, to_native_expr="{var}"),
    _value_struct("ImVec2", "ImVec2"),
    _value_struct("const ImVec2", "ImVec2"),
    _value_struct_ptr("ImVec2*", "ImVec2"),
    _value_struct_ptr("const ImVec2*", "ImVec2"),
    _value_struct("ImVec4", "ImVec4"),
    _value_struct("const ImVec4", "ImVec4"),
    _value_struct_ptr("ImVec4*", "ImVec4"),
    _value_struct_ptr("const ImVec4*", "ImVec4"),
    _value_struct_ptr("ImColor*", "ImColor"),
    _value_struct("ImRect", "ImRect"),
])


# --------------------------
# Return rule builders
# --------------------------

def _convert(raw: str, go_type: str, template: str, kind: MappedKind = MappedKind.SCALAR) -> MappingRule:
    return MappingRule(raw, go_type, kind, from_native_expr=template)


def _numeric(raw: str, go_type: str) -> MappingRule:
    return _convert(raw, go_type, f"{go_type}({{expr}})")


RETURN_RULES: Dict[str, MappingRule] = _table([
    _convert("bool", "bool", "{expr} == C.bool(true)"),
    _convert("const char*", "string", "C.GoString({expr})", MappedKind.STRING),
    _convert("const ImWchar*", "*ImWchar", "(*ImWchar)({expr})", MappedKind.RAW_POINTER),
    _numeric("float", "float32"),
    _numeric("double", "float64"),
    _numeric("int", "int"),
    _numeric("unsigned int", "uint32"),
    _numeric("short", "int"),
    _numeric("ImS8", "int"),
    _numeric("ImS16", "int"),
    _numeric("ImS32", "int"),
    _numeric("ImU8", "uint32"),
    _numeric("ImU16", "uint32"),
    _numeric("ImU32", "uint32"),
    _numeric("ImU64", "uint64"),
    _convert("ImVec4", "ImVec4", "newImVec4FromC({expr})", MappedKind.VALUE_STRUCT),
    _convert("const ImVec4*", "ImVec4", "newImVec4FromCPtr({expr})", MappedKind.VALUE_STRUCT_PTR),
    _convert("ImVec2", "ImVec2", "newImVec2FromC({expr})", MappedKind.VALUE_STRUCT),
    _convert("const ImVec2*", "ImVec2", "newImVec2FromCPtr({expr})", MappedKind.VALUE_STRUCT_PTR),
    _convert("ImRect", "ImRect", "newImRectFromC({expr})", MappedKind.VALUE_STRUCT),
    _numeric("ImGuiID", "ImGuiID"),
    _numeric("ImTextureID", "ImTextureID"),
    _numeric("ImGuiTableColumnIdx", "ImGuiTableColumnIdx"),
    _numeric("ImGuiTableDrawChannelIdx", "ImGuiTableDrawChannelIdx"),
    _convert("void*", "unsafe.Pointer", "unsafe.Pointer({expr})", MappedKind.RAW_POINTER),
    # size_t comes back as float64; kept as-is for compatibility with existing callers
    _numeric("size_t", "float64"),
])


# --------------------------
# Helpers
# --------------------------

def _pointee(raw: str) -> Optional[str]:
    """
    'const ImGuiIO*' -> 'ImGuiIO'; None when the spelling is not a single pointer.
    """
    if not raw.endswith("*"):
        return None
    base = raw[:-1]
    if base.startswith("const "):
        base = base[len("const "):]
    base = base.strip()
    if not base or base.endswith("*"):
        return None
    return base


def _unsupported(raw: str, notes: str) -> MappedType:
    return MappedType(native_spelling=raw, exposed_spelling="<unsupported>", kind=MappedKind.UNSUPPORTED, notes=notes)


def _void_mapping() -> MappedType:
    return MappedType(native_spelling="void", exposed_spelling="", kind=MappedKind.VOID)


# --------------------------
# Marshallers
# --------------------------

class ArgumentMarshaller:
    """
    Resolves one argument of one function. First match wins:
    setter receiver, getter struct, table, enum, pointer to opaque struct.
    """

    def __init__(self, registry: TypeRegistry, config: Optional[MappingConfig] = None) -> None:
        self.registry = registry
        self.config = config or MappingConfig()

    def rule_for(self, raw: str) -> Optional[MappingRule]:
        return self.config.arg_rules.get(raw) or ARG_RULES.get(raw)

    def resolve(self, func: FuncDef, index: int, arg: ArgDef) -> MappedParameter:
        conventions = self.config.conventions
        raw = arg.type
        name = arg.go_name

        if index == 0 and func.struct_setter:
            receiver, _ = split_symbol(func.func_name, conventions)
            mapping = MappedType(
                native_spelling=raw,
                exposed_spelling=receiver,
                kind=MappedKind.RECEIVER,
                to_native_expr="{var}.handle()",
                notes="setter receiver",
            )
            return MappedParameter(name=conventions.receiver_name, raw_type=raw, mapping=mapping)

        if func.struct_getter and self.registry.is_struct(raw):
            return MappedParameter(name, raw, self._opaque(raw, raw))

        rule = self.rule_for(raw)
        if rule is not None:
            return MappedParameter(name, raw, rule.to_mapped())

        if self.registry.is_enum(raw):
            mapping = MappedType(
                native_spelling=raw,
                exposed_spelling=raw,
                kind=MappedKind.ENUM,
                to_native_expr=f"C.{raw}({{var}})",
            )
            return MappedParameter(name, raw, mapping)

        pointee = _pointee(raw)
        if pointee is not None and self.registry.is_struct(pointee):
            return MappedParameter(name, raw, self._opaque(raw, pointee))

        return MappedParameter(name, raw, _unsupported(raw, f"Unknown arg: {raw}"))

    def _opaque(self, raw: str, struct_name: str) -> MappedType:
        return MappedType(
            native_spelling=raw,
            exposed_spelling=struct_name,
            kind=MappedKind.OPAQUE_STRUCT,
            to_native_expr="{var}.handle()",
            notes="borrowed for the duration of the call",
        )


class ReturnMarshaller:
    """
    Resolves the return of one function. For non-void returns, first match wins:
    table, enum, pointer to opaque struct, getter value, constructor.
    """

    def __init__(self, registry: TypeRegistry, config: Optional[MappingConfig] = None) -> None:
        self.registry = registry
        self.config = config or MappingConfig()

    def rule_for(self, raw: str) -> Optional[MappingRule]:
        return self.config.return_rules.get(raw) or RETURN_RULES.get(raw)

    def resolve(self, func: FuncDef) -> MappedReturn:
        raw = func.ret
        if raw == "void":
            return MappedReturn(mapping=_void_mapping())

        rule = self.rule_for(raw)
        if rule is not None:
            return MappedReturn(mapping=rule.to_mapped())

        if self.registry.is_enum(raw):
            return MappedReturn(mapping=MappedType(
                native_spelling=raw,
                exposed_spelling=raw,
                kind=MappedKind.ENUM,
                from_native_expr=f"{raw}({{expr}})",
            ))

        pointee = _pointee(raw)
        if pointee is not None and self.registry.is_struct(pointee):
            return MappedReturn(mapping=MappedType(
                native_spelling=raw,
                exposed_spelling=pointee,
                kind=MappedKind.OPAQUE_STRUCT,
                from_native_expr=f"({pointee})(unsafe.Pointer({{expr}}))",
                notes="aliases native memory; not owned",
            ))

        if func.struct_getter and self.registry.is_struct(raw):
            return MappedReturn(mapping=MappedType(
                native_spelling=raw,
                exposed_spelling=raw,
                kind=MappedKind.OPAQUE_STRUCT,
                from_native_expr=f"new{raw}FromC({{expr}})",
                notes="copied from the returned value",
            ))

        if func.constructor:
            conventions = self.config.conventions
            target = constructor_target(func.func_name, self.registry.struct_names, conventions)
            if target is None:
                logger.debug("Skipping constructor %s: no struct matches its prefix", func.func_name)
                return MappedReturn(mapping=_unsupported(raw, "constructor target not found"))
            return MappedReturn(
                mapping=MappedType(
                    native_spelling=raw,
                    exposed_spelling=target,
                    kind=MappedKind.CONSTRUCTOR,
                    from_native_expr=f"({target})(unsafe.Pointer({{expr}}))",
                    notes="aliases native memory; not owned",
                ),
                constructor_target=target,
                constructor_name=constructor_name(func.func_name, conventions),
            )

        diagnostic = f"Unknown ret: {raw}"
        return MappedReturn(mapping=_unsupported(raw, diagnostic), diagnostic=diagnostic)


# --------------------------
# Mapper
# --------------------------

class TypeMapper:
    """
    Orchestrates argument and return resolution for whole functions.

    Build with TypeMapper(registry, config).
    """

    def __init__(self, registry: TypeRegistry, config: Optional[MappingConfig] = None) -> None:
        self.registry = registry
        self.config = config or MappingConfig()
        self.arguments = ArgumentMarshaller(registry, self.config)
        self.returns = ReturnMarshaller(registry, self.config)

    # ---- Public API ----

    def map_function(self, func: FuncDef) -> MappedFunction:
        """
        Resolve every argument, then the return. The first unresolved argument
        stops resolution; the return is not examined in that case.
        """
        params: List[MappedParameter] = []
        for i, a in enumerate(func.args):
            p = self.arguments.resolve(func, i, a)
            if not p.supported:
                return MappedFunction(
                    func=func,
                    params=params,
                    ret=None,
                    supported=False,
                    diagnostic=p.mapping.notes,
                    reason=f"Unsupported argument '{a.name}' type '{a.type}'",
                )
            params.append(p)

        ret = self.returns.resolve(func)
        if not ret.supported:
            return MappedFunction(
                func=func,
                params=params,
                ret=ret,
                supported=False,
                diagnostic=ret.diagnostic,
                reason=f"Unsupported return type '{func.ret}'" if ret.diagnostic else ret.mapping.notes,
            )

        return MappedFunction(func=func, params=params, ret=ret, supported=True)

    def resolves_as_arg(self, raw: str) -> bool:
        if self.rule_for_arg(raw) is not None or self.registry.is_enum(raw):
            return True
        pointee = _pointee(raw)
        return pointee is not None and self.registry.is_struct(pointee)

    def resolves_as_return(self, raw: str) -> bool:
        if raw == "void" or self.returns.rule_for(raw) is not None or self.registry.is_enum(raw):
            return True
        pointee = _pointee(raw)
        return pointee is not None and self.registry.is_struct(pointee)

    def rule_for_arg(self, raw: str) -> Optional[MappingRule]:
        return self.arguments.rule_for(raw)

    def validate_vocabulary(self, types: Iterable[str]) -> List[str]:
        """
        Report every raw type that neither the argument nor the return cascade
        can resolve on its own. Flag-dependent rules (setter receivers, getter
        structs, constructors) are not considered. Never raises.
        """
        gaps: List[str] = []
        for raw in types:
            if raw in gaps:
                continue
            if self.resolves_as_arg(raw) or self.resolves_as_return(raw):
                continue
            gaps.append(raw)
        if gaps:
            logger.info("%d raw type(s) have no marshalling rule: %s", len(gaps), ", ".join(gaps))
        return gaps


__all__ = [
    "ARG_RULES",
    "RETURN_RULES",
    "ArgumentMarshaller",
    "MappedFunction",
    "MappedKind",
    "MappedParameter",
    "MappedReturn",
    "MappedType",
    "MappingConfig",
    "MappingRule",
    "ReturnMarshaller",
    "TypeMapper",
]
