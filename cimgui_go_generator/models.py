#!/usr/bin/env python3
"""
Data models for the cimgui Go binding generator.

This module provides immutable, serializable records describing the C API as
handed over by the upstream parser:
- Enums (name plus ordered (name, value) pairs)
- Structs (name only; category is decided by the type registry)
- Function arguments and functions, including the parser's disambiguation flags
- The generation context threaded through every stage of a run
- The per-run report (converted/skipped counts and diagnostics)

Descriptors are snapshots: they are created once by the loader and never
mutated afterwards, which keeps a generation pass deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .utils import sanitize_identifier

if TYPE_CHECKING:
    from .type_registry import TypeRegistry

# Trailing marker cimgui puts on enum type names ("ImGuiDir_")
ENUM_MARKER_SUFFIX = "_"


# --------------------------
# Enum / struct descriptors
# --------------------------

@dataclass(frozen=True)
class EnumValue:
    name: str
    value: int

    def to_dict(self) -> Dict:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class EnumDescriptor:
    """
    A native enum. Values are kept verbatim (negative values and bit flags included).
    """
    name: str
    values: Tuple[EnumValue, ...] = ()

    @property
    def go_name(self) -> str:
        """
        Display name with one trailing marker removed: 'ImGuiDir_' -> 'ImGuiDir'.
        """
        if self.name.endswith(ENUM_MARKER_SUFFIX):
            return self.name[: -len(ENUM_MARKER_SUFFIX)]
        return self.name

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "go_name": self.go_name,
            "values": [v.to_dict() for v in self.values],
        }


@dataclass(frozen=True)
class StructDescriptor:
    name: str

    def to_dict(self) -> Dict:
        return {"name": self.name}


# --------------------------
# Function descriptors
# --------------------------

@dataclass(frozen=True)
class ArgDef:
    """
    A native argument. `type` is the raw type string exactly as the parser
    spelled it, e.g. 'float*', 'const char*', 'int[3]'.
    """
    name: str
    type: str

    @property
    def go_name(self) -> str:
        return sanitize_identifier(self.name)

    def to_dict(self) -> Dict:
        return {"name": self.name, "go_name": self.go_name, "type": self.type}


@dataclass(frozen=True)
class FuncDef:
    """
    A native function, conventionally named `Type_Method` or `Type_New...`.

    The three flags come from the parser and disambiguate cases the name alone
    cannot settle (generated struct accessors and constructors).
    """
    func_name: str
    args: Tuple[ArgDef, ...] = ()
    ret: str = "void"
    struct_setter: bool = False
    struct_getter: bool = False
    constructor: bool = False

    @property
    def signature(self) -> str:
        """
        C-like signature for diagnostics.
        """
        params = ", ".join(f"{a.type} {a.name}" for a in self.args)
        return f"{self.ret} {self.func_name}({params})"

    def to_dict(self) -> Dict:
        return {
            "funcName": self.func_name,
            "args": [a.to_dict() for a in self.args],
            "ret": self.ret,
            "structSetter": self.struct_setter,
            "structGetter": self.struct_getter,
            "constructor": self.constructor,
        }


@dataclass(frozen=True)
class ApiDescriptors:
    """
    Everything a generation run consumes, in input order.
    """
    enums: Tuple[EnumDescriptor, ...] = ()
    structs: Tuple[StructDescriptor, ...] = ()
    funcs: Tuple[FuncDef, ...] = ()

    def type_vocabulary(self) -> List[str]:
        """
        Every distinct raw type spelling used by an argument or a return, in first-seen order.
        """
        seen: Dict[str, None] = {}
        for f in self.funcs:
            for a in f.args:
                seen.setdefault(a.type, None)
            seen.setdefault(f.ret, None)
        return list(seen)


# --------------------------
# Generation context
# --------------------------

@dataclass
class GenerationContext:
    """
    Parameters for a single generation run.

    The registry is built once from the struct and enum descriptors and is
    read-only afterwards; every stage receives it through this object.
    """
    output_dir: Path
    registry: "TypeRegistry"
    package_name: str = "cimgui"
    templates_dir: Optional[Path] = None
    dry_run: bool = False

    def to_dict(self) -> Dict:
        return {
            "output_dir": str(self.output_dir),
            "package_name": self.package_name,
            "templates_dir": str(self.templates_dir) if self.templates_dir else None,
            "dry_run": self.dry_run,
        }


# --------------------------
# Run report
# --------------------------

class FunctionStatus(Enum):
    EMITTED = auto()
    SKIPPED = auto()


@dataclass(frozen=True)
class FunctionOutcome:
    func_name: str
    status: FunctionStatus
    shape: Optional[str] = None  # DeclKind name when emitted
    reason: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "func_name": self.func_name,
            "status": self.status.name,
            "shape": self.shape,
            "reason": self.reason,
        }


@dataclass
class GenerationReport:
    """
    Outcome of one pass over the function list. A non-zero skip count is normal.
    """
    outcomes: List[FunctionOutcome] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def converted(self) -> int:
        return sum(1 for o in self.outcomes if o.status == FunctionStatus.EMITTED)

    @property
    def skipped(self) -> int:
        return self.total - self.converted

    def summary(self) -> str:
        return f"Convert progress: {self.converted}/{self.total}"

    def to_dict(self) -> Dict:
        return {
            "converted": self.converted,
            "total": self.total,
            "skipped": self.skipped,
            "diagnostics": list(self.diagnostics),
            "outcomes": [o.to_dict() for o in self.outcomes],
            "written": [str(p) for p in self.written],
        }


__all__ = [
    "ENUM_MARKER_SUFFIX",
    "ApiDescriptors",
    "ArgDef",
    "EnumDescriptor",
    "EnumValue",
    "FuncDef",
    "FunctionOutcome",
    "FunctionStatus",
    "GenerationContext",
    "GenerationReport",
    "StructDescriptor",
]
