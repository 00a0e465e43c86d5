#!/usr/bin/env python3
"""
Value-typed structs: small geometric/color aggregates mirrored by value.

Each allow-listed struct has two mirrors:
- a ctypes.Structure with the exact native layout (the "C view"),
- a dataclass with to_c(), from_c() and from_c_ptr().

The same field metadata drives the Go side: wrapper.go declares one Go struct
per value struct together with toC(), newXFromC(), newXFromCPtr() and wrap(),
which are exactly the helpers the argument and return rules refer to.

Field values are coerced through their C type on construction, so a mirror
always holds values the native layout can represent and the round trip
X.from_c(x.to_c()) == x holds for every instance.
"""

from __future__ import annotations

import ctypes
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, List, Optional, Type


# --------------------------
# Native layouts
# --------------------------

class CImVec1(ctypes.Structure):
    _fields_ = [("x", ctypes.c_float)]


class CImVec2(ctypes.Structure):
    _fields_ = [("x", ctypes.c_float), ("y", ctypes.c_float)]


class CImVec2ih(ctypes.Structure):
    _fields_ = [("x", ctypes.c_short), ("y", ctypes.c_short)]


class CImVec4(ctypes.Structure):
    _fields_ = [
        ("x", ctypes.c_float),
        ("y", ctypes.c_float),
        ("z", ctypes.c_float),
        ("w", ctypes.c_float),
    ]


class CImRect(ctypes.Structure):
    _fields_ = [("Min", CImVec2), ("Max", CImVec2)]


class CImColor(ctypes.Structure):
    _fields_ = [("Value", CImVec4)]


# C scalar -> (Go type, cgo cast)
_GO_SCALARS: Dict[Any, Any] = {
    ctypes.c_float: ("float32", "float"),
    ctypes.c_short: ("int16", "short"),
}


# --------------------------
# Python mirrors
# --------------------------

@dataclass
class ValueStruct:
    """
    Base for value-struct mirrors. Subclasses declare dataclass fields named
    exactly like the native fields, plus `c_type` and `_nested`.
    """
    c_type: ClassVar[Type[ctypes.Structure]]
    _nested: ClassVar[Dict[str, Type["ValueStruct"]]] = {}

    def __post_init__(self) -> None:
        c_fields = dict(self.c_type._fields_)
        for f in fields(self):
            value = getattr(self, f.name)
            nested = self._nested.get(f.name)
            if nested is not None:
                if not isinstance(value, nested):
                    raise TypeError(f"{type(self).__name__}.{f.name} must be {nested.__name__}, got {type(value).__name__}")
                continue
            c_scalar = c_fields[f.name]
            if c_scalar is ctypes.c_short:
                value = int(value)
            setattr(self, f.name, c_scalar(value).value)

    @classmethod
    def go_name(cls) -> str:
        return cls.__name__

    def to_c(self) -> ctypes.Structure:
        kwargs = {}
        for f in fields(self):
            value = getattr(self, f.name)
            kwargs[f.name] = value.to_c() if f.name in self._nested else value
        return self.c_type(**kwargs)

    @classmethod
    def from_c(cls, cvalue: ctypes.Structure) -> "ValueStruct":
        if not isinstance(cvalue, cls.c_type):
            raise TypeError(f"expected {cls.c_type.__name__}, got {type(cvalue).__name__}")
        kwargs = {}
        for f in fields(cls):
            raw = getattr(cvalue, f.name)
            nested = cls._nested.get(f.name)
            kwargs[f.name] = nested.from_c(raw) if nested is not None else raw
        return cls(**kwargs)

    @classmethod
    def from_c_ptr(cls, ptr: Any) -> "ValueStruct":
        """
        Build from a ctypes pointer (ctypes.pointer(...) or POINTER(c_type) value).
        """
        if not ptr:
            raise ValueError(f"NULL pointer passed to {cls.__name__}.from_c_ptr")
        return cls.from_c(ptr.contents)

    @classmethod
    def go_fields(cls) -> List[Dict[str, str]]:
        """
        Field metadata for the Go mirror:
          go_name: exported Go field name ('x' -> 'X')
          go_type: Go field type
          to_c:    Go expression building the C field from receiver `v`
          from_c:  Go expression reading the C field from `cvalue`
        """
        c_fields = dict(cls.c_type._fields_)
        out: List[Dict[str, str]] = []
        for f in fields(cls):
            go_field = f.name[:1].upper() + f.name[1:]
            nested = cls._nested.get(f.name)
            if nested is not None:
                go_type = nested.go_name()
                to_c = f"v.{go_field}.toC()"
                from_c = f"new{go_type}FromC(cvalue.{f.name})"
            else:
                go_type, c_cast = _GO_SCALARS[c_fields[f.name]]
                to_c = f"C.{c_cast}(v.{go_field})"
                from_c = f"{go_type}(cvalue.{f.name})"
            out.append({
                "c_name": f.name,
                "go_name": go_field,
                "go_type": go_type,
                "to_c": to_c,
                "from_c": from_c,
            })
        return out


@dataclass
class ImVec1(ValueStruct):
    c_type: ClassVar[Type[ctypes.Structure]] = CImVec1
    x: float = 0.0


@dataclass
class ImVec2(ValueStruct):
    c_type: ClassVar[Type[ctypes.Structure]] = CImVec2
    x: float = 0.0
    y: float = 0.0


@dataclass
class ImVec2ih(ValueStruct):
    c_type: ClassVar[Type[ctypes.Structure]] = CImVec2ih
    x: int = 0
    y: int = 0


@dataclass
class ImVec4(ValueStruct):
    c_type: ClassVar[Type[ctypes.Structure]] = CImVec4
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0


@dataclass
class ImRect(ValueStruct):
    c_type: ClassVar[Type[ctypes.Structure]] = CImRect
    _nested: ClassVar[Dict[str, Type[ValueStruct]]] = {"Min": ImVec2, "Max": ImVec2}
    Min: ImVec2 = field(default_factory=ImVec2)
    Max: ImVec2 = field(default_factory=ImVec2)


@dataclass
class ImColor(ValueStruct):
    c_type: ClassVar[Type[ctypes.Structure]] = CImColor
    _nested: ClassVar[Dict[str, Type[ValueStruct]]] = {"Value": ImVec4}
    Value: ImVec4 = field(default_factory=ImVec4)


# Declaration order is dependency order (nested types first)
VALUE_STRUCTS: Dict[str, Type[ValueStruct]] = {
    cls.__name__: cls for cls in (ImVec1, ImVec2, ImVec2ih, ImVec4, ImRect, ImColor)
}


def value_struct(name: str) -> Optional[Type[ValueStruct]]:
    return VALUE_STRUCTS.get(name)


__all__ = [
    "CImColor",
    "CImRect",
    "CImVec1",
    "CImVec2",
    "CImVec2ih",
    "CImVec4",
    "ImColor",
    "ImRect",
    "ImVec1",
    "ImVec2",
    "ImVec2ih",
    "ImVec4",
    "VALUE_STRUCTS",
    "ValueStruct",
    "value_struct",
]
