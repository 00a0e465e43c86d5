#!/usr/bin/env python3
"""
Declaration shaping: turn flat C symbols into Go declarations.

cimgui flattens C++ member functions into `Type_Method(Type* self, ...)`,
generated struct accessors into `Type_SetField(...)` and constructors into
`Type_Type(...)`. The functions here recover the intended shape from the
symbol, the first emitted parameter and the parser's flags:

    symbol              flags          first param      shape
    ------              -----          -----------      -----
    ImGuiIO_AddKeyEvent                self ImGuiIO     METHOD AddKeyEvent on ImGuiIO
    ImGuiIO_SetFoo      struct_setter  (receiver)       SETTER SetFoo on ImGuiIO
    ImGuiIO_GetFoo      struct_setter  (receiver)       DROPPED
    ImColor_ImColor     constructor                     CONSTRUCTOR NewImColor
    igBegin                            name string      FREE igBegin

Everything here is a pure function of its inputs; the naming conventions are
plain configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, FrozenSet, Optional, Sequence, Tuple


SKIP_STRUCTS: Tuple[str, ...] = (
    "ImVec1",
    "ImVec2",
    "ImVec2ih",
    "ImVec4",
    "ImColor",
    "ImRect",
    "StbUndoRecord",
    "StbUndoState",
    "StbTexteditRow",
)


@dataclass(frozen=True)
class NamingConventions:
    separator: str = "_"
    setter_prefix: str = "Set"
    receiver_name: str = "self"
    constructor_prefixes: Tuple[str, ...] = ("Im", "ImGui")
    constructor_name_prefix: str = "New"
    skip_structs: Tuple[str, ...] = SKIP_STRUCTS


DEFAULT_CONVENTIONS = NamingConventions()


class DeclKind(Enum):
    FREE = auto()
    METHOD = auto()
    SETTER = auto()
    CONSTRUCTOR = auto()
    DROPPED = auto()


@dataclass(frozen=True)
class DeclShape:
    """
    Final declaration shape of one function.

    `params` is the emitted (name, go_type) list with the receiver already elided.
    """
    kind: DeclKind
    name: str
    receiver: Optional[str] = None
    receiver_type: Optional[str] = None
    params: Tuple[Tuple[str, str], ...] = ()
    reason: Optional[str] = None

    @property
    def is_method(self) -> bool:
        return self.kind in (DeclKind.METHOD, DeclKind.SETTER)

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind.name,
            "name": self.name,
            "receiver": self.receiver,
            "receiver_type": self.receiver_type,
            "params": [list(p) for p in self.params],
            "reason": self.reason,
        }


# --------------------------
# Symbol helpers
# --------------------------

def split_symbol(symbol: str, conventions: NamingConventions = DEFAULT_CONVENTIONS) -> Tuple[str, str]:
    """
    Split a symbol into (leading segment, derived name).

    The derived name is the symbol with '<segment><separator>' removed from the
    front; without a separator the derived name is the symbol itself.
        'ImGuiIO_SetFoo' -> ('ImGuiIO', 'SetFoo')
        'igBegin'        -> ('igBegin', 'igBegin')
    """
    leading = symbol.split(conventions.separator)[0]
    head = leading + conventions.separator
    derived = symbol[len(head):] if symbol.startswith(head) else symbol
    return leading, derived


def constructor_name(symbol: str, conventions: NamingConventions = DEFAULT_CONVENTIONS) -> str:
    leading, _ = split_symbol(symbol, conventions)
    return f"{conventions.constructor_name_prefix}{leading}"


def constructor_target(
    symbol: str,
    struct_names: FrozenSet[str],
    conventions: NamingConventions = DEFAULT_CONVENTIONS,
) -> Optional[str]:
    """
    Guess the struct a constructor builds from its leading symbol segment,
    trying each conventional prefix in order: 'Color_Color' -> 'ImColor'
    then 'ImGuiColor'. Returns None when no candidate is a known struct.
    """
    leading, _ = split_symbol(symbol, conventions)
    for prefix in conventions.constructor_prefixes:
        candidate = prefix + leading
        if candidate in struct_names:
            return candidate
    return None


# --------------------------
# Shape inference
# --------------------------

def infer_shape(
    symbol: str,
    params: Sequence[Tuple[str, str]],
    *,
    struct_setter: bool = False,
    constructor_target: Optional[str] = None,
    conventions: NamingConventions = DEFAULT_CONVENTIONS,
) -> DeclShape:
    """
    Decide the declaration shape for a function whose arguments all resolved.

    params: emitted (name, go_type) pairs in argument order, receiver included.
    struct_setter: parser flag; the first parameter is then the receiver.
    constructor_target: set when the return resolved through the constructor rule.
    """
    leading, derived = split_symbol(symbol, conventions)
    skip = frozenset(conventions.skip_structs)

    if constructor_target is not None:
        return DeclShape(
            kind=DeclKind.CONSTRUCTOR,
            name=constructor_name(symbol, conventions),
            params=tuple(params),
        )

    if struct_setter:
        if not derived or not derived.startswith(conventions.setter_prefix) or leading in skip:
            return DeclShape(
                kind=DeclKind.DROPPED,
                name=symbol,
                reason=f"struct setter {symbol} does not follow the {conventions.setter_prefix}* convention",
            )
        return DeclShape(
            kind=DeclKind.SETTER,
            name=derived,
            receiver=conventions.receiver_name,
            receiver_type=leading,
            params=tuple(params[1:]),
        )

    if (
        conventions.separator in symbol
        and params
        and params[0][0] == conventions.receiver_name
        and leading not in skip
    ):
        return DeclShape(
            kind=DeclKind.METHOD,
            name=derived,
            receiver=conventions.receiver_name,
            receiver_type=params[0][1],
            params=tuple(params[1:]),
        )

    return DeclShape(kind=DeclKind.FREE, name=symbol, params=tuple(params))


__all__ = [
    "DEFAULT_CONVENTIONS",
    "SKIP_STRUCTS",
    "DeclKind",
    "DeclShape",
    "NamingConventions",
    "constructor_name",
    "constructor_target",
    "infer_shape",
    "split_symbol",
]
