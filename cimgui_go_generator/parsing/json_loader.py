#!/usr/bin/env python3
"""
Load API descriptors (enums, structs, functions) from the parser's JSON output.

Accepted layout:

    {
      "enums":   [{"name": "ImGuiDir_", "values": [{"name": "ImGuiDir_None", "value": -1}]}],
      "structs": [{"name": "ImGuiIO"}],
      "funcs":   [{"funcName": "ImGuiIO_AddKeyEvent",
                   "args": [{"name": "self", "type": "ImGuiIO*"}],
                   "ret": "void",
                   "structSetter": false, "structGetter": false, "constructor": false}]
    }

Tolerated variants:
- 'argsT' instead of 'args'; snake_case keys (func_name, struct_setter, ...)
- enum values as [name, value] pairs, or cimgui-style entries carrying 'calc_value'
- enums/structs given as objects keyed by name (cimgui's structs_and_enums.json)
- struct entries given as bare strings

Missing flags default to false and a missing 'ret' means void.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple, Union
import logging

from ..models import ApiDescriptors, ArgDef, EnumDescriptor, EnumValue, FuncDef, StructDescriptor

logger = logging.getLogger(__name__)


class DescriptorError(ValueError):
    """
    Raised for unreadable or malformed descriptor input. The message names the offending entry.
    """


# --------------------------
# Field helpers
# --------------------------

def _get(entry: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in entry:
            return entry[k]
    return default


def _require_str(entry: Mapping[str, Any], where: str, *keys: str) -> str:
    value = _get(entry, *keys)
    if not isinstance(value, str) or not value:
        raise DescriptorError(f"{where}: missing or invalid '{keys[0]}'")
    return value


def _flag(entry: Mapping[str, Any], where: str, *keys: str) -> bool:
    value = _get(entry, *keys, default=False)
    if not isinstance(value, bool):
        raise DescriptorError(f"{where}: '{keys[0]}' must be a boolean, got {value!r}")
    return value


def _as_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DescriptorError(f"{where} must be a list")
    return value


def _entries(value: Any, where: str) -> List[Tuple[Optional[str], Any]]:
    """
    Normalize a section to (key, entry) pairs. Object-form sections (keyed by
    name) yield their keys; list-form sections yield None keys.
    """
    if value is None:
        return []
    if isinstance(value, dict):
        return list(value.items())
    return [(None, e) for e in _as_list(value, where)]


# --------------------------
# Section parsers
# --------------------------

def _parse_enum_value(raw: Any, where: str) -> EnumValue:
    if isinstance(raw, (list, tuple)):
        if len(raw) != 2:
            raise DescriptorError(f"{where}: expected a [name, value] pair")
        name, value = raw
    elif isinstance(raw, dict):
        name = raw.get("name")
        value = raw["calc_value"] if "calc_value" in raw else raw.get("value")
    else:
        raise DescriptorError(f"{where}: unsupported enum value entry {raw!r}")

    if not isinstance(name, str) or not name:
        raise DescriptorError(f"{where}: enum value without a name")
    if isinstance(value, bool):
        raise DescriptorError(f"{where}: value of {name} must be an integer")
    if isinstance(value, str):
        try:
            value = int(value, 0)
        except ValueError as e:
            raise DescriptorError(f"{where}: value of {name} is not an integer: {value!r}") from e
    if not isinstance(value, int):
        raise DescriptorError(f"{where}: value of {name} must be an integer")
    return EnumValue(name=name, value=value)


def parse_enum(key: Optional[str], raw: Any, index: int) -> EnumDescriptor:
    where = f"enums[{key if key is not None else index}]"
    if key is not None:
        values = raw
        name = key
    else:
        if not isinstance(raw, dict):
            raise DescriptorError(f"{where}: expected an object")
        name = _require_str(raw, where, "name")
        values = raw.get("values")
    items = _as_list(values, f"{where}.values")
    return EnumDescriptor(
        name=name,
        values=tuple(_parse_enum_value(v, f"{where}.values[{i}]") for i, v in enumerate(items)),
    )


def parse_struct(key: Optional[str], raw: Any, index: int) -> StructDescriptor:
    if key is not None:
        return StructDescriptor(name=key)
    where = f"structs[{index}]"
    if isinstance(raw, str) and raw:
        return StructDescriptor(name=raw)
    if isinstance(raw, dict):
        return StructDescriptor(name=_require_str(raw, where, "name"))
    raise DescriptorError(f"{where}: expected a name or an object with 'name'")


def parse_arg(raw: Any, where: str) -> ArgDef:
    if not isinstance(raw, dict):
        raise DescriptorError(f"{where}: expected an object")
    return ArgDef(
        name=_require_str(raw, where, "name"),
        type=_require_str(raw, where, "type"),
    )


def parse_func(raw: Any, index: int) -> FuncDef:
    where = f"funcs[{index}]"
    if not isinstance(raw, dict):
        raise DescriptorError(f"{where}: expected an object")
    name = _require_str(raw, where, "funcName", "func_name")
    where = f"{where} ({name})"
    args = _as_list(_get(raw, "args", "argsT"), f"{where}.args")
    ret = _get(raw, "ret", default="void")
    if not isinstance(ret, str):
        raise DescriptorError(f"{where}: 'ret' must be a string")
    return FuncDef(
        func_name=name,
        args=tuple(parse_arg(a, f"{where}.args[{i}]") for i, a in enumerate(args)),
        ret=ret or "void",
        struct_setter=_flag(raw, where, "structSetter", "struct_setter"),
        struct_getter=_flag(raw, where, "structGetter", "struct_getter"),
        constructor=_flag(raw, where, "constructor"),
    )


# --------------------------
# Public API
# --------------------------

def descriptors_from_dict(data: Any) -> ApiDescriptors:
    """
    Build ApiDescriptors from already-decoded JSON. Entry order is preserved.
    """
    if not isinstance(data, dict):
        raise DescriptorError("descriptor document must be a JSON object")

    enums = tuple(parse_enum(k, e, i) for i, (k, e) in enumerate(_entries(data.get("enums"), "enums")))
    structs = tuple(parse_struct(k, s, i) for i, (k, s) in enumerate(_entries(data.get("structs"), "structs")))
    funcs = tuple(parse_func(f, i) for i, f in enumerate(_as_list(data.get("funcs"), "funcs")))

    logger.debug("Loaded %d enum(s), %d struct(s), %d function(s)", len(enums), len(structs), len(funcs))
    return ApiDescriptors(enums=enums, structs=structs, funcs=funcs)


def load_descriptors(path: Union[str, Path]) -> ApiDescriptors:
    """
    Read and validate a descriptor JSON file.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise DescriptorError(f"cannot read descriptors from {p}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DescriptorError(f"{p}: invalid JSON ({e})") from e
    api = descriptors_from_dict(data)
    logger.info("Loaded descriptors from %s", p)
    return api


__all__ = [
    "DescriptorError",
    "descriptors_from_dict",
    "load_descriptors",
    "parse_arg",
    "parse_enum",
    "parse_func",
    "parse_struct",
]
