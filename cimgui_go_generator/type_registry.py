#!/usr/bin/env python3
"""
Type registry: the set of enum, opaque struct and value struct names known to a run.

Every later stage (argument/return marshalling, declaration shaping) asks the
registry whether a raw type spelling names an enum or a struct. The registry is
computed once from the descriptors and is read-only afterwards.

Struct partitioning:
- Value-typed structs come from a fixed allow-list of small geometric/color
  aggregates. They are mirrored as plain data carriers (see value_structs.py).
- Opaque-handle structs are every other struct whose name carries the API
  prefix ("Im"). They are exposed as uintptr-sized, non-owning tokens.
- Anything else is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple
import logging

from .models import EnumDescriptor, StructDescriptor

logger = logging.getLogger(__name__)


VALUE_STRUCT_NAMES: Tuple[str, ...] = (
    "ImVec1",
    "ImVec2ih",
    "ImVec2",
    "ImVec4",
    "ImRect",
    "ImColor",
)


@dataclass(frozen=True)
class RegistryConfig:
    struct_prefix: str = "Im"
    value_structs: Tuple[str, ...] = VALUE_STRUCT_NAMES


@dataclass(frozen=True)
class TypeRegistry:
    """
    Membership sets plus the ordered declarations needed for emission.

    Build with TypeRegistry.from_descriptors(structs, enums).
    """
    enum_names: FrozenSet[str]
    struct_names: FrozenSet[str]
    value_struct_names: FrozenSet[str]
    enums: Tuple[EnumDescriptor, ...] = ()
    opaque_structs: Tuple[str, ...] = ()
    config: RegistryConfig = RegistryConfig()

    @staticmethod
    def from_descriptors(
        structs: Iterable[StructDescriptor],
        enums: Iterable[EnumDescriptor],
        config: Optional[RegistryConfig] = None,
    ) -> "TypeRegistry":
        cfg = config or RegistryConfig()
        value_names = frozenset(cfg.value_structs)

        kept_enums: List[EnumDescriptor] = []
        enum_seen: Dict[str, str] = {}
        for e in enums:
            if e.go_name in enum_seen:
                logger.warning("Duplicate enum %s (already declared as %s); keeping the first", e.name, enum_seen[e.go_name])
                continue
            enum_seen[e.go_name] = e.name
            kept_enums.append(e)

        opaque: List[str] = []
        for s in structs:
            if not s.name.startswith(cfg.struct_prefix):
                logger.debug("Ignoring struct %s (no %r prefix)", s.name, cfg.struct_prefix)
                continue
            if s.name in value_names:
                continue
            if s.name in opaque:
                logger.warning("Duplicate struct %s; keeping the first", s.name)
                continue
            opaque.append(s.name)

        return TypeRegistry(
            enum_names=frozenset(enum_seen),
            struct_names=frozenset(opaque),
            value_struct_names=value_names,
            enums=tuple(kept_enums),
            opaque_structs=tuple(opaque),
            config=cfg,
        )

    # ---- Queries ----

    def is_enum(self, type_name: str) -> bool:
        return type_name in self.enum_names

    def is_struct(self, type_name: str) -> bool:
        """
        True for opaque-handle structs only; value structs are not handles.
        """
        return type_name in self.struct_names

    def is_value_struct(self, type_name: str) -> bool:
        return type_name in self.value_struct_names

    def to_dict(self) -> Dict:
        return {
            "enums": [e.go_name for e in self.enums],
            "opaque_structs": list(self.opaque_structs),
            "value_structs": sorted(self.value_struct_names),
        }


__all__ = [
    "VALUE_STRUCT_NAMES",
    "RegistryConfig",
    "TypeRegistry",
]
