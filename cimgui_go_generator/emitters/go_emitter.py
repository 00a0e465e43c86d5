#!/usr/bin/env python3
"""
cgo emitter for cimgui Go bindings.

This emitter drives the TypeMapper and the declaration shaper over the API
descriptors and renders:
- enums.go:   one `type X int` plus a const block per enum
- structs.go: one uintptr-sized handle type per opaque struct, with handle(), c()
              and newXFromC()
- funcs.go:   free functions, methods, setters and constructors wrapping C calls
- wrapper.go: string/scalar cell helpers and the value-struct mirrors the
              conversions above rely on (optional)

Functions whose arguments or return cannot be marshalled are skipped and
reported; a skip never aborts the run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from ..models import (
    EnumDescriptor,
    FuncDef,
    FunctionOutcome,
    FunctionStatus,
    GenerationContext,
    GenerationReport,
    StructDescriptor,
)
from ..shaping import DeclKind, infer_shape
from ..type_mapping import MappedFunction, TypeMapper
from ..utils import TemplateRenderer, ensure_dir, write_text
from ..value_structs import VALUE_STRUCTS

logger = logging.getLogger(__name__)


# (helper name, Go type, C type) for the single-value out-parameter cells
SCALAR_CELLS: Tuple[Tuple[str, str, str], ...] = (
    ("wrapFloat", "float32", "float"),
    ("wrapInt32", "int32", "int"),
    ("wrapBool", "bool", "bool"),
)


# --------------------------
# Configuration
# --------------------------

@dataclass(frozen=True)
class EmitterConfig:
    """
    Configuration for the cgo emitter.
    """
    enums_template: str = "enums.go.j2"
    structs_template: str = "structs.go.j2"
    funcs_template: str = "funcs.go.j2"
    support_template: str = "wrapper.go.j2"
    enums_file: str = "enums.go"
    structs_file: str = "structs.go"
    funcs_file: str = "funcs.go"
    support_file: str = "wrapper.go"
    # Headers referenced from the cgo preamble
    wrapper_header: str = "cimgui_wrapper.h"
    funcs_includes: Tuple[str, ...] = ("extra_type.h", "cimgui_structs_accessor.h", "cimgui_wrapper.h")
    # Whether to emit wrapper.go (cells and value-struct conversions)
    emit_support: bool = True


# --------------------------
# Emitter
# --------------------------

class GoEmitter:
    """
    Emit Go source for the cimgui C API.

    Usage:
        emitter = GoEmitter(ctx, renderer, config=config)
        report = emitter.emit(api.enums, api.structs, api.funcs)
    """

    def __init__(
        self,
        ctx: GenerationContext,
        renderer: TemplateRenderer,
        config: Optional[EmitterConfig] = None,
        mapper: Optional[TypeMapper] = None,
    ) -> None:
        self.ctx = ctx
        self.renderer = renderer
        self.config = config or EmitterConfig()
        self.mapper = mapper or TypeMapper(ctx.registry)

    # ---- Public API ----

    def emit(
        self,
        enums: Sequence[EnumDescriptor],
        structs: Sequence[StructDescriptor],
        funcs: Sequence[FuncDef],
    ) -> GenerationReport:
        """
        Render every artifact, then write them. Any OSError raised while writing
        is logged and re-raised; there is no partial-output recovery.
        """
        report = GenerationReport()

        outputs: List[Tuple[str, str]] = [
            (self.config.enums_file, self.render_enums(enums)),
            (self.config.structs_file, self.render_structs(structs)),
            (self.config.funcs_file, self.render_funcs(funcs, report)),
        ]
        if self.config.emit_support:
            outputs.append((self.config.support_file, self.render_support()))

        if not self.ctx.dry_run:
            ensure_dir(self.ctx.output_dir)
        for file_name, content in outputs:
            path = Path(self.ctx.output_dir) / file_name
            try:
                write_text(path, content, dry_run=self.ctx.dry_run)
            except OSError:
                logger.exception("Failed to write %s", path)
                raise
            if not self.ctx.dry_run:
                report.written.append(path)

        logger.info("Go generation complete under: %s", self.ctx.output_dir)
        return report

    def render_enums(self, enums: Iterable[EnumDescriptor]) -> str:
        registry = self.ctx.registry
        seen = set()
        kept: List[EnumDescriptor] = []
        for e in enums:
            if e.go_name in seen or not registry.is_enum(e.go_name):
                continue
            seen.add(e.go_name)
            kept.append(e)
        return self.renderer.render(self.config.enums_template, {
            "package": self.ctx.package_name,
            "enums": kept,
        })

    def render_structs(self, structs: Iterable[StructDescriptor]) -> str:
        registry = self.ctx.registry
        names: List[str] = []
        for s in structs:
            if registry.is_struct(s.name) and s.name not in names:
                names.append(s.name)
        return self.renderer.render(self.config.structs_template, {
            "package": self.ctx.package_name,
            "include": self.config.wrapper_header,
            "structs": names,
        })

    def render_funcs(self, funcs: Iterable[FuncDef], report: Optional[GenerationReport] = None) -> str:
        """
        Resolve, shape and render every function in input order, recording each
        outcome (and diagnostic) into `report`.
        """
        report = report if report is not None else GenerationReport()
        decls: List[Dict[str, Any]] = []

        for f in funcs:
            mapped = self.mapper.map_function(f)
            if not mapped.supported:
                if mapped.diagnostic:
                    logger.warning("%s", mapped.diagnostic)
                    report.diagnostics.append(mapped.diagnostic)
                logger.debug("Skipping %s (%s)", f.signature, mapped.reason or "")
                report.outcomes.append(FunctionOutcome(f.func_name, FunctionStatus.SKIPPED, reason=mapped.reason))
                continue

            decl = self._build_decl(mapped)
            if decl is None:
                report.outcomes.append(FunctionOutcome(
                    f.func_name,
                    FunctionStatus.SKIPPED,
                    reason="setter does not follow the naming convention",
                ))
                continue

            decls.append(decl)
            report.outcomes.append(FunctionOutcome(f.func_name, FunctionStatus.EMITTED, shape=decl["kind"]))

        logger.info("%s", report.summary())
        return self.renderer.render(self.config.funcs_template, {
            "package": self.ctx.package_name,
            "includes": list(self.config.funcs_includes),
            "funcs": decls,
        })

    def render_support(self) -> str:
        value_structs = [
            {"name": name, "fields": cls.go_fields()}
            for name, cls in VALUE_STRUCTS.items()
            if self.ctx.registry.is_value_struct(name)
        ]
        return self.renderer.render(self.config.support_template, {
            "package": self.ctx.package_name,
            "include": self.config.wrapper_header,
            "cells": [{"helper": h, "go_type": g, "c_type": c} for h, g, c in SCALAR_CELLS],
            "value_structs": value_structs,
        })

    # ---- Internals ----

    def _build_decl(self, mapped: MappedFunction) -> Optional[Dict[str, Any]]:
        """
        Shape a fully resolved function into the template's declaration dict,
        or None when the shaper drops it.
        """
        f = mapped.func
        ret = mapped.ret
        shape = infer_shape(
            f.func_name,
            mapped.go_params,
            struct_setter=f.struct_setter,
            constructor_target=ret.constructor_target if ret else None,
            conventions=self.mapper.config.conventions,
        )
        if shape.kind == DeclKind.DROPPED:
            logger.debug("Dropping %s: %s", f.func_name, shape.reason)
            return None

        call = mapped.call_expression()
        has_value = ret is not None and ret.has_value
        return {
            "native": f.func_name,
            "kind": shape.kind.name,
            "name": shape.name,
            "receiver": shape.receiver,
            "receiver_type": shape.receiver_type,
            "params": list(shape.params),
            "return_type": ret.mapping.exposed_spelling if has_value else "",
            "setup": mapped.setup_blocks(),
            "call": call,
            "return_expr": ret.mapping.return_expr(call) if has_value else None,
        }


__all__ = [
    "EmitterConfig",
    "GoEmitter",
    "SCALAR_CELLS",
]
