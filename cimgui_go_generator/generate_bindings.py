#!/usr/bin/env python3
"""
cimgui Go (cgo) binding generator

Pipeline:
  descriptors JSON -> TypeRegistry -> TypeMapper (vocabulary check)
  -> GoEmitter (enums.go, structs.go, funcs.go, wrapper.go) -> manifest.json

Usage (example):
  cimgui-go-generator \
    --descriptors cimgui/generator/output/definitions.json \
    --output-dir cimgui

Exit codes:
  0 success (skipped functions are normal)
  1 templating failure
  2 descriptor load failure
  4 output write failure
  5 manifest failure
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence
import logging

from .emitters.go_emitter import EmitterConfig, GoEmitter
from .manifest import emit_manifest
from .models import GenerationContext
from .parsing.json_loader import DescriptorError, load_descriptors
from .type_mapping import MappingConfig, TypeMapper
from .type_registry import TypeRegistry
from .utils import DEFAULT_LOG_FORMAT, TemplateRenderer, configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TEMPLATING = 1
EXIT_DESCRIPTORS = 2
EXIT_WRITE = 4
EXIT_MANIFEST = 5

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


# --------------------------
# CLI
# --------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cimgui-go-generator",
        description="Generate Go (cgo) bindings for the cimgui C API",
    )

    gen = p.add_argument_group("generation")
    gen.add_argument("--descriptors", required=True, help="Parser JSON with enums, structs and funcs.")
    gen.add_argument("--output-dir", default="generated", help="Directory receiving the .go files.")
    gen.add_argument("--package", default="cimgui", help="Go package clause of every generated file.")
    gen.add_argument("--templates-dir", default=None, help="Templates here win over the bundled ones.")
    gen.add_argument("--no-support", action="store_true", help="Skip wrapper.go (cells and value structs).")
    gen.add_argument("--no-manifest", action="store_true", help="Skip manifest.json.")
    gen.add_argument("--dry-run", action="store_true", help="Render and report, write nothing.")

    log = p.add_argument_group("logging")
    log.add_argument("-v", "--verbose", action="count", default=0, help="-v: DEBUG")
    log.add_argument("-q", "--quiet", action="count", default=0, help="-q: WARNING, -qq: ERROR")
    log.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Explicit level; wins over -v/-q.",
    )
    log.add_argument("--log-format", default=DEFAULT_LOG_FORMAT, help="logging format string.")
    log.add_argument("--log-file", default=None, help="Also write logs to this file.")
    return p


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _resolve_level(ns: argparse.Namespace) -> int:
    if ns.log_level:
        return getattr(logging, ns.log_level)
    if ns.verbose:
        return logging.DEBUG
    return {0: logging.INFO, 1: logging.WARNING}.get(ns.quiet, logging.ERROR)


# --------------------------
# Main
# --------------------------

def main(argv: Optional[Sequence[str]] = None) -> int:
    ns = parse_args(argv)
    configure_logging(level=_resolve_level(ns), to_file=ns.log_file, fmt=ns.log_format)

    templates_dir = Path(ns.templates_dir).resolve() if ns.templates_dir else None
    try:
        renderer = TemplateRenderer(templates_dir)
    except Exception:
        logger.exception("Failed to initialize templating")
        return EXIT_TEMPLATING

    try:
        api = load_descriptors(ns.descriptors)
    except DescriptorError:
        logger.exception("Failed to load descriptors")
        return EXIT_DESCRIPTORS

    registry = TypeRegistry.from_descriptors(api.structs, api.enums)
    logger.info(
        "Registry: %d enum(s), %d opaque struct(s); %d function(s) to convert",
        len(registry.enum_names),
        len(registry.struct_names),
        len(api.funcs),
    )
    ctx = GenerationContext(
        output_dir=Path(ns.output_dir).resolve(),
        registry=registry,
        package_name=ns.package,
        templates_dir=templates_dir,
        dry_run=ns.dry_run,
    )

    # Gaps are reported now; the functions using them are skipped during emission
    mapper = TypeMapper(registry, config=MappingConfig())
    mapper.validate_vocabulary(api.type_vocabulary())

    emitter = GoEmitter(ctx, renderer, config=EmitterConfig(emit_support=not ns.no_support), mapper=mapper)
    try:
        report = emitter.emit(api.enums, api.structs, api.funcs)
    except OSError:
        logger.error("Aborting: output could not be written")
        return EXIT_WRITE
    except Exception:
        logger.exception("Failed to render Go sources")
        return EXIT_TEMPLATING

    if ctx.dry_run:
        logger.info("Dry-run complete, nothing written. %s", report.summary())
        return EXIT_OK

    if not ns.no_manifest:
        try:
            emit_manifest(ctx, api, report)
        except Exception:
            logger.exception("Failed to emit generation manifest")
            return EXIT_MANIFEST

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
