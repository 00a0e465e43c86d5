
import sys
import os
import platform
import shlex
from datetime import datetime, timezone
from importlib import metadata as importlib_metadata

import json
from pathlib import Path
from typing import Optional
from .models import ApiDescriptors, GenerationContext, GenerationReport
from .utils import write_text

import logging
logger = logging.getLogger(__name__)

DIST_NAME = "cimgui-go-generator"


def generator_version() -> Optional[str]:
    for dist_name in (DIST_NAME, "cimgui_go_generator"):
        try:
            return importlib_metadata.version(dist_name)
        except importlib_metadata.PackageNotFoundError:
            continue
    return None


def build_manifest(ctx: GenerationContext, api: ApiDescriptors, report: GenerationReport) -> dict:
    """
    Snapshot of one run: generator metadata, invocation, environment, the
    registry partition and per-function outcomes.
    """
    argv = list(getattr(sys, "argv", []) or [])
    command_line = " ".join(shlex.quote(a) for a in argv) if argv else ""

    env_info = {
        "python_version": sys.version,
        "python_executable": sys.executable,
        "platform": platform.platform(),
        "system": platform.system(),
        "machine": platform.machine(),
        "cwd": os.getcwd(),
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
    }

    return {
        "generator": {
            "name": DIST_NAME,
            "version": generator_version() or "unknown",
        },
        "invocation": {
            "argv": argv,
            "command_line": command_line,
        },
        "environment": env_info,
        "context": ctx.to_dict(),
        "registry": ctx.registry.to_dict(),
        "enum_count": len(api.enums),
        "struct_count": len(api.structs),
        "function_count": len(api.funcs),
        "report": report.to_dict(),
    }


def emit_manifest(ctx: GenerationContext, api: ApiDescriptors, report: GenerationReport) -> Path:
    """
    Write manifest.json next to the generated sources. Write failures are logged and re-raised.
    """
    manifest_path = Path(ctx.output_dir) / "manifest.json"
    content = json.dumps(build_manifest(ctx, api, report), indent=2) + "\n"
    try:
        write_text(manifest_path, content, dry_run=ctx.dry_run)
    except OSError:
        logger.exception("Failed to write manifest to %s", manifest_path)
        raise
    return manifest_path
