#!/usr/bin/env python3
"""
Templating, logging and file output helpers for the cimgui Go binding generator.

- TemplateRenderer: a Jinja2 environment whose loader looks in an optional
  user directory first and falls back to the templates shipped with the package.
- configure_logging: one console handler (plus an optional log file) on the
  root logger, with the package logger aligned to the same level.
- write_text / atomic_write_text: Unix newlines, temp file + os.replace, and
  no rewrite when the content on disk is already identical.
- sanitize_identifier: native argument names that are Go keywords.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO, Tuple, Union
import logging

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

logger = logging.getLogger(__name__)

PACKAGE_NAME = "cimgui_go_generator"
DEFAULT_LOG_FORMAT = "%(levelname)s: %(message)s"
PACKAGE_TEMPLATES = Path(__file__).parent / "templates"


# ----------------------------------------
# Logging
# ----------------------------------------

def _level_from(level: Optional[Union[int, str]]) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def configure_logging(
    level: Optional[Union[int, str]] = None,
    *,
    to_file: Optional[Union[str, Path]] = None,
    fmt: Optional[str] = None,
    stream: Optional[TextIO] = None,
    propagate_package_loggers: bool = True,
) -> None:
    """
    Replace the root handlers with a console handler (stderr unless `stream`
    is given) and, when `to_file` is set, a file handler truncating that file.
    `level` accepts an int or a level name and defaults to INFO.
    """
    resolved = _level_from(level)
    formatter = logging.Formatter(fmt or DEFAULT_LOG_FORMAT)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(resolved)

    new_handlers: List[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if to_file:
        new_handlers.append(logging.FileHandler(str(to_file), mode="w"))
    for h in new_handlers:
        h.setLevel(resolved)
        h.setFormatter(formatter)
        root.addHandler(h)

    pkg_logger = logging.getLogger(PACKAGE_NAME)
    pkg_logger.setLevel(resolved)
    pkg_logger.propagate = propagate_package_loggers


# ----------------------------------------
# Go identifiers
# ----------------------------------------

GO_KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
})


def sanitize_identifier(name: str, suffix: str = "Arg") -> str:
    """
    'type' -> 'typeArg'; any other name is returned unchanged.
    """
    if not name:
        return "arg"
    return f"{name}{suffix}" if name in GO_KEYWORDS else name


def go_param_list(params: Sequence[Tuple[str, str]]) -> str:
    """
    [('name', 'string'), ('v', 'float32')] -> 'name string, v float32'
    """
    return ", ".join(f"{name} {go_type}" for name, go_type in params)


# ----------------------------------------
# Templates
# ----------------------------------------

class TemplateRenderer:
    """
    Jinja2 rendering with StrictUndefined, so a template referring to a
    missing context key fails instead of emitting an empty string.

    Lookup order: `templates_dir` (if it exists), then cimgui_go_generator/templates.
    """

    def __init__(self, templates_dir: Optional[Path] = None) -> None:
        self.env = Environment(
            loader=ChoiceLoader(self._loaders(templates_dir)),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,
            keep_trailing_newline=True,
        )
        self.env.filters["go_param_list"] = go_param_list

    @staticmethod
    def _loaders(templates_dir: Optional[Path]) -> List[Any]:
        loaders: List[Any] = []
        if templates_dir:
            user_dir = Path(templates_dir)
            if user_dir.is_dir():
                loaders.append(FileSystemLoader(str(user_dir)))
            else:
                logger.warning("Templates directory %s does not exist; using package templates", user_dir)
        # The package is a namespace package; load its templates by path
        loaders.append(FileSystemLoader(str(PACKAGE_TEMPLATES)))
        return loaders

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound as e:
            raise RuntimeError(f"Template not found: {template_name}") from e
        return template.render(**context)


# ----------------------------------------
# File output
# ----------------------------------------

def ensure_dir(p: Path) -> None:
    Path(p).mkdir(parents=True, exist_ok=True)


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _current_text(path: Path, encoding: str) -> Optional[str]:
    try:
        return path.read_text(encoding=encoding)
    except FileNotFoundError:
        return None


def atomic_write_text(
    path: Path,
    content: str,
    encoding: str = "utf-8",
    mode: Optional[int] = 0o644,
    only_if_changed: bool = True,
) -> bool:
    """
    Write `content` to `path` through a sibling temp file and os.replace.

    Returns False when the file already holds the same text (nothing written).
    OSError from the filesystem propagates.
    """
    path = Path(path)
    content = normalize_newlines(content)
    ensure_dir(path.parent)

    if only_if_changed:
        old = _current_text(path, encoding)
        if old is not None and normalize_newlines(old) == content:
            logger.debug("[skip] %s (unchanged)", path)
            return False

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="\n") as f:
            f.write(content)
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
    logger.info("[write] %s", path)
    return True


def write_text(path: Path, content: str, encoding: str = "utf-8", dry_run: bool = False) -> None:
    if dry_run:
        logger.info("[dry-run] write %s", path)
        return
    atomic_write_text(path, content, encoding=encoding)


__all__ = [
    "DEFAULT_LOG_FORMAT",
    "GO_KEYWORDS",
    "PACKAGE_NAME",
    "TemplateRenderer",
    "atomic_write_text",
    "configure_logging",
    "ensure_dir",
    "go_param_list",
    "normalize_newlines",
    "sanitize_identifier",
    "write_text",
]
