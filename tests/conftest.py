from __future__ import annotations

import logging
from pathlib import Path

import pytest

from cimgui_go_generator.models import EnumDescriptor, EnumValue, GenerationContext, StructDescriptor
from cimgui_go_generator.type_registry import TypeRegistry
from cimgui_go_generator.utils import PACKAGE_NAME, TemplateRenderer


STRUCTS = [
    "ImGuiIO",
    "ImDrawList",
    "ImFontAtlas",
    "ImGuiStyle",
    "ImVec2",
    "ImVec4",
    "ImRect",
    "ImColor",
    "StbUndoState",
]


def enum(name: str, *values) -> EnumDescriptor:
    return EnumDescriptor(name=name, values=tuple(EnumValue(n, v) for n, v in values))


ENUMS = [
    enum("ImGuiDir_", ("ImGuiDir_None", -1), ("ImGuiDir_Left", 0), ("ImGuiDir_Right", 1)),
    enum("ImGuiWindowFlags_", ("ImGuiWindowFlags_None", 0), ("ImGuiWindowFlags_NoTitleBar", 1 << 0), ("ImGuiWindowFlags_NoResize", 1 << 1)),
    enum("Color_", ("Red", 0), ("Green", 1)),
]


@pytest.fixture
def registry() -> TypeRegistry:
    return TypeRegistry.from_descriptors([StructDescriptor(s) for s in STRUCTS], ENUMS)


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def ctx(tmp_path: Path, registry: TypeRegistry) -> GenerationContext:
    return GenerationContext(output_dir=tmp_path / "out", registry=registry)


@pytest.fixture
def pkg_caplog(caplog):
    """
    caplog capturing everything the package logs, whatever level earlier tests left behind.
    """
    caplog.set_level(logging.DEBUG)
    caplog.set_level(logging.DEBUG, logger=PACKAGE_NAME)
    return caplog
