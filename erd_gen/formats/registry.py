# erd_gen/formats/registry.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Callable

from ..constants import ASSOCIATION, COLUMNS_DEFAULT, EMBED, FONTNAME_DEFAULT
from ..graph import Graph
from .dbml import gen_dbml
from .dot import gen_dot
from .plantuml import gen_plantuml
from .quickdbd import gen_quickdbd


class UnsupportedFormatError(ValueError):
    """Raised when no renderer exists for a requested output format."""


@dataclass(frozen=True)
class RenderConfig:
    fontname: str = FONTNAME_DEFAULT
    columns: tuple[str, ...] = COLUMNS_DEFAULT


RenderFn = Callable[[Graph, RenderConfig], str]


@dataclass(frozen=True)
class FormatSpec:
    format_id: str
    title: str
    extension: str
    relationship_kinds: frozenset[str]
    schemaless: bool
    supports_clusters: bool
    configurable_columns: bool
    render: RenderFn


def _render_dot(graph: Graph, cfg: RenderConfig) -> str:
    return gen_dot(graph, fontname=cfg.fontname, columns=cfg.columns)


def _render_plantuml(graph: Graph, cfg: RenderConfig) -> str:
    return gen_plantuml(graph, fontname=cfg.fontname, columns=cfg.columns)


def _render_dbml(graph: Graph, _: RenderConfig) -> str:
    return gen_dbml(graph)


def _render_quickdbd(graph: Graph, _: RenderConfig) -> str:
    return gen_quickdbd(graph)


FORMATS: list[FormatSpec] = [
    FormatSpec(
        format_id="dot",
        title="Graphviz DOT",
        extension=".dot",
        relationship_kinds=frozenset({ASSOCIATION, EMBED}),
        schemaless=False,
        supports_clusters=True,
        configurable_columns=True,
        render=_render_dot,
    ),
    FormatSpec(
        format_id="puml",
        title="PlantUML",
        extension=".puml",
        relationship_kinds=frozenset({ASSOCIATION, EMBED}),
        schemaless=False,
        supports_clusters=True,
        configurable_columns=True,
        render=_render_plantuml,
    ),
    FormatSpec(
        format_id="dbml",
        title="DBML",
        extension=".dbml",
        relationship_kinds=frozenset({ASSOCIATION}),
        schemaless=True,
        supports_clusters=True,
        configurable_columns=False,
        render=_render_dbml,
    ),
    FormatSpec(
        format_id="qdbd",
        title="QuickDBD",
        extension=".qdbd",
        relationship_kinds=frozenset({ASSOCIATION}),
        schemaless=True,
        supports_clusters=False,
        configurable_columns=False,
        render=_render_quickdbd,
    ),
]


def get_format(format_id: str) -> FormatSpec:
    for spec in FORMATS:
        if spec.format_id == format_id:
            return spec
    known = ", ".join(s.format_id for s in FORMATS)
    raise UnsupportedFormatError(f"unsupported output format {format_id!r} (supported: {known})")


def format_for_path(path: str | PurePath) -> FormatSpec:
    """Pick the format from an output file extension."""
    ext = PurePath(path).suffix.lower()
    for spec in FORMATS:
        if spec.extension == ext:
            return spec
    known = ", ".join(s.extension for s in FORMATS)
    raise UnsupportedFormatError(
        f"unsupported output file extension {ext or '<none>'!r} for {str(path)!r} "
        f"(supported: {known})"
    )
