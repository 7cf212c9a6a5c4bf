# erd_gen/pipeline.py
"""Entry points: entity descriptors in, diagram text out.

build -> map_nodes -> [collapse_to_schemaless] -> sort -> render
"""
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .constants import COLUMNS_DEFAULT, FONTNAME_DEFAULT
from .entities import EntityDescriptor
from .fmt import check_columns
from .formats.registry import FormatSpec, RenderConfig, get_format
from .graph import Graph, build_graph
from .mapper import NodeTransform, map_nodes, set_cluster
from .schemaless import collapse_to_schemaless
from .sorter import sort_graph


def prepare_graph(
    entities: Iterable[EntityDescriptor],
    spec: FormatSpec,
    map_node: Optional[NodeTransform] = None,
) -> Graph:
    """Run every stage before rendering for the given format."""
    graph = build_graph(entities, spec.relationship_kinds)
    graph = map_nodes(graph, map_node)
    if not spec.supports_clusters:
        graph = map_nodes(graph, lambda node: set_cluster(node, None))
    if spec.schemaless:
        graph = collapse_to_schemaless(graph)
    return sort_graph(graph)


def generate(
    entities: Iterable[EntityDescriptor],
    format_id: str,
    *,
    map_node: Optional[NodeTransform] = None,
    fontname: str = FONTNAME_DEFAULT,
    columns: Sequence[str] = COLUMNS_DEFAULT,
) -> str:
    spec = get_format(format_id)
    if spec.configurable_columns:
        cfg = RenderConfig(fontname=fontname, columns=check_columns(columns))
    else:
        cfg = RenderConfig(fontname=fontname)
    graph = prepare_graph(entities, spec, map_node)
    return spec.render(graph, cfg)


def render_dot(
    entities: Iterable[EntityDescriptor],
    *,
    map_node: Optional[NodeTransform] = None,
    fontname: str = FONTNAME_DEFAULT,
    columns: Sequence[str] = COLUMNS_DEFAULT,
) -> str:
    return generate(entities, "dot", map_node=map_node, fontname=fontname, columns=columns)


def render_plantuml(
    entities: Iterable[EntityDescriptor],
    *,
    map_node: Optional[NodeTransform] = None,
    fontname: str = FONTNAME_DEFAULT,
    columns: Sequence[str] = COLUMNS_DEFAULT,
) -> str:
    return generate(entities, "puml", map_node=map_node, fontname=fontname, columns=columns)


def render_dbml(
    entities: Iterable[EntityDescriptor], *, map_node: Optional[NodeTransform] = None
) -> str:
    return generate(entities, "dbml", map_node=map_node)


def render_quickdbd(
    entities: Iterable[EntityDescriptor], *, map_node: Optional[NodeTransform] = None
) -> str:
    return generate(entities, "qdbd", map_node=map_node)
