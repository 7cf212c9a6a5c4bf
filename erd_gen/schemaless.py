# erd_gen/schemaless.py
"""Collapse nodes that share a table into one schemaless table node.

Table-only formats (dbml, qdbd) cannot show several logical owners of one
physical table, nor entities without a table at all.
"""
from __future__ import annotations

import dataclasses

from .constants import SCHEMALESS_KEY_PREFIX
from .entities import Field
from .graph import Edge, Graph, Node


def _unique_key(base: str, used: set[str]) -> str:
    candidate = base
    n = 2
    while candidate in used:
        candidate = f"{base}_{n}"
        n += 1
    used.add(candidate)
    return candidate


def merge_fields(nodes: list[Node]) -> tuple[Field, ...]:
    """Union of fields by name; the first occurrence wins."""
    seen: set[str] = set()
    out: list[Field] = []
    for node in nodes:
        for f in node.fields:
            if f.name in seen:
                continue
            seen.add(f.name)
            out.append(f)
    return tuple(out)


def merge_nodes(key: str, source: str, nodes: list[Node]) -> Node:
    entities: list[str] = []
    for node in nodes:
        entities.extend(e for e in node.entities if e not in entities)

    cluster = next((n.cluster for n in nodes if n.cluster), None)
    return Node(
        key=key,
        name=source,
        source=source,
        fields=merge_fields(nodes),
        cluster=cluster,
        entities=tuple(entities),
    )


def collapse_to_schemaless(graph: Graph) -> Graph:
    """Drop table-less nodes and merge nodes sharing a table.

    Edges are rewritten to the merged node; resulting duplicates are kept.
    Applying this twice gives the same graph as applying it once.
    """
    groups: dict[str, list[Node]] = {}
    dropped: set[str] = set()

    for node in graph.nodes:
        if node.source is None:
            dropped.add(node.key)
            continue
        groups.setdefault(node.source, []).append(node)

    used_keys = {node.key for node in graph.nodes}
    rename: dict[str, str] = {}
    merged_by_source: dict[str, Node] = {}

    for source, members in groups.items():
        if len(members) < 2:
            continue
        key = _unique_key(f"{SCHEMALESS_KEY_PREFIX}{source}", used_keys)
        merged_by_source[source] = merge_nodes(key, source, members)
        for member in members:
            rename[member.key] = key

    nodes: list[Node] = []
    for node in graph.nodes:
        if node.key in dropped:
            continue
        merged = merged_by_source.get(node.source or "")
        if merged is None:
            nodes.append(node)
        elif node.key == groups[merged.name][0].key:
            nodes.append(merged)

    edges: list[Edge] = []
    for edge in graph.edges:
        if edge.source in dropped or edge.target in dropped:
            continue
        if edge.source in rename or edge.target in rename:
            edge = dataclasses.replace(
                edge,
                source=rename.get(edge.source, edge.source),
                target=rename.get(edge.target, edge.target),
            )
        edges.append(edge)

    graph.nodes = nodes
    graph.edges = edges
    return graph
