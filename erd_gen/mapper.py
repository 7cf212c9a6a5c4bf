from __future__ import annotations

import dataclasses
import fnmatch
from typing import Callable, Iterable, Mapping, Optional, Sequence

from .graph import Graph, Node

NodeTransform = Callable[[Node], Optional[Node]]


def identity(node: Node) -> Optional[Node]:
    return node


def set_cluster(node: Node, cluster: Optional[str]) -> Node:
    """Return a copy of `node` assigned to `cluster` (None clears it)."""
    return dataclasses.replace(node, cluster=cluster or None)


def map_nodes(graph: Graph, transform: Optional[NodeTransform] = None) -> Graph:
    """Apply `transform` to every node.

    A `None` result removes the node together with every edge touching it.
    Exceptions raised by `transform` propagate and `graph` is left untouched.
    """
    transform = transform or identity

    mapped: list[Node] = []
    removed: set[str] = set()

    for node in graph.nodes:
        result = transform(node)
        if result is None:
            removed.add(node.key)
            continue
        if not isinstance(result, Node):
            raise TypeError(
                f"node transform must return a Node or None, got {type(result).__name__}"
            )
        if result.key != node.key:
            raise ValueError(
                f"node transform must not change node keys ({node.key!r} -> {result.key!r})"
            )
        mapped.append(result)

    graph.nodes = mapped
    if removed:
        graph.edges = [
            e for e in graph.edges if e.source not in removed and e.target not in removed
        ]
    return graph


def _matches(node: Node, patterns: Iterable[str]) -> bool:
    return any(
        fnmatch.fnmatchcase(candidate, pattern)
        for pattern in patterns
        for candidate in (node.key, node.name)
    )


def compose_transform(
    *,
    exclude: Sequence[str] = (),
    clusters: Optional[Mapping[str, Sequence[str]]] = None,
    map_node: Optional[NodeTransform] = None,
) -> NodeTransform:
    """Build one node transform from declarative config plus an optional user function.

    Order: `exclude` globs drop nodes, then the first `clusters` entry whose
    globs match assigns the cluster, then `map_node` gets the final say.
    """
    cluster_items = sorted((clusters or {}).items())

    def transform(node: Node) -> Optional[Node]:
        if exclude and _matches(node, exclude):
            return None
        for name, patterns in cluster_items:
            if _matches(node, patterns):
                node = set_cluster(node, name)
                break
        if map_node is not None:
            return map_node(node)
        return node

    return transform
