"""In-memory ERD graph and the builder that creates it from entity descriptors."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from .constants import ASSOCIATION, EMBED, MANY, ONE, RELATIONSHIP_KINDS
from .entities import EntityDescriptor, Field, Relationship, snake_case


@dataclass(frozen=True)
class Node:
    key: str
    name: str
    source: Optional[str] = None
    fields: tuple[Field, ...] = ()
    cluster: Optional[str] = None
    entities: tuple[str, ...] = ()

    @property
    def embedded(self) -> bool:
        return self.source is None


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    kind: str
    cardinality: tuple[str, str] = (ONE, ONE)
    label: Optional[str] = None
    from_field: Optional[str] = None
    to_field: Optional[str] = None


@dataclass
class Graph:
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    def node_index(self) -> dict[str, Node]:
        return {node.key: node for node in self.nodes}

    def clusters(self) -> dict[str, list[str]]:
        """Cluster name -> member node keys, in node order. Derived, never stored."""
        out: dict[str, list[str]] = {}
        for node in self.nodes:
            if node.cluster:
                out.setdefault(node.cluster, []).append(node.key)
        return out

    def resolved_edges(self) -> Iterator[tuple[Edge, Node, Node]]:
        """Yield edges whose endpoints both exist, with their nodes.

        Edges pointing at a node that is not in the graph are skipped.
        """
        index = self.node_index()
        for edge in self.edges:
            src = index.get(edge.source)
            dst = index.get(edge.target)
            if src is None or dst is None:
                continue
            yield edge, src, dst


def _edge_cardinality(rel: Relationship) -> tuple[str, str]:
    if rel.kind == ASSOCIATION and rel.owner:
        return (MANY, rel.cardinality)
    return (ONE, rel.cardinality)


def _edge_fields(
    entity: EntityDescriptor, rel: Relationship
) -> tuple[Optional[str], Optional[str]]:
    """Column endpoints (from_field, to_field) of an association edge."""
    if rel.kind != ASSOCIATION:
        return None, None

    if rel.owner:
        base = rel.field or snake_case(rel.target.rsplit(".", 1)[-1])
        return rel.foreign_key or f"{base}_id", rel.references or "id"

    return (
        rel.references or "id",
        rel.foreign_key or f"{snake_case(entity.short_name)}_id",
    )


def node_from_entity(entity: EntityDescriptor) -> Node:
    return Node(
        key=entity.id,
        name=entity.id,
        source=entity.source,
        fields=tuple(entity.fields),
        entities=(entity.id,),
    )


def edge_from_relationship(entity: EntityDescriptor, rel: Relationship) -> Edge:
    from_field, to_field = _edge_fields(entity, rel)
    return Edge(
        source=entity.id,
        target=rel.target,
        kind=rel.kind,
        cardinality=_edge_cardinality(rel),
        label=rel.field,
        from_field=from_field,
        to_field=to_field,
    )


def build_graph(
    entities: Iterable[EntityDescriptor],
    relationship_kinds: Iterable[str] = (ASSOCIATION, EMBED),
) -> Graph:
    """Build a graph with one node per entity and one edge per selected relationship.

    Relationships whose target is not among `entities` still produce an edge;
    renderers skip such edges.
    """
    kinds = set(relationship_kinds)
    unknown = kinds - set(RELATIONSHIP_KINDS)
    if unknown:
        raise ValueError(f"unknown relationship kinds: {sorted(unknown)}")

    graph = Graph()
    seen: set[str] = set()

    for entity in entities:
        if entity.id in seen:
            raise ValueError(f"duplicate entity id {entity.id!r}")
        seen.add(entity.id)

        graph.nodes.append(node_from_entity(entity))
        for rel in entity.relationships:
            if rel.kind in kinds:
                graph.edges.append(edge_from_relationship(entity, rel))

    return graph
