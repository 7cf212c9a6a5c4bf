from __future__ import annotations

from .graph import Edge, Graph, Node


def node_sort_key(node: Node) -> tuple[str, str]:
    return (node.name, node.key)


def sort_graph(graph: Graph) -> Graph:
    """Return a graph with a canonical node and edge order and the same content.

    Repeated runs over an unchanged model then render byte-identical output.
    """
    nodes = sorted(graph.nodes, key=node_sort_key)
    position = {node.key: i for i, node in enumerate(nodes)}
    missing = len(nodes)

    def edge_sort_key(edge: Edge) -> tuple:
        # Edges to unknown nodes sort last, by key.
        return (
            position.get(edge.source, missing),
            position.get(edge.target, missing),
            edge.kind,
            edge.label or "",
            edge.source,
            edge.target,
            edge.cardinality,
            edge.from_field or "",
            edge.to_field or "",
        )

    return Graph(nodes=nodes, edges=sorted(graph.edges, key=edge_sort_key))
