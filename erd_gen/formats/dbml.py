from __future__ import annotations

from ..fmt import DBML_REL_OPS, dbml_name, dbml_type
from ..graph import Graph, Node


def _table_name(node: Node) -> str:
    return dbml_name(node.source or node.name)


def gen_dbml(graph: Graph) -> str:
    """Render a collapsed, sorted graph as DBML.

    Only table nodes are shown; columns are always name + type. Clusters
    become `TableGroup`s.
    """
    blocks: list[str] = []

    for node in graph.nodes:
        if node.embedded:
            continue
        lines = [f"Table {_table_name(node)} {{"]
        lines.extend(f"  {dbml_name(f.name)} {dbml_type(f.type)}" for f in node.fields)
        lines.append("}")
        blocks.append("\n".join(lines))

    refs: list[str] = []
    for edge, src, dst in graph.resolved_edges():
        if src.embedded or dst.embedded or not (edge.from_field and edge.to_field):
            continue
        op = DBML_REL_OPS[edge.cardinality]
        refs.append(
            f"Ref: {_table_name(src)}.{dbml_name(edge.from_field)} {op} "
            f"{_table_name(dst)}.{dbml_name(edge.to_field)}"
        )
    if refs:
        blocks.append("\n".join(refs))

    index = graph.node_index()
    for cluster, keys in sorted(graph.clusters().items()):
        members = [index[k] for k in keys if not index[k].embedded]
        if not members:
            continue
        lines = [f"TableGroup {dbml_name(cluster)} {{"]
        lines.extend(f"  {_table_name(n)}" for n in members)
        lines.append("}")
        blocks.append("\n".join(lines))

    return "\n\n".join(blocks) + "\n"
