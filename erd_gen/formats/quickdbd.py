# erd_gen/formats/quickdbd.py
from __future__ import annotations

from ..constants import MANY
from ..fmt import QDBD_REL_OPS, qdbd_name, qdbd_type
from ..graph import Graph, Node

# Type used for a referencing column that the table does not declare.
FALLBACK_TYPE = "integer"


def _table_name(node: Node) -> str:
    return qdbd_name(node.source or node.name)


def _column_refs(graph: Graph) -> dict[str, dict[str, list[tuple[str, Node]]]]:
    """Group references by the table and column that hold the foreign key.

    An edge whose source end is "many" comes from the owning side, so the key
    lives on the source. Otherwise it was declared on the referenced side and
    the key lives on the target, so the edge is flipped before it is written.
    """
    refs: dict[str, dict[str, list[tuple[str, Node]]]] = {}
    for edge, src, dst in graph.resolved_edges():
        if src.embedded or dst.embedded or not (edge.from_field and edge.to_field):
            continue
        src_card, dst_card = edge.cardinality
        if src_card == MANY:
            holder, column, other, other_column = src, edge.from_field, dst, edge.to_field
            op = QDBD_REL_OPS[(src_card, dst_card)]
        else:
            holder, column, other, other_column = dst, edge.to_field, src, edge.from_field
            op = QDBD_REL_OPS[(dst_card, src_card)]

        ref = f"FK {op} {_table_name(other)}.{qdbd_name(other_column)}"
        column_refs = refs.setdefault(holder.key, {}).setdefault(column, [])
        # Both sides of one relationship resolve to the same reference.
        if all(existing != ref for existing, _ in column_refs):
            column_refs.append((ref, other))
    return refs


def _referenced_type(other: Node, ref: str) -> str:
    column = ref.rsplit(".", 1)[1]
    return next((f.type for f in other.fields if qdbd_name(f.name) == column), FALLBACK_TYPE)


def gen_quickdbd(graph: Graph) -> str:
    """Render a collapsed, sorted graph in QuickDBD syntax.

    Relationships are written inline on the table holding the foreign key, and
    every reference of one column shares that column's single row. QuickDBD has
    no grouping construct, so clusters are ignored.
    """
    refs = _column_refs(graph)

    blocks: list[str] = []
    for node in graph.nodes:
        if node.embedded:
            continue

        node_refs = refs.get(node.key, {})
        lines = [_table_name(node), "-"]
        declared: set[str] = set()

        for f in node.fields:
            if f.name in declared:
                continue
            declared.add(f.name)
            row = f"{qdbd_name(f.name)} {qdbd_type(f.type)}"
            lines.append(" ".join([row, *(ref for ref, _ in node_refs.get(f.name, []))]))

        for column, column_refs in node_refs.items():
            if column in declared:
                continue
            ref, other = column_refs[0]
            row = f"{qdbd_name(column)} {qdbd_type(_referenced_type(other, ref))}"
            lines.append(" ".join([row, *(r for r, _ in column_refs)]))

        blocks.append("\n".join(lines))

    return "\n\n".join(blocks) + "\n"
