# erd_gen/formats/dot.py
from __future__ import annotations

from typing import Sequence

from ..constants import COLUMNS_DEFAULT, EMBED, FONTNAME_DEFAULT
from ..fmt import DOT_ARROWS, check_columns, dot_html, dot_id
from ..graph import Edge, Graph, Node

HEADER_BGCOLOR = "#dfe6ee"


def _node_lines(node: Node, columns: tuple[str, ...], indent: str) -> list[str]:
    span = max(len(columns), 1)
    subtitle = node.source if node.source is not None else "embedded"

    rows = [
        f'<TR><TD COLSPAN="{span}" BGCOLOR="{HEADER_BGCOLOR}"><B>{dot_html(node.name)}</B></TD></TR>',
        f'<TR><TD COLSPAN="{span}"><I>{dot_html(subtitle)}</I></TD></TR>',
    ]
    if columns:
        for f in node.fields:
            cells = "".join(
                f'<TD ALIGN="LEFT">{dot_html(getattr(f, column))}</TD>' for column in columns
            )
            rows.append(f"<TR>{cells}</TR>")

    style = ' STYLE="dashed"' if node.embedded else ""
    lines = [f"{indent}{dot_id(node.key)} [label=<"]
    lines.append(
        f'{indent}  <TABLE BORDER="0" CELLBORDER="1" CELLSPACING="0" CELLPADDING="4"{style}>'
    )
    lines.extend(f"{indent}    {row}" for row in rows)
    lines.append(f"{indent}  </TABLE>")
    lines.append(f"{indent}>]")
    return lines


def _edge_line(edge: Edge) -> str:
    tail, head = edge.cardinality
    attrs = [
        "dir=both",
        f"arrowtail={DOT_ARROWS[tail]}",
        f"arrowhead={DOT_ARROWS[head]}",
    ]
    if edge.kind == EMBED:
        attrs.append("style=dashed")
    if edge.label:
        attrs.append(f"label={dot_id(edge.label)}")
    return f"  {dot_id(edge.source)} -> {dot_id(edge.target)} [{', '.join(attrs)}]"


def gen_dot(
    graph: Graph,
    *,
    fontname: str = FONTNAME_DEFAULT,
    columns: Sequence[str] = COLUMNS_DEFAULT,
) -> str:
    """Render a sorted graph as a Graphviz digraph with HTML-like table nodes.

    Clusters become `subgraph cluster_*` blocks.
    """
    columns = check_columns(columns)
    font = dot_id(fontname)

    lines: list[str] = [
        "digraph erd {",
        "  graph [rankdir=LR, ranksep=1.0]",
        f"  node [shape=plaintext, fontname={font}]",
        f"  edge [fontname={font}]",
    ]

    index = graph.node_index()
    for cluster, keys in sorted(graph.clusters().items()):
        lines.append("")
        lines.append(f"  subgraph {dot_id(f'cluster_{cluster}')} {{")
        lines.append(f"    label={dot_id(cluster)}")
        for key in keys:
            lines.extend(_node_lines(index[key], columns, "    "))
        lines.append("  }")

    for node in graph.nodes:
        if node.cluster:
            continue
        lines.append("")
        lines.extend(_node_lines(node, columns, "  "))

    edge_lines = [_edge_line(edge) for edge, _, _ in graph.resolved_edges()]
    if edge_lines:
        lines.append("")
        lines.extend(edge_lines)

    lines.append("}")
    return "\n".join(lines) + "\n"
