from __future__ import annotations

from typing import Sequence

from ..constants import COLUMNS_DEFAULT, EMBED, FONTNAME_DEFAULT
from ..entities import Field
from ..fmt import PUML_LEFT_ENDS, PUML_RIGHT_ENDS, check_columns, one_line, puml_alias, puml_text
from ..graph import Graph, Node


def _field_row(f: Field, columns: tuple[str, ...]) -> str:
    parts = [one_line(getattr(f, column)) for column in columns]
    row = " : ".join(parts)
    # IE notation: `*` marks a mandatory attribute.
    if "name" in columns and not f.nullable:
        row = f"* {row}"
    return row


def _entity_lines(
    node: Node, alias: str, columns: tuple[str, ...], indent: str
) -> list[str]:
    stereotype = " <<embedded>>" if node.embedded else ""
    head = f'{indent}entity "{puml_text(node.name)}" as {alias}{stereotype}'
    if not columns or not node.fields:
        return [head]

    lines = [head + " {"]
    lines.extend(f"{indent}  {_field_row(f, columns)}" for f in node.fields)
    lines.append(f"{indent}}}")
    return lines


def gen_plantuml(
    graph: Graph,
    *,
    fontname: str = FONTNAME_DEFAULT,
    columns: Sequence[str] = COLUMNS_DEFAULT,
) -> str:
    """Render a sorted graph as a PlantUML IE diagram. Clusters become packages."""
    columns = check_columns(columns)

    used: set[str] = set()
    aliases = {node.key: puml_alias(node.key, used) for node in graph.nodes}

    lines: list[str] = [
        "@startuml",
        "hide circle",
        "hide empty members",
        "skinparam linetype ortho",
        "skinparam shadowing false",
        f'skinparam defaultFontName "{puml_text(fontname)}"',
    ]

    index = graph.node_index()
    for cluster, keys in sorted(graph.clusters().items()):
        lines.append("")
        lines.append(f'package "{puml_text(cluster)}" {{')
        for key in keys:
            lines.extend(_entity_lines(index[key], aliases[key], columns, "  "))
        lines.append("}")

    for node in graph.nodes:
        if node.cluster:
            continue
        lines.append("")
        lines.extend(_entity_lines(node, aliases[node.key], columns, ""))

    rel_lines: list[str] = []
    for edge, src, dst in graph.resolved_edges():
        left, right = edge.cardinality
        line = ".." if edge.kind == EMBED else "--"
        rel = (
            f"{aliases[src.key]} {PUML_LEFT_ENDS[left]}{line}{PUML_RIGHT_ENDS[right]} "
            f"{aliases[dst.key]}"
        )
        if edge.label:
            rel += f" : {one_line(edge.label)}"
        rel_lines.append(rel)

    if rel_lines:
        lines.append("")
        lines.extend(rel_lines)

    lines.append("@enduml")
    return "\n".join(lines) + "\n"
