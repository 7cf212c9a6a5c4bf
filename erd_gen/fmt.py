# erd_gen/fmt.py
"""Quoting and escaping helpers for the supported output formats."""
from __future__ import annotations

import html
import re

from .constants import COLUMN_NAMES, MANY, ONE

# Bare-word identifiers shared by dot and dbml.
BARE_ID_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DOT_KEYWORDS = {"node", "edge", "graph", "digraph", "subgraph", "strict"}


def one_line(text: object) -> str:
    """Collapse whitespace (including newlines) into single spaces."""
    return re.sub(r"\s+", " ", str(text)).strip()


def dot_id(value: str) -> str:
    """Format a DOT identifier, quoting it unless it is a plain bare word."""
    if BARE_ID_RE.match(value) and value.lower() not in DOT_KEYWORDS:
        return value
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def dot_html(text: object) -> str:
    """Escape text for a DOT HTML-like label."""
    return html.escape(one_line(text), quote=True)


def puml_text(text: object) -> str:
    """PlantUML has no escape for double quotes inside a quoted name."""
    return one_line(text).replace('"', "'")


# Words PlantUML reads as keywords in a class diagram.
PUML_KEYWORDS = frozenset(
    {
        "abstract", "annotation", "as", "circle", "class", "diamond", "end", "entity",
        "enum", "hide", "interface", "namespace", "note", "package", "remove", "show",
        "skinparam", "together",
    }
)


def puml_alias(base: str, used: set[str]) -> str:
    """Derive a unique bare alias for a PlantUML entity."""
    alias = re.sub(r"\W", "_", base) or "_"
    if alias[0].isdigit() or alias.lower() in PUML_KEYWORDS:
        alias = f"_{alias}"
    candidate = alias
    n = 2
    while candidate in used:
        candidate = f"{alias}_{n}"
        n += 1
    used.add(candidate)
    return candidate


def dbml_name(value: str) -> str:
    """Quote a DBML identifier unless it is a bare word."""
    if BARE_ID_RE.match(value):
        return value
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def dbml_type(value: str) -> str:
    """DBML column types allow `varchar(255)`; anything fancier is quoted."""
    text = one_line(value)
    if re.match(r"^[A-Za-z_][A-Za-z0-9_]*(\([0-9, ]*\))?(\[\])?$", text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def qdbd_name(value: str) -> str:
    """QuickDBD has no quoting; replace anything outside a bare word."""
    name = re.sub(r"\W", "_", one_line(value))
    return name or "_"


def qdbd_type(value: str) -> str:
    text = re.sub(r"[^\w(),]", "", one_line(value))
    return text or "any"


# Cardinality pair -> relationship operator.
DBML_REL_OPS: dict[tuple[str, str], str] = {
    (ONE, ONE): "-",
    (ONE, MANY): "<",
    (MANY, ONE): ">",
    (MANY, MANY): "<>",
}

QDBD_REL_OPS: dict[tuple[str, str], str] = {
    (ONE, ONE): "-",
    (ONE, MANY): "-<",
    (MANY, ONE): ">-",
    (MANY, MANY): ">-<",
}

# Crow's foot ends, written as seen from the source side (left) and the target side (right).
PUML_LEFT_ENDS = {ONE: "||", MANY: "}o"}
PUML_RIGHT_ENDS = {ONE: "||", MANY: "o{"}

DOT_ARROWS = {ONE: "tee", MANY: "crow"}


def check_columns(columns: object) -> tuple[str, ...]:
    """Validate the `columns` option (any subset of name/type, in given order)."""
    if isinstance(columns, str) or not isinstance(columns, (list, tuple)):
        raise TypeError("columns must be a list of column names")
    out: list[str] = []
    for column in columns:
        name = str(column).lstrip(":")
        if name not in COLUMN_NAMES:
            raise ValueError(f"unknown column {column!r} (expected any of {COLUMN_NAMES})")
        if name not in out:
            out.append(name)
    return tuple(out)
