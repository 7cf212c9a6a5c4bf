# erd_gen/constants.py
from __future__ import annotations

ASSOCIATION = "association"
EMBED = "embed"
RELATIONSHIP_KINDS: tuple[str, ...] = (ASSOCIATION, EMBED)

ONE = "one"
MANY = "many"
CARDINALITIES: tuple[str, ...] = (ONE, MANY)

# Field attributes that can be shown as node rows (dot and puml only).
COLUMN_NAMES: tuple[str, ...] = ("name", "type")

CONFIG_PATH_DEFAULT = ".erd_gen.yaml"
OUTPUT_PATH_DEFAULT = "erd.dot"
FONTNAME_DEFAULT = "Roboto Mono"
COLUMNS_DEFAULT: tuple[str, ...] = ("name", "type")

# Prefix of synthetic keys given to merged schemaless nodes.
SCHEMALESS_KEY_PREFIX = "table:"
