# erd_gen/entities.py
"""Entity descriptors: the input contract of the diagram pipeline.

Descriptors are produced by a discovery collaborator (a YAML manifest, a
SQLAlchemy model scan, ...). The pipeline never cares how they were made.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from .constants import ASSOCIATION, CARDINALITIES, ONE, RELATIONSHIP_KINDS


@dataclass(frozen=True)
class Field:
    name: str
    type: str = "any"
    nullable: bool = True


@dataclass(frozen=True)
class Relationship:
    """One declared relationship of an entity.

    `owner` is True when the declaring entity holds the foreign key (for an
    association) or embeds the child (for an embed). `field` is the name of
    the relationship on the declaring entity and becomes the edge label.
    """

    kind: str
    target: str
    cardinality: str = ONE
    owner: bool = True
    field: Optional[str] = None
    foreign_key: Optional[str] = None
    references: Optional[str] = None


@dataclass(frozen=True)
class EntityDescriptor:
    id: str
    source: Optional[str] = None
    fields: tuple[Field, ...] = ()
    relationships: tuple[Relationship, ...] = ()

    @property
    def short_name(self) -> str:
        return self.id.rsplit(".", 1)[-1]


def snake_case(name: str) -> str:
    """`LineItem` -> `line_item`."""
    s = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    s = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s)
    return s.replace("-", "_").lower()


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def field_from_mapping(item: Any) -> Field:
    """Build a Field from a manifest item.

    Accepts the long form (`{name: id, type: integer, nullable: false}`) and
    the short form (`{id: integer}`). A mapping with exactly one key is
    always the short form.
    """
    if not isinstance(item, dict):
        raise TypeError(f"field must be a mapping, got {type(item).__name__}")

    if len(item) == 1:
        name, type_ = next(iter(item.items()))
        return Field(name=str(name), type=str(type_))

    name = _opt_str(item.get("name"))
    if name is None:
        raise ValueError(f"field is missing `name`: {item!r}")

    return Field(
        name=name,
        type=str(item.get("type", "any")),
        nullable=_as_bool(item.get("nullable"), True),
    )


def relationship_from_mapping(item: Any) -> Relationship:
    if not isinstance(item, dict):
        raise TypeError(f"relationship must be a mapping, got {type(item).__name__}")

    kind = str(item.get("kind", ASSOCIATION))
    if kind not in RELATIONSHIP_KINDS:
        raise ValueError(f"unknown relationship kind {kind!r} (expected one of {RELATIONSHIP_KINDS})")

    cardinality = str(item.get("cardinality", ONE))
    if cardinality not in CARDINALITIES:
        raise ValueError(f"unknown cardinality {cardinality!r} (expected one of {CARDINALITIES})")

    target = _opt_str(item.get("target"))
    if target is None:
        raise ValueError(f"relationship is missing `target`: {item!r}")

    return Relationship(
        kind=kind,
        target=target,
        cardinality=cardinality,
        owner=_as_bool(item.get("owner"), True),
        field=_opt_str(item.get("field")),
        foreign_key=_opt_str(item.get("foreign_key")),
        references=_opt_str(item.get("references")),
    )


def entity_from_mapping(item: Any) -> EntityDescriptor:
    """Build an EntityDescriptor from one `entities:` manifest item."""
    if not isinstance(item, dict):
        raise TypeError(f"entity must be a mapping, got {type(item).__name__}")

    entity_id = _opt_str(item.get("id"))
    if entity_id is None:
        raise ValueError(f"entity is missing `id`: {item!r}")

    return EntityDescriptor(
        id=entity_id,
        source=_opt_str(item.get("source")),
        fields=tuple(field_from_mapping(f) for f in item.get("fields", []) or []),
        relationships=tuple(
            relationship_from_mapping(r) for r in item.get("relationships", []) or []
        ),
    )
