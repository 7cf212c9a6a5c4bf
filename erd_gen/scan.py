# erd_gen/scan.py
"""Discover entity descriptors from SQLAlchemy declarative models.

Mapped classes become table-backed entities, composites become embedded
entities, and relationships become associations. The secondary table of a
many-to-many relationship becomes an entity linked to both sides. Classes
sharing one table (single-table inheritance) become separate entities with the
same source.
"""
from __future__ import annotations

import dataclasses
import importlib
from typing import Any, Iterable, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper, configure_mappers

from .constants import ASSOCIATION, EMBED, MANY, ONE
from .entities import EntityDescriptor, Field, Relationship


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def type_name(sa_type: Any) -> str:
    """Semantic type name of a column type (`Integer()` -> `integer`)."""
    visit_name = getattr(sa_type, "__visit_name__", None)
    if isinstance(visit_name, str) and visit_name:
        return visit_name.lower()
    return type(sa_type).__name__.lower()


def _column_names(columns: Iterable[Any]) -> list[str]:
    return sorted(c.name for c in columns)


def _first(names: list[str]) -> Optional[str]:
    return names[0] if names else None


def _relationship(prop: Any) -> Relationship:
    direction = prop.direction.name
    target = qualified_name(prop.mapper.class_)
    cardinality = MANY if prop.uselist else ONE

    if direction == "MANYTOONE":
        return Relationship(
            kind=ASSOCIATION,
            target=target,
            cardinality=cardinality,
            owner=True,
            field=prop.key,
            foreign_key=_first(_column_names(prop.local_columns)),
            references=_first(_column_names(prop.remote_side)),
        )

    return Relationship(
        kind=ASSOCIATION,
        target=target,
        cardinality=cardinality,
        owner=False,
        field=prop.key,
        foreign_key=_first(_column_names(prop.remote_side)),
        references=_first(_column_names(prop.local_columns)),
    )


def _join_entity(prop: Any) -> EntityDescriptor:
    """The secondary table of a many-to-many relationship as an entity of its own.

    It belongs to both sides, so the two ends of the relationship become
    associations owned by the join table. Both sides of a back-populated pair
    produce the same descriptor.
    """
    table = prop.secondary
    sides = (
        (prop.parent.class_, prop.synchronize_pairs),
        (prop.mapper.class_, prop.secondary_synchronize_pairs),
    )
    relationships = [
        Relationship(
            kind=ASSOCIATION,
            target=qualified_name(cls),
            cardinality=ONE,
            owner=True,
            foreign_key=_first(_column_names(join_col for _, join_col in pairs)),
            references=_first(_column_names(ref_col for ref_col, _ in pairs)),
        )
        for cls, pairs in sides
    ]
    relationships.sort(key=lambda r: (r.target, r.foreign_key or ""))

    return EntityDescriptor(
        id=table.fullname,
        source=table.name,
        fields=tuple(
            Field(name=col.name, type=type_name(col.type), nullable=bool(col.nullable))
            for col in table.columns
        ),
        relationships=tuple(relationships),
    )


def _composite_entity(prop: Any) -> EntityDescriptor:
    cls = prop.composite_class
    props = list(prop.props)
    columns = [p.columns[0] for p in props]
    if dataclasses.is_dataclass(cls):
        names = [f.name for f in dataclasses.fields(cls)]
    else:
        names = [p.key for p in props]
    return EntityDescriptor(
        id=qualified_name(cls),
        source=None,
        fields=tuple(
            Field(name=name, type=type_name(col.type), nullable=bool(col.nullable))
            for name, col in zip(names, columns)
        ),
    )


def entity_from_mapper(mapper: Mapper) -> tuple[EntityDescriptor, list[EntityDescriptor]]:
    """Return the entity for `mapper` plus the entities it brings along.

    Those are the embedded entities of its composites and the join tables of
    its many-to-many relationships.
    """
    local_table = mapper.local_table
    source = getattr(local_table, "name", None)

    fields: list[Field] = []
    for attr in mapper.column_attrs:
        col = attr.columns[0]
        nullable = bool(getattr(col, "nullable", True))
        fields.append(Field(name=attr.key, type=type_name(col.type), nullable=nullable))

    relationships: list[Relationship] = []
    extra: list[EntityDescriptor] = []
    for prop in mapper.relationships:
        if prop.secondary is not None:
            extra.append(_join_entity(prop))
        else:
            relationships.append(_relationship(prop))

    for prop in mapper.composites:
        child = _composite_entity(prop)
        extra.append(child)
        relationships.append(
            Relationship(kind=EMBED, target=child.id, cardinality=ONE, owner=True, field=prop.key)
        )

    entity = EntityDescriptor(
        id=qualified_name(mapper.class_),
        source=source,
        fields=tuple(fields),
        relationships=tuple(relationships),
    )
    return entity, extra


def find_mappers(modules: Iterable[Any]) -> list[Mapper]:
    """Every mapper in the registries of classes defined in `modules`."""
    registries: dict[int, Any] = {}
    for module in modules:
        for obj in vars(module).values():
            if not isinstance(obj, type):
                continue
            mapper = sa_inspect(obj, raiseerr=False)
            if isinstance(mapper, Mapper):
                registries[id(mapper.registry)] = mapper.registry

    mappers: dict[str, Mapper] = {}
    for registry in registries.values():
        for mapper in registry.mappers:
            mappers[qualified_name(mapper.class_)] = mapper
    return [mappers[name] for name in sorted(mappers)]


def scan_models(module_names: Iterable[str]) -> list[EntityDescriptor]:
    """Import `module_names` and describe every mapped class reachable from them."""
    modules = [importlib.import_module(name) for name in module_names]
    configure_mappers()

    entities: dict[str, EntityDescriptor] = {}
    for mapper in find_mappers(modules):
        entity, extra = entity_from_mapper(mapper)
        entities[entity.id] = entity
        for child in extra:
            entities.setdefault(child.id, child)

    return [entities[name] for name in sorted(entities)]
