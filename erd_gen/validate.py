# erd_gen/validate.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from .constants import CARDINALITIES, RELATIONSHIP_KINDS

Severity = Literal["error", "warning"]


@dataclass(frozen=True)
class ValidationIssue:
    severity: Severity
    code: str
    message: str
    path: str = ""
    hint: Optional[str] = None

    def __str__(self) -> str:
        where = f" ({self.path})" if self.path else ""
        hint = f"; hint: {self.hint}" if self.hint else ""
        return f"{self.code}: {self.message}{where}{hint}"


@dataclass(frozen=True)
class ValidateConfig:
    # Rule controls
    ignore: set[str] = field(default_factory=set)
    escalate: set[str] = field(default_factory=set)


def _validate_fields(entity: dict[str, Any], base: str, emit) -> None:
    fields = entity.get("fields", []) or []
    if not isinstance(fields, list):
        emit("error", "E_FIELDS_NOT_LIST", "entity.fields must be a list", path=f"{base}/fields")
        return

    names: set[str] = set()
    for k, item in enumerate(fields):
        path = f"{base}/fields/{k}"
        if not isinstance(item, dict):
            emit("error", "E_FIELD_NOT_MAPPING", "field must be a mapping", path=path)
            continue

        name = next(iter(item)) if len(item) == 1 else item.get("name")

        if not isinstance(name, str) or not name.strip():
            emit(
                "error",
                "E_FIELD_MISSING_NAME",
                "field missing string `name`",
                path=path,
                hint="use `{name: id, type: integer}` or the short form `{id: integer}`",
            )
            continue

        if name in names:
            emit(
                "warning",
                "W_FIELD_DUPLICATE_NAME",
                f"duplicate field {name!r}; the first one is shown",
                path=path,
            )
        names.add(name)


def _validate_relationships(
    entity: dict[str, Any], base: str, entity_ids: set[str], emit
) -> None:
    rels = entity.get("relationships", []) or []
    if not isinstance(rels, list):
        emit(
            "error",
            "E_RELATIONSHIPS_NOT_LIST",
            "entity.relationships must be a list",
            path=f"{base}/relationships",
        )
        return

    for k, rel in enumerate(rels):
        path = f"{base}/relationships/{k}"
        if not isinstance(rel, dict):
            emit("error", "E_RELATIONSHIP_NOT_MAPPING", "relationship must be a mapping", path=path)
            continue

        kind = rel.get("kind", RELATIONSHIP_KINDS[0])
        if kind not in RELATIONSHIP_KINDS:
            emit(
                "error",
                "E_RELATIONSHIP_UNKNOWN_KIND",
                f"unknown relationship kind {kind!r}",
                path=f"{path}/kind",
                hint=f"expected one of {', '.join(RELATIONSHIP_KINDS)}",
            )

        cardinality = rel.get("cardinality", CARDINALITIES[0])
        if cardinality not in CARDINALITIES:
            emit(
                "error",
                "E_RELATIONSHIP_UNKNOWN_CARDINALITY",
                f"unknown cardinality {cardinality!r}",
                path=f"{path}/cardinality",
                hint=f"expected one of {', '.join(CARDINALITIES)}",
            )

        target = rel.get("target")
        if not isinstance(target, str) or not target.strip():
            emit(
                "error",
                "E_RELATIONSHIP_MISSING_TARGET",
                "relationship missing string `target`",
                path=f"{path}/target",
            )
        elif target not in entity_ids:
            emit(
                "warning",
                "W_UNKNOWN_TARGET",
                f"relationship target {target!r} is not a known entity; the edge is omitted",
                path=f"{path}/target",
            )


def validate_manifest_issues(
    manifest: dict[str, Any], cfg: Optional[ValidateConfig] = None
) -> list[ValidationIssue]:
    """Return structured validation issues for an entity manifest."""
    cfg = cfg or ValidateConfig()
    issues: list[ValidationIssue] = []

    def emit(
        severity: Severity,
        code: str,
        message: str,
        path: str = "",
        hint: Optional[str] = None,
    ) -> None:
        if code in cfg.ignore:
            return
        final_severity: Severity = (
            "error" if (severity == "warning" and code in cfg.escalate) else severity
        )
        issues.append(
            ValidationIssue(
                severity=final_severity,
                code=code,
                message=message,
                path=path,
                hint=hint,
            )
        )

    entities = manifest.get("entities", []) or []
    if not isinstance(entities, list):
        emit("error", "E_ENTITIES_NOT_LIST", "manifest.entities must be a list", path="/entities")
        return issues

    if not entities:
        emit("warning", "W_NO_ENTITIES", "manifest declares no entities", path="/entities")

    # First pass: ids, so relationship targets can be checked in any order.
    entity_ids: set[str] = set()
    valid: list[tuple[int, dict[str, Any]]] = []
    for i, item in enumerate(entities):
        if not isinstance(item, dict):
            emit(
                "warning",
                "W_ENTITY_NOT_MAPPING",
                "manifest.entities contains a non-mapping item; skipping",
                path=f"/entities/{i}",
            )
            continue

        entity_id = item.get("id")
        if not isinstance(entity_id, str) or not entity_id.strip():
            emit(
                "error",
                "E_ENTITY_MISSING_ID",
                "entity missing string `id`",
                path=f"/entities/{i}/id",
            )
            continue

        if entity_id in entity_ids:
            emit(
                "error",
                "E_ENTITY_DUPLICATE_ID",
                f"duplicate entity id {entity_id!r}",
                path=f"/entities/{i}/id",
            )
            continue

        entity_ids.add(entity_id)
        valid.append((i, item))

    for i, item in valid:
        _validate_fields(item, f"/entities/{i}", emit)
        _validate_relationships(item, f"/entities/{i}", entity_ids, emit)

    return issues


def validate_manifest(manifest: dict[str, Any]) -> tuple[list[str], list[str]]:
    """Return (errors, warnings) as display strings."""
    errors: list[str] = []
    warnings: list[str] = []
    for issue in validate_manifest_issues(manifest):
        (errors if issue.severity == "error" else warnings).append(str(issue))
    return errors, warnings
