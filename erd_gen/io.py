# erd_gen/io.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .entities import EntityDescriptor, entity_from_mapping

MANIFEST_SUFFIXES: tuple[str, ...] = (".yaml", ".yml")


def load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Load a YAML file whose top level must be a mapping (empty file -> {})."""
    raw = path.read_text(encoding="utf-8")

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(
            f"Top-level YAML must be a mapping in {path}, got {type(data).__name__}"
        )
    return data


def _merge_part(
    merged: dict[str, Any],
    part: dict[str, Any],
    *,
    src_path: Path,
    origins: dict[str, Path],
) -> None:
    """Merge one manifest file into `merged`.

    `entities` lists are concatenated in file order. An entity id that an
    earlier file already declared is an error naming both files; repeats
    within one file are left to the validator. Any other key must agree
    across files.
    """
    for key, value in part.items():
        if key == "entities" and isinstance(value, list):
            for item in value:
                entity_id = item.get("id") if isinstance(item, dict) else None
                if not isinstance(entity_id, str):
                    continue
                first = origins.setdefault(entity_id, src_path)
                if first != src_path:
                    raise ValueError(
                        f"entity {entity_id!r} in {src_path} is already declared in {first}"
                    )
            existing = merged.get(key, [])
            if isinstance(existing, list):
                merged[key] = existing + value
                continue

        if key not in merged or merged[key] == value:
            merged[key] = value
            continue

        raise ValueError(
            f"Manifest merge conflict on key {key!r} from {src_path}: "
            f"{merged[key]!r} != {value!r}"
        )


def manifest_files(path: Path) -> list[Path]:
    """Files making up a manifest: the file itself, or a directory's YAML files in name order."""
    if not path.exists():
        raise FileNotFoundError(str(path))
    if path.is_file():
        return [path]
    return sorted(p for p in path.iterdir() if p.is_file() and p.suffix in MANIFEST_SUFFIXES)


def load_manifest(path: Path) -> dict[str, Any]:
    """Load an entity manifest (single YAML file or a directory of them)."""
    merged: dict[str, Any] = {}
    origins: dict[str, Path] = {}
    for part_path in manifest_files(path):
        _merge_part(merged, load_yaml_mapping(part_path), src_path=part_path, origins=origins)
    return merged


def entities_from_manifest(manifest: dict[str, Any]) -> list[EntityDescriptor]:
    items = manifest.get("entities", []) or []
    if not isinstance(items, list):
        raise TypeError("manifest.entities must be a list")
    return [entity_from_mapping(item) for item in items]
