# erd_gen/config.py
from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .constants import COLUMNS_DEFAULT, FONTNAME_DEFAULT, OUTPUT_PATH_DEFAULT
from .fmt import check_columns
from .io import load_yaml_mapping
from .mapper import NodeTransform, compose_transform

KNOWN_KEYS = {
    "output_path",
    "fontname",
    "columns",
    "manifest",
    "models",
    "exclude",
    "clusters",
    "map_node",
}


class ConfigError(ValueError):
    """Invalid or incomplete configuration."""


@dataclass(frozen=True)
class ErdConfig:
    output_path: Path = Path(OUTPUT_PATH_DEFAULT)
    fontname: str = FONTNAME_DEFAULT
    columns: tuple[str, ...] = COLUMNS_DEFAULT
    manifest: Optional[Path] = None
    models: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    clusters: dict[str, tuple[str, ...]] = field(default_factory=dict)
    map_node: Optional[str] = None

    def node_transform(self) -> NodeTransform:
        return compose_transform(
            exclude=self.exclude,
            clusters=self.clusters,
            map_node=import_callable(self.map_node) if self.map_node else None,
        )


def import_callable(ref: str) -> NodeTransform:
    """Resolve a `package.module:function` reference."""
    module_name, sep, attr_path = ref.partition(":")
    if not sep or not module_name or not attr_path:
        raise ConfigError(f"map_node must look like 'package.module:function', got {ref!r}")

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"cannot import map_node module {module_name!r}: {e}") from e

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise ConfigError(f"{module_name!r} has no attribute {attr_path!r}") from e

    if not callable(obj):
        raise ConfigError(f"map_node {ref!r} is not callable")
    return obj


def _str_list(value: Any, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split(",") if v.strip())
    if not isinstance(value, list):
        raise ConfigError(f"config.{key} must be a list of strings")
    return tuple(str(v) for v in value)


def config_from_mapping(data: dict[str, Any], *, base_dir: Path = Path(".")) -> ErdConfig:
    unknown = sorted(set(data) - KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(unknown)}")

    clusters_raw = data.get("clusters") or {}
    if not isinstance(clusters_raw, dict):
        raise ConfigError("config.clusters must map cluster names to lists of patterns")
    clusters = {
        str(name): _str_list(patterns, f"clusters.{name}")
        for name, patterns in clusters_raw.items()
    }

    try:
        columns = check_columns(data.get("columns", list(COLUMNS_DEFAULT)))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"config.columns: {e}") from e

    manifest = data.get("manifest")
    output_path = data.get("output_path")
    map_node = data.get("map_node")

    return ErdConfig(
        output_path=Path(output_path) if output_path else Path(OUTPUT_PATH_DEFAULT),
        fontname=str(data.get("fontname") or FONTNAME_DEFAULT),
        columns=columns,
        manifest=(base_dir / str(manifest)) if manifest else None,
        models=_str_list(data.get("models"), "models"),
        exclude=_str_list(data.get("exclude"), "exclude"),
        clusters=clusters,
        map_node=str(map_node) if map_node else None,
    )


def load_config(path: Path) -> ErdConfig:
    """Load the config file; a missing file means all defaults."""
    if not path.exists():
        return ErdConfig()
    return config_from_mapping(load_yaml_mapping(path), base_dir=path.parent)
