# erd_gen/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from .config import ConfigError, load_config
from .constants import CONFIG_PATH_DEFAULT
from .entities import EntityDescriptor
from .formats.registry import FORMATS, UnsupportedFormatError, format_for_path
from .io import entities_from_manifest, load_manifest
from .pipeline import generate
from .scan import scan_models
from .validate import validate_manifest
from .writer import write_text


def _fail(message: str) -> NoReturn:
    print(f"error: {message}", file=sys.stderr)
    raise SystemExit(2)


def _load_entities(
    manifest: Optional[Path], models: Sequence[str], strict: bool
) -> list[EntityDescriptor]:
    if manifest is not None:
        data = load_manifest(manifest)

        errors, warnings = validate_manifest(data)
        for warning in warnings:
            print(f"warning: {warning}", file=sys.stderr)

        if errors or (strict and warnings):
            for error in errors:
                print(f"error: {error}", file=sys.stderr)
            raise SystemExit(2)

        return entities_from_manifest(data)

    if models:
        return scan_models(models)

    _fail(
        "no entity source configured; pass --manifest or --models "
        "(or set `manifest`/`models` in the config file)"
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entrypoint."""
    extensions = ", ".join(spec.extension for spec in FORMATS)
    titles = ", ".join(spec.title for spec in FORMATS)

    parser = argparse.ArgumentParser(
        description=f"Generate an entity relationship diagram ({titles})."
    )
    parser.add_argument(
        "--output-path",
        type=Path,
        default=None,
        help=f"Output file; its extension selects the format ({extensions}). Default: erd.dot",
    )
    parser.add_argument(
        "--config-path",
        type=Path,
        default=Path(CONFIG_PATH_DEFAULT),
        help=f"YAML config file (default: {CONFIG_PATH_DEFAULT}; ignored when missing)",
    )
    parser.add_argument(
        "--manifest",
        type=Path,
        default=None,
        help="YAML entity manifest (a file or a directory of *.yaml files)",
    )
    parser.add_argument(
        "--models",
        type=str,
        default="",
        help="Comma-separated modules with SQLAlchemy models to scan instead of a manifest",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on manifest validation warnings (e.g., unknown relationship targets).",
    )

    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config_path)
    except (ConfigError, TypeError, ValueError) as e:
        _fail(f"{args.config_path}: {e}")

    output_path: Path = args.output_path or cfg.output_path
    try:
        spec = format_for_path(output_path)
    except UnsupportedFormatError as e:
        _fail(str(e))

    models = tuple(m.strip() for m in args.models.split(",") if m.strip()) or cfg.models
    manifest = args.manifest or cfg.manifest

    # map_node and model modules live in the project being diagrammed.
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        transform = cfg.node_transform()
        entities = _load_entities(manifest, models, args.strict)
    except (
        ConfigError,
        FileNotFoundError,
        ImportError,
        SQLAlchemyError,
        TypeError,
        ValueError,
    ) as e:
        _fail(str(e))

    output = generate(
        entities,
        spec.format_id,
        map_node=transform,
        fontname=cfg.fontname,
        columns=cfg.columns,
    )
    write_text(output_path, output)


if __name__ == "__main__":
    main()
