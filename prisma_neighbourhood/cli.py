from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

from .config import ConfigError, find_default_config, load_config
from .constants import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_RENDERER,
    IMAGE_EXTENSIONS,
    SUPPORTED_EXTENSIONS,
    VERSION,
)
from .renderers.mmdc import ExportError
from .renderers.registry import RENDERERS, RendererRegistry
from .schema_parser import SchemaParseError, load_schema
from .traversal import TraversalOptions, traverse_entities
from .validate import validate_schema
from .writer import write_md, write_mmd


def _non_negative_int(raw: str) -> int:
    try:
        value = int(raw, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid depth value: {raw!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"invalid depth value: {raw!r} (must be >= 0)")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prisma-neighbourhood",
        description=(
            "Generate an Entity-Relationship Diagram of the neighbourhood of one "
            "model, view or enum in a Prisma schema."
        ),
    )
    parser.add_argument(
        "-s",
        "--schema",
        type=str,
        default=None,
        help="Path to the Prisma schema file, or a directory of .prisma files.",
    )
    parser.add_argument(
        "-m",
        "--model",
        type=str,
        default=None,
        help="Name of the model, view or enum to start traversal from.",
    )
    parser.add_argument(
        "-d",
        "--depth",
        type=_non_negative_int,
        default=None,
        help=f"Traversal depth (default: {DEFAULT_MAX_DEPTH}).",
    )
    parser.add_argument(
        "-r",
        "--renderer",
        type=str,
        default=None,
        help=f"Diagram renderer (default: {DEFAULT_RENDERER}).",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help=(
            "Output file; the extension selects the format: .mmd, .md (text) or "
            ".svg, .png, .pdf (image). Defaults to stdout."
        ),
    )
    parser.add_argument(
        "--list-renderers",
        action="store_true",
        help="Show available renderers and exit.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail on schema validation warnings. Errors always fail.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with defaults for the options above.",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def _fail(message: str, code: int = 1) -> NoReturn:
    print(f"error: {message}", file=sys.stderr)
    raise SystemExit(code)


def list_renderers(registry: RendererRegistry) -> None:
    print("Available renderers:\n")
    for spec in registry.list():
        default_marker = " (default)" if spec.name == registry.default_name else ""
        export_support = " [supports SVG/PNG/PDF export]" if spec.supports_export else ""
        print(f"  {spec.name}{default_marker}")
        print(f"    {spec.description}{export_support}")
        print()


def _merge_options(args: argparse.Namespace) -> dict[str, Any]:
    """Command-line flags win over config file values, which win over defaults."""
    config_path: Optional[Path] = args.config
    if config_path is None:
        config_path = find_default_config(Path.cwd())

    file_values: dict[str, Any] = {}
    if config_path is not None:
        file_values = load_config(config_path)

    merged: dict[str, Any] = {
        "schema": None,
        "model": None,
        "depth": DEFAULT_MAX_DEPTH,
        "renderer": DEFAULT_RENDERER,
        "output": None,
        "strict": False,
    }
    merged.update(file_values)
    for key in merged:
        value = getattr(args, key)
        if value is not None:
            merged[key] = value
    return merged


def main(argv: Optional[list[str]] = None, registry: RendererRegistry = RENDERERS) -> None:
    """CLI entrypoint."""
    args = build_parser().parse_args(argv)

    if args.list_renderers:
        list_renderers(registry)
        return

    try:
        opts = _merge_options(args)
    except ConfigError as e:
        _fail(str(e))

    if not opts["schema"]:
        _fail("missing required option: --schema <path>")
    if not opts["model"]:
        _fail("missing required option: --model <name>")

    renderer = registry.get(opts["renderer"])
    if renderer is None:
        _fail(
            f'unknown renderer "{opts["renderer"]}" '
            f"(available renderers: {', '.join(registry.names())})"
        )

    output: Optional[Path] = Path(opts["output"]) if opts["output"] else None
    ext = output.suffix.lower() if output is not None else ""
    if output is not None:
        if ext not in SUPPORTED_EXTENSIONS:
            _fail(
                f'unsupported file extension "{ext}". '
                f"Supported: {', '.join(SUPPORTED_EXTENSIONS)}"
            )
        if ext in IMAGE_EXTENSIONS and not renderer.supports_export:
            _fail(f'renderer "{renderer.name}" does not support export to {ext[1:]}')

    try:
        schema = load_schema(Path(opts["schema"]))
    except SchemaParseError as e:
        _fail(str(e))

    errors, warnings = validate_schema(schema)
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)

    if errors or (opts["strict"] and warnings):
        for error in errors:
            print(f"error: {error}", file=sys.stderr)
        raise SystemExit(2)

    result = traverse_entities(
        schema, TraversalOptions(start_entity=opts["model"], max_depth=opts["depth"])
    )
    if not result.success:
        _fail(str(result.error))

    diagram = renderer.render(result.entities)

    if output is None:
        print(diagram)
        return

    if ext in IMAGE_EXTENSIONS:
        export = renderer.export
        if export is None:
            _fail(f'renderer "{renderer.name}" does not support export to {ext[1:]}')
        try:
            export(diagram, output, ext[1:])
        except ExportError as e:
            _fail(str(e))
        print(f"Diagram exported to {output}")
        return

    try:
        if ext == ".md":
            title = f"{opts['model']} neighbourhood (depth {opts['depth']})"
            write_md(output, title, diagram)
        else:
            write_mmd(output, diagram)
    except OSError as e:
        _fail(f"failed to write {output}: {e.strerror or e}")
    print(f"Diagram written to {output}")
