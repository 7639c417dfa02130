"""Entry point: python -m schemagen

Reads a JSON Schema (openapi-2.0.json by default), generates
<filename>/<filename>.proto and <filename>/<module_name>.py.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .builder import build_domain
from .codegen import generate
from .config import BASE_SCHEMA, config_for_version, version_input
from .errors import GeneratorError
from .loader import SchemaStore

logger = logging.getLogger("schemagen")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="schemagen",
        description="Generate a .proto file and a Python compiler from a JSON Schema.",
    )
    parser.add_argument(
        "--v2", dest="version", action="store_const", const="v2", default="v2",
        help="use the OpenAPI 2.0 preset (default)",
    )
    parser.add_argument(
        "--v3", dest="version", action="store_const", const="v3",
        help="use the OpenAPI 3.0 preset",
    )
    parser.add_argument("--schema", help="input schema file or URL (default: preset input)")
    parser.add_argument(
        "--base-schema", type=Path, default=Path(BASE_SCHEMA),
        help="JSON Schema meta-schema registered for offline references",
    )
    parser.add_argument("--output", type=Path, help="output directory (default: preset filename)")
    parser.add_argument("--license-file", type=Path, help="text prepended to both artifacts")
    parser.add_argument("--verbose", action="store_true", help="log the type model")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> list[Path]:
    """Load, resolve, model and emit according to parsed arguments."""
    license_text = ""
    if args.license_file is not None:
        try:
            license_text = args.license_file.read_text(encoding="utf-8")
        except OSError as err:
            raise GeneratorError(f"unable to read {args.license_file}: {err}") from err
    config = config_for_version(args.version, license=license_text)

    store = SchemaStore()
    if args.base_schema.exists():
        store.load(args.base_schema)
    else:
        logger.info("%s not found, references to it will be fetched", args.base_schema)

    source = args.schema or version_input(args.version)
    logger.info("Loading %s", source)
    root = store.load(source)
    root.resolve_refs(store)
    root.resolve_all_ofs(store)

    domain = build_domain(root, config.pattern_names)
    return generate(domain, config, args.output or Path(config.filename))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        run(args)
    except GeneratorError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
