"""Render templates and write generated output.

Takes the Domain and GeneratorConfig and produces two files:
  <filename>.proto     the protocol-buffer IDL
  <module_name>.py     the Python compiler for the same messages
Rendering is pure; only generate() touches the filesystem.
"""

from __future__ import annotations

import logging
from pathlib import Path

import jinja2

from .compiler_context import build_compiler_context
from .config import GeneratorConfig
from .domain import Domain
from .errors import GenerationError
from .proto_context import build_proto_context

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


def _environment() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )


def _render(template_name: str, context: dict) -> str:
    try:
        return _environment().get_template(template_name).render(**context)
    except jinja2.TemplateError as err:
        raise GenerationError(template_name, str(err)) from err


def emit_proto(domain: Domain, config: GeneratorConfig) -> str:
    """Return the .proto source for the domain."""
    return _render("proto.j2", build_proto_context(domain, config))


def emit_compiler(domain: Domain, config: GeneratorConfig) -> str:
    """Return the Python compiler module source for the domain."""
    return _render("compiler.py.j2", build_compiler_context(domain, config))


def _write(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as err:
        raise GenerationError(str(path), f"unable to write: {err}") from err


def generate(domain: Domain, config: GeneratorConfig, output_dir: Path | str = ".") -> list[Path]:
    """Render both artifacts and write them to output_dir."""
    output_dir = Path(output_dir)
    artifacts = [
        (output_dir / f"{config.filename}.proto", emit_proto(domain, config)),
        (output_dir / f"{config.module_name}.py", emit_compiler(domain, config)),
    ]
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise GenerationError(str(output_dir), f"unable to create directory: {err}") from err

    paths = []
    for path, text in artifacts:
        _write(path, text)
        logger.debug("wrote %d bytes to %s", len(text), path)
        print(f"Generated {path} ({len(domain)} messages)")
        paths.append(path)
    return paths
