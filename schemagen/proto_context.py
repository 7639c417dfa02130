"""Build the template context for the .proto artifact.

One message per Type in domain order and one field per Property, numbered
with the numbers the DomainBuilder assigned. One-of types wrap their
fields in a oneof block; bags render as repeated Named<X> pair fields,
which keep document order where a proto map would not.
"""

from __future__ import annotations

from typing import Any

from .builder import PROTOBUF_ANY
from .config import GeneratorConfig, ProtoOption
from .domain import ONEOF, Domain, Property, Type
from .naming import is_scalar, proto_scalar

_ANY_IMPORT = "google/protobuf/any.proto"


def comment_lines(text: str | None) -> list[str]:
    """Split free text into lines suitable for line comments."""
    if not text:
        return []
    return [line.rstrip() for line in text.strip().splitlines()]


def proto_type(prop: Property) -> str:
    if is_scalar(prop.type):
        return proto_scalar(prop.type, prop.format)
    return prop.type


def _option_line(option: ProtoOption) -> str:
    if option.value in ("true", "false"):
        value = option.value
    else:
        value = '"' + option.value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return f"option {option.name} = {value};"


def _field_line(prop: Property) -> str:
    line = f"{proto_type(prop)} {prop.field_name} = {prop.number};"
    if prop.repeated:
        line = "repeated " + line
    return line


def _message(t: Type) -> dict[str, Any]:
    return {
        "name": t.name,
        "description": comment_lines(t.description),
        "oneof": t.kind == ONEOF,
        "fields": [
            {"description": comment_lines(p.description), "line": _field_line(p)}
            for p in t.properties
        ],
    }


def build_proto_context(domain: Domain, config: GeneratorConfig) -> dict[str, Any]:
    """Build the full template context for proto.j2."""
    imports = []
    if any(p.type == PROTOBUF_ANY for t in domain for p in t.properties):
        imports.append(_ANY_IMPORT)

    return {
        "license": comment_lines(config.license),
        "package_name": config.package_name,
        "imports": imports,
        "options": [
            {"comment": comment_lines(option.comment), "line": _option_line(option)}
            for option in config.options
        ],
        "messages": [_message(t) for t in domain],
    }
