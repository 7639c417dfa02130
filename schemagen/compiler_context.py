"""Build the template context for the generated Python compiler module.

Every expression the template needs (annotations, build calls, key and
pattern literals) is computed here as ready-to-paste Python source, so
compiler.py.j2 only arranges lines. Literals go through repr() and are
therefore always valid Python, whatever the schema keys contain.
"""

from __future__ import annotations

from typing import Any

from .builder import DOCUMENT, PROTOBUF_ANY
from .config import GeneratorConfig
from .domain import ARRAY, BLOB, ONEOF, Domain, Property, Type
from .naming import is_scalar, python_scalar
from .proto_context import comment_lines

# Scalar kind -> runtime converter
_SCALAR_BUILDERS: dict[str, str] = {
    "string": "runtime.string_value",
    "bool": "runtime.bool_value",
    "int": "runtime.int_value",
    "float": "runtime.float_value",
}


def docstring(text: str | None, indent: str = "    ") -> str:
    """Return a triple-quoted docstring literal for free text, or ""."""
    lines = comment_lines(text)
    if not lines:
        return ""
    lines = [line.replace("\\", "\\\\").replace('"', '\\"') for line in lines]
    if len(lines) == 1:
        return f'"""{lines[0]}"""'
    body = "\n".join(indent + line if line else "" for line in lines[1:])
    return f'"""{lines[0]}\n{body}\n{indent}"""'


def annotation(prop: Property) -> str:
    if prop.type == PROTOBUF_ANY:
        return "object"
    item = python_scalar(prop.type) if is_scalar(prop.type) else prop.type
    return f"list[{item}]" if prop.repeated else item


def declaration(prop: Property) -> str:
    """Return the annotation and default of an optional dataclass field."""
    if prop.type == PROTOBUF_ANY:
        return "object = None"
    return f"{annotation(prop)} | None = None"


def builder(prop: Property, types: dict[str, Type]) -> str:
    """Return the callable that builds one value of the property's type."""
    if is_scalar(prop.type):
        return _SCALAR_BUILDERS[prop.type]
    return types[prop.type].function_name


def _options(prop: Property) -> str:
    return f", allowed={prop.enum!r}" if prop.enum else ""


def build_call(prop: Property, types: dict[str, Type], node: str, context: str) -> str:
    """Return the expression building prop's value from node."""
    call = builder(prop, types)
    if prop.repeated and not prop.is_bag:
        return f"runtime.build_list({node}, {context}, {call}{_options(prop)})"
    return f"{call}({node}, {context}{_options(prop)})"


def _alternative(prop: Property, types: dict[str, Type]) -> str:
    call = builder(prop, types)
    if prop.enum:
        return f"functools.partial({call}, allowed={prop.enum!r})"
    return call


def _struct(t: Type, types: dict[str, Type]) -> dict[str, Any]:
    fields = []
    for p in t.fields:
        key = repr(p.name)
        fields.append({
            "field_name": p.field_name,
            "declaration": declaration(p),
            "key": key,
            "build": build_call(p, types, f"keys.fields[{key}]", f"context.child({key})"),
        })

    bags = []
    for p in t.properties:
        if not p.is_bag:
            continue
        pair = types[p.type]
        value = pair.property_named("value")
        bags.append({
            "field_name": p.field_name,
            "pair_type": p.type,
            "source": "keys.unknown" if p.pattern is None else f"keys.bags[{p.pattern!r}]",
            "value_build": build_call(value, types, "value", "context.child(key)"),
        })

    return {
        "fields": fields,
        "bags": bags,
        "field_keys": repr(tuple(p.name for p in t.fields)),
        "patterns": repr(tuple(p.pattern for p in t.bags)),
        "required": repr(t.required) if t.required else "",
        "warn_unknown": t.additional is None,
    }


def _oneof(t: Type, types: dict[str, Type]) -> dict[str, Any]:
    return {
        "fields": [
            {"field_name": p.field_name, "declaration": declaration(p)}
            for p in t.properties
        ],
        "field_names": repr(tuple(p.field_name for p in t.properties)),
        "alternatives": [
            {"field_name": repr(p.field_name), "build": _alternative(p, types)}
            for p in t.properties
        ],
    }


def _array(t: Type, types: dict[str, Type]) -> dict[str, Any]:
    element = t.properties[0]
    node = "runtime.as_list(node)" if t.accepts_single else "node"
    return {
        "element": {
            "field_name": element.field_name,
            "declaration": f"{annotation(element)} = dataclasses.field(default_factory=list)",
            "build": build_call(element, types, node, "context"),
        },
    }


def _type(t: Type, types: dict[str, Type]) -> dict[str, Any]:
    context = {
        "name": t.name,
        "kind": t.kind,
        "function_name": t.function_name,
        "docstring": docstring(t.description),
    }
    if t.kind == ONEOF:
        context.update(_oneof(t, types))
    elif t.kind == ARRAY:
        context.update(_array(t, types))
    elif t.kind == BLOB:
        context["fields"] = [
            {"field_name": p.field_name, "declaration": declaration(p)} for p in t.properties
        ]
    else:
        context.update(_struct(t, types))
    return context


def build_compiler_context(domain: Domain, config: GeneratorConfig) -> dict[str, Any]:
    """Build the full template context for compiler.py.j2."""
    types = {t.name: t for t in domain}
    return {
        "license": comment_lines(config.license),
        "package": config.package_name,
        "package_name": repr(config.package_name),
        "pattern_names": [
            (repr(pattern), repr(role)) for pattern, role in domain.classifier.pairs()
        ],
        "uses_partial": any(
            p.enum for t in domain if t.kind == ONEOF for p in t.properties
        ),
        "root": DOCUMENT,
        "root_function": types[DOCUMENT].function_name,
        "types": [_type(t, types) for t in domain],
    }
