"""Derive identifiers shared by the IDL and the generated compiler.

Every name computed here is stored on the domain model once and then read
by both emitters, so the two artifacts always spell a field the same way.

Examples:
  operationId      -> operation_id
  $ref             -> _ref
  in               -> in_
  200              -> _200
  jsonReference    -> JsonReference  (type name)
  JsonReference    -> new_json_reference  (build function)
"""

from __future__ import annotations

import keyword
import re

# Field names that would clash inside generated dataclasses
_RESERVED_FIELDS = {"to_node", "which", "self", "dataclasses"}

# Type names that would shadow names imported by generated compilers
_RESERVED_TYPES = {"PropertyClassifier"}

# JSON Schema scalar type -> domain scalar kind
SCALAR_KINDS: dict[str, str] = {
    "string": "string",
    "boolean": "bool",
    "integer": "int",
    "number": "float",
}

# Formats accepted for each JSON Schema scalar type
SCALAR_FORMATS: dict[str, frozenset[str]] = {
    "string": frozenset({
        "uri", "uri-reference", "email", "date", "date-time", "byte",
        "binary", "password", "regex", "uuid", "hostname", "ipv4", "ipv6",
    }),
    "boolean": frozenset(),
    "integer": frozenset({"int32", "int64"}),
    "number": frozenset({"float", "double"}),
}

_PROTO_SCALARS: dict[str, str] = {
    "string": "string",
    "bool": "bool",
    "int": "int64",
    "float": "double",
}

_PROTO_FORMATS: dict[tuple[str, str], str] = {
    ("int", "int32"): "int32",
    ("float", "float"): "float",
}

_PYTHON_SCALARS: dict[str, str] = {
    "string": "str",
    "bool": "bool",
    "int": "int",
    "float": "float",
}


def camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def title(word: str) -> str:
    """Capitalize the first letter only, keeping the rest as written."""
    return word[:1].upper() + word[1:]


def field_name_for_key(key: str) -> str:
    """Return the field identifier for a schema key.

    Raises ValueError when nothing usable is left after sanitization.
    """
    name = camel_to_snake(key)
    name = re.sub(r"[^a-z0-9_]", "_", name)
    leading = name.startswith("_")
    name = re.sub(r"_+", "_", name).strip("_")
    if not name:
        raise ValueError(f"{key!r} has no identifier characters")
    if leading or name[0].isdigit():
        name = "_" + name
    if keyword.iskeyword(name) or name in _RESERVED_FIELDS:
        name += "_"
    return name


def type_name_for_stub(stub: str) -> str:
    """Return a capitalized type name for a definition or property name."""
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", stub) if p]
    name = "".join(title(p) for p in parts)
    if not name or not name[0].isalpha():
        raise ValueError(f"{stub!r} does not start with a letter")
    if keyword.iskeyword(name) or name in _RESERVED_TYPES:
        raise ValueError(f"{name!r} is reserved")
    return name


def function_name_for_type(type_name: str) -> str:
    """Return the name of the generated build function for a type."""
    return "new_" + camel_to_snake(type_name)


def is_scalar(type_name: str) -> bool:
    return type_name in _PROTO_SCALARS


def proto_scalar(kind: str, fmt: str | None = None) -> str:
    """Return the proto type for a scalar kind."""
    return _PROTO_FORMATS.get((kind, fmt or ""), _PROTO_SCALARS[kind])


def python_scalar(kind: str) -> str:
    """Return the Python annotation for a scalar kind."""
    return _PYTHON_SCALARS[kind]
