"""In-memory JSON Schema graph with reference and allOf resolution.

Handles the draft-04 subset found in the OpenAPI description schemas:
- $ref to local definitions and to other registered documents
- properties / patternProperties / additionalProperties
- items (single schema or list)
- allOf / oneOf / anyOf
- enum, required, definitions, format

After resolve_refs() and resolve_all_ofs() the only references left are
named links to local schemas that are modeled as types.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from .errors import ModelingError, ResolutionError

logger = logging.getLogger(__name__)

# JSON Schema keyword -> Schema attribute, by value shape
_SCHEMA_MAPS = {
    "properties": "properties",
    "patternProperties": "pattern_properties",
    "definitions": "definitions",
}
_SCHEMA_LISTS = {
    "allOf": "all_of",
    "oneOf": "one_of",
    "anyOf": "any_of",
}
_SCALARS = {
    "$ref": "ref",
    "id": "id",
    "type": "type",
    "format": "format",
    "description": "description",
    "enum": "enum",
    "required": "required",
}


def normalize_uri(uri: str) -> str:
    """Drop an empty trailing fragment so ids and ref bases compare equal."""
    return uri[:-1] if uri.endswith("#") else uri


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


@dataclass
class Schema:
    """One node of a schema graph."""

    ref: str | None = None
    id: str | None = None
    type: str | list[str] | None = None
    format: str | None = None
    description: str | None = None
    properties: dict[str, Schema] | None = None
    pattern_properties: dict[str, Schema] | None = None
    additional_properties: bool | Schema | None = None
    items: Schema | list[Schema] | None = None
    all_of: list[Schema] | None = None
    one_of: list[Schema] | None = None
    any_of: list[Schema] | None = None
    enum: list[Any] | None = None
    required: list[str] | None = None
    definitions: dict[str, Schema] | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, path: str = "#") -> Schema:
        """Parse a decoded JSON/YAML value into a schema tree."""
        if isinstance(data, bool):
            # draft-04 allows true/false in a few places; true accepts anything
            return cls() if data else cls(extras={"not": {}})
        if not isinstance(data, Mapping):
            raise ModelingError(path, f"expected a schema object, got {type(data).__name__}")

        schema = cls()
        for key, value in data.items():
            if key == "required" and not isinstance(value, list):
                schema.extras[key] = value
            elif key in _SCALARS:
                setattr(schema, _SCALARS[key], copy.deepcopy(value))
            elif key in _SCHEMA_MAPS:
                if not isinstance(value, Mapping):
                    raise ModelingError(f"{path}/{key}", "expected an object")
                setattr(schema, _SCHEMA_MAPS[key], {
                    name: cls.from_dict(sub, f"{path}/{key}/{name}")
                    for name, sub in value.items()
                })
            elif key in _SCHEMA_LISTS:
                if not isinstance(value, list):
                    raise ModelingError(f"{path}/{key}", "expected an array")
                setattr(schema, _SCHEMA_LISTS[key], [
                    cls.from_dict(sub, f"{path}/{key}/{i}") for i, sub in enumerate(value)
                ])
            elif key == "additionalProperties":
                schema.additional_properties = (
                    value if isinstance(value, bool)
                    else cls.from_dict(value, f"{path}/{key}")
                )
            elif key == "items":
                if isinstance(value, list):
                    schema.items = [
                        cls.from_dict(sub, f"{path}/items/{i}") for i, sub in enumerate(value)
                    ]
                else:
                    schema.items = cls.from_dict(value, f"{path}/items")
            else:
                schema.extras[key] = copy.deepcopy(value)
        return schema

    def type_is(self, name: str) -> bool:
        if isinstance(self.type, list):
            return name in self.type
        return self.type == name

    def is_empty(self) -> bool:
        """True when the schema places no modeled constraint on a value."""
        return (
            self.ref is None
            and self.type is None
            and not self.properties
            and not self.pattern_properties
            and not isinstance(self.additional_properties, Schema)
            and self.additional_properties is not False
            and self.items is None
            and not self.all_of
            and not self.one_of
            and not self.any_of
            and self.enum is None
        )

    def models_as_type(self) -> bool:
        """True when the schema becomes a named Type rather than inline."""
        return bool(
            self.type_is("object")
            or self.properties
            or self.pattern_properties
            or isinstance(self.additional_properties, Schema)
            or self.one_of
            or self.any_of
        )

    def children(self) -> Iterator[Schema]:
        """Yield the directly nested schemas."""
        for attr in ("properties", "pattern_properties", "definitions"):
            yield from (getattr(self, attr) or {}).values()
        for attr in ("all_of", "one_of", "any_of"):
            yield from getattr(self, attr) or []
        if isinstance(self.additional_properties, Schema):
            yield self.additional_properties
        if isinstance(self.items, Schema):
            yield self.items
        elif self.items:
            yield from self.items

    def walk(self) -> Iterator[Schema]:
        """Yield this schema and every nested schema, depth first."""
        yield self
        for child in self.children():
            yield from child.walk()

    def resolve_pointer(self, fragment: str) -> Schema:
        """Return the schema addressed by a JSON pointer fragment."""
        node: Any = self
        if fragment in ("", "/"):
            return self
        if not fragment.startswith("/"):
            raise ResolutionError(f"unsupported reference fragment {fragment!r}")
        for token in (_unescape(t) for t in fragment[1:].split("/")):
            node = _step(node, token)
            if node is None:
                raise ResolutionError(f"unable to resolve pointer #{fragment}")
        if not isinstance(node, Schema):
            raise ResolutionError(f"pointer #{fragment} does not address a schema")
        return node

    def assign(self, other: Schema) -> None:
        """Replace every attribute with the one of other."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))

    def absorb(self, other: Schema) -> None:
        """Merge other into this schema; other wins on conflicts."""
        for attr in ("properties", "pattern_properties", "definitions"):
            incoming = getattr(other, attr)
            if incoming:
                merged = dict(getattr(self, attr) or {})
                merged.update(incoming)
                setattr(self, attr, merged)
        if other.required:
            required = list(self.required or [])
            required.extend(r for r in other.required if r not in required)
            self.required = required
        for attr in (
            "type", "format", "description", "additional_properties",
            "items", "one_of", "any_of", "enum",
        ):
            value = getattr(other, attr)
            if value is not None:
                setattr(self, attr, value)
        self.extras.update(other.extras)

    def resolve_refs(self, documents: Mapping[str, Schema] | None = None) -> None:
        """Replace $ref nodes by their targets, keeping links to types."""
        _RefResolver(self, documents or {}).expand(self, base="", stack=())

    def resolve_all_ofs(self, documents: Mapping[str, Schema] | None = None) -> None:
        """Merge every allOf list into the schema that declares it."""
        _merge_tree(self, _RefResolver(self, documents or {}), stack=())


def _step(node: Any, token: str) -> Any:
    """Follow one JSON pointer token through a Schema or container."""
    if isinstance(node, Schema):
        if token in _SCHEMA_MAPS:
            return getattr(node, _SCHEMA_MAPS[token])
        if token in _SCHEMA_LISTS:
            return getattr(node, _SCHEMA_LISTS[token])
        if token == "additionalProperties":
            return node.additional_properties
        if token == "items":
            return node.items
        return None
    if isinstance(node, dict):
        return node.get(token)
    if isinstance(node, list):
        try:
            return node[int(token)]
        except (ValueError, IndexError):
            return None
    return None


class _RefResolver:
    """Look up references against the root document and registered ones."""

    def __init__(self, root: Schema, documents: Mapping[str, Schema]) -> None:
        self.root = root
        self.documents = documents
        self.root_uri = normalize_uri(root.id or "")

    def lookup(self, ref: str, base: str) -> tuple[Schema, str, str]:
        """Return (target, document uri, canonical ref) for a reference."""
        uri, _, fragment = ref.partition("#")
        uri = normalize_uri(uri) or base
        if uri == self.root_uri:
            uri = ""
        if uri:
            document = self.documents.get(uri)
            if document is None:
                raise ResolutionError(f"unable to resolve {ref}: unknown document {uri}")
        else:
            document = self.root
        try:
            target = document.resolve_pointer(fragment)
        except ResolutionError as err:
            raise ResolutionError(f"unable to resolve {ref}: {err}") from err
        return target, uri, f"{uri}#{fragment}"

    def models_as_type(self, schema: Schema, seen: tuple[str, ...] = ()) -> bool:
        """Like Schema.models_as_type, also looking through unmerged allOf entries."""
        if schema.models_as_type():
            return True
        for sub in schema.all_of or []:
            if sub.ref is None:
                if self.models_as_type(sub, seen):
                    return True
                continue
            target, _, canonical = self.lookup(sub.ref, "")
            if canonical not in seen and self.models_as_type(target, (*seen, canonical)):
                return True
        return False

    def expand(self, schema: Schema, base: str, stack: tuple[str, ...]) -> None:
        if schema.ref is not None:
            target, uri, canonical = self.lookup(schema.ref, base)
            if not uri and self.models_as_type(target):
                schema.ref = canonical
                return
            if canonical in stack:
                chain = " -> ".join((*stack, canonical))
                raise ResolutionError(f"cyclic reference: {chain}")
            logger.debug("substituting %s", canonical)
            replacement = copy.deepcopy(target)
            if uri:
                _absolutize(replacement, uri)
            schema.assign(replacement)
            self.expand(schema, uri, (*stack, canonical))
            return
        for child in schema.children():
            self.expand(child, base, stack)


def _absolutize(schema: Schema, uri: str) -> None:
    """Rewrite document-relative refs copied out of another document."""
    for node in schema.walk():
        if node.ref is not None and node.ref.startswith("#"):
            node.ref = uri + node.ref


def _merge_tree(schema: Schema, resolver: _RefResolver, stack: tuple[int, ...]) -> None:
    _merge_all_of(schema, resolver, stack)
    for child in schema.children():
        _merge_tree(child, resolver, stack)


def _merge_all_of(schema: Schema, resolver: _RefResolver, stack: tuple[int, ...]) -> None:
    if not schema.all_of:
        return
    if id(schema) in stack:
        raise ResolutionError("cyclic allOf merge")
    inner = (*stack, id(schema))
    merged = Schema()
    for sub in schema.all_of:
        source = sub
        if sub.ref is not None:
            source, _, canonical = resolver.lookup(sub.ref, "")
            if id(source) in inner or any(node is schema for node in source.walk()):
                raise ResolutionError(f"cyclic allOf merge through {canonical}")
        _merge_tree(source, resolver, inner)
        merged.absorb(copy.deepcopy(source))
    own = copy.copy(schema)
    own.all_of = None
    merged.absorb(own)
    merged.all_of = None
    schema.assign(merged)
