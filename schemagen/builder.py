"""Build the Domain from a resolved schema graph.

The root schema becomes the Document type and every definition that is
shaped like an object or a union becomes a named type. Along the way:
- inline object and union schemas are requested as anonymous types
  (<Property> or <Property>Item)
- patternProperties become catch-all bags named by the classifier role
- additionalProperties become an "additionalProperties" bag
- each bag value type gets a Named<X> (name, value) pair type
- Any and StringArray are always added

Anything that cannot be modeled raises ModelingError with the schema path;
no partial domain is ever returned.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Sequence

from .domain import (
    ADDITIONAL,
    ALTERNATIVE,
    ARRAY,
    BLOB,
    ELEMENT,
    ONEOF,
    STRUCT,
    Domain,
    Property,
    Type,
)
from .errors import ModelingError
from .naming import (
    SCALAR_FORMATS,
    SCALAR_KINDS,
    field_name_for_key,
    function_name_for_type,
    is_scalar,
    title,
    type_name_for_stub,
)
from .patterns import PatternRule, PropertyClassifier
from .schema import Schema

logger = logging.getLogger(__name__)

DOCUMENT = "Document"
ANY = "Any"
STRING_ARRAY = "StringArray"
PROTOBUF_ANY = "google.protobuf.Any"


def _pointer(path: str, *tokens: str) -> str:
    escaped = (t.replace("~", "~0").replace("/", "~1") for t in tokens)
    return path + "".join("/" + t for t in escaped)


def _ref_key(ref: str) -> str:
    """Return the property key implied by a reference (its last segment)."""
    fragment = ref.partition("#")[2]
    if not fragment:
        return "document"
    return fragment.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")


def _is_constraint_only(schema: Schema) -> bool:
    """True for union members that only restrict, like {"required": [...]}."""
    return (
        schema.ref is None
        and schema.type is None
        and not schema.properties
        and not schema.pattern_properties
        and not isinstance(schema.additional_properties, Schema)
        and schema.items is None
        and not schema.one_of
        and not schema.any_of
        and schema.enum is None
    )


def _array_pair(union: Sequence[Schema]) -> Schema | None:
    """Return X when the union is [X, array of X] in either order."""
    if len(union) != 2:
        return None
    first, second = union
    if second.type_is("array") and second.items == first:
        return first
    if first.type_is("array") and first.items == second:
        return second
    return None


class _Draft:
    """A type under construction."""

    def __init__(self, name: str, path: str, description: str | None = None) -> None:
        self.name = name
        self.path = path
        self.description = description
        self.kind = STRUCT
        self.properties: list[Property] = []
        self.required: tuple[str, ...] = ()
        self.open = False
        self.accepts_single = False
        self._keys: dict[str, str] = {}

    def add(self, name: str, type_name: str, **kwargs) -> Property:
        try:
            field_name = field_name_for_key(name)
        except ValueError as err:
            raise ModelingError(self.path, f"cannot name property {name!r}: {err}") from err
        if field_name in self._keys:
            raise ModelingError(
                self.path,
                f"properties {self._keys[field_name]!r} and {name!r} "
                f"both map to field {field_name!r}",
            )
        self._keys[field_name] = name
        prop = Property(
            name=name,
            field_name=field_name,
            type=type_name,
            number=len(self.properties) + 1,
            **kwargs,
        )
        self.properties.append(prop)
        return prop

    def freeze(self) -> Type:
        map_value_type = None
        if self.kind == STRUCT and len(self.properties) == 1 and self.properties[0].is_bag:
            map_value_type = self.properties[0].map_type
        return Type(
            name=self.name,
            function_name=function_name_for_type(self.name),
            kind=self.kind,
            properties=tuple(self.properties),
            required=self.required,
            open=self.open,
            accepts_single=self.accepts_single,
            map_value_type=map_value_type,
            description=self.description,
            schema_path=self.path,
        )


class DomainBuilder:
    """Walk a resolved schema and produce the Domain."""

    def __init__(self, classifier: PropertyClassifier) -> None:
        self.classifier = classifier
        self._types: dict[str, Type] = {}
        self._functions: dict[str, str] = {}
        # canonical ref -> (type name, schema, schema path)
        self._definitions: dict[str, tuple[str, Schema, str]] = {}
        self._definition_schemas: dict[str, Schema] = {}
        self._requests: deque[tuple[str, Schema, str]] = deque()
        self._requested: dict[str, Schema] = {}
        self._map_types: set[str] = set()

    def build(self, root: Schema) -> Domain:
        self._index_definitions(root)
        self._build_type(DOCUMENT, root, "#", is_root=True)
        for name, schema, path in self._definitions.values():
            if name != DOCUMENT:
                self._build_type(name, schema, path)
        while self._requests:
            name, schema, path = self._requests.popleft()
            self._build_type(name, schema, path)
        for map_type in sorted(self._map_types):
            self._register(self._pair_type(map_type))
        self._register(self._string_array_type())
        self._register(self._any_type())
        self._check_references()

        domain = Domain(
            types=tuple(sorted(self._types.values(), key=lambda t: t.name)),
            classifier=self.classifier,
        )
        logger.info("Built %d types", len(domain))
        logger.debug("Type model:\n%s", domain.description())
        return domain

    # -- definitions and references ---------------------------------------

    def _index_definitions(self, root: Schema) -> None:
        self._definitions["#"] = (DOCUMENT, root, "#")
        for name, schema in (root.definitions or {}).items():
            path = _pointer("#", "definitions", name)
            if not schema.models_as_type():
                logger.debug("%s is inlined where referenced, not a type", path)
                continue
            type_name = self._type_name(name, path)
            if type_name in self._definition_schemas or type_name == DOCUMENT:
                raise ModelingError(path, f"type name {type_name} is already defined")
            self._definitions[path] = (type_name, schema, path)
            self._definition_schemas[type_name] = schema

    def _type_for_reference(self, ref: str, path: str) -> str:
        entry = self._definitions.get(ref)
        if entry is None:
            raise ModelingError(path, f"reference {ref} does not name a modeled definition")
        return entry[0]

    def _type_name(self, stub: str, path: str) -> str:
        try:
            return type_name_for_stub(stub)
        except ValueError as err:
            raise ModelingError(path, f"cannot derive a type name: {err}") from err

    def _request(self, name: str, schema: Schema, path: str) -> None:
        """Ask for an anonymous type, reusing an equal earlier one."""
        existing = self._definition_schemas.get(name) or self._requested.get(name)
        if existing is not None:
            if existing == schema:
                logger.debug("reusing %s for %s", name, path)
                return
            raise ModelingError(path, f"type name {name} is already used by a different schema")
        self._requested[name] = schema
        self._requests.append((name, schema, path))

    def _register(self, t: Type) -> None:
        if t.name in self._types:
            raise ModelingError(t.schema_path, f"type {t.name} is defined twice")
        other = self._functions.get(t.function_name)
        if other is not None:
            raise ModelingError(
                t.schema_path,
                f"types {other} and {t.name} both map to {t.function_name}",
            )
        self._types[t.name] = t
        self._functions[t.function_name] = t.name

    def _check_references(self) -> None:
        for t in self._types.values():
            for p in t.properties:
                if not is_scalar(p.type) and p.type != PROTOBUF_ANY and p.type not in self._types:
                    raise ModelingError(t.schema_path, f"{p.name} refers to unknown type {p.type}")

    # -- types ---------------------------------------------------------------

    def _build_type(self, name: str, schema: Schema, path: str, is_root: bool = False) -> Type:
        draft = _Draft(name, path, schema.description)
        unions = [
            (key, union)
            for key, union in (("oneOf", schema.one_of), ("anyOf", schema.any_of))
            if union and not all(_is_constraint_only(s) for s in union)
        ]
        if len(unions) > 1:
            raise ModelingError(path, "cannot model both oneOf and anyOf alternatives")
        if unions:
            key, union = unions[0]
            if schema.properties or schema.pattern_properties or isinstance(
                schema.additional_properties, Schema
            ):
                raise ModelingError(path, f"cannot combine properties with {key} alternatives")
            element = _array_pair(union)
            if element is not None:
                self._build_array_wrapper(draft, element, _pointer(path, key, "0"))
            else:
                self._build_alternatives(draft, union, _pointer(path, key))
        else:
            if schema.one_of or schema.any_of:
                logger.debug("ignoring constraint-only alternatives at %s", path)
            self._build_struct(draft, schema, path, is_root)

        t = draft.freeze()
        self._register(t)
        return t

    def _build_struct(self, draft: _Draft, schema: Schema, path: str, is_root: bool) -> None:
        rules = self._pattern_rules(schema, path)
        patterns = [rule.pattern for rule, _ in rules]
        for key, prop_schema in (schema.properties or {}).items():
            claimed = self.classifier.classify(key, patterns) if patterns else None
            if claimed is not None:
                logger.debug("%s: %s is collected by the %s bag", path, key, claimed.role)
                continue
            self._add_property(draft, key, prop_schema, _pointer(path, "properties", key))
        draft.required = tuple(schema.required or ())

        for rule, value_schema in rules:
            value_path = _pointer(path, "patternProperties", rule.pattern)
            stub = draft.name + title(rule.role)
            self._add_bag(draft, rule.role, self._map_value_type(value_schema, stub, value_path), rule.pattern)
        self._add_additional_properties(draft, schema, path)

        if draft.properties:
            return
        if is_root:
            raise ModelingError(path, f"no properties found for {draft.name}")
        if schema.additional_properties is False:
            raise ModelingError(path, "object has no properties and admits no additional properties")
        self._add_default_accessors(draft)

    def _build_alternatives(self, draft: _Draft, union: Sequence[Schema], path: str) -> None:
        draft.kind = ONEOF
        draft.open = True
        for i, alternative in enumerate(union):
            alt_path = _pointer(path, str(i))
            if alternative.ref is not None:
                draft.add(
                    _ref_key(alternative.ref),
                    self._type_for_reference(alternative.ref, alt_path),
                    role=ALTERNATIVE,
                )
            elif self._single_type(alternative, alt_path) in SCALAR_KINDS:
                kind, fmt, enum = self._scalar(alternative, alt_path)
                draft.add(
                    self._single_type(alternative, alt_path),
                    kind,
                    role=ALTERNATIVE,
                    format=fmt,
                    enum=enum,
                )
            else:
                raise ModelingError(
                    alt_path, "only references and scalar types can be alternatives",
                )

    def _build_array_wrapper(self, draft: _Draft, element: Schema, path: str) -> None:
        draft.kind = ARRAY
        draft.accepts_single = True
        if element.ref is not None:
            draft.add(
                _ref_key(element.ref),
                self._type_for_reference(element.ref, path),
                role=ELEMENT,
                repeated=True,
            )
        elif element.is_empty():
            draft.add("value", ANY, role=ELEMENT, repeated=True)
        else:
            kind, fmt, enum = self._scalar(element, path)
            draft.add("value", kind, role=ELEMENT, repeated=True, format=fmt, enum=enum)

    def _add_default_accessors(self, draft: _Draft) -> None:
        draft.open = True
        self._add_bag(draft, ADDITIONAL, ANY)

    # -- properties ------------------------------------------------------------

    def _add_property(self, draft: _Draft, key: str, schema: Schema, path: str) -> None:
        description = schema.description
        if schema.ref is not None:
            draft.add(key, self._type_for_reference(schema.ref, path), description=description)
            return
        if schema.one_of or schema.any_of:
            name = self._type_name(key + "Item", path)
            self._request(name, schema, path)
            draft.add(key, name, description=description)
            return

        t = self._single_type(schema, path)
        if t == "array" or (t is None and schema.items is not None):
            item_type, fmt, enum = self._array_item(key, schema, path)
            draft.add(
                key, item_type, repeated=True, format=fmt, enum=enum, description=description,
            )
        elif t == "object" or (t is None and schema.models_as_type()):
            name = self._type_name(key, path)
            self._request(name, schema, path)
            draft.add(key, name, description=description)
        elif t is not None or schema.enum is not None:
            kind, fmt, enum = self._scalar(schema, path)
            draft.add(key, kind, format=fmt, enum=enum, description=description)
        elif schema.is_empty():
            draft.add(key, ANY, description=description)
        else:
            raise ModelingError(path, "unsupported property schema")

    def _array_item(self, key: str, schema: Schema, path: str) -> tuple[str, str | None, tuple[str, ...]]:
        items = schema.items
        item_path = _pointer(path, "items")
        if isinstance(items, list):
            items = items[0] if items else None
            item_path = _pointer(item_path, "0")
        if items is None or items.is_empty():
            return ANY, None, ()
        if items.ref is not None:
            return self._type_for_reference(items.ref, item_path), None, ()
        if items.one_of or items.any_of or items.models_as_type():
            name = self._type_name(key + "Item", item_path)
            self._request(name, items, item_path)
            return name, None, ()
        if self._single_type(items, item_path) == "array":
            raise ModelingError(item_path, "arrays of arrays are not supported")
        kind, fmt, enum = self._scalar(items, item_path)
        return kind, fmt, enum

    def _pattern_rules(self, schema: Schema, path: str) -> list[tuple[PatternRule, Schema]]:
        rules = []
        for pattern, value_schema in (schema.pattern_properties or {}).items():
            rule = self.classifier.rule_for(pattern)
            if rule is None:
                raise ModelingError(
                    _pointer(path, "patternProperties", pattern),
                    f"pattern {pattern!r} has no role in the classifier table",
                )
            rules.append((rule, value_schema))
        return rules

    def _add_additional_properties(self, draft: _Draft, schema: Schema, path: str) -> None:
        additional = schema.additional_properties
        if additional is True:
            value_type = ANY
        elif isinstance(additional, Schema):
            value_type = self._map_value_type(
                additional, draft.name + "Item", _pointer(path, "additionalProperties"),
            )
        else:
            return
        draft.open = True
        self._add_bag(draft, ADDITIONAL, value_type)

    def _add_bag(self, draft: _Draft, role: str, value_type: str, pattern: str | None = None) -> None:
        self._map_types.add(value_type)
        draft.add(
            role,
            "Named" + title(value_type),
            role=role,
            repeated=True,
            pattern=pattern,
            map_type=value_type,
        )

    def _map_value_type(self, schema: Schema, stub: str, path: str) -> str:
        """Return the value type of a bag declared by a pattern or additionalProperties."""
        if schema.ref is not None:
            return self._type_for_reference(schema.ref, path)
        if schema.is_empty():
            return ANY
        if schema.one_of or schema.any_of or schema.models_as_type():
            name = self._type_name(stub, path)
            self._request(name, schema, path)
            return name
        t = self._single_type(schema, path)
        if t in SCALAR_KINDS:
            kind, _, _ = self._scalar(schema, path)
            return kind
        if t == "array" and isinstance(schema.items, Schema) and schema.items.type_is("string"):
            return STRING_ARRAY
        raise ModelingError(path, "unsupported map value schema")

    # -- scalars ---------------------------------------------------------------

    def _single_type(self, schema: Schema, path: str) -> str | None:
        if isinstance(schema.type, list):
            if len(schema.type) != 1:
                raise ModelingError(path, f"multiple types {schema.type} are not supported")
            return schema.type[0]
        return schema.type

    def _scalar(self, schema: Schema, path: str) -> tuple[str, str | None, tuple[str, ...]]:
        """Return (kind, format, enum values) for a scalar schema."""
        t = self._single_type(schema, path)
        if t is None:
            if schema.enum and all(isinstance(v, str) for v in schema.enum):
                t = "string"
            else:
                raise ModelingError(path, "cannot infer a scalar type")
        kind = SCALAR_KINDS.get(t)
        if kind is None:
            raise ModelingError(path, f"unsupported type {t!r}")
        fmt = schema.format
        if fmt is not None and fmt not in SCALAR_FORMATS[t]:
            raise ModelingError(path, f"unsupported {t} format {fmt!r}")
        enum: tuple[str, ...] = ()
        if schema.enum and kind != "string":
            logger.debug("%s: enum on %s values is not modeled", path, t)
        elif schema.enum:
            enum = tuple(v for v in schema.enum if isinstance(v, str))
            if len(enum) != len(schema.enum):
                logger.debug("%s: dropping non-string enum values", path)
        return kind, fmt, enum

    # -- built-in types ----------------------------------------------------------

    def _pair_type(self, map_type: str) -> Type:
        draft = _Draft(
            "Named" + title(map_type),
            f"<map of {map_type}>",
            "Automatically-generated message used to represent maps of "
            f"{map_type} as ordered (name,value) pairs.",
        )
        draft.add("name", "string", description="Map key")
        draft.add("value", map_type, description="Mapped value")
        return draft.freeze()

    def _string_array_type(self) -> Type:
        draft = _Draft(STRING_ARRAY, "<string array>")
        draft.kind = ARRAY
        draft.add("value", "string", role=ELEMENT, repeated=True)
        return draft.freeze()

    def _any_type(self) -> Type:
        draft = _Draft(ANY, "<any>")
        draft.kind = BLOB
        draft.open = True
        draft.add("value", PROTOBUF_ANY)
        draft.add("yaml", "string")
        return draft.freeze()


def build_domain(root: Schema, pattern_names: Iterable[tuple[str, str]]) -> Domain:
    """Build a Domain from a resolved root schema and a pattern table."""
    return DomainBuilder(PropertyClassifier(pattern_names)).build(root)
