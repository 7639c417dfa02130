"""The flattened type model shared by the IDL and compiler emitters.

A Domain is built once by the DomainBuilder and is read-only afterwards;
every identifier, field number and classification decision lives here so
the emitters never derive anything on their own.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from .naming import is_scalar
from .patterns import PropertyClassifier

# Property roles besides the bag roles named by the classifier table
FIELD = "field"
ALTERNATIVE = "alternative"
ELEMENT = "element"
ADDITIONAL = "additionalProperties"

# Type kinds
STRUCT = "struct"
ONEOF = "oneof"
ARRAY = "array"
BLOB = "blob"


@dataclass(frozen=True)
class Property:
    """One field of a Type."""

    name: str
    field_name: str
    type: str
    number: int
    role: str = FIELD
    repeated: bool = False
    pattern: str | None = None
    map_type: str | None = None
    enum: tuple[str, ...] = ()
    format: str | None = None
    description: str | None = None

    @property
    def is_bag(self) -> bool:
        return self.map_type is not None

    @property
    def is_scalar(self) -> bool:
        return is_scalar(self.type)

    @property
    def repetition(self) -> str:
        if self.is_bag:
            return "map"
        return "repeated" if self.repeated else "singular"


@dataclass(frozen=True)
class Type:
    """A message definition."""

    name: str
    function_name: str
    kind: str
    properties: tuple[Property, ...]
    required: tuple[str, ...] = ()
    open: bool = False
    accepts_single: bool = False
    map_value_type: str | None = None
    description: str | None = None
    schema_path: str = ""

    @property
    def is_map(self) -> bool:
        return self.map_value_type is not None

    @property
    def fields(self) -> tuple[Property, ...]:
        """Properties looked up by their own key."""
        return tuple(p for p in self.properties if not p.is_bag)

    @property
    def bags(self) -> tuple[Property, ...]:
        """Pattern bags, in declaration order."""
        return tuple(p for p in self.properties if p.pattern is not None)

    @property
    def additional(self) -> Property | None:
        for p in self.properties:
            if p.role == ADDITIONAL:
                return p
        return None

    def property_named(self, name: str) -> Property:
        for p in self.properties:
            if p.name == name:
                return p
        raise KeyError(f"{self.name} has no property {name!r}")


@dataclass(frozen=True)
class Domain:
    """All Types in name order plus the classifier that shaped them."""

    types: tuple[Type, ...]
    classifier: PropertyClassifier

    def __iter__(self) -> Iterator[Type]:
        return iter(self.types)

    def __len__(self) -> int:
        return len(self.types)

    def type_named(self, name: str) -> Type:
        for t in self.types:
            if t.name == name:
                return t
        raise KeyError(name)

    def description(self) -> str:
        """Return a readable dump of the model, for debugging."""
        lines: list[str] = []
        for t in self.types:
            flags = [t.kind]
            if t.open:
                flags.append("open")
            if t.is_map:
                flags.append(f"map of {t.map_value_type}")
            lines.append(f"{t.name} ({', '.join(flags)})")
            for p in t.properties:
                line = f"  {p.number} {p.field_name}: {p.type} [{p.repetition}]"
                if p.pattern is not None:
                    line += f" pattern={p.pattern}"
                if p.name != p.field_name:
                    line += f" key={p.name}"
                lines.append(line)
        return "\n".join(lines)
