"""Support code imported by generated compilers.

Generated build functions take a generic document node (dict, list or
scalar, as produced by json.load or yaml.safe_load) and a Context that
tracks the node's location, e.g. "$root.paths./pets.get". Fatal problems
raise CompilerError; unrecognized keys become warnings on the Context.
Nothing here performs I/O.
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import yaml

from .errors import CompilerError, CompilerWarning, ErrorGroup

T = TypeVar("T")

ROOT = "$root"


class Context:
    """Where a node sits in the document, plus the warnings sink."""

    def __init__(self, name: str, parent: Context | None = None, isolated: bool = False) -> None:
        self.name = name
        self.parent = parent
        if parent is None:
            self.location = name
        elif isolated:
            self.location = parent.location
        else:
            self.location = f"{parent.location}.{name}"
        if parent is None or isolated:
            self.warnings: list[CompilerWarning] = []
        else:
            self.warnings = parent.warnings

    def child(self, name: Any) -> Context:
        return Context(str(name), self)

    def trial(self) -> Context:
        """Return a context whose warnings are kept apart until accepted."""
        return Context(self.name, self, isolated=True)

    def accept(self, trial: Context) -> None:
        self.warnings.extend(trial.warnings)

    def warn(self, message: str) -> None:
        self.warnings.append(CompilerWarning(self.location, message))

    def error(self, message: str) -> CompilerError:
        return CompilerError(self.location, message)


@dataclass(frozen=True)
class Compiled:
    """A successfully built message and the warnings found on the way."""

    value: Any
    warnings: tuple[CompilerWarning, ...] = ()


class ErrorCollector:
    """Gather the errors of one node so they are reported together."""

    def __init__(self) -> None:
        self.errors: list[CompilerError] = []

    @contextlib.contextmanager
    def capture(self) -> Iterator[None]:
        try:
            yield
        except CompilerError as err:
            self.errors.append(err)

    def require(self, mapping: Mapping[Any, Any], keys: Sequence[str], context: Context) -> None:
        present = {str(key) for key in mapping}
        missing = [key for key in keys if key not in present]
        if missing:
            noun = "property" if len(missing) == 1 else "properties"
            self.errors.append(context.error(f"is missing required {noun}: {', '.join(missing)}"))

    def check(self) -> None:
        if len(self.errors) == 1:
            raise self.errors[0]
        if self.errors:
            raise ErrorGroup(self.errors)


def _describe(node: Any) -> str:
    return f"{node!r} ({type(node).__name__})"


def unpack_map(node: Any, context: Context) -> Mapping[Any, Any]:
    if not isinstance(node, Mapping):
        raise context.error(f"has unexpected value: {_describe(node)}, expected a map")
    return node


def unpack_list(node: Any, context: Context) -> list[Any]:
    if not isinstance(node, list):
        raise context.error(f"has unexpected value: {_describe(node)}, expected an array")
    return node


def as_list(node: Any) -> list[Any]:
    """Wrap a single value so it can be built like an array."""
    return node if isinstance(node, list) else [node]


def string_value(node: Any, context: Context, allowed: Sequence[str] = ()) -> str:
    if not isinstance(node, str):
        raise context.error(f"has unexpected value: {_describe(node)}, expected a string")
    if allowed and node not in allowed:
        raise context.error(
            f"has unexpected value: {node!r}, expected one of: {', '.join(allowed)}"
        )
    return node


def bool_value(node: Any, context: Context) -> bool:
    if not isinstance(node, bool):
        raise context.error(f"has unexpected value: {_describe(node)}, expected a boolean")
    return node


def int_value(node: Any, context: Context) -> int:
    if isinstance(node, bool) or not isinstance(node, int):
        raise context.error(f"has unexpected value: {_describe(node)}, expected an integer")
    return node


def float_value(node: Any, context: Context) -> float:
    if isinstance(node, bool) or not isinstance(node, (int, float)):
        raise context.error(f"has unexpected value: {_describe(node)}, expected a number")
    return float(node)


def build_list(
    node: Any,
    context: Context,
    build: Callable[..., T],
    **options: Any,
) -> list[T]:
    """Build every element of an array node, reporting all failures."""
    items = unpack_list(node, context)
    errors = ErrorCollector()
    result: list[T] = []
    for index, item in enumerate(items):
        with errors.capture():
            result.append(build(item, context.child(index), **options))
    errors.check()
    return result


def warn_unrecognized(unknown: Sequence[tuple[str, Any]], context: Context) -> None:
    for key, _ in unknown:
        context.warn(f"has unrecognized key: {key}")


def first_match(
    node: Any,
    context: Context,
    alternatives: Sequence[tuple[str, Callable[[Any, Context], Any]]],
) -> tuple[str, Any]:
    """Try alternatives in order and return (name, value) of the first success.

    Warnings of rejected alternatives are dropped; if none succeeds the
    errors of every alternative are raised together.
    """
    failures: list[CompilerError] = []
    for name, build in alternatives:
        trial = context.trial()
        try:
            value = build(node, trial)
        except CompilerError as err:
            failures.append(err)
            continue
        context.accept(trial)
        return name, value
    raise ErrorGroup(failures, context.location, "does not match any alternative")


def which_field(message: Any, names: Sequence[str]) -> str | None:
    for name in names:
        if getattr(message, name) is not None:
            return name
    return None


def yaml_text(node: Any) -> str:
    return yaml.safe_dump(node, default_flow_style=False, sort_keys=False)


def to_node(value: Any) -> Any:
    """Serialize a built message (or list of them) back to a generic node."""
    if hasattr(value, "to_node"):
        return value.to_node()
    if isinstance(value, list):
        return [to_node(item) for item in value]
    return value


def compile_document(
    build: Callable[[Any, Context], Any],
    node: Any,
    name: str = ROOT,
) -> Compiled:
    """Run a generated build function on a whole document."""
    context = Context(name)
    value = build(node, context)
    return Compiled(value, tuple(context.warnings))
