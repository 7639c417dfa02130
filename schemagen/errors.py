"""Exceptions raised while generating code and by generated compilers.

Build-time failures (resolution, modeling, generation) abort the whole run.
Generated compilers raise CompilerError for fatal problems in a document and
report everything else as CompilerWarning values.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass


class GeneratorError(Exception):
    """Base class for all errors raised by schemagen."""


class ResolutionError(GeneratorError):
    """A schema reference or allOf merge could not be resolved."""


class ModelingError(GeneratorError):
    """A schema construct cannot be represented in the domain."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class GenerationError(GeneratorError):
    """An artifact could not be rendered or written."""

    def __init__(self, artifact: str, message: str) -> None:
        self.artifact = artifact
        super().__init__(f"{artifact}: {message}")


class CompilerError(GeneratorError):
    """A fatal problem found while building a message from a document node."""

    def __init__(self, location: str, message: str) -> None:
        self.location = location
        self.message = message
        super().__init__(f"{location} {message}")

    def leaves(self) -> Iterator[CompilerError]:
        yield self


class ErrorGroup(CompilerError):
    """Several errors reported together for one node."""

    def __init__(
        self,
        errors: Sequence[CompilerError],
        location: str = "",
        message: str = "",
    ) -> None:
        self.errors = list(errors)
        self.location = location
        self.message = message
        lines = [f"{location} {message}".strip()] if message else []
        lines.extend(str(error) for error in self.leaves())
        Exception.__init__(self, "\n".join(lines))

    def leaves(self) -> Iterator[CompilerError]:
        for error in self.errors:
            yield from error.leaves()


@dataclass(frozen=True)
class CompilerWarning:
    """A non-fatal finding attached to a successful build."""

    location: str
    message: str

    def __str__(self) -> str:
        return f"{self.location} {self.message}"
