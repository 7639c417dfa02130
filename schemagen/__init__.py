"""Generate a protocol-buffer IDL and a Python document compiler from a JSON Schema."""

from __future__ import annotations

from .builder import build_domain
from .codegen import emit_compiler, emit_proto, generate
from .config import GeneratorConfig, ProtoOption, config_for_version
from .domain import Domain, Property, Type
from .errors import (
    CompilerError,
    CompilerWarning,
    ErrorGroup,
    GenerationError,
    GeneratorError,
    ModelingError,
    ResolutionError,
)
from .loader import SchemaStore, load_schema
from .patterns import PropertyClassifier
from .schema import Schema

__version__ = "0.1.0"

__all__ = [
    "CompilerError",
    "CompilerWarning",
    "Domain",
    "ErrorGroup",
    "GenerationError",
    "GeneratorConfig",
    "GeneratorError",
    "ModelingError",
    "PropertyClassifier",
    "Property",
    "ProtoOption",
    "ResolutionError",
    "Schema",
    "SchemaStore",
    "Type",
    "build_domain",
    "config_for_version",
    "emit_compiler",
    "emit_proto",
    "generate",
    "load_schema",
]
