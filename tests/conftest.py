"""Shared schemas and fixtures for schemagen tests.

Generated compilers are rendered to source and executed into fresh
modules, so the tests exercise exactly what the CLI would write to disk.
"""

from __future__ import annotations

import copy
import itertools
import sys
import types
from typing import Any, Callable

import pytest

from schemagen.builder import build_domain
from schemagen.codegen import emit_compiler
from schemagen.config import GeneratorConfig, config_for_version, pattern_names
from schemagen.domain import Domain
from schemagen.schema import Schema

PATTERNS = pattern_names("vendorExtension")

_EXTENSION = {"$ref": "#/definitions/vendorExtension"}

# ---------------------------------------------------------------------------
# A trimmed-down Swagger 2.0 style schema covering every modeling shape
# ---------------------------------------------------------------------------

PETSTORE_SCHEMA: dict[str, Any] = {
    "id": "http://example.com/petstore/schema.json#",
    "title": "A pet store API description",
    "description": "Root of a pet store API description.",
    "type": "object",
    "required": ["swagger", "info", "paths"],
    "additionalProperties": False,
    "patternProperties": {"^x-": _EXTENSION},
    "properties": {
        "swagger": {
            "type": "string",
            "enum": ["2.0"],
            "description": "The Swagger version of this document.",
        },
        "info": {"$ref": "#/definitions/info"},
        "host": {"type": "string"},
        "schemes": {
            "type": "array",
            "items": {"type": "string", "enum": ["http", "https", "ws", "wss"]},
        },
        "paths": {"$ref": "#/definitions/paths"},
        "tags": {"type": "array", "items": {"$ref": "#/definitions/tag"}},
    },
    "definitions": {
        "info": {
            "type": "object",
            "description": "General information about the API.",
            "required": ["title", "version"],
            "additionalProperties": False,
            "patternProperties": {"^x-": _EXTENSION},
            "properties": {
                "title": {"type": "string"},
                "version": {"type": "string"},
                "description": {"type": "string"},
            },
        },
        "paths": {
            "type": "object",
            "additionalProperties": False,
            "patternProperties": {
                "^x-": _EXTENSION,
                "^/": {"$ref": "#/definitions/pathItem"},
            },
        },
        "pathItem": {
            "type": "object",
            "additionalProperties": False,
            "patternProperties": {"^x-": _EXTENSION},
            "properties": {
                "$ref": {"type": "string"},
                "get": {"$ref": "#/definitions/operation"},
                "parameters": {"$ref": "#/definitions/parametersList"},
            },
        },
        "operation": {
            "type": "object",
            "required": ["responses"],
            "additionalProperties": False,
            "properties": {
                "operationId": {"type": "string"},
                "deprecated": {"type": "boolean", "default": False},
                "tags": {"type": "array", "items": {"type": "string"}},
                "responses": {"$ref": "#/definitions/responses"},
            },
        },
        "responses": {
            "type": "object",
            "additionalProperties": False,
            "patternProperties": {
                "^([0-9]{3})$|^(default)$": {"$ref": "#/definitions/responseValue"},
                "^x-": _EXTENSION,
            },
        },
        "responseValue": {
            "oneOf": [
                {"$ref": "#/definitions/response"},
                {"$ref": "#/definitions/jsonReference"},
            ],
        },
        "response": {
            "type": "object",
            "required": ["description"],
            "additionalProperties": False,
            "properties": {
                "description": {"type": "string"},
                "maxItems": {"$ref": "#/definitions/maxItems"},
            },
        },
        "jsonReference": {
            "type": "object",
            "required": ["$ref"],
            "additionalProperties": False,
            "properties": {"$ref": {"type": "string"}},
        },
        "parametersList": {
            "type": "array",
            "items": {"$ref": "#/definitions/parameter"},
        },
        "parameter": {
            "type": "object",
            "required": ["name", "in"],
            "additionalProperties": False,
            "properties": {
                "name": {"type": "string"},
                "in": {"type": "string", "enum": ["query", "header", "path"]},
                "required": {"type": "boolean"},
            },
        },
        "tag": {
            "type": "object",
            "required": ["name"],
            "additionalProperties": False,
            "patternProperties": {"^x-": _EXTENSION},
            "properties": {
                "name": {"type": "string"},
                "description": {"type": "string"},
            },
        },
        "vendorExtension": {
            "description": "Any property starting with x- is valid.",
            "additionalProperties": True,
            "additionalItems": True,
        },
        "maxItems": {"type": "integer", "minimum": 0},
    },
}


PETSTORE_DOCUMENT: dict[str, Any] = {
    "swagger": "2.0",
    "info": {"title": "Petstore", "version": "1.0.0", "x-logo": {"url": "logo.png"}},
    "host": "petstore.example.com",
    "schemes": ["https"],
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "tags": ["pets"],
                "responses": {
                    "200": {"description": "A list of pets"},
                    "default": {"$ref": "#/responses/Error"},
                },
            },
            "parameters": [{"name": "limit", "in": "query"}],
        },
        "x-internal": True,
    },
    "tags": [{"name": "pets"}],
    "x-generated": "yes",
}

# One plain field plus an extension bag
WIDGET_SCHEMA: dict[str, Any] = {
    "properties": {"name": {"type": "string"}},
    "patternProperties": {"^x-": {}},
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_module_ids = itertools.count()


def resolve(data: dict[str, Any], documents: Any = None) -> Schema:
    schema = Schema.from_dict(copy.deepcopy(data))
    schema.resolve_refs(documents)
    schema.resolve_all_ofs(documents)
    return schema


def load_compiler(domain: Domain, config: GeneratorConfig) -> types.ModuleType:
    """Render the compiler for a domain and import it as a fresh module."""
    source = emit_compiler(domain, config)
    name = f"generated_{config.module_name}_{next(_module_ids)}"
    module = types.ModuleType(name)
    # dataclasses looks the defining module up in sys.modules
    sys.modules[name] = module
    exec(compile(source, f"<{name}>", "exec"), module.__dict__)
    return module


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config() -> GeneratorConfig:
    return config_for_version("v2")


@pytest.fixture
def domain_for() -> Callable[..., Domain]:
    """Build a Domain from a schema dict."""
    def _build(data: dict[str, Any], patterns=PATTERNS) -> Domain:
        return build_domain(resolve(data), patterns)
    return _build


@pytest.fixture
def compiler_for(domain_for, config) -> Callable[..., types.ModuleType]:
    """Build a Domain from a schema dict and import its generated compiler."""
    def _load(data: dict[str, Any], patterns=PATTERNS) -> types.ModuleType:
        return load_compiler(domain_for(data, patterns), config)
    return _load


@pytest.fixture
def petstore_domain(domain_for) -> Domain:
    return domain_for(PETSTORE_SCHEMA)


@pytest.fixture
def petstore(petstore_domain, config) -> types.ModuleType:
    return load_compiler(petstore_domain, config)


@pytest.fixture
def petstore_document() -> dict[str, Any]:
    return copy.deepcopy(PETSTORE_DOCUMENT)


@pytest.fixture
def petstore_schema() -> dict[str, Any]:
    return copy.deepcopy(PETSTORE_SCHEMA)


@pytest.fixture
def widget_schema() -> dict[str, Any]:
    return copy.deepcopy(WIDGET_SCHEMA)
