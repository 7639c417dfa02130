"""Load JSON Schema documents from disk or over HTTP.

Documents are registered by their "id" so that references such as
http://json-schema.org/draft-04/schema#/properties/enum resolve against a
locally loaded copy; unknown http(s) documents are fetched on demand.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import httpx
import yaml

from .errors import ResolutionError
from .schema import Schema, normalize_uri

FETCH_TIMEOUT = 30.0


def read_document(path: Path) -> Any:
    """Read a JSON or YAML file into generic Python values."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as err:
        raise ResolutionError(f"unable to read {path}: {err}") from err
    try:
        if path.suffix.lower() == ".json":
            return json.loads(raw)
        return yaml.safe_load(raw)
    except (ValueError, yaml.YAMLError) as err:
        raise ResolutionError(f"unable to parse {path}: {err}") from err


def load_schema(path: Path | str) -> Schema:
    """Load a schema file without registering it anywhere."""
    path = Path(path)
    return Schema.from_dict(read_document(path), f"{path.name}#")


class SchemaStore(Mapping[str, Schema]):
    """Schemas by document URI, fetching remote ones when first needed."""

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._schemas: dict[str, Schema] = {}
        self._client = client

    def add(self, schema: Schema, uri: str | None = None) -> None:
        key = normalize_uri(uri or schema.id or "")
        if not key:
            raise ResolutionError("cannot register a schema without an id")
        self._schemas[key] = schema

    def load(self, source: Path | str) -> Schema:
        """Load a schema file or http(s) URL and register it under its id."""
        if isinstance(source, str) and source.startswith(("http://", "https://")):
            schema = self[source]
        else:
            schema = load_schema(source)
        if schema.id:
            self.add(schema)
        return schema

    def fetch(self, uri: str) -> Schema:
        try:
            if self._client is not None:
                response = self._client.get(uri)
            else:
                response = httpx.get(uri, timeout=FETCH_TIMEOUT, follow_redirects=True)
            response.raise_for_status()
            data = yaml.safe_load(response.text)
        except httpx.HTTPError as err:
            raise ResolutionError(f"unable to fetch {uri}: {err}") from err
        except yaml.YAMLError as err:
            raise ResolutionError(f"unable to parse {uri}: {err}") from err
        schema = Schema.from_dict(data, f"{uri}#")
        self._schemas[uri] = schema
        return schema

    def __getitem__(self, uri: str) -> Schema:
        key = normalize_uri(uri)
        if key in self._schemas:
            return self._schemas[key]
        if key.startswith(("http://", "https://")):
            return self.fetch(key)
        raise KeyError(uri)

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)
