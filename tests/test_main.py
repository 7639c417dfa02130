"""End-to-end tests for the command line entry point."""

import json

import pytest

from schemagen.__main__ import main, parse_args
from schemagen.config import config_for_version

SCHEMA = {
    "id": "http://example.com/schema.json#",
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "meta": {"$ref": "http://json-schema.org/draft-04/schema#/definitions/stringArray"},
    },
    "patternProperties": {"^x-": {}},
}

BASE_SCHEMA = {
    "id": "http://json-schema.org/draft-04/schema#",
    "definitions": {"stringArray": {"type": "array", "items": {"type": "string"}}},
}


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "input.json").write_text(json.dumps(SCHEMA))
    (tmp_path / "schema.json").write_text(json.dumps(BASE_SCHEMA))
    return tmp_path


def run(workspace, *extra):
    return main([
        "--schema", str(workspace / "input.json"),
        "--base-schema", str(workspace / "schema.json"),
        "--output", str(workspace / "out"),
        *extra,
    ])


class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])
        assert args.version == "v2"
        assert args.schema is None
        assert str(args.base_schema) == "schema.json"
        assert not args.verbose

    def test_last_version_wins(self):
        assert parse_args(["--v3"]).version == "v3"
        assert parse_args(["--v3", "--v2"]).version == "v2"


class TestMain:

    def test_writes_both_artifacts(self, workspace, capsys):
        assert run(workspace) == 0
        proto = (workspace / "out" / "OpenAPIv2.proto").read_text()
        module = (workspace / "out" / "openapi_v2.py").read_text()
        assert "package openapi.v2;" in proto
        assert "  repeated string meta = 2;" in proto
        assert "def new_document(node: object, context: runtime.Context) -> Document:" in module
        out = capsys.readouterr().out
        assert "OpenAPIv2.proto" in out
        assert "openapi_v2.py" in out

    def test_v3_preset(self, workspace):
        assert run(workspace, "--v3") == 0
        proto = (workspace / "out" / "OpenAPIv3.proto").read_text()
        assert "package openapi.v3;" in proto
        assert 'option java_package = "org.openapi.v3";' in proto
        assert (workspace / "out" / "openapi_v3.py").exists()

    def test_license_file(self, workspace):
        (workspace / "LICENSE").write_text("Copyright 2026 Example Authors\n")
        assert run(workspace, "--license-file", str(workspace / "LICENSE")) == 0
        assert (workspace / "out" / "OpenAPIv2.proto").read_text().startswith(
            "// Copyright 2026 Example Authors\n"
        )
        assert (workspace / "out" / "openapi_v2.py").read_text().startswith(
            "# Copyright 2026 Example Authors\n"
        )

    def test_regeneration_is_byte_identical(self, workspace):
        assert run(workspace) == 0
        first = (workspace / "out" / "openapi_v2.py").read_bytes()
        assert run(workspace) == 0
        assert (workspace / "out" / "openapi_v2.py").read_bytes() == first

    def test_modeling_error_exits_with_status_1(self, workspace, capsys):
        (workspace / "input.json").write_text(json.dumps({"type": "object"}))
        assert run(workspace) == 1
        assert "no properties found for Document" in capsys.readouterr().err
        assert not (workspace / "out").exists()

    def test_missing_schema(self, workspace, capsys):
        assert main(["--schema", str(workspace / "nope.json"), "--output", str(workspace / "out")]) == 1
        assert "unable to read" in capsys.readouterr().err

    def test_default_output_directory(self, workspace, monkeypatch):
        monkeypatch.chdir(workspace)
        assert main(["--schema", "input.json"]) == 0
        filename = config_for_version("v2").filename
        assert (workspace / filename / f"{filename}.proto").exists()
