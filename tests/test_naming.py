"""Tests for the naming module."""

import pytest

from schemagen.naming import (
    camel_to_snake,
    field_name_for_key,
    function_name_for_type,
    is_scalar,
    proto_scalar,
    python_scalar,
    title,
    type_name_for_stub,
)


class TestCamelToSnake:

    def test_camel(self):
        assert camel_to_snake("operationId") == "operation_id"

    def test_pascal(self):
        assert camel_to_snake("JsonReference") == "json_reference"

    def test_acronym(self):
        assert camel_to_snake("URLTemplate") == "url_template"

    def test_already_snake(self):
        assert camel_to_snake("max_items") == "max_items"


class TestFieldNameForKey:
    """Schema keys become valid, collision-checked field identifiers."""

    def test_camel_case(self):
        assert field_name_for_key("operationId") == "operation_id"

    def test_dollar_ref(self):
        assert field_name_for_key("$ref") == "_ref"

    def test_keyword(self):
        assert field_name_for_key("in") == "in_"

    def test_leading_digit(self):
        assert field_name_for_key("200") == "_200"

    def test_dash(self):
        assert field_name_for_key("x-note") == "x_note"

    def test_path_key(self):
        assert field_name_for_key("/pets") == "_pets"

    def test_reserved_method_name(self):
        """Names of generated methods cannot be used as fields."""
        assert field_name_for_key("to_node") == "to_node_"
        assert field_name_for_key("which") == "which_"

    def test_runs_of_underscores_collapse(self):
        assert field_name_for_key("a--b") == "a_b"

    def test_no_identifier_characters(self):
        with pytest.raises(ValueError):
            field_name_for_key("$$$")

    def test_results_are_identifiers(self):
        for key in ("$ref", "in", "200", "x-amazon-apigateway", "/pets/{id}", "default"):
            assert field_name_for_key(key).isidentifier(), key


class TestTypeNames:

    def test_title_keeps_rest(self):
        assert title("jsonReference") == "JsonReference"

    def test_stub(self):
        assert type_name_for_stub("jsonReference") == "JsonReference"

    def test_stub_with_separators(self):
        assert type_name_for_stub("path-item") == "PathItem"

    def test_stub_starting_with_digit(self):
        with pytest.raises(ValueError):
            type_name_for_stub("200")

    def test_reserved_type(self):
        with pytest.raises(ValueError):
            type_name_for_stub("PropertyClassifier")

    def test_keyword_type(self):
        with pytest.raises(ValueError):
            type_name_for_stub("None")

    def test_function_name(self):
        assert function_name_for_type("JsonReference") == "new_json_reference"
        assert function_name_for_type("NamedAny") == "new_named_any"


class TestScalars:

    def test_is_scalar(self):
        assert is_scalar("string")
        assert is_scalar("float")
        assert not is_scalar("Info")

    def test_proto_defaults(self):
        assert proto_scalar("int") == "int64"
        assert proto_scalar("float") == "double"
        assert proto_scalar("bool") == "bool"

    def test_proto_formats(self):
        assert proto_scalar("int", "int32") == "int32"
        assert proto_scalar("float", "float") == "float"
        assert proto_scalar("string", "date-time") == "string"

    def test_python(self):
        assert python_scalar("string") == "str"
        assert python_scalar("int") == "int"
