"""Tests for the PropertyClassifier table."""

import pytest

from schemagen.errors import ModelingError
from schemagen.patterns import PropertyClassifier

TABLE = (
    ("^x-", "vendorExtension"),
    ("^/", "path"),
    ("^([0-9]{3})$|^(default)$", "responseCode"),
)


class TestClassify:

    @classmethod
    def setup_class(cls):
        cls.classifier = PropertyClassifier(TABLE)

    def test_extension(self):
        assert self.classifier.classify("x-logo").role == "vendorExtension"

    def test_path(self):
        assert self.classifier.classify("/pets").role == "path"

    def test_response_codes(self):
        assert self.classifier.classify("200").role == "responseCode"
        assert self.classifier.classify("default").role == "responseCode"

    def test_plain_field(self):
        assert self.classifier.classify("description") is None

    def test_search_is_anchored_by_pattern(self):
        assert self.classifier.classify("2000") is None
        assert self.classifier.classify("defaults") is None

    def test_restricted_patterns(self):
        assert self.classifier.classify("/pets", ["^x-"]) is None
        assert self.classifier.classify("x-a", ["^x-"]).role == "vendorExtension"

    def test_first_rule_wins(self):
        classifier = PropertyClassifier([("^x-", "first"), ("-", "second")])
        assert classifier.classify("x-a").role == "first"
        assert classifier.classify("a-b").role == "second"

    def test_rule_for(self):
        assert self.classifier.rule_for("^/").role == "path"
        assert self.classifier.rule_for("^y-") is None

    def test_pairs_round_trip(self):
        assert self.classifier.pairs() == TABLE
        assert PropertyClassifier(self.classifier.pairs()).pairs() == TABLE


class TestSortKeys:

    @classmethod
    def setup_class(cls):
        cls.classifier = PropertyClassifier(TABLE)

    def test_split(self):
        keys = self.classifier.sort_keys(
            {"description": "d", "x-b": 2, "200": {}, "x-a": 1, "extra": True},
            ("description",),
            ("^x-", "^([0-9]{3})$|^(default)$"),
        )
        assert keys.fields == {"description": "d"}
        assert keys.bags["^x-"] == [("x-b", 2), ("x-a", 1)]
        assert keys.bags["^([0-9]{3})$|^(default)$"] == [("200", {})]
        assert keys.unknown == [("extra", True)]

    def test_bags_beat_fields(self):
        keys = self.classifier.sort_keys({"x-a": 1}, ("x-a",), ("^x-",))
        assert keys.fields == {}
        assert keys.bags["^x-"] == [("x-a", 1)]

    def test_patterns_outside_type_are_unknown(self):
        keys = self.classifier.sort_keys({"/pets": {}}, (), ("^x-",))
        assert keys.unknown == [("/pets", {})]

    def test_non_string_keys(self):
        """YAML loads unquoted response codes as integers."""
        keys = self.classifier.sort_keys({200: "ok"}, (), ("^([0-9]{3})$|^(default)$",))
        assert keys.bags["^([0-9]{3})$|^(default)$"] == [("200", "ok")]


class TestInvalidTables:

    def test_duplicate_pattern(self):
        with pytest.raises(ModelingError, match="duplicate pattern"):
            PropertyClassifier([("^x-", "a"), ("^x-", "b")])

    def test_duplicate_role(self):
        with pytest.raises(ModelingError, match="duplicate role"):
            PropertyClassifier([("^x-", "a"), ("^/", "a")])

    def test_malformed_pattern(self):
        with pytest.raises(ModelingError, match="malformed pattern"):
            PropertyClassifier([("^(x-", "a")])

    def test_error_path(self):
        with pytest.raises(ModelingError) as info:
            PropertyClassifier([("[", "a")])
        assert info.value.path == "patterns"
