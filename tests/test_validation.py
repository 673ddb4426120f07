"""Tests for roost.validation: rules, Fields, and request schemas."""

import pytest

from roost.errors import ShapeError
from roost.validation import (
    Fields,
    build_request_schema,
    boolean,
    email,
    integer,
    matches,
    max_length,
    min_length,
    number,
    one_of,
    required,
    string,
    validate,
)


class TestRules:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_required_rejects(self, value: object) -> None:
        assert required(value) == "This field is required"

    @pytest.mark.parametrize("value", ["x", 0, False, []])
    def test_required_accepts(self, value: object) -> None:
        assert required(value) is None

    def test_lengths(self) -> None:
        assert max_length(3)("abcd") == "Must be at most 3 characters"
        assert max_length(3)("abc") is None
        assert min_length(2)("a") == "Must be at least 2 characters"
        assert min_length(2)(["a", "b"]) is None
        assert max_length(3)(12) == "Must be a string or list"

    def test_email(self) -> None:
        assert email("ada@example.com") is None
        assert email("not-an-email") is not None
        assert email(42) is not None

    def test_matches(self) -> None:
        slug = matches(r"^[a-z-]+$", "Must be a slug")
        assert slug("hello-world") is None
        assert slug("Hello World") == "Must be a slug"

    def test_one_of(self) -> None:
        role = one_of("admin", "user")
        assert role("admin") is None
        assert role("root") == "Must be one of: admin, user"
        assert role(["unhashable"]) is not None

    def test_integer(self) -> None:
        assert integer(3) is None
        assert integer("42") is None
        assert integer("4.2") == "Must be a whole number"
        assert integer(True) == "Must be a whole number"

    def test_number(self) -> None:
        assert number(2.5) is None
        assert number("2.5") is None
        assert number("two") == "Must be a number"

    def test_string_and_boolean(self) -> None:
        assert string("x") is None
        assert string(1) == "Must be a string"
        assert boolean(True) is None
        assert boolean("false") is None
        assert boolean("yes") == "Must be true or false"


class TestValidate:
    def test_collects_every_error(self) -> None:
        result = validate(
            {"name": "", "age": "old"},
            {"name": [required], "age": [required, integer], "email": [required, email]},
        )
        assert not result
        assert result.errors == {
            "name": ["This field is required"],
            "age": ["Must be a whole number"],
            "email": ["This field is required"],
        }

    def test_optional_missing_field_is_skipped(self) -> None:
        result = validate({}, {"nickname": [max_length(5)]})
        assert result.is_valid
        assert result.data == {}

    def test_data_holds_valid_fields(self) -> None:
        result = validate({"name": "Ada", "age": "x"}, {"name": [required], "age": [integer]})
        assert result.data == {"name": "Ada"}
        assert "age" in result.errors

    def test_unknown_fields(self) -> None:
        result = validate({"name": "Ada", "admin": True}, {"name": [required]}, allow_unknown=False)
        assert result.errors == {"admin": ["Unknown field"]}

    def test_error_summary(self) -> None:
        result = validate({}, {"name": [required]})
        assert result.error == "name: This field is required"
        assert validate({"name": "x"}, {"name": [required]}).error is None


class TestFields:
    def test_non_mapping(self) -> None:
        result = Fields({"name": [required]}).validate(b"raw bytes")
        assert result.errors == {"": ["Must be an object"]}
        assert result.error == "Must be an object"

    def test_rules_copy(self) -> None:
        fields = Fields({"name": [required]})
        fields.rules["other"] = []
        assert list(fields.rules) == ["name"]


class TestRequestSchema:
    def test_locations_in_fixed_order(self) -> None:
        schema = build_request_schema({"query": {"page": [integer]}, "params": Fields({"id": [integer]})})
        assert [name for name, _ in schema.locations()] == ["params", "query"]
        assert schema

    def test_unknown_keys_ignored(self) -> None:
        assert not build_request_schema({"cookies": {"sid": [required]}})

    def test_custom_sub_schema(self) -> None:
        class Always:
            def validate(self, value):
                return None

        custom = Always()
        assert build_request_schema({"body": custom}).body is custom

    @pytest.mark.parametrize("value", ["body", 3, ["body"], lambda: None])
    def test_invalid_types(self, value: object) -> None:
        with pytest.raises(ShapeError, match="invalid type"):
            build_request_schema(value)
