import pytest

from schema_typegen.shared.naming import (
    TS_GLOBAL_TYPES,
    TS_RESERVED_WORDS,
    component_name,
    format_property_name,
    is_identifier,
    singularize,
    to_pascal_case,
    to_type_name,
)


class TestSingularize:
    @pytest.mark.parametrize(
        "plural,singular",
        [
            ("cats", "cat"),
            ("tags", "tag"),
            ("children", "child"),
            ("people", "person"),
            ("mice", "mouse"),
            ("criteria", "criterion"),
            ("indices", "index"),
            ("parties", "party"),
            ("classes", "class"),
            ("boxes", "box"),
            ("churches", "church"),
            ("dishes", "dish"),
            ("statuses", "status"),
            ("oldOptions", "oldOption"),
            ("cat", "cat"),  # already singular
            ("child", "child"),  # irregular but already singular
            ("status", "status"),
            ("address", "address"),
            ("analysis", "analysis"),
            ("data", "data"),
            ("metadata", "metadata"),
        ],
    )
    def test_singularize(self, plural, singular):
        assert singularize(plural) == singular

    def test_singularize_case_preservation(self):
        assert singularize("Children") == "Child"
        assert singularize("PEOPLE") == "Person"


class TestToPascalCase:
    @pytest.mark.parametrize(
        "input_str,expected",
        [
            ("hello_world", "HelloWorld"),
            ("hello-world", "HelloWorld"),
            ("helloWorld", "HelloWorld"),
            ("single", "Single"),
            ("", ""),
            ("_", ""),
            ("a", "A"),
            ("PascalCase", "PascalCase"),
            ("{userId}", "UserId"),
            ("users/{id}/posts", "UsersIdPosts"),
            ("x.rate limit", "XRateLimit"),
            ("200", "200"),
        ],
    )
    def test_to_pascal_case(self, input_str, expected):
        assert to_pascal_case(input_str) == expected

    def test_to_pascal_case_caching(self):
        result1 = to_pascal_case("hello_world")
        result2 = to_pascal_case("hello_world")
        assert result1 == result2 == "HelloWorld"


class TestToTypeName:
    @pytest.mark.parametrize(
        "input_str,expected",
        [
            ("user_profile", "UserProfile"),
            ("2fa", "T2fa"),
            ("", "Schema"),
            ("---", "Schema"),
        ],
    )
    def test_to_type_name(self, input_str, expected):
        assert to_type_name(input_str) == expected

    def test_custom_fallback(self):
        assert to_type_name("", fallback="Anonymous") == "Anonymous"


class TestIdentifiers:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("name", True),
            ("_private", True),
            ("$meta", True),
            ("camelCase2", True),
            ("x-rate-limit", False),
            ("2fa", False),
            ("with space", False),
            ("", False),
        ],
    )
    def test_is_identifier(self, value, expected):
        assert is_identifier(value) is expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("name", "name"),
            ("type", "type"),  # keywords are fine as property keys
            ("x-rate-limit", '"x-rate-limit"'),
            ("2fa", '"2fa"'),
            ('say "hi"', '"say \\"hi\\""'),
        ],
    )
    def test_format_property_name(self, value, expected):
        assert format_property_name(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("User", "User"),
            ("user_profile", "user_profile"),
            ("Pet.Owner", "PetOwner"),
            ("api-error", "ApiError"),
            ("string", "String"),
            ("delete", "Delete"),
        ],
    )
    def test_component_name(self, value, expected):
        assert component_name(value) == expected


class TestConstants:
    def test_reserved_words_include_type_keywords(self):
        assert {"any", "unknown", "never", "string", "type", "interface"} <= TS_RESERVED_WORDS

    def test_global_types_are_pascal_case(self):
        assert all(name[0].isupper() for name in TS_GLOBAL_TYPES)
        assert {"Error", "Date", "Record", "Promise"} <= TS_GLOBAL_TYPES
