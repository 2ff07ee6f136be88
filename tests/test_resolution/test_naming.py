"""Tests for specgraph.resolution.naming."""

from __future__ import annotations

import random
import re
import string

import pytest

from specgraph.resolution.naming import (
    detect_convention,
    entity_name,
    fallback_name_from_path,
    is_plural,
    normalize,
    operation_name,
    sanitize_param_name,
    singularize,
    split_words,
    to_pascal_case,
)

_CAMEL_IDENTIFIER = re.compile(r"^[a-z_][a-zA-Z0-9_]*$")


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------


class TestNormalize:
    """camelCase normalization of arbitrary identifiers."""

    def test_tag_method_identifier(self) -> None:
        assert normalize("Users_GetById") == "usersGetById"

    def test_snake_case(self) -> None:
        result = normalize("get_users_by_status")
        assert result == "getUsersByStatus"
        assert result[0].islower()
        assert "_" not in result

    def test_kebab_case(self) -> None:
        assert normalize("list-all-pets") == "listAllPets"

    def test_pascal_case(self) -> None:
        assert normalize("GetPetById") == "getPetById"

    def test_camel_case_unchanged(self) -> None:
        assert normalize("findPetsByTags") == "findPetsByTags"

    def test_acronyms(self) -> None:
        assert normalize("getHTTPResponse") == "getHttpResponse"

    def test_leading_digit_gets_underscore(self) -> None:
        assert normalize("2fa-verify") == "_2faVerify"

    def test_punctuation_only(self) -> None:
        assert normalize("---") == ""

    @pytest.mark.parametrize("value", [None, 42, "", [], {"a": 1}])
    def test_non_string_or_empty(self, value: object) -> None:
        assert normalize(value) == ""

    @pytest.mark.parametrize(
        "value",
        [
            "Users_GetById",
            "get_users_by_status",
            "X-Request-ID",
            "getHTTPResponse_v2",
            "2fa-verify",
            "already camel Case",
            "pets.list",
            "ÄpfelListe",
        ],
    )
    def test_idempotent(self, value: str) -> None:
        once = normalize(value)
        assert normalize(once) == once

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("get_a_b", "getAb"), ("set_x_y", "setXy"), ("w$jM", "wJm"), ("WUtn_sZ", "wUtnSz"), ("x_a2_c", "xA2C")],
    )
    def test_adjacent_single_letters_settle(self, value: str, expected: str) -> None:
        assert normalize(value) == expected
        assert normalize(expected) == expected

    def test_idempotent_on_generated_identifiers(self) -> None:
        rng = random.Random(20240506)
        alphabet = string.ascii_letters + string.digits + "_- .$"
        for _ in range(5000):
            value = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 12)))
            once = normalize(value)
            assert normalize(once) == once, value
            assert once == "" or _CAMEL_IDENTIFIER.match(once), value
            pascal = to_pascal_case(value)
            assert to_pascal_case(pascal) == pascal, value

    @pytest.mark.parametrize(
        "value", ["Users_GetById", "get_users", "X-Request-ID", "9lives", "a b c"]
    )
    def test_result_is_identifier(self, value: str) -> None:
        assert _CAMEL_IDENTIFIER.match(normalize(value))


class TestSplitWords:
    def test_mixed_separators_and_case(self) -> None:
        assert split_words("getHTTPResponse_v2") == ["get", "HTTP", "Response", "v2"]

    def test_non_string(self) -> None:
        assert split_words(None) == []


class TestPascalAndPlurals:
    def test_to_pascal_case(self) -> None:
        assert to_pascal_case("order_items") == "OrderItems"
        assert to_pascal_case("user") == "User"

    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("users", "user"),
            ("categories", "category"),
            ("addresses", "address"),
            ("address", "address"),
            ("pet", "pet"),
            ("", ""),
        ],
    )
    def test_singularize(self, word: str, expected: str) -> None:
        assert singularize(word) == expected

    def test_is_plural(self) -> None:
        assert is_plural("orders") is True
        assert is_plural("order") is False
        assert is_plural("") is False

    @pytest.mark.parametrize(
        ("tag", "expected"),
        [
            ("users", "User"),
            ("order-items", "OrderItem"),
            ("Pets", "Pet"),
            ("Default", "Default"),
            ("categories", "Category"),
            ("", ""),
            ("a_b_items", "AbItem"),
        ],
    )
    def test_entity_name(self, tag: str, expected: str) -> None:
        assert entity_name(tag) == expected


class TestSanitizeParamName:
    def test_header_name(self) -> None:
        assert sanitize_param_name("X-Request-ID") == "xRequestId"

    def test_bracketed_name(self) -> None:
        assert sanitize_param_name("page[size]") == "pageSize"

    def test_nothing_usable(self) -> None:
        assert sanitize_param_name("$$$") == "param"


# ---------------------------------------------------------------------------
# Convention detection
# ---------------------------------------------------------------------------


class TestDetectConvention:
    def test_tag_method(self) -> None:
        result = detect_convention("Pets_List")
        assert result.convention == "tag_method"
        assert result.tag == "Pets"
        assert result.method == "List"
        assert result.operation_name == "petsList"

    def test_snake_case_with_several_underscores(self) -> None:
        assert detect_convention("get_users_by_status").convention == "snake_case"

    def test_kebab_case(self) -> None:
        result = detect_convention("list-pets")
        assert result.convention == "kebab_case"
        assert result.was_sanitized is False

    def test_camel_case(self) -> None:
        assert detect_convention("listPets").convention == "camel_case"

    def test_pascal_case_warns(self) -> None:
        result = detect_convention("ListPets")
        assert result.convention == "pascal_case"
        assert result.warnings

    def test_sanitized_input(self) -> None:
        result = detect_convention("list pets!")
        assert result.was_sanitized is True
        assert result.operation_name == "listPets"

    @pytest.mark.parametrize("value", [None, "", "!!!"])
    def test_unknown(self, value: object) -> None:
        result = detect_convention(value)
        assert result.convention == "unknown"
        assert result.operation_name == ""


# ---------------------------------------------------------------------------
# Operation naming
# ---------------------------------------------------------------------------


class TestOperationName:
    def test_tag_method_uses_method_half(self) -> None:
        assert operation_name("Pets_List", "get", "pets") == "list"

    def test_tag_method_multiword_method(self) -> None:
        assert operation_name("Users_GetById", "get", "users") == "getById"

    def test_plain_operation_id(self) -> None:
        assert operation_name("find_pets_by_status", "get", "pets") == "findPetsByStatus"

    def test_missing_operation_id_uses_method_and_resource(self) -> None:
        assert operation_name(None, "get", "pets") == "getPets"

    def test_unusable_operation_id_falls_back(self) -> None:
        assert operation_name("???", "post", "order-items") == "postOrderItems"

    def test_no_operation_id_and_no_tag_uses_path(self) -> None:
        assert operation_name(None, "get", None, "/health") == "getHealth"

    def test_fallback_skips_path_parameters(self) -> None:
        assert fallback_name_from_path("post", "/users/{id}/orders") == "createOrders"

    def test_fallback_verbs(self) -> None:
        assert fallback_name_from_path("put", "/items/{id}") == "updateItems"
        assert fallback_name_from_path("patch", "/items/{id}") == "updateItems"
        assert fallback_name_from_path("delete", "/items/{id}") == "deleteItems"

    def test_fallback_without_static_segment(self) -> None:
        assert fallback_name_from_path("get", "/{id}") == "get"
