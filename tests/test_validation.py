"""
Tests for input validation: string/numeric validators and the parameter schema validator.
"""

import pytest

from sleeper_league_mcp.config import (
    validate_string_input, validate_numeric_input, validate_limit, SAFE_PATTERNS, get_http_headers
)
from sleeper_league_mcp.param_validator import validate_params, format_errors


class TestStringValidation:

    def test_username_accepts_letters_digits_underscore(self):
        assert validate_string_input("  gridiron_guru42 ", "username") == "gridiron_guru42"

    def test_username_rejects_spaces_and_symbols(self):
        with pytest.raises(ValueError):
            validate_string_input("bad name", "username")
        with pytest.raises(ValueError):
            validate_string_input("bad;drop", "username")

    def test_general_allows_league_names_with_punctuation(self):
        assert validate_string_input("Dad’s League: 2.0!", "general") == "Dad’s League: 2.0!"

    def test_required_empty(self):
        with pytest.raises(ValueError):
            validate_string_input("   ", "general")
        with pytest.raises(ValueError):
            validate_string_input(None, "general")

    def test_optional_none(self):
        assert validate_string_input(None, "general", required=False) == ""

    def test_max_length(self):
        with pytest.raises(ValueError, match="exceeds maximum"):
            validate_string_input("x" * 11, "general", max_length=10)

    def test_control_characters_rejected(self):
        with pytest.raises(ValueError, match="control"):
            validate_string_input("league\x00name", "general")

    def test_non_string(self):
        with pytest.raises(ValueError):
            validate_string_input(123, "general")


class TestNumericValidation:

    def test_in_range(self):
        assert validate_numeric_input("5", min_val=1, max_val=18) == 5

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            validate_numeric_input(19, min_val=1, max_val=18)
        with pytest.raises(ValueError):
            validate_numeric_input(0, min_val=1, max_val=18)

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            validate_numeric_input(True, min_val=0, max_val=5)

    def test_limit_falls_back_to_default(self):
        assert validate_limit(500, 1, 50, default=25) == 25
        assert validate_limit(None, 1, 50, default=25) == 25
        assert validate_limit(10, 1, 50, default=25) == 10


class TestYearExpressionPattern:

    @pytest.mark.parametrize("expression", ["2023", "2021-2023", "2021,2023", " 2021 , 2022 ,2024 ", "2022 - 2024"])
    def test_valid(self, expression):
        assert SAFE_PATTERNS["year_expression"].match(expression)

    @pytest.mark.parametrize("expression", ["23", "2021-", "2021-2022-2023", "last year", "2021,", "2021-2023,2024"])
    def test_invalid(self, expression):
        assert not SAFE_PATTERNS["year_expression"].match(expression)


class TestParamValidator:

    def test_required_missing(self):
        validated, errors = validate_params({"week": {"type": int, "required": True}}, {})
        assert errors == ["'week' is required"]

    def test_default_applied(self):
        validated, errors = validate_params({"category": {"type": str, "default": "all"}}, {})
        assert errors == []
        assert validated["category"] == "all"

    def test_numeric_coercion_and_bounds(self):
        schema = {"week": {"type": int, "required": True, "min": 1, "max": 18}}
        validated, errors = validate_params(schema, {"week": "7"})
        assert errors == [] and validated["week"] == 7

        _, errors = validate_params(schema, {"week": 19})
        assert errors == ["'week' must be <= 18"]

    def test_bool_is_not_int(self):
        _, errors = validate_params({"week": {"type": int, "required": True}}, {"week": True})
        assert errors == ["'week' must be of type int"]

    def test_choices(self):
        schema = {"trending_type": {"type": str, "required": True, "choices": ["add", "drop", "all"]}}
        _, errors = validate_params(schema, {"trending_type": "hold"})
        assert "must be one of: add, drop, all" in errors[0]

    def test_pattern_full_match(self):
        schema = {"year": {"type": str, "nullable": True, "pattern": SAFE_PATTERNS["year_expression"]}}
        validated, errors = validate_params(schema, {"year": " 2022-2024 "})
        assert errors == []
        assert validated["year"] == "2022-2024"

        _, errors = validate_params(schema, {"year": "2022 to 2024"})
        assert "invalid format" in errors[0]

        validated, errors = validate_params(schema, {"year": None})
        assert errors == [] and validated["year"] is None

    def test_format_errors(self):
        assert format_errors(["a", "b"]) == "a; b"


class TestHttpHeaders:

    def test_headers_carry_service_user_agent(self):
        headers = get_http_headers("sleeper_rosters")
        assert "Sleeper Rosters Fetcher" in headers["User-Agent"]
        assert headers["Accept"] == "application/json"
