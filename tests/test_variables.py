"""
Tests for keepass2file.core.variables
=====================================

Test Organization
-----------------
- TestParseVariables: Splitting ``key=value`` tokens
- TestMergeVariables: Command-line overrides over configured defaults
"""

import logging

import pytest

from keepass2file.core.variables import merge_variables, parse_variables


# =============================================================================
# Parsing Tests
# =============================================================================

class TestParseVariables:
    """Tests for parse_variables."""

    def test_mixed_tokens(self, caplog: pytest.LogCaptureFixture) -> None:
        tokens = [
            "no_equals_sign",
            "connection_string=Server=db;User=sa;Password=x",
            "empty_value=",
            "=no_name",
        ]

        with caplog.at_level(logging.WARNING):
            parsed = parse_variables(tokens)

        assert parsed == {
            "connection_string": "Server=db;User=sa;Password=x",
            "empty_value": "",
        }
        messages = [r.getMessage() for r in caplog.records]
        assert 'Malformed variable "no_equals_sign": please use var=content' in messages
        assert 'Malformed variable "=no_name": variable name cannot be empty' in messages

    def test_key_is_stripped(self) -> None:
        assert parse_variables([" name =value "]) == {"name": "value "}

    def test_blank_key(self) -> None:
        assert parse_variables(["   =value"]) == {}

    def test_later_tokens_win(self) -> None:
        assert parse_variables(["a=1", "a=2"]) == {"a": "2"}


# =============================================================================
# Merging Tests
# =============================================================================

class TestMergeVariables:
    """Tests for merge_variables."""

    def test_overrides_win(self) -> None:
        defaults = {"email": "a@b.com", "user": "admin"}

        merged = merge_variables(defaults, ["email=c@d.com"])

        assert merged == {"email": "c@d.com", "user": "admin"}

    def test_defaults_untouched(self) -> None:
        defaults = {"email": "a@b.com"}

        merge_variables(defaults, ["email=c@d.com", "extra=1"])

        assert defaults == {"email": "a@b.com"}

    def test_no_overrides(self) -> None:
        assert merge_variables({"a": "1"}) == {"a": "1"}
