"""Tests for notebrotr.models._validation shared helpers."""

from __future__ import annotations

import pytest

from notebrotr.models._validation import (
    validate_instance,
    validate_optional_count,
    validate_optional_pubkey,
)


class TestValidateInstance:
    def test_correct_type_passes(self) -> None:
        validate_instance("hello", str, "field")

    def test_wrong_type_raises(self) -> None:
        with pytest.raises(TypeError, match="field must be a str, got int"):
            validate_instance(42, str, "field")

    def test_article_before_vowel(self) -> None:
        with pytest.raises(TypeError, match="field must be an int, got NoneType"):
            validate_instance(None, int, "field")


class TestValidateOptionalCount:
    @pytest.mark.parametrize("value", [None, 0, 1, 2**40])
    def test_accepted(self, value: int | None) -> None:
        validate_optional_count(value, "limit")

    def test_negative(self) -> None:
        with pytest.raises(ValueError, match="limit must be non-negative"):
            validate_optional_count(-5, "limit")

    @pytest.mark.parametrize("value", [True, 1.5, "3"])
    def test_wrong_type(self, value: object) -> None:
        with pytest.raises(TypeError, match="limit must be an int"):
            validate_optional_count(value, "limit")


class TestValidateOptionalPubkey:
    def test_none_passes(self) -> None:
        validate_optional_pubkey(None, "author")

    def test_hex_passes(self) -> None:
        validate_optional_pubkey("0f" * 32, "author")

    def test_uppercase_rejected(self) -> None:
        with pytest.raises(ValueError, match="lowercase hex"):
            validate_optional_pubkey("0F" * 32, "author")

    def test_wrong_length_rejected(self) -> None:
        with pytest.raises(ValueError):
            validate_optional_pubkey("ab" * 31, "author")

    def test_non_str_rejected(self) -> None:
        with pytest.raises(TypeError, match="author must be a str"):
            validate_optional_pubkey(b"\x00" * 32, "author")
