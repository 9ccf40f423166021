"""Tests for share and discount code generation."""

import re
from datetime import date

import pytest
from protean.exceptions import ValidationError

from storefront.loyalty.codes import (
    CODE_ALPHABET,
    MAX_CODE_ATTEMPTS,
    CodeGenerationExhausted,
    generate_discount_code,
    generate_share_code,
    random_suffix,
    share_code_prefix,
)


class TestShareCodes:
    def test_prefix_encodes_year_and_month(self):
        assert share_code_prefix(date(2024, 3, 15)) == "PT2403"
        assert share_code_prefix(date(2031, 11, 1)) == "PT3111"

    def test_generated_code_shape(self):
        code = generate_share_code(date(2024, 3, 1), is_taken=lambda candidate: False)
        assert re.fullmatch(r"PT2403-[A-HJ-NP-Z2-9]{6}", code)

    def test_taken_codes_are_skipped(self):
        suffixes = iter(["AAAAAA", "BBBBBB", "CCCCCC"])
        taken = {"PT2403-AAAAAA", "PT2403-BBBBBB"}
        code = generate_share_code(
            date(2024, 3, 1),
            is_taken=taken.__contains__,
            suffix=lambda length: next(suffixes),
        )
        assert code == "PT2403-CCCCCC"

    def test_gives_up_after_ten_attempts(self):
        attempts = []

        def always_taken(candidate):
            attempts.append(candidate)
            return True

        with pytest.raises(CodeGenerationExhausted) as exc:
            generate_share_code(date(2024, 3, 1), is_taken=always_taken)
        assert len(attempts) == MAX_CODE_ATTEMPTS == 10
        assert exc.value.prefix == "PT2403"

    def test_exhaustion_is_an_unrecoverable_validation_error(self):
        exc = CodeGenerationExhausted("PT2403")
        assert isinstance(exc, ValidationError)
        assert exc.unrecoverable is True
        assert "code" in exc.messages


class TestDiscountCodes:
    def test_discount_code_shape(self):
        assert re.fullmatch(r"COMP-[A-HJ-NP-Z2-9]{8}", generate_discount_code())

    def test_suffix_uses_unambiguous_alphabet(self):
        suffix = random_suffix(200)
        assert set(suffix) <= set(CODE_ALPHABET)
        assert not set(suffix) & set("01IO")
