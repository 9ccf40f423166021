"""Generation of customer-facing coupon and discount codes.

Codes use an alphabet without look-alike characters (no 0/O, 1/I).
"""

import secrets
from collections.abc import Callable
from datetime import date

from protean.exceptions import ValidationError

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

SHARE_PREFIX = "PT"
SHARE_SUFFIX_LENGTH = 6
MAX_CODE_ATTEMPTS = 10

DISCOUNT_PREFIX = "COMP"
DISCOUNT_SUFFIX_LENGTH = 8


class CodeGenerationExhausted(ValidationError):
    """No unused code could be produced within the allowed attempts.

    Callers must not retry: the code space for the prefix is saturated or the
    store is misbehaving, and both need an operator.
    """

    unrecoverable = True

    def __init__(self, prefix: str, attempts: int = MAX_CODE_ATTEMPTS):
        self.prefix = prefix
        self.attempts = attempts
        super().__init__({"code": [f"Could not generate a unique code for {prefix} after {attempts} attempts"]})


def random_suffix(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def share_code_prefix(month: date) -> str:
    """``PT`` followed by the two-digit year and month, e.g. ``PT2403``."""
    return f"{SHARE_PREFIX}{month.year % 100:02d}{month.month:02d}"


def generate_share_code(
    month: date,
    is_taken: Callable[[str], bool],
    attempts: int = MAX_CODE_ATTEMPTS,
    suffix: Callable[[int], str] = random_suffix,
) -> str:
    """A share code for the month that ``is_taken`` reports as unused.

    Raises CodeGenerationExhausted once ``attempts`` candidates were all taken.
    """
    prefix = share_code_prefix(month)
    for _ in range(attempts):
        candidate = f"{prefix}-{suffix(SHARE_SUFFIX_LENGTH)}"
        if not is_taken(candidate):
            return candidate
    raise CodeGenerationExhausted(prefix, attempts)


def generate_discount_code(suffix: Callable[[int], str] = random_suffix) -> str:
    # Not checked against the store; a collision is rejected by the unique constraint on save
    return f"{DISCOUNT_PREFIX}-{suffix(DISCOUNT_SUFFIX_LENGTH)}"
