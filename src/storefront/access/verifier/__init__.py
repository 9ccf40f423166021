"""Token verifier factory.

Provides get_verifier() / set_verifier() to swap implementations:
- JwtTokenVerifier for deployed environments (default)
- FakeTokenVerifier for tests
"""

from storefront.access.verifier.jwt_adapter import JwtTokenVerifier
from storefront.access.verifier.port import TokenVerifier
from storefront.config import get_settings

_current_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    """Return the current token verifier. Defaults to a JWT verifier built from settings."""
    global _current_verifier
    if _current_verifier is None:
        settings = get_settings()
        _current_verifier = JwtTokenVerifier(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            audience=settings.JWT_AUDIENCE,
        )
    return _current_verifier


def set_verifier(verifier: TokenVerifier) -> None:
    """Override the active verifier (useful for tests)."""
    global _current_verifier
    _current_verifier = verifier


def reset_verifier() -> None:
    """Reset to default verifier."""
    global _current_verifier
    _current_verifier = None
