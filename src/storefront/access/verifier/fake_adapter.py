"""In-memory token verifier for development and testing.

Tokens are registered up front; anything else is rejected exactly like an
expired token would be.
"""

from storefront.access.exceptions import Unauthenticated
from storefront.access.verifier.port import TokenVerifier, VerifiedClaims


class FakeTokenVerifier(TokenVerifier):
    def __init__(self) -> None:
        self.tokens: dict[str, VerifiedClaims] = {}
        self.calls: list[str] = []

    def register(self, token: str, subject: str, email: str | None = None, name: str | None = None) -> None:
        self.tokens[token] = VerifiedClaims(subject=subject, email=email, name=name)

    def verify(self, token: str) -> VerifiedClaims:
        self.calls.append(token)
        try:
            return self.tokens[token]
        except KeyError:
            raise Unauthenticated("Invalid or expired token") from None
