"""Bearer token verifier port (abstract interface).

The storefront never trusts a token on its own; an adapter turns it into a
verified subject and email or raises ``Unauthenticated``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class VerifiedClaims:
    """Claims extracted from a successfully verified token."""

    subject: str
    email: str | None = None
    name: str | None = None


class TokenVerifier(ABC):
    """Abstract token verifier interface."""

    @abstractmethod
    def verify(self, token: str) -> VerifiedClaims:
        """Verify ``token`` and return its claims."""
        ...
