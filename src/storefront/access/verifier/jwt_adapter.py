"""JWT token verifier backed by PyJWT."""

import jwt

from storefront.access.exceptions import Unauthenticated
from storefront.access.verifier.port import TokenVerifier, VerifiedClaims
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class JwtTokenVerifier(TokenVerifier):
    """Verifies signed JWTs issued by the identity provider."""

    def __init__(self, secret: str, algorithm: str = "HS256", audience: str | None = None) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience

    def verify(self, token: str) -> VerifiedClaims:
        options = {"require": ["sub"]}
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options=options,
            )
        except jwt.PyJWTError as exc:
            logger.warning("Bearer token rejected", error=str(exc))
            raise Unauthenticated("Invalid or expired token") from exc

        return VerifiedClaims(
            subject=str(payload["sub"]),
            email=payload.get("email"),
            name=payload.get("name"),
        )
