"""Authorization rules for orders, customers and loyalty codes.

The Authorizer is a pure decision component: every check either returns or
raises ``Forbidden``. Admin status comes from the configured allow-list of
email addresses, matched case-insensitively against a verified email.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.access.exceptions import Forbidden, Unauthenticated
from storefront.access.principal import Principal, PrincipalKind
from storefront.access.verifier.port import TokenVerifier
from storefront.config import Settings
from storefront.customer.customer import Customer
from storefront.order.order import Order


class AccessRole(Enum):
    ADMIN = "ADMIN"
    USER = "USER"


@dataclass(frozen=True)
class OrderAccess:
    """How the caller reached an order: as an admin or as its owner."""

    role: AccessRole
    user_id: str | None
    email: str | None


def _same_email(left: str | None, right: str | None) -> bool:
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()


class Authorizer:
    def __init__(self, admin_emails: Iterable[str] = (), api_keys: Iterable[str] = ()) -> None:
        self.admin_emails = frozenset(email.strip().lower() for email in admin_emails if email.strip())
        self.api_keys = frozenset(key for key in api_keys if key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Authorizer":
        return cls(admin_emails=settings.admin_emails, api_keys=settings.api_keys)

    # -------------------------------------------------------------------
    # Principal resolution
    # -------------------------------------------------------------------
    def resolve_principal(
        self,
        verifier: TokenVerifier,
        authorization: str | None = None,
        api_key: str | None = None,
    ) -> Principal:
        """Turn request credentials into a Principal.

        A bearer token takes precedence over an API key. A token that fails
        verification or an unknown API key raises ``Unauthenticated``; no
        credentials at all yields an anonymous principal.
        """
        if authorization and authorization.lower().startswith("bearer "):
            token = authorization[7:].strip()
            if token:
                claims = verifier.verify(token)
                if claims.email and claims.email.strip().lower() in self.admin_emails:
                    return Principal.admin(claims.subject, claims.email, claims.name)
                return Principal.customer(claims.subject, claims.email, claims.name)

        if api_key:
            if api_key in self.api_keys:
                return Principal.service()
            raise Unauthenticated("Unknown API key")

        return Principal.anonymous()

    # -------------------------------------------------------------------
    # Role checks
    # -------------------------------------------------------------------
    def is_admin(self, principal: Principal | None) -> bool:
        return principal is not None and principal.kind == PrincipalKind.ADMIN

    def ensure_authenticated(self, principal: Principal | None) -> None:
        if principal is None or not principal.is_verified:
            raise Forbidden("Sign in required")

    def ensure_admin(self, principal: Principal | None) -> None:
        self.ensure_authenticated(principal)
        if not self.is_admin(principal):
            raise Forbidden("You do not have permission for this operation")

    def ensure_ownership(self, principal: Principal | None, owner_email: str | None) -> None:
        self.ensure_authenticated(principal)
        if self.is_admin(principal):
            return
        if not _same_email(principal.email, owner_email):
            raise Forbidden()

    # -------------------------------------------------------------------
    # Resource checks
    # -------------------------------------------------------------------
    def ensure_user_access(self, principal: Principal | None, user_id: str) -> None:
        """Allow admins, or the customer whose registered email matches the caller."""
        if self.is_admin(principal):
            return
        self.ensure_authenticated(principal)
        if not principal.email:
            raise Forbidden("Could not verify your identity")

        email = current_domain.repository_for(Customer).get_email(user_id)
        if email is None:
            raise Forbidden()
        self.ensure_ownership(principal, email)

    def ensure_order_access(self, principal: Principal | None, order_id: str) -> OrderAccess:
        """Allow admins, or the owner of the order.

        Ownership goes through the registered user when the order has one and
        falls back to the customer email captured at placement otherwise.
        """
        if self.is_admin(principal):
            # Admins may learn that an order does not exist
            current_domain.repository_for(Order).access_context(order_id)
            return OrderAccess(role=AccessRole.ADMIN, user_id=None, email=principal.email)

        self.ensure_authenticated(principal)
        if not principal.email:
            raise Forbidden("Could not verify your identity")

        try:
            context = current_domain.repository_for(Order).access_context(order_id)
        except ObjectNotFoundError:
            raise Forbidden() from None

        if context.user_id:
            self.ensure_user_access(principal, context.user_id)
            return OrderAccess(role=AccessRole.USER, user_id=context.user_id, email=principal.email)

        if not _same_email(context.customer_email, principal.email):
            raise Forbidden()
        return OrderAccess(role=AccessRole.USER, user_id=None, email=principal.email)
