"""Resolved caller identity for a single request."""

from dataclasses import dataclass
from enum import Enum


class PrincipalKind(Enum):
    ANONYMOUS = "Anonymous"
    CUSTOMER = "Customer"
    ADMIN = "Admin"
    SERVICE = "Service"  # API-key caller, authenticated transport but no verified identity


@dataclass(frozen=True)
class Principal:
    kind: PrincipalKind
    user_id: str | None = None
    email: str | None = None
    name: str | None = None

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls(kind=PrincipalKind.ANONYMOUS)

    @classmethod
    def service(cls) -> "Principal":
        return cls(kind=PrincipalKind.SERVICE)

    @classmethod
    def customer(cls, user_id: str, email: str | None, name: str | None = None) -> "Principal":
        return cls(kind=PrincipalKind.CUSTOMER, user_id=user_id, email=email, name=name)

    @classmethod
    def admin(cls, user_id: str, email: str, name: str | None = None) -> "Principal":
        return cls(kind=PrincipalKind.ADMIN, user_id=user_id, email=email, name=name)

    @property
    def is_verified(self) -> bool:
        return self.kind in (PrincipalKind.CUSTOMER, PrincipalKind.ADMIN)
