"""Customer aggregate: the registered user behind an order or a coupon.

Only what ownership checks and the loyalty program need is kept here: a
stable id, the external auth subject and a unique, lower-cased email.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from storefront.domain import storefront
from storefront.shared.pagination import clamp_skip, clamp_take
from storefront.shared.queries import all_items

# Sentinel for distinguishing "not provided" from None in refreshes
_UNSET = object()


def normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if email.count("@") != 1 or email.startswith("@") or email.endswith("@"):
        raise ValidationError({"email": [f"Invalid email address: {email!r}"]})
    return email


@storefront.aggregate
class Customer:
    """A person registered on the storefront.

    Email is the natural key: signing up twice with the same email refreshes
    the existing record instead of creating a second one.
    """

    email: String(required=True, max_length=254, unique=True)
    external_id: String(max_length=255, unique=True)
    first_name: String(max_length=100)
    last_name: String(max_length=100)
    display_name: String(max_length=200)
    phone: String(max_length=30)
    is_active: Boolean(default=True)
    registered_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def register(
        cls,
        email,
        external_id=None,
        first_name=None,
        last_name=None,
        display_name=None,
        phone=None,
    ):
        from storefront.customer.events import CustomerRegistered

        now = datetime.now(UTC)
        customer = cls(
            email=normalize_email(email),
            external_id=external_id,
            first_name=first_name,
            last_name=last_name,
            display_name=display_name,
            phone=phone,
            is_active=True,
            registered_at=now,
            updated_at=now,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                external_id=external_id,
                email=customer.email,
                registered_at=now,
            )
        )
        return customer

    def refresh(
        self,
        external_id=_UNSET,
        first_name=_UNSET,
        last_name=_UNSET,
        display_name=_UNSET,
        phone=_UNSET,
    ):
        """Refresh details on re-registration. Values left as None keep what is stored."""
        from storefront.customer.events import CustomerDetailsRefreshed

        for field_name, value in (
            ("external_id", external_id),
            ("first_name", first_name),
            ("last_name", last_name),
            ("display_name", display_name),
            ("phone", phone),
        ):
            if value is not _UNSET and value is not None:
                setattr(self, field_name, value)

        self.is_active = True
        self.updated_at = datetime.now(UTC)
        self.raise_(CustomerDetailsRefreshed(customer_id=str(self.id), email=self.email))

    def deactivate(self):
        from storefront.customer.events import CustomerDeactivated

        if not self.is_active:
            return
        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(CustomerDeactivated(customer_id=str(self.id), deactivated_at=now))


@storefront.repository(part_of=Customer)
class CustomerRepository:
    def find_by_email(self, email: str) -> Customer | None:
        return self._dao.query.filter(email=normalize_email(email)).all().first

    def get_email(self, customer_id) -> str | None:
        customer = self._dao.query.filter(id=str(customer_id)).all().first
        return customer.email if customer else None

    def find_page(self, search=None, active_only=False, skip=0, take=None):
        """Customers, newest first, optionally narrowed by an email/name search."""
        skip = clamp_skip(skip)
        take = clamp_take(take)
        query = self._dao.query
        if active_only:
            query = query.filter(is_active=True)
        results = query.order_by("-registered_at")

        term = (search or "").strip().lower()
        if not term:
            page = results.offset(skip).limit(take).all()
            return page.items, page.total

        matches = [
            customer
            for customer in all_items(results)
            if any(
                term in (value or "").lower()
                for value in (customer.email, customer.first_name, customer.last_name, customer.display_name)
            )
        ]
        return matches[skip : skip + take], len(matches)
