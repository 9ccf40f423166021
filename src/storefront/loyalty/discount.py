"""DiscountCode aggregate: redeemable discounts granted to customers.

A code carries either a fixed value (in cents) or a percentage, never both.
Redemptions are recorded against the code; a code with ``max_redemptions``
records is used up.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.loyalty.events import DiscountCodeRedeemed, DiscountGranted
from storefront.shared.money import from_cents
from storefront.shared.queries import all_items


class DiscountType(Enum):
    COMPENSATION = "COMPENSATION"


class DiscountScope(Enum):
    ORDER = "ORDER"


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=UTC)


@storefront.entity(part_of="DiscountCode")
class DiscountRedemption:
    order_id = Identifier()
    user_id = Identifier()
    redeemed_at = DateTime(required=True)


@storefront.aggregate
class DiscountCode:
    code = String(required=True, max_length=30, unique=True)
    discount_type = String(choices=DiscountType, default=DiscountType.COMPENSATION.value)
    scope = String(choices=DiscountScope, default=DiscountScope.ORDER.value)
    value_cents = Integer(min_value=1)
    percentage = Integer(min_value=1, max_value=100)
    max_redemptions = Integer(default=1, min_value=1)
    expires_at = DateTime()
    owner_id = Identifier()
    created_by = String(max_length=254)
    details = Text()  # JSON: {"label": ...}
    redemptions = HasMany(DiscountRedemption)
    created_at = DateTime()

    @invariant.post
    def value_and_percentage_are_exclusive(self):
        if (self.value_cents is None) == (self.percentage is None):
            raise ValidationError({"value": ["A discount has either a value or a percentage"]})

    @classmethod
    def grant(cls, code, owner_id, value_cents, label=None, expires_at=None, granted_by=None):
        """A single-use compensation discount for one customer."""
        now = datetime.now(UTC)
        label = (label or "").strip() or None
        discount = cls(
            code=code,
            discount_type=DiscountType.COMPENSATION.value,
            scope=DiscountScope.ORDER.value,
            value_cents=value_cents,
            max_redemptions=1,
            expires_at=expires_at,
            owner_id=str(owner_id),
            created_by=granted_by,
            details=json.dumps({"label": label}),
            created_at=now,
        )
        discount.raise_(
            DiscountGranted(
                discount_code_id=str(discount.id),
                code=code,
                owner_id=discount.owner_id,
                value_cents=value_cents,
                expires_at=expires_at,
                granted_by=granted_by,
                granted_at=now,
            )
        )
        return discount

    @property
    def value(self):
        return from_cents(self.value_cents)

    @property
    def label(self) -> str | None:
        try:
            details = json.loads(self.details) if self.details else {}
        except (TypeError, ValueError):
            return None
        return details.get("label") if isinstance(details, dict) else None

    @property
    def redemption_count(self) -> int:
        return len(self.redemptions or [])

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return _as_utc(self.expires_at) <= (_as_utc(now) or datetime.now(UTC))

    def is_active(self, now: datetime | None = None) -> bool:
        """Unexpired and never redeemed."""
        return not self.is_expired(now) and self.redemption_count == 0

    def redeem(self, order_id=None, user_id=None):
        now = datetime.now(UTC)
        if self.is_expired(now):
            raise ValidationError({"code": [f"Discount code {self.code} has expired"]})
        if self.redemption_count >= (self.max_redemptions or 1):
            raise ValidationError({"code": [f"Discount code {self.code} has already been used"]})

        self.add_redemptions(
            DiscountRedemption(
                order_id=str(order_id) if order_id else None,
                user_id=str(user_id) if user_id else None,
                redeemed_at=now,
            )
        )
        self.raise_(
            DiscountCodeRedeemed(
                discount_code_id=str(self.id),
                code=self.code,
                order_id=str(order_id) if order_id else None,
                user_id=str(user_id) if user_id else None,
                redeemed_at=now,
            )
        )


@storefront.repository(part_of=DiscountCode)
class DiscountCodeRepository:
    def find_by_code(self, code) -> DiscountCode | None:
        return self._dao.query.filter(code=(code or "").strip().upper()).all().first

    def list_discount_codes(self, active_only=False, now: datetime | None = None) -> list[DiscountCode]:
        """All discount codes, newest first; with ``active_only``, only unexpired and unused ones."""
        codes = all_items(self._dao.query.order_by("-created_at"))
        if active_only:
            codes = [code for code in codes if code.is_active(now)]
        return codes
