"""ShareCoupon aggregate: monthly referral coupons.

Every customer gets three share coupons per calendar month. A coupon's
identity is derived from (customer, month, slot), so the store's primary key
alone keeps a month from ever holding more than three, even when two
issuance requests race.
"""

from datetime import UTC, date, datetime
from enum import Enum
from uuid import NAMESPACE_URL, uuid5

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront
from storefront.loyalty.events import (
    ShareCouponActivated,
    ShareCouponIssued,
    ShareCouponRedeemed,
)
from storefront.shared.queries import all_items

COUPONS_PER_MONTH = 3

_SLOT_NAMESPACE = uuid5(NAMESPACE_URL, "storefront:share-coupon")


class ShareCouponStatus(Enum):
    ISSUED = "ISSUED"
    ACTIVATED = "ACTIVATED"
    REDEEMED = "REDEEMED"


def parse_coupon_status(value) -> ShareCouponStatus | None:
    if value is None or str(value).strip() == "":
        return None
    try:
        return ShareCouponStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationError({"status": [f"Unknown share coupon status: {value}"]}) from None


def slot_key(user_id, month: date, slot: int) -> str:
    return f"{user_id}:{month.year:04d}-{month.month:02d}:{slot}"


def slot_id(user_id, month: date, slot: int) -> str:
    """Stable coupon id for a customer's slot in a month."""
    return str(uuid5(_SLOT_NAMESPACE, slot_key(user_id, month, slot)))


def normalize_code(code) -> str:
    return (code or "").strip().upper()


@storefront.aggregate
class ShareCoupon:
    code: String(required=True, max_length=20, unique=True)
    user_id: Identifier(required=True)
    year: Integer(required=True, min_value=2000)
    month: Integer(required=True, min_value=1, max_value=12)
    slot: Integer(required=True, min_value=1, max_value=COUPONS_PER_MONTH)
    status: String(choices=ShareCouponStatus, default=ShareCouponStatus.ISSUED.value)
    issued_at: DateTime()
    activated_at: DateTime()
    redeemed_at: DateTime()

    @classmethod
    def issue(cls, user_id, month: date, slot: int, code: str):
        now = datetime.now(UTC)
        coupon = cls(
            id=slot_id(user_id, month, slot),
            code=code,
            user_id=str(user_id),
            year=month.year,
            month=month.month,
            slot=slot,
            status=ShareCouponStatus.ISSUED.value,
            issued_at=now,
        )
        coupon.raise_(
            ShareCouponIssued(
                coupon_id=str(coupon.id),
                user_id=coupon.user_id,
                code=code,
                year=coupon.year,
                month=coupon.month,
                slot=slot,
                issued_at=now,
            )
        )
        return coupon

    def activate(self) -> bool:
        """ISSUED → ACTIVATED. Coupons already activated or redeemed stay as they are."""
        if self.status != ShareCouponStatus.ISSUED.value:
            return False

        now = datetime.now(UTC)
        self.status = ShareCouponStatus.ACTIVATED.value
        self.activated_at = now
        self.raise_(
            ShareCouponActivated(
                coupon_id=str(self.id),
                user_id=self.user_id,
                code=self.code,
                activated_at=now,
            )
        )
        return True

    def redeem(self) -> bool:
        if self.status == ShareCouponStatus.REDEEMED.value:
            return False
        if self.status != ShareCouponStatus.ACTIVATED.value:
            raise ValidationError({"status": ["Share coupon must be activated before it is redeemed"]})

        now = datetime.now(UTC)
        self.status = ShareCouponStatus.REDEEMED.value
        self.redeemed_at = now
        self.raise_(
            ShareCouponRedeemed(
                coupon_id=str(self.id),
                user_id=self.user_id,
                code=self.code,
                redeemed_at=now,
            )
        )
        return True


def _newest_first(coupons):
    return sorted(coupons, key=lambda coupon: (-coupon.year, -coupon.month, coupon.slot))


@storefront.repository(part_of=ShareCoupon)
class ShareCouponRepository:
    def code_taken(self, code: str) -> bool:
        return self._dao.query.filter(code=code).all().first is not None

    def for_month(self, user_id, month: date) -> list[ShareCoupon]:
        coupons = self._dao.query.filter(user_id=str(user_id), year=month.year, month=month.month).all().items
        return sorted(coupons, key=lambda coupon: coupon.slot)

    def find_for_user(self, user_id, code) -> ShareCoupon | None:
        return self._dao.query.filter(user_id=str(user_id), code=normalize_code(code)).all().first

    def list_share_coupons(self, user_id) -> list[ShareCoupon]:
        """A customer's coupons, newest month first."""
        return _newest_first(all_items(self._dao.query.filter(user_id=str(user_id)).order_by("-issued_at")))

    def list_all(self, status=None) -> list[ShareCoupon]:
        status = parse_coupon_status(status) if not isinstance(status, ShareCouponStatus) else status
        query = self._dao.query
        if status is not None:
            query = query.filter(status=status.value)
        return _newest_first(all_items(query.order_by("-issued_at")))
