"""Domain events for share coupons and discount codes."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="ShareCoupon")
class ShareCouponIssued:
    __version__ = 1

    coupon_id = Identifier(required=True)
    user_id = Identifier(required=True)
    code = String(required=True)
    year = Integer(required=True)
    month = Integer(required=True)
    slot = Integer(required=True)
    issued_at = DateTime(required=True)


@storefront.event(part_of="ShareCoupon")
class ShareCouponActivated:
    __version__ = 1

    coupon_id = Identifier(required=True)
    user_id = Identifier(required=True)
    code = String(required=True)
    activated_at = DateTime(required=True)


@storefront.event(part_of="ShareCoupon")
class ShareCouponRedeemed:
    __version__ = 1

    coupon_id = Identifier(required=True)
    user_id = Identifier(required=True)
    code = String(required=True)
    redeemed_at = DateTime(required=True)


@storefront.event(part_of="DiscountCode")
class DiscountGranted:
    """An admin granted a one-off compensation discount to a customer."""

    __version__ = 1

    discount_code_id = Identifier(required=True)
    code = String(required=True)
    owner_id = Identifier()
    value_cents = Integer()
    percentage = Integer()
    expires_at = DateTime()
    granted_by = String()
    granted_at = DateTime(required=True)


@storefront.event(part_of="DiscountCode")
class DiscountCodeRedeemed:
    __version__ = 1

    discount_code_id = Identifier(required=True)
    code = String(required=True)
    order_id = Identifier()
    user_id = Identifier()
    redeemed_at = DateTime(required=True)
