"""Share coupon activation and redemption: commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.loyalty.coupon import ShareCoupon

logger = structlog.get_logger(__name__)


@storefront.command(part_of="ShareCoupon")
class ActivateShareCoupon:
    user_id = Identifier(required=True)
    code = String(required=True, max_length=20)


@storefront.command(part_of="ShareCoupon")
class RedeemShareCoupon:
    user_id = Identifier(required=True)
    code = String(required=True, max_length=20)


def _coupon_of(user_id, code) -> ShareCoupon:
    coupon = current_domain.repository_for(ShareCoupon).find_for_user(user_id, code)
    if coupon is None:
        raise ObjectNotFoundError({"code": [f"Share coupon {code} not found"]})
    return coupon


@storefront.command_handler(part_of=ShareCoupon)
class ShareCouponLifecycleHandler:
    @handle(ActivateShareCoupon)
    def activate_share_coupon(self, command):
        coupon = _coupon_of(command.user_id, command.code)
        if coupon.activate():
            current_domain.repository_for(ShareCoupon).add(coupon)
            logger.info("Share coupon activated", coupon_id=str(coupon.id), user_id=coupon.user_id)
        return str(coupon.id)

    @handle(RedeemShareCoupon)
    def redeem_share_coupon(self, command):
        coupon = _coupon_of(command.user_id, command.code)
        if coupon.redeem():
            current_domain.repository_for(ShareCoupon).add(coupon)
            logger.info("Share coupon redeemed", coupon_id=str(coupon.id), user_id=coupon.user_id)
        return str(coupon.id)
