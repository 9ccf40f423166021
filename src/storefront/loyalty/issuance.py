"""Monthly share coupon issuance: command and handler."""

from datetime import UTC, date, datetime

import structlog
from protean import handle
from protean.fields import Date, Identifier
from protean.utils.globals import current_domain

from storefront.customer.customer import Customer
from storefront.domain import storefront
from storefront.loyalty.codes import CodeGenerationExhausted, generate_share_code
from storefront.loyalty.coupon import COUPONS_PER_MONTH, ShareCoupon

logger = structlog.get_logger(__name__)


@storefront.command(part_of="ShareCoupon")
class IssueMonthlyShareCoupons:
    """Make sure the customer holds all three share coupons for a month.

    The month is taken from ``reference_date``, today (UTC) when omitted.
    Only missing slots are filled, so issuing twice is harmless.
    """

    user_id = Identifier(required=True)
    reference_date = Date()


@storefront.command_handler(part_of=ShareCoupon)
class IssueShareCouponsHandler:
    @handle(IssueMonthlyShareCoupons)
    def issue_monthly_share_coupons(self, command):
        customer = current_domain.repository_for(Customer).get(command.user_id)
        reference = command.reference_date or datetime.now(UTC).date()
        month = date(reference.year, reference.month, 1)

        repo = current_domain.repository_for(ShareCoupon)
        coupons = {coupon.slot: coupon for coupon in repo.for_month(customer.id, month)}
        issued = 0
        for slot in range(1, COUPONS_PER_MONTH + 1):
            if slot in coupons:
                continue
            try:
                code = generate_share_code(month, repo.code_taken)
            except CodeGenerationExhausted:
                logger.error(
                    "Share coupon code space exhausted",
                    user_id=str(customer.id),
                    year=month.year,
                    month=month.month,
                )
                raise
            coupon = ShareCoupon.issue(customer.id, month, slot, code)
            repo.add(coupon)
            coupons[slot] = coupon
            issued += 1

        if issued:
            logger.info(
                "Share coupons issued",
                user_id=str(customer.id),
                year=month.year,
                month=month.month,
                count=issued,
            )
        return [str(coupons[slot].id) for slot in sorted(coupons)]
