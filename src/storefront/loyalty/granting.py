"""Discount grants and redemptions: commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.customer.customer import Customer
from storefront.domain import storefront
from storefront.loyalty.codes import generate_discount_code
from storefront.loyalty.discount import DiscountCode
from storefront.shared.money import to_cents

logger = structlog.get_logger(__name__)


@storefront.command(part_of="DiscountCode")
class GrantDiscount:
    user_id = Identifier(required=True)
    value = String(required=True, max_length=50)
    label = String(max_length=120)
    expires_at = DateTime()
    granted_by = String(max_length=254)


@storefront.command(part_of="DiscountCode")
class RedeemDiscountCode:
    code = String(required=True, max_length=30)
    user_id = Identifier()
    order_id = Identifier()


@storefront.command_handler(part_of=DiscountCode)
class DiscountCodeHandler:
    @handle(GrantDiscount)
    def grant_discount(self, command):
        value_cents = to_cents(command.value, "value")
        if value_cents <= 0:
            raise ValidationError({"value": ["Discount value must be greater than zero"]})

        customer = current_domain.repository_for(Customer).get(command.user_id)
        discount = DiscountCode.grant(
            code=generate_discount_code(),
            owner_id=customer.id,
            value_cents=value_cents,
            label=command.label,
            expires_at=command.expires_at,
            granted_by=command.granted_by,
        )
        current_domain.repository_for(DiscountCode).add(discount)

        logger.info(
            "Discount granted",
            discount_code_id=str(discount.id),
            owner_id=str(customer.id),
            value_cents=value_cents,
            granted_by=command.granted_by,
        )
        return str(discount.id)

    @handle(RedeemDiscountCode)
    def redeem_discount_code(self, command):
        repo = current_domain.repository_for(DiscountCode)
        discount = repo.find_by_code(command.code)
        if discount is None:
            raise ObjectNotFoundError({"code": [f"Discount code {command.code} not found"]})

        discount.redeem(order_id=command.order_id, user_id=command.user_id)
        repo.add(discount)

        logger.info("Discount code redeemed", discount_code_id=str(discount.id), order_id=command.order_id)
        return str(discount.id)
