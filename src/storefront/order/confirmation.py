"""Order confirmation: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class ConfirmOrderHandler:
    @handle(ConfirmOrder)
    def confirm_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.confirm():
            repo.add(order)
            logger.info("Order confirmed", order_id=str(order.id), number=order.number)
        return str(order.id)
