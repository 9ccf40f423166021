"""Kitchen progress: preparing and fulfilling orders."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PrepareOrder:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class FulfillOrder:
    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class OrderProgressHandler:
    @handle(PrepareOrder)
    def prepare_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.prepare():
            repo.add(order)
            logger.info("Order preparing", order_id=str(order.id), number=order.number)
        return str(order.id)

    @handle(FulfillOrder)
    def fulfill_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.fulfill():
            repo.add(order)
            logger.info("Order fulfilled", order_id=str(order.id), number=order.number)
        return str(order.id)
