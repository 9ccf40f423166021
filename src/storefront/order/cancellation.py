"""Order cancellation: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        if order.cancel(
            reason=command.reason,
            allow_fulfilled=get_settings().ALLOW_CANCEL_FULFILLED,
        ):
            repo.add(order)
            logger.info(
                "Order cancelled",
                order_id=str(order.id),
                previous_status=previous,
                reason=order.cancellation_reason,
            )
        return str(order.id)
