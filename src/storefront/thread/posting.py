"""Posting to an order's thread: command and handler."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.thread.message import OrderMessage

logger = structlog.get_logger(__name__)


@storefront.command(part_of="OrderMessage")
class PostOrderMessage:
    order_id = Identifier(required=True)
    author_type = String(required=True, max_length=10)
    author_id = Identifier()
    text = Text(required=True)
    context = Text()  # JSON object merged into the message payload


@storefront.command_handler(part_of=OrderMessage)
class PostOrderMessageHandler:
    @handle(PostOrderMessage)
    def post_order_message(self, command):
        # Unknown orders surface as ObjectNotFoundError before anything is written
        current_domain.repository_for(Order).get(command.order_id)

        context = None
        if command.context:
            try:
                context = json.loads(command.context)
            except ValueError:
                raise ValidationError({"context": ["Must be valid JSON"]}) from None
            if not isinstance(context, dict):
                raise ValidationError({"context": ["Must be a JSON object"]})

        message = OrderMessage.post(
            order_id=command.order_id,
            author_type=command.author_type,
            text=command.text,
            author_id=command.author_id,
            context=context,
        )
        current_domain.repository_for(OrderMessage).add(message)

        logger.info(
            "Order message posted",
            order_id=str(command.order_id),
            message_id=str(message.id),
            author_type=message.author_type,
        )
        return str(message.id)
