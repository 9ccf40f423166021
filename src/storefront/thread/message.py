"""OrderMessage aggregate: one note on an order's conversation thread.

Threads are append-only: a message is written once and never edited or
removed. Who may read or write a thread is decided by the caller.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.shared.pagination import MAX_THREAD_SIZE, clamp_take
from storefront.thread.events import OrderMessagePosted

DEFAULT_THREAD_SIZE = 50


class AuthorType(Enum):
    ADMIN = "ADMIN"
    USER = "USER"


@storefront.aggregate
class OrderMessage:
    order_id = Identifier(required=True)
    author_type = String(required=True, choices=AuthorType)
    author_id = Identifier()
    payload = Text(required=True)  # JSON: {"type": "text", "message": ..., **context}
    created_at = DateTime()
    read_at = DateTime()

    @classmethod
    def post(cls, order_id, author_type, text, author_id=None, context=None):
        text = (text or "").strip()
        if not text:
            raise ValidationError({"message": ["Message cannot be empty"]})

        # Caller context is merged in; the type tag and text always win
        payload = {**(context or {}), "type": "text", "message": text}

        now = datetime.now(UTC)
        message = cls(
            order_id=str(order_id),
            author_type=getattr(author_type, "value", author_type),
            author_id=str(author_id) if author_id else None,
            payload=json.dumps(payload, default=str),
            created_at=now,
        )
        message.raise_(
            OrderMessagePosted(
                message_id=str(message.id),
                order_id=message.order_id,
                author_type=message.author_type,
                author_id=message.author_id,
                posted_at=now,
            )
        )
        return message

    @property
    def content(self) -> dict:
        try:
            content = json.loads(self.payload)
        except (TypeError, ValueError):
            return {"type": "text", "message": self.payload}
        return content if isinstance(content, dict) else {"type": "text", "message": str(content)}

    @property
    def text(self) -> str | None:
        return self.content.get("message")


@storefront.repository(part_of=OrderMessage)
class OrderMessageRepository:
    def list_for_order(self, order_id, take=DEFAULT_THREAD_SIZE) -> list[OrderMessage]:
        """Messages of an order, oldest first. Raises ObjectNotFoundError for an unknown order."""
        from storefront.order.order import Order

        current_domain.repository_for(Order).get(order_id)
        take = clamp_take(take, default=DEFAULT_THREAD_SIZE, maximum=MAX_THREAD_SIZE)
        return self._dao.query.filter(order_id=str(order_id)).order_by("created_at").limit(take).all().items
