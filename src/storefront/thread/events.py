"""Domain events for order message threads."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="OrderMessage")
class OrderMessagePosted:
    __version__ = 1

    message_id = Identifier(required=True)
    order_id = Identifier(required=True)
    author_type = String(required=True)
    author_id = Identifier()
    posted_at = DateTime(required=True)
