"""Domain events for the Order aggregate.

Money travels in integer cents, exactly as it is stored on the order.
"""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order; its items were snapshotted at this moment."""

    __version__ = 1

    order_id = Identifier(required=True)
    number = Integer(required=True)
    user_id = Identifier()
    customer_email = String()
    item_count = Integer(required=True)
    total_gross_cents = Integer(required=True)
    total_net_cents = Integer(required=True)
    discount_total_cents = Integer(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderConfirmed:
    __version__ = 1

    order_id = Identifier(required=True)
    confirmed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPreparing:
    """The kitchen started preparing the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    prepared_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderFulfilled:
    __version__ = 1

    order_id = Identifier(required=True)
    fulfilled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
