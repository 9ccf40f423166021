"""Order tracking for customers: the order in progress and its conversation."""

from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from storefront.order.order import Order
from storefront.thread.message import DEFAULT_THREAD_SIZE, OrderMessage


@dataclass(frozen=True)
class ActiveOrder:
    order: Order
    messages: list = field(default_factory=list)


def find_active_order(user_id, take_messages=DEFAULT_THREAD_SIZE) -> ActiveOrder | None:
    """The newest PENDING, PREPARING or CONFIRMED order of a user, with its thread."""
    order = current_domain.repository_for(Order).find_active_for_user(user_id)
    if order is None:
        return None
    messages = current_domain.repository_for(OrderMessage).list_for_order(order.id, take=take_messages)
    return ActiveOrder(order=order, messages=messages)
