"""Engagement snapshot for a customer, built from their order history."""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from protean.utils.globals import current_domain

from storefront.customer.customer import Customer
from storefront.order.order import Order, OrderStatus
from storefront.shared.money import from_cents
from storefront.shared.queries import all_items

# Orders that count towards engagement
_COUNTED_STATUSES = [OrderStatus.CONFIRMED.value, OrderStatus.FULFILLED.value]

BONUS_THRESHOLD = 3


@dataclass(frozen=True)
class Engagement:
    customer_id: str
    monthly_orders: int
    lifetime_orders: int
    lifetime_net_sales: Decimal
    last_order_at: datetime | None
    qualifies_for_bonus: bool


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def customer_engagement(customer_id, now: datetime | None = None) -> Engagement:
    """Confirmed and fulfilled orders of a customer, this month and overall.

    Raises ObjectNotFoundError when the customer does not exist.
    """
    customer = current_domain.repository_for(Customer).get(customer_id)
    now = _as_utc(now) or datetime.now(UTC)
    start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    query = current_domain.repository_for(Order)._dao.query.filter(
        user_id=str(customer.id),
        status__in=_COUNTED_STATUSES,
    )
    orders = all_items(query.order_by("-placed_at"))
    placed = [_as_utc(order.placed_at) for order in orders if order.placed_at]
    monthly = sum(1 for placed_at in placed if start_of_month <= placed_at <= now)

    return Engagement(
        customer_id=str(customer.id),
        monthly_orders=monthly,
        lifetime_orders=len(orders),
        lifetime_net_sales=from_cents(sum(order.total_net_cents or 0 for order in orders)),
        last_order_at=max(placed) if placed else None,
        qualifies_for_bonus=monthly >= BONUS_THRESHOLD,
    )
