"""Order aggregate: the ledger entry for a storefront order.

State machine:
    PENDING → CONFIRMED → PREPARING → FULFILLED
    PENDING → PREPARING
    any non-cancelled state → CANCELLED

Transitions are idempotent: asking for the state an order is already in (or,
for ``prepare``, any state beyond it) changes nothing and raises no event.
Nothing leaves CANCELLED except another ``cancel``, which is a no-op.

Money lives in integer cents. ``details`` keeps the JSON document every order
has carried since before item snapshots existed; it is still written so that
older readers keep working.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderFulfilled,
    OrderPlaced,
    OrderPreparing,
)
from storefront.shared.money import from_cents
from storefront.shared.pagination import clamp_skip, clamp_take


class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"


ACTIVE_STATUSES = (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.CONFIRMED)

# States from which ``prepare`` has nothing left to do
_PREPARED_OR_LATER = {
    OrderStatus.CONFIRMED.value,
    OrderStatus.PREPARING.value,
    OrderStatus.FULFILLED.value,
}


def parse_status(value) -> OrderStatus | None:
    """Parse an optional status filter. Blank means no filter."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return OrderStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status: {value}"]}) from None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A line of the order, frozen at placement.

    Catalogue edits after placement never reach this row: label, prices and
    the promotional discount are copied from the cart line as they were.
    """

    product_id = String(max_length=100)
    label = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=0)
    original_unit_price_cents = Integer(min_value=0)
    discount_value_cents = Integer(min_value=0)
    line_total_cents = Integer(required=True, min_value=0)
    side = String(max_length=255)
    item_type = String(max_length=50)
    extra = Text()
    position = Integer(default=0)

    @property
    def unit_price(self):
        return from_cents(self.unit_price_cents)

    @property
    def line_total(self):
        return from_cents(self.line_total_cents)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    number = Integer(required=True, min_value=1, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    channel = String(max_length=20, default="web")
    user_id = Identifier()
    customer_email = String(max_length=254)
    customer_name = String(max_length=200)
    customer_phone = String(max_length=50)
    delivery_address = String(max_length=500)
    delivery_notes = Text()
    payment_method = String(max_length=50)
    discount_code = String(max_length=50)
    note = Text()
    whatsapp_link = String(max_length=2000)
    total_gross_cents = Integer(required=True, min_value=0)
    total_net_cents = Integer(required=True, min_value=0)
    discount_total_cents = Integer(default=0, min_value=0)
    details = Text()
    items = HasMany(OrderItem)
    placed_at = DateTime()
    confirmed_at = DateTime()
    prepared_at = DateTime()
    fulfilled_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def discount_cannot_exceed_gross_total(self):
        if (self.discount_total_cents or 0) > (self.total_gross_cents or 0):
            raise ValidationError({"discount_total": ["Discount total cannot exceed the gross total"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        number,
        lines,
        total_gross_cents,
        total_net_cents=None,
        discount_total_cents=0,
        user_id=None,
        customer=None,
        delivery=None,
        payment_method=None,
        discount_code=None,
        note=None,
        whatsapp_link=None,
        extra=None,
        channel="web",
    ):
        """Place a new order.

        Args:
            number: The next sequential order number.
            lines: Cart lines, already converted to cents. Each is a dict with
                label, quantity, unit_price_cents, line_total_cents and the
                optional product_id, original_unit_price_cents,
                discount_value_cents, side, item_type and extra.
            customer: Dict with optional name, email and phone.
            delivery: Dict with optional address and notes.
            extra: Free-form data kept in the order document.
        """
        customer = customer or {}
        delivery = delivery or {}
        now = datetime.now(UTC)

        order = cls(
            number=number,
            status=OrderStatus.PENDING.value,
            channel=channel or "web",
            user_id=user_id,
            customer_email=customer.get("email"),
            customer_name=customer.get("name"),
            customer_phone=customer.get("phone"),
            delivery_address=delivery.get("address"),
            delivery_notes=delivery.get("notes"),
            payment_method=payment_method,
            discount_code=discount_code,
            note=note,
            whatsapp_link=whatsapp_link,
            total_gross_cents=total_gross_cents,
            total_net_cents=total_gross_cents if total_net_cents is None else total_net_cents,
            discount_total_cents=discount_total_cents or 0,
            details=json.dumps(
                _order_document(lines, customer, delivery, payment_method, note, extra),
                default=str,
            ),
            placed_at=now,
            created_at=now,
            updated_at=now,
        )

        for position, line in enumerate(lines):
            order.add_items(
                OrderItem(
                    product_id=line.get("product_id"),
                    label=line["label"],
                    quantity=line["quantity"],
                    unit_price_cents=line["unit_price_cents"],
                    original_unit_price_cents=line.get("original_unit_price_cents"),
                    discount_value_cents=line.get("discount_value_cents"),
                    line_total_cents=line["line_total_cents"],
                    side=line.get("side"),
                    item_type=line.get("item_type"),
                    extra=json.dumps(line["extra"], default=str) if line.get("extra") is not None else None,
                    position=position,
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                number=number,
                user_id=str(user_id) if user_id else None,
                customer_email=order.customer_email,
                item_count=len(lines),
                total_gross_cents=order.total_gross_cents,
                total_net_cents=order.total_net_cents,
                discount_total_cents=order.discount_total_cents,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def confirm(self) -> bool:
        if self.status == OrderStatus.CANCELLED.value:
            raise ValidationError({"status": ["Cannot confirm a cancelled order"]})
        if self.status == OrderStatus.CONFIRMED.value:
            return False

        now = datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        self.confirmed_at = now
        self._clear_cancellation()
        self.updated_at = now
        self.raise_(OrderConfirmed(order_id=str(self.id), confirmed_at=now))
        return True

    def prepare(self) -> bool:
        if self.status == OrderStatus.CANCELLED.value:
            raise ValidationError({"status": ["Cannot prepare a cancelled order"]})
        if self.status in _PREPARED_OR_LATER:
            return False

        now = datetime.now(UTC)
        self.status = OrderStatus.PREPARING.value
        self.prepared_at = now
        self._clear_cancellation()
        self.updated_at = now
        self.raise_(OrderPreparing(order_id=str(self.id), prepared_at=now))
        return True

    def fulfill(self) -> bool:
        if self.status == OrderStatus.CANCELLED.value:
            raise ValidationError({"status": ["Cannot fulfill a cancelled order"]})
        if self.status == OrderStatus.FULFILLED.value:
            return False

        now = datetime.now(UTC)
        self.status = OrderStatus.FULFILLED.value
        self.fulfilled_at = now
        self.updated_at = now
        self.raise_(OrderFulfilled(order_id=str(self.id), fulfilled_at=now))
        return True

    def cancel(self, reason=None, allow_fulfilled=True) -> bool:
        if self.status == OrderStatus.CANCELLED.value:
            return False
        if self.status == OrderStatus.FULFILLED.value and not allow_fulfilled:
            raise ValidationError({"status": ["Cannot cancel a fulfilled order"]})

        reason = (reason or "").strip() or None
        previous = self.status
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_at = now
        self.cancellation_reason = reason
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )
        return True

    def _clear_cancellation(self):
        self.cancelled_at = None
        self.cancellation_reason = None

    # -------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------
    @property
    def document(self) -> dict:
        """The order's JSON document, or an empty dict when missing or unreadable."""
        if not self.details:
            return {}
        try:
            document = json.loads(self.details)
        except (TypeError, ValueError):
            return {}
        return document if isinstance(document, dict) else {}

    @property
    def total_gross(self):
        return from_cents(self.total_gross_cents)

    @property
    def total_net(self):
        return from_cents(self.total_net_cents)

    @property
    def discount_total(self):
        return from_cents(self.discount_total_cents or 0)

    @property
    def is_active(self) -> bool:
        return self.status in {status.value for status in ACTIVE_STATUSES}


def _order_document(lines, customer, delivery, payment_method, note, extra) -> dict:
    """The JSON document stored alongside the order, in its long-standing shape."""
    return {
        "customer": {
            "name": customer.get("name"),
            "email": customer.get("email"),
            "phone": customer.get("phone"),
        },
        "delivery": {
            "addressLine": delivery.get("address"),
            "notes": delivery.get("notes"),
        },
        "paymentMethod": payment_method,
        "items": [
            {
                "productId": line.get("product_id"),
                "label": line["label"],
                "quantity": line["quantity"],
                "unitPrice": str(from_cents(line["unit_price_cents"])),
                "originalUnitPrice": _optional_amount(line.get("original_unit_price_cents")),
                "discountValue": _optional_amount(line.get("discount_value_cents")),
                "lineTotal": str(from_cents(line["line_total_cents"])),
                "side": line.get("side"),
                "type": line.get("item_type"),
                "metadata": line.get("extra"),
            }
            for line in lines
        ],
        "notes": note,
        "extra": extra,
    }


def _optional_amount(cents):
    return None if cents is None else str(from_cents(cents))


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderPage:
    items: list
    total: int
    skip: int
    take: int


@dataclass(frozen=True)
class OrderAccessContext:
    """The minimum needed to decide who may see an order."""

    id: str
    user_id: str | None
    customer_email: str | None


@storefront.repository(part_of=Order)
class OrderRepository:
    def next_number(self) -> int:
        latest = self._dao.query.order_by("-number").limit(1).all().first
        return (latest.number if latest else 0) + 1

    def get_order(self, order_id) -> Order:
        return self.get(order_id)

    def find_page(self, status=None, user_id=None, skip=0, take=None) -> OrderPage:
        """A page of orders, newest first, optionally filtered by status and owner."""
        status = parse_status(status) if not isinstance(status, OrderStatus) else status
        skip = clamp_skip(skip)
        take = clamp_take(take)

        query = self._dao.query
        if status is not None:
            query = query.filter(status=status.value)
        if user_id:
            query = query.filter(user_id=str(user_id))

        results = query.order_by(["-placed_at", "-number"]).offset(skip).limit(take).all()
        return OrderPage(items=list(results.items), total=results.total, skip=skip, take=take)

    def find_for_user(self, user_id, take=10) -> list[Order]:
        take = clamp_take(take, default=10)
        return (
            self._dao.query.filter(user_id=str(user_id))
            .order_by(["-placed_at", "-number"])
            .limit(take)
            .all()
            .items
        )

    def find_active_for_user(self, user_id) -> Order | None:
        """The newest order of this user that is still in progress."""
        return (
            self._dao.query.filter(
                user_id=str(user_id),
                status__in=[status.value for status in ACTIVE_STATUSES],
            )
            .order_by(["-placed_at", "-number"])
            .limit(1)
            .all()
            .first
        )

    def access_context(self, order_id) -> OrderAccessContext:
        # A plain row lookup; the item snapshots are never loaded
        order = self._dao.query.filter(id=str(order_id)).all().first
        if order is None:
            raise ObjectNotFoundError({"order_id": [f"Order {order_id} not found"]})
        email = order.customer_email
        if not email:
            # Orders placed before the email column existed only carry it in the document
            customer = order.document.get("customer")
            if isinstance(customer, dict) and isinstance(customer.get("email"), str):
                email = customer["email"]
        return OrderAccessContext(
            id=str(order.id),
            user_id=str(order.user_id) if order.user_id else None,
            customer_email=email or None,
        )
