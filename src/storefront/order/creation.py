"""Order placement: command and handler."""

import json
from collections.abc import Mapping

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.customer.customer import Customer, normalize_email
from storefront.domain import storefront
from storefront.order.order import Order
from storefront.shared.money import optional_cents, parse_decimal, to_cents

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier()
    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=254)
    customer_phone = String(max_length=50)
    delivery_address = String(required=True, max_length=500)
    delivery_notes = Text()
    payment_method = String(required=True, max_length=50)
    discount_code = String(max_length=50)
    note = Text()
    whatsapp_link = String(max_length=2000)
    items = Text(required=True)  # JSON: list of cart lines
    total_gross = String(required=True, max_length=50)
    total_net = String(max_length=50)
    discount_total = String(max_length=50)
    extra = Text()  # JSON: free-form data kept in the order document


def _load_json(raw, field):
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationError({field: ["Must be valid JSON"]}) from None


def _parse_quantity(value, field) -> int:
    quantity = parse_decimal(value, field)
    if quantity != quantity.to_integral_value():
        raise ValidationError({field: ["Must be a whole number"]})
    if quantity < 1:
        raise ValidationError({field: ["Must be at least 1"]})
    return int(quantity)


def parse_lines(raw) -> list[dict]:
    """Turn submitted cart lines into the cents-based lines an order stores.

    Every line is kept; a line that cannot be read rejects the whole order.
    """
    entries = _load_json(raw, "items")
    if not isinstance(entries, list):
        raise ValidationError({"items": ["Must be a list of items"]})

    lines = []
    for index, entry in enumerate(entries):
        prefix = f"items[{index}]"
        if not isinstance(entry, Mapping):
            raise ValidationError({prefix: ["Must be an object"]})

        label = entry.get("label")
        if not isinstance(label, str) or not label.strip():
            raise ValidationError({f"{prefix}.label": ["Is required"]})

        product_id = entry.get("product_id", entry.get("productId"))
        lines.append(
            {
                "product_id": str(product_id) if product_id is not None else None,
                "label": label.strip(),
                "quantity": _parse_quantity(entry.get("quantity"), f"{prefix}.quantity"),
                "unit_price_cents": to_cents(
                    entry.get("unit_price", entry.get("unitPrice")), f"{prefix}.unit_price"
                ),
                "original_unit_price_cents": optional_cents(
                    entry.get("original_unit_price", entry.get("originalUnitPrice")),
                    f"{prefix}.original_unit_price",
                ),
                "discount_value_cents": optional_cents(
                    entry.get("discount_value", entry.get("discountValue")),
                    f"{prefix}.discount_value",
                ),
                "line_total_cents": to_cents(
                    entry.get("line_total", entry.get("lineTotal")), f"{prefix}.line_total"
                ),
                "side": entry.get("side"),
                "item_type": entry.get("type"),
                "extra": entry.get("metadata"),
            }
        )
    return lines


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines = parse_lines(command.items)
        total_gross = to_cents(command.total_gross, "total_gross")
        total_net = optional_cents(command.total_net, "total_net")
        discount_total = optional_cents(command.discount_total, "discount_total")

        if command.user_id:
            try:
                current_domain.repository_for(Customer).get(command.user_id)
            except ObjectNotFoundError:
                raise ValidationError({"user_id": ["Unknown customer"]}) from None

        repo = current_domain.repository_for(Order)
        order = Order.place(
            number=repo.next_number(),
            lines=lines,
            total_gross_cents=total_gross,
            total_net_cents=total_net,
            discount_total_cents=discount_total or 0,
            user_id=command.user_id,
            customer={
                "name": command.customer_name.strip(),
                "email": normalize_email(command.customer_email),
                "phone": command.customer_phone,
            },
            delivery={"address": command.delivery_address, "notes": command.delivery_notes},
            payment_method=command.payment_method,
            discount_code=command.discount_code,
            note=command.note,
            whatsapp_link=command.whatsapp_link,
            extra=_load_json(command.extra, "extra") if command.extra else None,
        )
        repo.add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            number=order.number,
            item_count=len(lines),
            total_gross_cents=order.total_gross_cents,
        )
        return str(order.id)
