"""Uniform item views over an order's lines.

Orders carry their lines as ``OrderItem`` snapshot rows. Orders placed before
snapshots existed only have the ``items`` list in their JSON document, so the
view falls back to it, skipping entries that cannot be read as a line.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from storefront.shared.money import from_cents


@dataclass(frozen=True)
class ItemView:
    label: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    original_unit_price: Decimal | None = None
    discount_value: Decimal | None = None
    product_id: str | None = None
    side: str | None = None
    item_type: str | None = None
    extra: object = None

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "label": self.label,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "originalUnitPrice": self.original_unit_price,
            "discountValue": self.discount_value,
            "lineTotal": self.line_total,
            "side": self.side,
            "type": self.item_type,
            "metadata": self.extra,
        }


def normalized_items(order) -> list[ItemView]:
    """Item views for an order, from its snapshot rows when it has any."""
    if order.items:
        rows = sorted(order.items, key=lambda item: item.position or 0)
        return [_snapshot_view(item) for item in rows]

    entries = order.document.get("items")
    if not isinstance(entries, list):
        return []
    views = (_document_view(entry) for entry in entries)
    return [view for view in views if view is not None]


def _snapshot_view(item) -> ItemView:
    return ItemView(
        label=item.label,
        quantity=item.quantity,
        unit_price=from_cents(item.unit_price_cents),
        line_total=from_cents(item.line_total_cents),
        original_unit_price=from_cents(item.original_unit_price_cents),
        discount_value=from_cents(item.discount_value_cents),
        product_id=item.product_id,
        side=item.side,
        item_type=item.item_type,
        extra=_load_json(item.extra),
    )


def _document_view(entry) -> ItemView | None:
    if not isinstance(entry, Mapping):
        return None

    label = entry.get("label")
    if not isinstance(label, str) or not label.strip():
        return None

    quantity = _amount(entry.get("quantity"))
    if quantity is None or quantity <= 0 or quantity != quantity.to_integral_value():
        return None
    quantity = int(quantity)

    unit_price = _amount(entry.get("unitPrice"))
    if unit_price is None:
        return None

    line_total = _amount(entry.get("lineTotal"))
    if line_total is None:
        line_total = unit_price * quantity

    product_id = entry.get("productId")
    return ItemView(
        label=label,
        quantity=quantity,
        unit_price=unit_price,
        line_total=line_total,
        original_unit_price=_amount(entry.get("originalUnitPrice")),
        discount_value=_amount(entry.get("discountValue")),
        product_id=str(product_id) if product_id is not None else None,
        side=entry.get("side") if isinstance(entry.get("side"), str) else None,
        item_type=entry.get("type") if isinstance(entry.get("type"), str) else None,
        extra=entry.get("metadata"),
    )


def _amount(value) -> Decimal | None:
    """Lenient number parsing for stored documents. Unreadable or non-finite is None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def _load_json(raw):
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw
