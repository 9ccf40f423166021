"""Tests for item views over snapshot rows and the order document."""

import json
from decimal import Decimal

from storefront.order.items import ItemView, normalized_items
from storefront.order.order import Order


def _order_with_lines(lines):
    return Order.place(
        number=1,
        lines=lines,
        total_gross_cents=sum(line["line_total_cents"] for line in lines),
        customer={"email": "ana@example.com"},
    )


def _legacy_order(items):
    """An order from before snapshot rows: items only in the document."""
    order = Order(
        number=7,
        total_gross_cents=2000,
        total_net_cents=2000,
        details=json.dumps({"customer": {"email": "old@example.com"}, "items": items}),
    )
    return order


class TestSnapshotItems:
    def test_views_built_from_snapshot_rows(self):
        order = _order_with_lines(
            [
                {
                    "label": "Combo A",
                    "quantity": 2,
                    "unit_price_cents": 1000,
                    "line_total_cents": 2000,
                    "product_id": "combo-a",
                    "side": "Papas",
                    "item_type": "combo",
                    "extra": {"sauce": "chimichurri"},
                }
            ]
        )
        [view] = normalized_items(order)
        assert view == ItemView(
            label="Combo A",
            quantity=2,
            unit_price=Decimal("10.00"),
            line_total=Decimal("20.00"),
            product_id="combo-a",
            side="Papas",
            item_type="combo",
            extra={"sauce": "chimichurri"},
        )

    def test_snapshot_rows_win_over_document(self):
        order = _order_with_lines([{"label": "Combo A", "quantity": 2, "unit_price_cents": 1000, "line_total_cents": 2000}])
        order.details = json.dumps({"items": [{"label": "Something else", "quantity": 9, "unitPrice": 1}]})
        [view] = normalized_items(order)
        assert view.label == "Combo A"

    def test_views_keep_line_order(self):
        order = _order_with_lines(
            [
                {"label": "First", "quantity": 1, "unit_price_cents": 100, "line_total_cents": 100},
                {"label": "Second", "quantity": 1, "unit_price_cents": 200, "line_total_cents": 200},
                {"label": "Third", "quantity": 1, "unit_price_cents": 300, "line_total_cents": 300},
            ]
        )
        assert [view.label for view in normalized_items(order)] == ["First", "Second", "Third"]


class TestDocumentItems:
    def test_views_rebuilt_from_document(self):
        order = _legacy_order([{"label": "Combo A", "quantity": 2, "unitPrice": 10, "lineTotal": 20}])
        [view] = normalized_items(order)
        assert view.label == "Combo A"
        assert view.quantity == 2
        assert view.unit_price == Decimal("10")
        assert view.line_total == Decimal("20")

    def test_missing_line_total_is_derived(self):
        order = _legacy_order([{"label": "Empanada", "quantity": 3, "unitPrice": "3.50"}])
        [view] = normalized_items(order)
        assert view.line_total == Decimal("10.50")

    def test_unreadable_entries_are_dropped(self):
        order = _legacy_order(
            [
                "not a mapping",
                {"quantity": 1, "unitPrice": 5},
                {"label": "   ", "quantity": 1, "unitPrice": 5},
                {"label": "Zero", "quantity": 0, "unitPrice": 5},
                {"label": "Negative", "quantity": -2, "unitPrice": 5},
                {"label": "Words", "quantity": "two", "unitPrice": 5},
                {"label": "No price", "quantity": 1},
                {"label": "NaN price", "quantity": 1, "unitPrice": "NaN"},
                {"label": "Kept", "quantity": 1, "unitPrice": 5},
            ]
        )
        assert [view.label for view in normalized_items(order)] == ["Kept"]

    def test_unreadable_optional_prices_become_none(self):
        order = _legacy_order(
            [{"label": "Promo", "quantity": 1, "unitPrice": 8, "originalUnitPrice": "n/a", "discountValue": 2}]
        )
        [view] = normalized_items(order)
        assert view.original_unit_price is None
        assert view.discount_value == Decimal("2")

    def test_no_items_in_document(self):
        order = _legacy_order("nope")
        assert normalized_items(order) == []

    def test_both_paths_produce_the_same_view(self):
        placed = _order_with_lines(
            [{"label": "Combo A", "quantity": 2, "unit_price_cents": 1000, "line_total_cents": 2000}]
        )
        legacy = _legacy_order(json.loads(placed.details)["items"])
        assert normalized_items(placed) == normalized_items(legacy)
