"""Shared BDD fixtures and step definitions for the storefront."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from storefront.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderFulfilled,
    OrderPlaced,
    OrderPreparing,
)
from storefront.order.order import Order

# Map event name strings to classes for dynamic lookup
_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderConfirmed": OrderConfirmed,
    "OrderPreparing": OrderPreparing,
    "OrderFulfilled": OrderFulfilled,
    "OrderCancelled": OrderCancelled,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def _pending_order():
    order = Order.place(
        number=1,
        lines=[
            {
                "label": "Combo A",
                "quantity": 2,
                "unit_price_cents": 1000,
                "line_total_cents": 2000,
            }
        ],
        total_gross_cents=2000,
        total_net_cents=1800,
        discount_total_cents=200,
        customer={"name": "Ana Pérez", "email": "ana@example.com"},
        delivery={"address": "Av. Siempre Viva 742"},
        payment_method="cash",
    )
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Given steps: Order
# ---------------------------------------------------------------------------
@given("a pending order", target_fixture="order")
def pending_order():
    return _pending_order()


@given("a confirmed order", target_fixture="order")
def confirmed_order():
    order = _pending_order()
    order.confirm()
    order._events.clear()
    return order


@given("a fulfilled order", target_fixture="order")
def fulfilled_order():
    order = _pending_order()
    order.confirm()
    order.fulfill()
    order._events.clear()
    return order


@given("a cancelled order", target_fixture="order")
def cancelled_order():
    order = _pending_order()
    order.cancel(reason="Cliente ausente")
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the action fails with a validation error")
def action_fails_with_validation_error(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse('the cancellation reason is "{reason}"'))
def cancellation_reason_is(order, reason):
    assert order.cancellation_reason == reason


@then(parsers.cfparse("a {event_type} order event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(isinstance(e, event_cls) for e in order._events), (
        f"No {event_type} event found in {order._events}"
    )


@then("no order event is raised")
def no_order_event_raised(order):
    assert order._events == []
