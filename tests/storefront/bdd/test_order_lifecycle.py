"""BDD tests for the order lifecycle."""

from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, when

scenarios("features/order_lifecycle.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the order is confirmed")
def confirm_order(order, error):
    try:
        order.confirm()
    except ValidationError as exc:
        error["exc"] = exc


@when("the order is prepared")
def prepare_order(order, error):
    try:
        order.prepare()
    except ValidationError as exc:
        error["exc"] = exc


@when("the order is fulfilled")
def fulfill_order(order, error):
    try:
        order.fulfill()
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the order is cancelled with reason "{reason}"'))
def cancel_order(order, error, reason):
    try:
        order.cancel(reason=reason)
    except ValidationError as exc:
        error["exc"] = exc


@when("the order is cancelled while cancelling fulfilled orders is disabled")
def cancel_order_strictly(order, error):
    try:
        order.cancel(reason="Reembolso", allow_fulfilled=False)
    except ValidationError as exc:
        error["exc"] = exc
