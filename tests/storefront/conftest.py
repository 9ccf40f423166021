import json
import os

import pytest


@pytest.fixture(scope="session")
def _storefront_domain(request):
    """Initialize the storefront domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from storefront.domain import storefront

    storefront.init()
    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_storefront_domain):
    from storefront.utils.db import drop_db, setup_db

    setup_db(_storefront_domain)

    yield

    drop_db(_storefront_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_storefront_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storefront_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    from storefront.access.verifier import reset_verifier
    from storefront.config import get_settings

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    reset_verifier()
    get_settings.cache_clear()
    ctx.pop()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
def combo_line(label="Combo A", quantity=2, unit_price="10.00", line_total="20.00", **extra):
    return {"label": label, "quantity": quantity, "unit_price": unit_price, "line_total": line_total, **extra}


def _register_customer(email="ana@example.com", external_id=None, first_name="Ana", last_name="Pérez"):
    from protean import current_domain

    from storefront.customer.registration import RegisterCustomer

    command = RegisterCustomer(
        email=email,
        external_id=external_id,
        first_name=first_name,
        last_name=last_name,
    )
    return current_domain.process(command, asynchronous=False)


def _place_order(
    items=None,
    total_gross="20.00",
    total_net="18.00",
    discount_total="2.00",
    user_id=None,
    customer_email="ana@example.com",
    customer_name="Ana Pérez",
):
    from protean import current_domain

    from storefront.order.creation import PlaceOrder

    command = PlaceOrder(
        user_id=user_id,
        customer_name=customer_name,
        customer_email=customer_email,
        delivery_address="Av. Siempre Viva 742",
        payment_method="cash",
        items=json.dumps(items if items is not None else [combo_line()]),
        total_gross=total_gross,
        total_net=total_net,
        discount_total=discount_total,
    )
    return current_domain.process(command, asynchronous=False)


@pytest.fixture()
def register_customer():
    """Register a customer through the command handler and return its id."""
    return _register_customer


@pytest.fixture()
def place_order():
    """Place an order through the command handler and return its id."""
    return _place_order
