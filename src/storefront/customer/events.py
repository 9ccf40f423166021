"""Domain events for the Customer aggregate."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Customer")
class CustomerRegistered:
    """A new customer record was created for a verified identity."""

    __version__ = 1

    customer_id = Identifier(required=True)
    external_id = String()
    email = String(required=True)
    registered_at = DateTime(required=True)


@storefront.event(part_of="Customer")
class CustomerDetailsRefreshed:
    """An existing customer signed up again and their details were refreshed."""

    __version__ = 1

    customer_id = Identifier(required=True)
    email = String(required=True)


@storefront.event(part_of="Customer")
class CustomerDeactivated:
    __version__ = 1

    customer_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)
