"""Customer registration: command and handler."""

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.customer.customer import Customer
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Customer")
class RegisterCustomer:
    """Create a customer record, or refresh the one already holding this email."""

    email: String(required=True, max_length=254)
    external_id: String(max_length=255)
    first_name: String(max_length=100)
    last_name: String(max_length=100)
    display_name: String(max_length=200)
    phone: String(max_length=30)


@storefront.command_handler(part_of=Customer)
class RegisterCustomerHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.find_by_email(command.email)

        if customer is None:
            customer = Customer.register(
                email=command.email,
                external_id=command.external_id,
                first_name=command.first_name,
                last_name=command.last_name,
                display_name=command.display_name,
                phone=command.phone,
            )
            logger.info("Customer registered", customer_id=str(customer.id))
        else:
            customer.refresh(
                external_id=command.external_id,
                first_name=command.first_name,
                last_name=command.last_name,
                display_name=command.display_name,
                phone=command.phone,
            )
            logger.info("Customer details refreshed", customer_id=str(customer.id))

        repo.add(customer)
        return str(customer.id)
