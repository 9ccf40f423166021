"""Customer account lifecycle: command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.customer.customer import Customer
from storefront.domain import storefront


@storefront.command(part_of="Customer")
class DeactivateCustomer:
    """Mark a customer inactive. Orders and coupons are kept."""

    customer_id: Identifier(required=True)


@storefront.command_handler(part_of=Customer)
class ManageAccountHandler:
    @handle(DeactivateCustomer)
    def deactivate_customer(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.deactivate()
        repo.add(customer)
        return str(customer.id)
