"""FastAPI routes for the storefront: orders, order threads, customers and loyalty.

Every route resolves the calling Principal first and asks the Authorizer
before touching a resource. Writes go through protean commands; reads go
through repository queries.
"""

import json

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from storefront.access.authz import AccessRole, Authorizer
from storefront.access.exceptions import Forbidden
from storefront.access.principal import Principal
from storefront.api.deps import get_authorizer, get_principal
from storefront.api.schemas import (
    ActiveOrderResponse,
    CancelOrderRequest,
    CustomerPageResponse,
    CustomerResponse,
    DiscountCodeResponse,
    EngagementResponse,
    GrantDiscountRequest,
    MessageResponse,
    OrderAccessResponse,
    OrderPageResponse,
    OrderResponse,
    PlaceOrderRequest,
    PostMessageRequest,
    RegisterCustomerRequest,
    ShareCouponResponse,
)
from storefront.customer.account import DeactivateCustomer
from storefront.customer.customer import Customer
from storefront.customer.engagement import customer_engagement
from storefront.customer.registration import RegisterCustomer
from storefront.loyalty.activation import ActivateShareCoupon
from storefront.loyalty.coupon import ShareCoupon
from storefront.loyalty.discount import DiscountCode
from storefront.loyalty.granting import GrantDiscount
from storefront.loyalty.issuance import IssueMonthlyShareCoupons
from storefront.order.cancellation import CancelOrder
from storefront.order.confirmation import ConfirmOrder
from storefront.order.creation import PlaceOrder
from storefront.order.fulfillment import FulfillOrder, PrepareOrder
from storefront.order.order import Order
from storefront.order.tracking import find_active_order
from storefront.shared.pagination import clamp_skip, clamp_take
from storefront.thread.message import DEFAULT_THREAD_SIZE, AuthorType, OrderMessage
from storefront.thread.posting import PostOrderMessage


def _order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(current_domain.repository_for(Order).get_order(order_id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(body: PlaceOrderRequest) -> OrderResponse:
    command = PlaceOrder(
        user_id=body.user_id,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        customer_phone=body.customer_phone,
        delivery_address=body.delivery.address_line,
        delivery_notes=body.delivery.notes,
        payment_method=body.payment_method,
        discount_code=body.discount_code,
        note=body.notes,
        whatsapp_link=body.whatsapp_link,
        items=json.dumps([item.model_dump() for item in body.items], default=str),
        total_gross=str(body.total_gross),
        total_net=str(body.total_net) if body.total_net is not None else None,
        discount_total=str(body.discount_total) if body.discount_total is not None else None,
        extra=json.dumps(body.metadata, default=str) if body.metadata is not None else None,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _order(order_id)


@order_router.get("", response_model=OrderPageResponse)
async def list_orders(
    status: str | None = None,
    skip: int = 0,
    take: int = 25,
    user_id: str | None = Query(default=None, alias="userId"),
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> OrderPageResponse:
    authorizer.ensure_admin(principal)
    page = current_domain.repository_for(Order).find_page(status=status, user_id=user_id, skip=skip, take=take)
    return OrderPageResponse(
        items=[OrderResponse.from_order(order) for order in page.items],
        total=page.total,
        skip=page.skip,
        take=page.take,
    )


@order_router.get("/user/{user_id}", response_model=list[OrderResponse])
async def list_orders_for_user(
    user_id: str,
    take: int = 10,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> list[OrderResponse]:
    authorizer.ensure_user_access(principal, user_id)
    orders = current_domain.repository_for(Order).find_for_user(user_id, take=take)
    return [OrderResponse.from_order(order) for order in orders]


@order_router.get("/user/{user_id}/active", response_model=ActiveOrderResponse | None)
async def active_order_for_user(
    user_id: str,
    take_messages: int = DEFAULT_THREAD_SIZE,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> ActiveOrderResponse | None:
    authorizer.ensure_user_access(principal, user_id)
    active = find_active_order(user_id, take_messages=take_messages)
    if active is None:
        return None
    return ActiveOrderResponse(
        order=OrderResponse.from_order(active.order),
        messages=[MessageResponse.from_message(message) for message in active.messages],
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> OrderResponse:
    authorizer.ensure_order_access(principal, order_id)
    return _order(order_id)


@order_router.get("/{order_id}/access", response_model=OrderAccessResponse)
async def get_order_access(
    order_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> OrderAccessResponse:
    access = authorizer.ensure_order_access(principal, order_id)
    context = current_domain.repository_for(Order).access_context(order_id)
    return OrderAccessResponse(
        id=context.id,
        role=access.role.value,
        owner_user_id=context.user_id,
        customer_email=context.customer_email,
    )


@order_router.patch("/{order_id}/confirm", response_model=OrderResponse)
async def confirm_order(
    order_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> OrderResponse:
    authorizer.ensure_admin(principal)
    current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)
    return _order(order_id)


@order_router.patch("/{order_id}/prepare", response_model=OrderResponse)
async def prepare_order(
    order_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> OrderResponse:
    authorizer.ensure_admin(principal)
    current_domain.process(PrepareOrder(order_id=order_id), asynchronous=False)
    return _order(order_id)


@order_router.patch("/{order_id}/fulfill", response_model=OrderResponse)
async def fulfill_order(
    order_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> OrderResponse:
    authorizer.ensure_admin(principal)
    current_domain.process(FulfillOrder(order_id=order_id), asynchronous=False)
    return _order(order_id)


@order_router.patch("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> OrderResponse:
    authorizer.ensure_admin(principal)
    command = CancelOrder(order_id=order_id, reason=body.reason if body else None)
    current_domain.process(command, asynchronous=False)
    return _order(order_id)


@order_router.get("/{order_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    order_id: str,
    take: int = DEFAULT_THREAD_SIZE,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> list[MessageResponse]:
    authorizer.ensure_order_access(principal, order_id)
    messages = current_domain.repository_for(OrderMessage).list_for_order(order_id, take=take)
    return [MessageResponse.from_message(message) for message in messages]


@order_router.post("/{order_id}/messages", status_code=201, response_model=MessageResponse)
async def post_message(
    order_id: str,
    body: PostMessageRequest,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> MessageResponse:
    access = authorizer.ensure_order_access(principal, order_id)
    is_admin = access.role == AccessRole.ADMIN
    command = PostOrderMessage(
        order_id=order_id,
        author_type=AuthorType.ADMIN.value if is_admin else AuthorType.USER.value,
        author_id=None if is_admin else access.user_id,
        text=body.message,
        context=json.dumps({"context": body.context}, default=str) if body.context else None,
    )
    message_id = current_domain.process(command, asynchronous=False)
    return MessageResponse.from_message(current_domain.repository_for(OrderMessage).get(message_id))


# ---------------------------------------------------------------------------
# User Router
# ---------------------------------------------------------------------------
user_router = APIRouter(prefix="/users", tags=["users"])


@user_router.post("", status_code=201, response_model=CustomerResponse)
async def register_customer(
    body: RegisterCustomerRequest,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> CustomerResponse:
    authorizer.ensure_authenticated(principal)
    if not principal.email:
        raise Forbidden("Could not verify your session")
    if principal.email.strip().lower() != body.email.strip().lower():
        raise Forbidden("You cannot register another account")

    command = RegisterCustomer(
        email=body.email,
        external_id=principal.user_id,
        first_name=body.first_name,
        last_name=body.last_name,
        display_name=body.display_name or principal.name,
        phone=body.phone,
    )
    customer_id = current_domain.process(command, asynchronous=False)
    return CustomerResponse.from_customer(current_domain.repository_for(Customer).get(customer_id))


@user_router.get("", response_model=CustomerPageResponse)
async def list_customers(
    skip: int = 0,
    take: int = 25,
    search: str | None = None,
    active_only: bool = False,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> CustomerPageResponse:
    authorizer.ensure_admin(principal)
    repo = current_domain.repository_for(Customer)
    customers, total = repo.find_page(search=search, active_only=active_only, skip=skip, take=take)
    return CustomerPageResponse(
        items=[CustomerResponse.from_customer(customer) for customer in customers],
        total=total,
        skip=clamp_skip(skip),
        take=clamp_take(take),
    )


@user_router.get("/share-coupons", response_model=list[ShareCouponResponse])
async def list_all_share_coupons(
    status: str | None = None,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> list[ShareCouponResponse]:
    authorizer.ensure_admin(principal)
    coupons = current_domain.repository_for(ShareCoupon).list_all(status=status)
    return [ShareCouponResponse.from_coupon(coupon) for coupon in coupons]


@user_router.get("/discount-codes", response_model=list[DiscountCodeResponse])
async def list_discount_codes(
    active_only: bool = False,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> list[DiscountCodeResponse]:
    authorizer.ensure_admin(principal)
    codes = current_domain.repository_for(DiscountCode).list_discount_codes(active_only=active_only)
    return [DiscountCodeResponse.from_discount(code) for code in codes]


@user_router.get("/{user_id}", response_model=CustomerResponse)
async def get_customer(
    user_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> CustomerResponse:
    authorizer.ensure_user_access(principal, user_id)
    return CustomerResponse.from_customer(current_domain.repository_for(Customer).get(user_id))


@user_router.delete("/{user_id}", response_model=CustomerResponse)
async def deactivate_customer(
    user_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> CustomerResponse:
    authorizer.ensure_admin(principal)
    current_domain.process(DeactivateCustomer(customer_id=user_id), asynchronous=False)
    return CustomerResponse.from_customer(current_domain.repository_for(Customer).get(user_id))


@user_router.get("/{user_id}/engagement", response_model=EngagementResponse)
async def get_engagement(
    user_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> EngagementResponse:
    authorizer.ensure_user_access(principal, user_id)
    engagement = customer_engagement(user_id)
    return EngagementResponse(
        customer_id=engagement.customer_id,
        monthly_orders=engagement.monthly_orders,
        lifetime_orders=engagement.lifetime_orders,
        lifetime_net_sales=engagement.lifetime_net_sales,
        last_order_at=engagement.last_order_at,
        qualifies_for_bonus=engagement.qualifies_for_bonus,
    )


@user_router.get("/{user_id}/share-coupons", response_model=list[ShareCouponResponse])
async def list_share_coupons(
    user_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> list[ShareCouponResponse]:
    authorizer.ensure_user_access(principal, user_id)
    coupons = current_domain.repository_for(ShareCoupon).list_share_coupons(user_id)
    return [ShareCouponResponse.from_coupon(coupon) for coupon in coupons]


@user_router.post("/{user_id}/share-coupons/issue", response_model=list[ShareCouponResponse])
async def issue_share_coupons(
    user_id: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> list[ShareCouponResponse]:
    authorizer.ensure_user_access(principal, user_id)
    coupon_ids = current_domain.process(IssueMonthlyShareCoupons(user_id=user_id), asynchronous=False)
    repo = current_domain.repository_for(ShareCoupon)
    return [ShareCouponResponse.from_coupon(repo.get(coupon_id)) for coupon_id in coupon_ids]


@user_router.post("/{user_id}/share-coupons/{code}/activate", response_model=ShareCouponResponse)
async def activate_share_coupon(
    user_id: str,
    code: str,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> ShareCouponResponse:
    authorizer.ensure_user_access(principal, user_id)
    coupon_id = current_domain.process(ActivateShareCoupon(user_id=user_id, code=code), asynchronous=False)
    return ShareCouponResponse.from_coupon(current_domain.repository_for(ShareCoupon).get(coupon_id))


@user_router.post("/{user_id}/discounts", status_code=201, response_model=DiscountCodeResponse)
async def grant_discount(
    user_id: str,
    body: GrantDiscountRequest,
    principal: Principal = Depends(get_principal),
    authorizer: Authorizer = Depends(get_authorizer),
) -> DiscountCodeResponse:
    authorizer.ensure_admin(principal)
    command = GrantDiscount(
        user_id=user_id,
        value=str(body.value),
        label=body.label,
        expires_at=body.expires_at,
        granted_by=principal.email,
    )
    discount_id = current_domain.process(command, asynchronous=False)
    return DiscountCodeResponse.from_discount(current_domain.repository_for(DiscountCode).get(discount_id))
