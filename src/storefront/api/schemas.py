"""Pydantic request/response schemas for the storefront API.

These are external contracts, separate from internal protean commands.
Money is exchanged as decimal strings (``"12.50"``).
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from storefront.order.items import normalized_items


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    label: str = Field(min_length=1)
    product_id: str | None = None
    quantity: int
    unit_price: Decimal
    original_unit_price: Decimal | None = None
    discount_value: Decimal | None = None
    line_total: Decimal
    side: str | None = None
    type: str | None = None
    metadata: dict[str, Any] | None = None


class DeliverySchema(BaseModel):
    address_line: str = Field(min_length=1)
    notes: str | None = None


class PlaceOrderRequest(BaseModel):
    user_id: str | None = None
    discount_code: str | None = None
    customer_name: str = Field(min_length=1)
    customer_email: str
    customer_phone: str | None = None
    delivery: DeliverySchema
    payment_method: str = Field(min_length=1)
    notes: str | None = None
    items: list[OrderLineSchema]
    total_gross: Decimal
    total_net: Decimal | None = None
    discount_total: Decimal | None = None
    whatsapp_link: str | None = None
    metadata: dict[str, Any] | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_name": "Ana Pérez",
                    "customer_email": "ana@example.com",
                    "delivery": {"address_line": "Av. Siempre Viva 742"},
                    "payment_method": "cash",
                    "items": [
                        {"label": "Combo A", "quantity": 2, "unit_price": "10.00", "line_total": "20.00"}
                    ],
                    "total_gross": "20.00",
                    "total_net": "18.00",
                    "discount_total": "2.00",
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class PostMessageRequest(BaseModel):
    message: str
    context: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Customer / Loyalty Request Schemas
# ---------------------------------------------------------------------------
class RegisterCustomerRequest(BaseModel):
    email: str
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    phone: str | None = None


class GrantDiscountRequest(BaseModel):
    value: Decimal
    label: str | None = Field(default=None, max_length=120)
    expires_at: datetime | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    product_id: str | None = None
    label: str
    quantity: int
    unit_price: Decimal
    original_unit_price: Decimal | None = None
    discount_value: Decimal | None = None
    line_total: Decimal
    side: str | None = None
    type: str | None = None
    metadata: Any = None


class OrderResponse(BaseModel):
    id: str
    number: int
    status: str
    channel: str | None = None
    user_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    delivery_address: str | None = None
    delivery_notes: str | None = None
    payment_method: str | None = None
    discount_code: str | None = None
    note: str | None = None
    whatsapp_link: str | None = None
    total_gross: Decimal
    total_net: Decimal
    discount_total: Decimal
    items: list[OrderItemResponse]
    metadata: dict[str, Any]
    placed_at: datetime | None = None
    confirmed_at: datetime | None = None
    prepared_at: datetime | None = None
    fulfilled_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=str(order.id),
            number=order.number,
            status=order.status,
            channel=order.channel,
            user_id=str(order.user_id) if order.user_id else None,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            delivery_address=order.delivery_address,
            delivery_notes=order.delivery_notes,
            payment_method=order.payment_method,
            discount_code=order.discount_code,
            note=order.note,
            whatsapp_link=order.whatsapp_link,
            total_gross=order.total_gross,
            total_net=order.total_net,
            discount_total=order.discount_total,
            items=[
                OrderItemResponse(
                    product_id=view.product_id,
                    label=view.label,
                    quantity=view.quantity,
                    unit_price=view.unit_price,
                    original_unit_price=view.original_unit_price,
                    discount_value=view.discount_value,
                    line_total=view.line_total,
                    side=view.side,
                    type=view.item_type,
                    metadata=view.extra,
                )
                for view in normalized_items(order)
            ],
            metadata=order.document,
            placed_at=order.placed_at,
            confirmed_at=order.confirmed_at,
            prepared_at=order.prepared_at,
            fulfilled_at=order.fulfilled_at,
            cancelled_at=order.cancelled_at,
            cancellation_reason=order.cancellation_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderPageResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    skip: int
    take: int


class MessageResponse(BaseModel):
    id: str
    order_id: str
    author_type: str
    author_id: str | None = None
    payload: dict[str, Any]
    created_at: datetime | None = None
    read_at: datetime | None = None

    @classmethod
    def from_message(cls, message) -> "MessageResponse":
        return cls(
            id=str(message.id),
            order_id=str(message.order_id),
            author_type=message.author_type,
            author_id=str(message.author_id) if message.author_id else None,
            payload=message.content,
            created_at=message.created_at,
            read_at=message.read_at,
        )


class ActiveOrderResponse(BaseModel):
    order: OrderResponse
    messages: list[MessageResponse]


class OrderAccessResponse(BaseModel):
    id: str
    role: str
    owner_user_id: str | None = None
    customer_email: str | None = None


class CustomerResponse(BaseModel):
    id: str
    external_id: str | None = None
    email: str
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    phone: str | None = None
    is_active: bool
    registered_at: datetime | None = None

    @classmethod
    def from_customer(cls, customer) -> "CustomerResponse":
        return cls(
            id=str(customer.id),
            external_id=customer.external_id,
            email=customer.email,
            first_name=customer.first_name,
            last_name=customer.last_name,
            display_name=customer.display_name,
            phone=customer.phone,
            is_active=bool(customer.is_active),
            registered_at=customer.registered_at,
        )


class CustomerPageResponse(BaseModel):
    items: list[CustomerResponse]
    total: int
    skip: int
    take: int


class EngagementResponse(BaseModel):
    customer_id: str
    monthly_orders: int
    lifetime_orders: int
    lifetime_net_sales: Decimal
    last_order_at: datetime | None = None
    qualifies_for_bonus: bool


class ShareCouponResponse(BaseModel):
    id: str
    code: str
    user_id: str
    year: int
    month: int
    slot: int
    status: str
    issued_at: datetime | None = None
    activated_at: datetime | None = None
    redeemed_at: datetime | None = None

    @classmethod
    def from_coupon(cls, coupon) -> "ShareCouponResponse":
        return cls(
            id=str(coupon.id),
            code=coupon.code,
            user_id=str(coupon.user_id),
            year=coupon.year,
            month=coupon.month,
            slot=coupon.slot,
            status=coupon.status,
            issued_at=coupon.issued_at,
            activated_at=coupon.activated_at,
            redeemed_at=coupon.redeemed_at,
        )


class DiscountRedemptionResponse(BaseModel):
    order_id: str | None = None
    user_id: str | None = None
    redeemed_at: datetime


class DiscountCodeResponse(BaseModel):
    id: str
    code: str
    type: str
    scope: str
    value: Decimal | None = None
    percentage: int | None = None
    max_redemptions: int
    expires_at: datetime | None = None
    owner_id: str | None = None
    created_by: str | None = None
    metadata: dict[str, Any]
    redemptions: list[DiscountRedemptionResponse]
    created_at: datetime | None = None

    @classmethod
    def from_discount(cls, discount) -> "DiscountCodeResponse":
        try:
            metadata = json.loads(discount.details) if discount.details else {}
        except ValueError:
            metadata = {}
        return cls(
            id=str(discount.id),
            code=discount.code,
            type=discount.discount_type,
            scope=discount.scope,
            value=discount.value,
            percentage=discount.percentage,
            max_redemptions=discount.max_redemptions,
            expires_at=discount.expires_at,
            owner_id=str(discount.owner_id) if discount.owner_id else None,
            created_by=discount.created_by,
            metadata=metadata if isinstance(metadata, dict) else {},
            redemptions=[
                DiscountRedemptionResponse(
                    order_id=str(redemption.order_id) if redemption.order_id else None,
                    user_id=str(redemption.user_id) if redemption.user_id else None,
                    redeemed_at=redemption.redeemed_at,
                )
                for redemption in discount.redemptions or []
            ],
            created_at=discount.created_at,
        )
