from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from models.order import OrderStatus, PaymentStatus
from schemas.checkout import CheckoutOut


# Input schema for placing an order on one cart line
class OrderCreatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    checkout_id: int = Field(alias="checkoutId")
    payment_method: str = Field(alias="paymentMethod", min_length=1)

# Output schema representing the full order details
class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: int = Field(alias="userId")
    checkout_id: int = Field(alias="checkoutId")
    status: OrderStatus
    payment_method: str = Field(alias="paymentMethod")
    payment_status: PaymentStatus = Field(alias="paymentStatus")
    unit_price: Optional[float] = Field(None, alias="unitPrice")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    checkout: Optional[CheckoutOut] = None

class OrderMutation(BaseModel):
    message: str
    order: OrderResponse

# Schema for updating order status; only the five enumerated labels validate
class OrderStatusPatch(BaseModel):
    status: OrderStatus
