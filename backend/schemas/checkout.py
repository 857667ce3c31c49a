from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.product import ProductBrief

# Request schema for adding a product to the cart
class CheckoutCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(alias="productId")
    quantity: int = Field(gt=0)

# Request schema for changing the quantity of a cart line
class CheckoutUpdate(BaseModel):
    quantity: int = Field(gt=0)

# Response schema for a single cart line
class CheckoutOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: int = Field(alias="userId")
    product_id: int = Field(alias="productId")
    quantity: int
    status: int
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    product: Optional[ProductBrief] = None

class CheckoutMutation(BaseModel):
    message: str
    checkout: CheckoutOut
