# schemas/reports.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from models.order import OrderStatus

# One sold cart line for the admin sales / finance reports
class TransactionItem(BaseModel):
    order_id: int
    product_id: int
    product_name: str
    category_id: int
    price: float
    quantity: int
    total: float
    status: OrderStatus
    payment_method: str
    created_at: Optional[datetime] = None

class TransactionReport(BaseModel):
    items: List[TransactionItem]
    total_orders: int
    total_amount: float
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
