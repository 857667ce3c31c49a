# routes/reports.py
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import role_required
from models.users import User
from models.product import Product
from models.checkout import Checkout
from models.order import Order, OrderStatus
from schemas.reports import TransactionItem, TransactionReport

router = APIRouter(tags=["Reports"])


def parse_iso(s: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    if not s:
        return None
    # A bare date covers the whole day when used as the upper bound
    if end_of_day and len(s) == 10:
        s += " 23:59:59"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad datetime format: {s}")


def _transaction_item(order: Order, checkout: Checkout, product: Product) -> TransactionItem:
    # Orders placed before price snapshots existed fall back to the current price
    price = order.unit_price if order.unit_price is not None else product.sale_price
    return TransactionItem(
        order_id=order.id,
        product_id=product.id,
        product_name=product.name,
        category_id=product.category_id,
        price=price,
        quantity=checkout.quantity,
        total=round(price * checkout.quantity, 2),
        status=order.status,
        payment_method=order.payment_method,
        created_at=order.created_at,
    )


# Sold cart lines for the admin sales and finance reports
@router.get("/transaction", response_model=TransactionReport)
def report_transactions(
    date_from: Optional[str] = Query(None, description="ISO date or datetime, inclusive"),
    date_to: Optional[str] = Query(None, description="ISO date or datetime, inclusive"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    status: Optional[OrderStatus] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    fdt = parse_iso(date_from)
    tdt = parse_iso(date_to, end_of_day=True)

    q = (db.query(Order, Checkout, Product)
         .join(Checkout, Order.checkout_id == Checkout.id)
         .join(Product, Checkout.product_id == Product.id))

    if fdt:
        q = q.filter(Order.created_at >= fdt)
    if tdt:
        q = q.filter(Order.created_at <= tdt)
    if category_id is not None:
        q = q.filter(Product.category_id == category_id)
    if status is not None:
        q = q.filter(Order.status == status)

    rows = q.order_by(Order.created_at.asc(), Order.id.asc()).all()

    items: List[TransactionItem] = [
        _transaction_item(order, checkout, product)
        for order, checkout, product in rows
    ]

    return TransactionReport(
        items=items,
        total_orders=len(items),
        total_amount=round(sum(i.total for i in items), 2),
        date_from=fdt,
        date_to=tdt,
    )
