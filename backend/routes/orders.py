# backend/routes/orders.py
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_current_user, role_required
from utils.audit import write_log, client_ip
from utils.stock import take_stock, return_stock
from models.users import User
from models.product import Product
from models.checkout import Checkout, CheckoutStatus
from models.order import Order, OrderStatus, PaymentStatus
from schemas.order import OrderCreatePayload, OrderResponse, OrderMutation, OrderStatusPatch

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


def _is_admin(user: User) -> bool:
    return (user.role or "").lower() == "admin"

def _load_order(db: Session, order_id: int) -> Order:
    return db.query(Order).options(
        joinedload(Order.checkout).joinedload(Checkout.product)
    ).filter(Order.id == order_id).first()

def _insufficient_stock(db: Session):
    db.rollback()
    return HTTPException(status_code=400, detail="Insufficient stock")




# List orders of the current user
@router.get("", response_model=List[OrderResponse])
def list_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return (db.query(Order)
            .options(joinedload(Order.checkout).joinedload(Checkout.product))
            .filter(Order.user_id == current_user.id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all())


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    o = _load_order(db, order_id)
    if not o or (o.user_id != current_user.id and not _is_admin(current_user)):
        raise HTTPException(status_code=404, detail="Order not found")
    return o



# Place an order for one cart line
@router.post("", response_model=OrderMutation)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    checkout = db.query(Checkout).filter(Checkout.id == payload.checkout_id).first()
    if (not checkout
            or checkout.user_id != current_user.id
            or checkout.status != CheckoutStatus.IN_CART):
        db.rollback()
        write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="FAIL",
                  ip=client_ip(request), meta={"checkout_id": payload.checkout_id, "reason": "Invalid checkout"})
        raise HTTPException(status_code=400, detail="Invalid checkout ID")

    product_id, quantity = checkout.product_id, checkout.quantity

    # Stock is taken when the order is placed, not when the product is put in the cart
    if not take_stock(db, product_id, quantity):
        raise _insufficient_stock(db)

    # Only one request may move the line out of the cart
    claimed = (db.query(Checkout)
               .filter(Checkout.id == checkout.id, Checkout.status == CheckoutStatus.IN_CART)
               .update({Checkout.status: CheckoutStatus.ORDERED}, synchronize_session=False))
    if claimed != 1:
        db.rollback()
        raise HTTPException(status_code=400, detail="Invalid checkout ID")

    price = db.query(Product.sale_price).filter(Product.id == product_id).scalar()
    order = Order(
        user_id=current_user.id,
        checkout_id=checkout.id,
        status=OrderStatus.PENDING,
        payment_method=payload.payment_method,
        payment_status=PaymentStatus.UNPAID,
        unit_price=price,
    )
    db.add(order)
    db.commit()
    order_id = order.id

    logger.info("Order %s placed by user %s for checkout %s", order_id, current_user.id, payload.checkout_id)
    write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
              ip=client_ip(request),
              meta={"order_id": order_id, "checkout_id": payload.checkout_id, "payment_method": payload.payment_method})

    return {"message": "Order created successfully", "order": _load_order(db, order_id)}


# Overwrite the order status (Admin only); there is no transition graph
@router.put("/{order_id}", response_model=OrderMutation)
@router.patch("/{order_id}", response_model=OrderMutation)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin"))
):
    order = _load_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    old_status, new_status = order.status, payload.status
    product_id, quantity = order.checkout.product_id, order.checkout.quantity

    if old_status != new_status:
        if new_status == OrderStatus.CANCELED:
            return_stock(db, product_id, quantity)
        elif old_status == OrderStatus.CANCELED and not take_stock(db, product_id, quantity):
            raise _insufficient_stock(db)

    values = {Order.status: new_status}
    if new_status == OrderStatus.PAID:
        values[Order.payment_status] = PaymentStatus.PAID

    # Applied only if no other status change was committed since the read above
    changed = (db.query(Order)
               .filter(Order.id == order_id, Order.status == old_status)
               .update(values, synchronize_session=False))
    if changed != 1:
        db.rollback()
        raise HTTPException(status_code=409, detail="Order was updated by another request")
    db.commit()

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order_id, "old": old_status.value, "new": new_status.value})

    return {"message": "Order status updated successfully", "order": _load_order(db, order_id)}
