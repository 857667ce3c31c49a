# backend/routes/checkout.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from models.product import Product
from models.checkout import Checkout, CheckoutStatus
from schemas.checkout import CheckoutCreate, CheckoutUpdate, CheckoutOut, CheckoutMutation
from schemas.common import Message

router = APIRouter(prefix="/checkout", tags=["Checkout"])


def _stock_of(product_id: int):
    # Evaluated inside the UPDATE, so the check and the write see the same stock
    return select(Product.stock_quantity).where(Product.id == product_id).scalar_subquery()

def _own_line(db: Session, user_id: int, checkout_id: int) -> Checkout:
    line = (db.query(Checkout)
            .options(joinedload(Checkout.product))
            .filter(Checkout.id == checkout_id, Checkout.user_id == user_id)
            .first())
    if not line:
        raise HTTPException(status_code=404, detail="Product not found in cart")
    return line


# List cart lines of the current user
@router.get("", response_model=List[CheckoutOut])
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return (db.query(Checkout)
            .options(joinedload(Checkout.product))
            .filter(Checkout.user_id == current_user.id, Checkout.status == CheckoutStatus.IN_CART)
            .order_by(Checkout.id.asc())
            .all())


@router.get("/{checkout_id}", response_model=CheckoutOut)
def get_cart_line(
    checkout_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _own_line(db, current_user.id, checkout_id)


# Add a product to the cart; a second add of the same product merges quantities
@router.post("", response_model=CheckoutMutation)
def add_to_cart(
    payload: CheckoutCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    product_id, stock = product.id, product.stock_quantity

    line = db.query(Checkout).filter(
        Checkout.user_id == current_user.id,
        Checkout.product_id == product_id,
        Checkout.status == CheckoutStatus.IN_CART,
    ).first()

    if line:
        line_id = line.id
        merged = (db.query(Checkout)
                  .filter(Checkout.id == line_id,
                          Checkout.status == CheckoutStatus.IN_CART,
                          Checkout.quantity + payload.quantity <= _stock_of(product_id))
                  .update({Checkout.quantity: Checkout.quantity + payload.quantity}, synchronize_session=False))
        accepted = merged == 1
    else:
        accepted = stock >= payload.quantity
        if accepted:
            line = Checkout(
                user_id=current_user.id,
                product_id=product_id,
                quantity=payload.quantity,
                status=CheckoutStatus.IN_CART,
            )
            db.add(line)
            db.flush()
            line_id = line.id

    if not accepted:
        db.rollback()
        write_log(db, user_id=current_user.id, action="CART_ADD", resource="checkout", status="FAIL",
                  ip=client_ip(request), meta={"product_id": product_id, "qty": payload.quantity, "stock": stock})
        raise HTTPException(status_code=400, detail="Insufficient stock")
    db.commit()

    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="checkout",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"product_id": payload.product_id, "qty": payload.quantity, "checkout_id": line_id},
    )
    return {"message": "Product added to cart successfully", "checkout": _own_line(db, current_user.id, line_id)}


# Change the quantity of a cart line
@router.put("/{checkout_id}", response_model=CheckoutMutation)
@router.patch("/{checkout_id}", response_model=CheckoutMutation)
def update_cart_line(
    checkout_id: int,
    payload: CheckoutUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    line = _own_line(db, current_user.id, checkout_id)
    if line.status != CheckoutStatus.IN_CART:
        raise HTTPException(status_code=400, detail="Checkout already ordered")

    updated = (db.query(Checkout)
               .filter(Checkout.id == checkout_id,
                       Checkout.status == CheckoutStatus.IN_CART,
                       _stock_of(line.product_id) >= payload.quantity)
               .update({Checkout.quantity: payload.quantity}, synchronize_session=False))
    if updated != 1:
        db.rollback()
        raise HTTPException(status_code=400, detail="Insufficient stock")
    db.commit()

    write_log(
        db,
        user_id=current_user.id,
        action="CART_UPDATE",
        resource="checkout",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"checkout_id": checkout_id, "qty": payload.quantity},
    )
    return {"message": "Cart updated successfully", "checkout": _own_line(db, current_user.id, checkout_id)}


# Remove a line from the cart
@router.delete("/{checkout_id}", response_model=Message)
def delete_cart_line(
    checkout_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    line = _own_line(db, current_user.id, checkout_id)
    if line.status != CheckoutStatus.IN_CART:
        raise HTTPException(status_code=400, detail="Checkout already ordered")

    db.delete(line)
    db.commit()

    write_log(
        db,
        user_id=current_user.id,
        action="CART_DELETE",
        resource="checkout",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"checkout_id": checkout_id},
    )
    return {"message": "Product removed from cart successfully"}
