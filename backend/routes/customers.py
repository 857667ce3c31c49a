# backend/routes/customers.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import List, Optional
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from models.checkout import Checkout
from models.order import Order
from routes.auth import email_taken
from schemas.common import Message
from schemas.user import UserCreate, CustomerUpdate, CustomerOut, CustomerMutation
from utils.audit import write_log, client_ip
from utils.hashing import get_password_hash
from utils.tokenJWT import role_required

router = APIRouter(prefix="/customers", tags=["Customers"])

admin_only = role_required("admin")


def _get_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id, User.role == "customer").first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return user


# List customer accounts (Admin only)
@router.get("", response_model=List[CustomerOut])
def list_customers(
    q: Optional[str] = Query(None, description="Search by name or e-mail"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    query = db.query(User).filter(User.role == "customer")
    if q:
        like = f"%{q}%"
        query = query.filter(User.email.ilike(like) | User.name.ilike(like))
    return query.order_by(User.id.asc()).all()


@router.get("/{user_id}", response_model=CustomerOut)
def get_customer(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    return _get_or_404(db, user_id)


# Create an account from the admin panel
@router.post("", response_model=CustomerMutation, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    if email_taken(db, payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists")

    customer = User(
        name=payload.name,
        email=payload.email.strip().lower(),
        password_hash=get_password_hash(payload.password),
        role=payload.role or "customer",
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)

    write_log(db, user_id=current_user.id, action="CUSTOMER_CREATE", resource="customers",
              status="SUCCESS", ip=client_ip(request), meta={"id": customer.id, "email": customer.email})
    return {"message": "Customer successfully created", "customer": customer}


@router.put("/{user_id}", response_model=CustomerMutation)
@router.patch("/{user_id}", response_model=CustomerMutation)
def update_customer(
    user_id: int,
    payload: CustomerUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = _get_or_404(db, user_id)

    if payload.email is not None:
        if email_taken(db, payload.email, exclude_id=user.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists")
        user.email = payload.email.strip().lower()
    if payload.name is not None:
        user.name = payload.name
    if payload.password is not None:
        user.password_hash = get_password_hash(payload.password)
    if payload.role is not None:
        user.role = payload.role

    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="CUSTOMER_UPDATE", resource="customers",
              status="SUCCESS", ip=client_ip(request),
              meta={"id": user.id, "fields": sorted(payload.model_dump(exclude_none=True, exclude={"password"}))})
    return {"message": "Customer successfully updated", "customer": user}


# Delete an account (Admin only)
@router.delete("/{user_id}", response_model=Message)
def delete_customer(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = _get_or_404(db, user_id)

    has_history = (db.query(Checkout).filter(Checkout.user_id == user.id).count()
                   + db.query(Order).filter(Order.user_id == user.id).count())
    if has_history:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Customer has carts or orders")

    email = user.email
    db.delete(user)
    db.commit()

    write_log(db, user_id=current_user.id, action="CUSTOMER_DELETE", resource="customers",
              status="SUCCESS", ip=client_ip(request), meta={"id": user_id, "email": email})
    return {"message": "Customer successfully deleted"}
