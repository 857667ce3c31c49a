# backend/routes/category.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.product import Product
from models.users import User
from schemas.category import CategoryIn, CategoryOut, CategoryMutation
from schemas.common import Message
from utils.audit import write_log, client_ip
from utils.tokenJWT import role_required

router = APIRouter(prefix="/category", tags=["Category"])

admin_only = role_required("admin")


def _get_or_404(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.id.asc()).all()


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, category_id)


@router.post("", response_model=CategoryMutation)
def create_category(
    payload: CategoryIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = Category(name=payload.name)
    db.add(category)
    db.commit()
    db.refresh(category)

    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="category",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id, "name": category.name})
    return {"message": "Category created successfully", "category": category}


@router.put("/{category_id}", response_model=CategoryMutation)
@router.patch("/{category_id}", response_model=CategoryMutation)
def update_category(
    category_id: int,
    payload: CategoryIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = _get_or_404(db, category_id)
    category.name = payload.name
    db.commit()
    db.refresh(category)

    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="category",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id})
    return {"message": "Category updated successfully", "category": category}


@router.delete("/{category_id}", response_model=Message)
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = _get_or_404(db, category_id)

    # Products keep a non-null reference to their category
    in_use = db.query(Product).filter(Product.category_id == category.id).count()
    if in_use:
        write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="category",
                  status="FAIL", ip=client_ip(request), meta={"id": category.id, "products": in_use})
        raise HTTPException(status_code=409, detail=f"Category is still used by {in_use} product(s)")

    db.delete(category)
    db.commit()

    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="category",
              status="SUCCESS", ip=client_ip(request), meta={"id": category_id})
    return {"message": "Category deleted successfully"}
