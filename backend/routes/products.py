# backend/routes/products.py
from typing import Optional, List
from fastapi import (
    APIRouter, Depends, HTTPException, Query, Request,
    UploadFile, File, Form
)
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from utils.uploads import save_image, remove_image
from models.users import User
from models.category import Category
from models.checkout import Checkout
from models.product import Product
from schemas.common import Message
import schemas.product as product_schemas

router = APIRouter(prefix="/products", tags=["Products"])

admin_only = role_required("admin")


# ---- HELPERS ----
def _get_or_404(db: Session, product_id: int) -> Product:
    product = (db.query(Product)
               .options(joinedload(Product.category))
               .filter(Product.id == product_id)
               .first())
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

def _ensure_category(db: Session, category_id: int) -> None:
    if not db.query(Category).filter(Category.id == category_id).first():
        raise HTTPException(status_code=400, detail="Invalid category")

def _check_amounts(sale_price: Optional[float], original_price: Optional[float], stock_quantity: Optional[int]) -> None:
    if sale_price is not None and sale_price < 0:
        raise HTTPException(status_code=400, detail="Price must be >= 0")
    if original_price is not None and original_price < 0:
        raise HTTPException(status_code=400, detail="Original price must be >= 0")
    if stock_quantity is not None and stock_quantity < 0:
        raise HTTPException(status_code=400, detail="Stock must be >= 0")


# =========================
# PRODUCT LIST
# =========================
@router.get("", response_model=List[product_schemas.ProductOut])
def list_products(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    q: Optional[str] = Query(None, description="Search by product name"),
    db: Session = Depends(get_db),
):
    query = db.query(Product).options(joinedload(Product.category))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if q:
        query = query.filter(Product.name.ilike(f"%{q}%"))
    return query.order_by(Product.id.asc()).all()


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, product_id)


# =========================
# CREATE PRODUCT
# =========================
@router.post("", response_model=product_schemas.ProductMutation)
def add_product(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
    image: UploadFile = File(...),
    name: str = Form(..., alias="namaBarang", min_length=1),
    sale_price: float = Form(..., alias="hargaBarang"),
    stock_quantity: int = Form(..., alias="stokBarang"),
    category_id: int = Form(..., alias="categoryId"),
    original_price: Optional[float] = Form(None, alias="hargaAwal"),
):
    _check_amounts(sale_price, original_price, stock_quantity)
    _ensure_category(db, category_id)

    filename = save_image(image)

    new_product = Product(
        name=name,
        sale_price=sale_price,
        original_price=original_price,
        stock_quantity=stock_quantity,
        category_id=category_id,
        image_filename=filename,
    )
    db.add(new_product)
    try:
        db.commit()
    except Exception:
        db.rollback()
        remove_image(filename)
        raise

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": new_product.id, "image": filename}
    )

    return {"message": "Product successfully inserted", "product": _get_or_404(db, new_product.id)}


# =========================
# UPDATE PRODUCT (PUT / PATCH, multipart, only given fields)
# =========================
@router.put("/{product_id}", response_model=product_schemas.ProductMutation)
@router.patch("/{product_id}", response_model=product_schemas.ProductMutation)
def update_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
    image: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None, alias="namaBarang", min_length=1),
    sale_price: Optional[float] = Form(None, alias="hargaBarang"),
    stock_quantity: Optional[int] = Form(None, alias="stokBarang"),
    category_id: Optional[int] = Form(None, alias="categoryId"),
    original_price: Optional[float] = Form(None, alias="hargaAwal"),
):
    p = _get_or_404(db, product_id)
    _check_amounts(sale_price, original_price, stock_quantity)
    if category_id is not None:
        _ensure_category(db, category_id)

    old_image = new_image = None
    if image is not None and image.filename:
        old_image = p.image_filename
        new_image = save_image(image)
        p.image_filename = new_image

    if name is not None: p.name = name
    if sale_price is not None: p.sale_price = sale_price
    if original_price is not None: p.original_price = original_price
    if stock_quantity is not None: p.stock_quantity = stock_quantity
    if category_id is not None: p.category_id = category_id

    try:
        db.commit()
    except Exception:
        db.rollback()
        remove_image(new_image)
        raise
    # The previous file is only dropped once the new name is committed
    remove_image(old_image)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": p.id}
    )

    return {"message": "Product successfully updated", "product": _get_or_404(db, product_id)}


# =========================
# DELETE
# =========================
@router.delete("/{product_id}", response_model=Message)
def delete_product(
    product_id: int, request: Request, db: Session = Depends(get_db), current_user: User = Depends(admin_only),
):
    product = _get_or_404(db, product_id)

    referenced = db.query(Checkout).filter(Checkout.product_id == product.id).count()
    if referenced:
        write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
                  status="FAIL", ip=client_ip(request), meta={"id": product_id, "checkouts": referenced})
        raise HTTPException(status_code=409, detail="Product is referenced by carts or orders")

    image = product.image_filename
    db.delete(product)
    db.commit()
    remove_image(image)

    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": product_id})
    return {"message": "Product deleted successfully"}
