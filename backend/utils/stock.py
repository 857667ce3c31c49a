# utils/stock.py
from sqlalchemy.orm import Session

from models.product import Product


def take_stock(db: Session, product_id: int, quantity: int) -> bool:
    """Decrement stock in a single conditional UPDATE.

    Returns False when the product is missing or holds less than ``quantity``;
    nothing is written in that case. The caller owns the commit.
    """
    updated = (db.query(Product)
               .filter(Product.id == product_id, Product.stock_quantity >= quantity)
               .update({Product.stock_quantity: Product.stock_quantity - quantity},
                       synchronize_session=False))
    return updated == 1


def return_stock(db: Session, product_id: int, quantity: int) -> None:
    (db.query(Product)
     .filter(Product.id == product_id)
     .update({Product.stock_quantity: Product.stock_quantity + quantity},
             synchronize_session=False))
