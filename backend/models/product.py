# backend/models/product.py
from sqlalchemy import Column, Integer, String, Float, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base

# Model Product
# A single item for sale. Prices and stock are guarded by check constraints,
# the image is stored on disk and only its file name is kept here.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)

    sale_price = Column(Float, CheckConstraint("sale_price >= 0"), nullable=False)
    original_price = Column(Float, CheckConstraint("original_price >= 0"), nullable=True)

    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), nullable=False, default=0)

    category_id = Column(Integer, ForeignKey("categories.id"), index=True, nullable=False)

    # File name inside settings.UPLOAD_DIR
    image_filename = Column(String, nullable=True)

    category = relationship("Category", back_populates="products")
