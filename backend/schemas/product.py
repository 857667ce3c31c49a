# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


# Base configuration for ORM compatibility and the shop's wire names
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# Category name embedded in product listings
class ProductCategory(ORMBase):
    name: str = Field(alias="nama")


# Full product representation
class ProductOut(ORMBase):
    id: int
    name: str = Field(alias="namaBarang")
    sale_price: float = Field(alias="hargaBarang")
    original_price: Optional[float] = Field(None, alias="hargaAwal")
    stock_quantity: int = Field(alias="stokBarang")
    category_id: int = Field(alias="categoryId")
    image_filename: Optional[str] = Field(None, alias="picUrl")
    category: Optional[ProductCategory] = None


# Product summary embedded in cart lines and orders
class ProductBrief(ORMBase):
    name: str = Field(alias="namaBarang")
    sale_price: float = Field(alias="hargaBarang")
    image_filename: Optional[str] = Field(None, alias="picUrl")


class ProductMutation(BaseModel):
    message: str
    product: ProductOut
