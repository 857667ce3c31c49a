# backend/models/checkout.py
import enum
from sqlalchemy import Column, Integer, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Lifecycle of a cart line
class CheckoutStatus(enum.IntEnum):
    IN_CART = 0
    ORDERED = 1

# A single cart line (user + product + quantity), later referenced by an order
class Checkout(Base):
    __tablename__ = "checkouts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False, default=1)
    status = Column(Integer, nullable=False, default=CheckoutStatus.IN_CART, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="checkouts")
    product = relationship("Product")
    order = relationship("Order", back_populates="checkout", uselist=False)
