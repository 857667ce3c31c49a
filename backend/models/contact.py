# backend/models/contact.py
from sqlalchemy import Column, Integer, String, Text, DateTime, func
from database import Base

# Message left by a visitor through the contact form (append-only)
class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
