# backend/routes/contact.py
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models.contact import Contact
from schemas.contact import ContactCreate, ContactPublic, ContactMutation
from utils.audit import write_log, client_ip

router = APIRouter(tags=["Contact"])


# Store a visitor message from the contact form
@router.post("/contact", response_model=ContactMutation)
def create_contact(payload: ContactCreate, request: Request, db: Session = Depends(get_db)):
    contact = Contact(name=payload.name, email=payload.email, message=payload.message)
    db.add(contact)
    db.commit()
    db.refresh(contact)

    write_log(db, user_id=None, action="CONTACT_CREATE", resource="contact",
              status="SUCCESS", ip=client_ip(request), meta={"id": contact.id, "email": contact.email})
    return {"message": "Message saved", "contact": contact}


# Visitor comments for the home page, newest first
@router.get("/contacts", response_model=List[ContactPublic])
def list_contacts(db: Session = Depends(get_db)):
    return db.query(Contact).order_by(Contact.created_at.desc(), Contact.id.desc()).all()
