from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

class ContactCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    email: EmailStr
    message: str = Field(min_length=1)

# Visitor comment as listed on the public home page, without the e-mail address
class ContactPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    message: str
    created_at: Optional[datetime] = Field(None, alias="createdAt")

class ContactOut(ContactPublic):
    email: str

class ContactMutation(BaseModel):
    message: str
    contact: ContactOut
