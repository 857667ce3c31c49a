from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, Literal

Role = Literal["customer", "admin"]

# Shared config: ORM reads plus the "nama" wire name for User.name
class UserBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests (also used by the admin customer form)
class UserCreate(UserBase):
    name: str = Field(alias="nama", min_length=1)
    password: str = Field(min_length=1)
    role: Optional[Role] = None

# Partial update from the admin customer panel
class CustomerUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, alias="nama", min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1)
    role: Optional[Role] = None

# Customer listing row
class CustomerOut(UserBase):
    id: int
    name: str = Field(alias="nama")

# Output schema for user profile details
class UserResponse(CustomerOut):
    role: str

# Login result: profile plus the signed token
class LoginResponse(UserResponse):
    token: str

class CustomerMutation(BaseModel):
    message: str
    customer: CustomerOut
