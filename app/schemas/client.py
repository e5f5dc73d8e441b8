from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, validator

def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v

class ClientBase(BaseModel):
    name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @validator("email", "phone", "address", pre=True)
    def blank_as_missing(cls, v):
        return _blank_to_none(v)

    @validator("email")
    def lowercase_email(cls, v):
        return v.lower() if v else v

class ClientCreate(ClientBase):
    @validator("name")
    def name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

class ClientUpdate(ClientBase):
    name: Optional[str] = None

    @validator("name")
    def name_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v else v

class Client(ClientBase):
    id: str
    commercial_id: str
    created_at: datetime

    class Config:
        from_attributes = True

class ClientInDB(Client):
    """Database representation of a client, with any additional DB-specific fields."""
    pass

class ClientSummary(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    class Config:
        from_attributes = True
