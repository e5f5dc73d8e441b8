from enum import Enum
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, validator

from app.schemas.category import Category
from app.schemas.client import ClientSummary
from app.schemas.user import UserSummary

class DeclarationStatus(str, Enum):
    new = "new"
    in_progress = "in_progress"
    resolved = "resolved"

class AccessoryItem(BaseModel):
    """An item handed over with the product; lives only inside its declaration."""
    id: Optional[str] = None
    name: str
    checked: bool = False

class DeclarationBase(BaseModel):
    category_id: str
    client_id: str
    product_name: str
    reference: Optional[str] = None
    serial_number: Optional[str] = None
    description: Optional[str] = None
    photo_url: Optional[str] = None
    accessories: List[AccessoryItem] = []

class DeclarationCreate(DeclarationBase):
    @validator("product_name")
    def product_name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Product name is required")
        return v.strip()

    @validator("accessories", pre=True)
    def accessories_default(cls, v):
        return v or []

class DeclarationUpdate(BaseModel):
    category_id: Optional[str] = None
    client_id: Optional[str] = None
    product_name: Optional[str] = None
    reference: Optional[str] = None
    serial_number: Optional[str] = None
    description: Optional[str] = None
    photo_url: Optional[str] = None
    accessories: Optional[List[AccessoryItem]] = None

    @validator("product_name")
    def product_name_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Product name cannot be empty")
        return v.strip() if v else v

class RemarksUpdate(BaseModel):
    technician_remarks: Optional[str] = None

class ResolveRequest(BaseModel):
    remarks: Optional[str] = None

class DeclarationInDB(DeclarationBase):
    id: str
    commercial_id: str
    status: DeclarationStatus = DeclarationStatus.new
    technician_id: Optional[str] = None
    technician_remarks: Optional[str] = None
    created_at: datetime
    taken_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @validator("accessories", pre=True)
    def accessories_default(cls, v):
        return v or []

class Declaration(DeclarationInDB):
    """Declaration enriched with the display data of the rows it references."""
    client: Optional[ClientSummary] = None
    category: Optional[Category] = None
    commercial: Optional[UserSummary] = None
    technician: Optional[UserSummary] = None
