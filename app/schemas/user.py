from enum import Enum
from typing import Optional
from pydantic import BaseModel, EmailStr, validator
from datetime import datetime

class UserRole(str, Enum):
    commercial = "commercial"
    technician = "technician"
    admin = "admin"

class UserStatus(str, Enum):
    pending = "pending"
    active = "active"
    rejected = "rejected"

# Roles a user may pick at registration or an admin may assign
ASSIGNABLE_ROLES = (UserRole.commercial, UserRole.technician)

class UserBase(BaseModel):
    email: EmailStr
    name: str

class UserCreate(UserBase):
    password: str
    role: UserRole

    @validator("name")
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @validator("role")
    def role_is_assignable(cls, v: UserRole) -> UserRole:
        if v not in ASSIGNABLE_ROLES:
            raise ValueError("Role must be 'commercial' or 'technician'")
        return v

class User(UserBase):
    id: str
    role: UserRole
    status: UserStatus
    created_at: datetime

    class Config:
        from_attributes = True

class UserInDB(User):
    password_hash: str

class CurrentUser(BaseModel):
    """Identity decoded from the bearer token and checked against the store."""
    id: str
    email: str
    name: str
    role: UserRole

class UserStatusUpdate(BaseModel):
    status: UserStatus

    @validator("status")
    def status_is_decision(cls, v: UserStatus) -> UserStatus:
        if v == UserStatus.pending:
            raise ValueError("Status must be 'active' or 'rejected'")
        return v

class UserRoleUpdate(BaseModel):
    role: UserRole

    @validator("role")
    def role_is_assignable(cls, v: UserRole) -> UserRole:
        if v not in ASSIGNABLE_ROLES:
            raise ValueError("Role must be 'commercial' or 'technician'")
        return v

class UserStats(BaseModel):
    total: int = 0
    pending: int = 0
    active: int = 0
    rejected: int = 0
    commercials: int = 0
    technicians: int = 0
    admins: int = 0

class UserSummary(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    role: Optional[UserRole] = None

    class Config:
        from_attributes = True
