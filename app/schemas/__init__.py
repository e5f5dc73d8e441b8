from app.schemas.user import (
    User, UserCreate, UserInDB, UserRole, UserStatus, CurrentUser,
    UserStatusUpdate, UserRoleUpdate, UserStats, UserSummary
)
from app.schemas.client import Client, ClientCreate, ClientUpdate, ClientInDB, ClientSummary
from app.schemas.category import Category
from app.schemas.declaration import (
    Declaration, DeclarationCreate, DeclarationUpdate, DeclarationInDB,
    DeclarationStatus, AccessoryItem, RemarksUpdate, ResolveRequest
)
from app.schemas.auth import LoginRequest, Token

# Export all schemas
__all__ = [
    'User', 'UserCreate', 'UserInDB', 'UserRole', 'UserStatus', 'CurrentUser',
    'UserStatusUpdate', 'UserRoleUpdate', 'UserStats', 'UserSummary',
    'Client', 'ClientCreate', 'ClientUpdate', 'ClientInDB', 'ClientSummary',
    'Category',
    'Declaration', 'DeclarationCreate', 'DeclarationUpdate', 'DeclarationInDB',
    'DeclarationStatus', 'AccessoryItem', 'RemarksUpdate', 'ResolveRequest',
    'LoginRequest', 'Token',
]
