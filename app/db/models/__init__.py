from app.db.models.user import User
from app.db.models.client import Client
from app.db.models.category import Category
from app.db.models.declaration import Declaration

# Export all models
__all__ = [
    'User',
    'Client',
    'Category',
    'Declaration',
]
