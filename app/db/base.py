from app.db.base_class import Base
from app.db.models.user import User
from app.db.models.client import Client
from app.db.models.category import Category
from app.db.models.declaration import Declaration

# All models are imported here for SQLAlchemy to discover them
