from sqlalchemy import Column, String, Text
from app.db.base_class import Base

class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
