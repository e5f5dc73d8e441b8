from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base

class Declaration(Base):
    __tablename__ = "declarations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    commercial_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    product_name = Column(Text, nullable=False)
    reference = Column(Text, nullable=True)
    serial_number = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    photo_url = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, server_default="new", index=True)
    technician_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    technician_remarks = Column(Text, nullable=True)
    accessories = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.current_timestamp())
    taken_at = Column(DateTime(timezone=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    client = relationship("Client", back_populates="declarations")
