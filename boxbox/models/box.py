"""Box model."""
import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship

from boxbox.config import settings
from boxbox.database import Base
from boxbox.models.base import utcnow


class Box(Base):
    """Box model - a labeled container of items."""
    __tablename__ = "boxes"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    color = Column(String(50), nullable=False, default=settings.DEFAULT_BOX_COLOR)
    # Denormalized; kept in step with items by the item routes
    item_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    
    # Relationships
    items = relationship("Item", back_populates="box", cascade="all, delete-orphan")
