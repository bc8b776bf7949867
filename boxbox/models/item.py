"""Item model."""
import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from boxbox.config import settings
from boxbox.database import Base
from boxbox.models.base import utcnow


class Item(Base):
    """Item model - stored in boxes."""
    __tablename__ = "items"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    box_id = Column(String(36), ForeignKey("boxes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    quantity = Column(Integer, default=1, nullable=False)
    # Data URL or path
    image = Column(Text, nullable=False, default=settings.ITEM_PLACEHOLDER_IMAGE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    
    # Relationships
    box = relationship("Box", back_populates="items")
