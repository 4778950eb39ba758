from sqlalchemy import Column, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid

from ..core.database import Base

class Provider(Base):
    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    location_id = Column(String(36), ForeignKey("locations.id"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    location = relationship("Location", back_populates="providers")
    slots = relationship("AppointmentSlot", back_populates="provider", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Provider(id={self.id}, name='{self.name}', location_id={self.location_id})>"
