from sqlalchemy import Column, String, ForeignKey, Date, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid

from ..core.database import Base

class SlotStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"

class AppointmentSlot(Base):
    __tablename__ = "appointment_slots"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    location_id = Column(String(36), ForeignKey("locations.id", ondelete="CASCADE"), nullable=False, index=True)
    provider_id = Column(String(36), ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True)

    # Slot details; times are stored as displayed, e.g. "9:30 AM"
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(20), nullable=False)
    end_time = Column(String(20), nullable=False)
    status = Column(
        SQLEnum(SlotStatus, name="slot_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SlotStatus.AVAILABLE,
        index=True,
    )

    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    location = relationship("Location", back_populates="slots")
    provider = relationship("Provider", back_populates="slots")
    bookings = relationship("Booking", back_populates="appointment_slot")

    def __repr__(self):
        return f"<AppointmentSlot(id={self.id}, provider_id={self.provider_id}, date='{self.date}', start='{self.start_time}', status='{self.status}')>"
