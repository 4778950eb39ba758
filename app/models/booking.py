from sqlalchemy import Column, String, ForeignKey, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid

from ..core.database import Base

class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    appointment_slot_id = Column(String(36), ForeignKey("appointment_slots.id"), nullable=False)

    status = Column(
        SQLEnum(BookingStatus, name="booking_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )

    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="bookings")
    appointment_slot = relationship("AppointmentSlot", back_populates="bookings")

    def __repr__(self):
        return f"<Booking(id={self.id}, patient_id={self.patient_id}, slot_id={self.appointment_slot_id}, status='{self.status}')>"
