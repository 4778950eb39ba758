from sqlalchemy import Column, String, DateTime, Date, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid

from ..core.database import Base

class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Personal information
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    sex = Column(String(10), nullable=True)

    # Contact information; either one identifies a returning patient
    email = Column(String(255), nullable=True, index=True)
    contact = Column(String(20), nullable=True, index=True)

    returning_patient = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="patient")

    def __repr__(self):
        return f"<Patient(id={self.id}, name='{self.first_name} {self.last_name}')>"
