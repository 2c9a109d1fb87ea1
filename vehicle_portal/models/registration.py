"""
Vehicle registrations table (the registration store).
VIN and license plate are unique across all rows; the constraints are the
source of truth when two submissions race.
"Expired" is never written here, it is derived from expiry_date at read time.
"""

import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from vehicle_portal.database import Base


class RegistrationStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EXPIRED = "Expired"     # display-only, see Registration.display_status


class Registration(Base):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    vehicle_type = Column(String(50), nullable=False, index=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    vin = Column(String(50), unique=True, nullable=False, index=True)
    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    owner_name = Column(String(200), nullable=False)
    owner_contact = Column(String(200), nullable=False)

    registration_date = Column(DateTime, nullable=False)
    expiry_date = Column(DateTime, nullable=False)
    documents = Column(JSON, nullable=False, default=list)   # blob references
    status = Column(String(20), nullable=False, default=RegistrationStatus.PENDING.value, index=True)

    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime)

    owner = relationship("Account", back_populates="registrations")

    @property
    def is_expired(self) -> bool:
        return self.expiry_date is not None and self.expiry_date < datetime.utcnow()

    @property
    def display_status(self) -> str:
        return RegistrationStatus.EXPIRED.value if self.is_expired else self.status

    def __repr__(self):
        return f"<Registration {self.id} plate={self.license_plate} status={self.status}>"
