"""
Accounts table (the credential store).
One row per portal user; role decides admin capabilities.
Passwords are stored only as Argon2 hashes.
"""

import enum
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship
from vehicle_portal.database import Base


class AccountRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=AccountRole.USER.value, index=True)
    phone = Column(String(50))
    address = Column(Text)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)

    registrations = relationship(
        "Registration",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN.value

    def __repr__(self):
        return f"<Account {self.id} email={self.email} role={self.role}>"
