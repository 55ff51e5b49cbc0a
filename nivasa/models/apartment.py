from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.orm import relationship

from ..db import Base


BANK_FIELDS = ("account_holder", "account_number", "ifsc_code", "bank_name", "branch", "upi_id")


class Apartment(Base):
    """
    Tenant root. Every other entity is scoped by ``apartment_code``.
    """

    __tablename__ = "apartments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # join code handed to residents; immutable once issued
    apartment_code = Column(String, unique=True, nullable=False, index=True)

    maintenance_amount = Column(Float, nullable=True, default=0)

    # receiving account for maintenance transfers, all optional
    account_holder = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    ifsc_code = Column(String, nullable=True)
    bank_name = Column(String, nullable=True)
    branch = Column(String, nullable=True)
    upi_id = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    users = relationship("User", back_populates="apartment")

    @property
    def bank_details(self) -> dict:
        return {field: getattr(self, field) for field in BANK_FIELDS}
