# nivasa/models/ops.py
from __future__ import annotations

import enum
import re
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    ForeignKey,
    Text,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from ..db import Base
from ..exceptions import ValidationError


# ---------- Complaints ----------

class ComplaintStatus(str, enum.Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"


# Every status may move to every other one; there is no irreversible step.
ALLOWED_TRANSITIONS = {
    status: frozenset(ComplaintStatus) for status in ComplaintStatus
}

_STATUS_LOOKUP = {s.value.lower(): s for s in ComplaintStatus}


def normalize_complaint_status(value: Optional[str]) -> ComplaintStatus:
    """Map free-text input ("in_progress", "RESOLVED", ...) onto the closed set."""
    if value is None:
        raise ValidationError("Status is required")
    key = re.sub(r"[\s_\-]+", " ", str(value)).strip().lower()
    try:
        return _STATUS_LOOKUP[key]
    except KeyError:
        allowed = ", ".join(s.value for s in ComplaintStatus)
        raise ValidationError(f"Invalid status '{value}'. Must be one of: {allowed}")


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False)
    priority = Column(String, nullable=False)
    additional_info = Column(Text, nullable=True)
    phone_number = Column(String, nullable=True)

    status = Column(String, nullable=False, default=ComplaintStatus.OPEN.value)
    assigned_to = Column(String, nullable=True)

    # legacy rows may lack both; see repair_orphaned_complaints
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    apartment_code = Column(String, ForeignKey("apartments.apartment_code"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", lazy="joined")

    @validates("status")
    def normalize_status(self, key, value: Optional[str]) -> str:
        return normalize_complaint_status(value).value


# ---------- Technicians ----------

SPECIALTIES = ("Plumbing", "Electrical", "HVAC", "General Maintenance", "Carpentry")
TECHNICIAN_STATUSES = ("available", "busy", "offline")

EMAIL_RE = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")
PHONE_RE = re.compile(r"^[0-9]{10}$")


class Technician(Base):
    """
    Service-provider contact for one apartment. Not a login.
    """

    __tablename__ = "technicians"
    __table_args__ = (
        UniqueConstraint("email", "apartment_code", name="uq_technicians_email_apartment"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    specialty = Column(String, nullable=False)
    status = Column(String, nullable=False, default="available")
    apartment_code = Column(String, ForeignKey("apartments.apartment_code"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @validates("name")
    def validate_name(self, key, value: Optional[str]) -> str:
        value = (value or "").strip()
        if not value:
            raise ValidationError("Name is required")
        return value

    @validates("email")
    def validate_email(self, key, value: Optional[str]) -> str:
        value = (value or "").strip().lower()
        if not EMAIL_RE.match(value):
            raise ValidationError("Please fill a valid email address")
        return value

    @validates("phone")
    def validate_phone(self, key, value: Optional[str]) -> str:
        value = (value or "").strip()
        if not PHONE_RE.match(value):
            raise ValidationError("Please fill a valid 10-digit phone number")
        return value

    @validates("specialty")
    def validate_specialty(self, key, value: Optional[str]) -> str:
        if value not in SPECIALTIES:
            raise ValidationError(
                f"Invalid specialty '{value}'. Must be one of: {', '.join(SPECIALTIES)}"
            )
        return value

    @validates("status")
    def validate_status(self, key, value: Optional[str]) -> str:
        if not value:
            return "available"
        if value not in TECHNICIAN_STATUSES:
            raise ValidationError("Valid status is required (available, busy, offline)")
        return value


# ---------- Maintenance payments ----------

PAYMENT_STATUSES = ("pending", "approved", "rejected")


class MaintenancePayment(Base):
    """
    A resident's claim of an off-system transfer, reconciled by the admin.
    """

    __tablename__ = "maintenance_payments"

    id = Column(Integer, primary_key=True, index=True)
    apartment_code = Column(String, ForeignKey("apartments.apartment_code"), nullable=False, index=True)
    flat_number = Column(String, nullable=False)
    # fee at submission time, never recomputed
    amount = Column(Float, nullable=False)
    transaction_id = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")
    months = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @validates("status")
    def validate_status(self, key, value: Optional[str]) -> str:
        if value not in PAYMENT_STATUSES:
            raise ValidationError("Invalid status")
        return value
