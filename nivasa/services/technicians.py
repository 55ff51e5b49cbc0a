"""
Technician directory. Every query carries the apartment code, so an id taken
from another apartment never matches.
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from ..db import commit
from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..logging import get_logger
from ..models import Technician
from ..models.ops import TECHNICIAN_STATUSES
from .common import missing, require_apartment_code

logger = get_logger(__name__)

EMAIL_CONFLICT = "Technician with this email already exists in this apartment"
EDITABLE_FIELDS = ("name", "email", "phone", "specialty", "status")


def _scoped(db: Session, apartment_code: Optional[str]):
    code = require_apartment_code(apartment_code)
    return db.query(Technician).filter(Technician.apartment_code == code)


def _newest_first(q) -> List[Technician]:
    return q.order_by(Technician.created_at.desc(), Technician.id.desc()).all()


def _email_taken(db: Session, email: str, apartment_code: str, exclude_id: Optional[int] = None) -> bool:
    q = _scoped(db, apartment_code).filter(Technician.email == email.strip().lower())
    if exclude_id is not None:
        q = q.filter(Technician.id != exclude_id)
    return q.first() is not None


def list_technicians(db: Session, apartment_code: Optional[str]) -> List[Technician]:
    return _newest_first(_scoped(db, apartment_code))


def get_technician(db: Session, technician_id: int, apartment_code: Optional[str]) -> Technician:
    technician = _scoped(db, apartment_code).filter(Technician.id == technician_id).first()
    if technician is None:
        raise NotFoundError("Technician not found")
    return technician


def technicians_by_specialty(db: Session, specialty: str, apartment_code: Optional[str]) -> List[Technician]:
    """Case-insensitive substring match on specialty."""
    return _newest_first(
        _scoped(db, apartment_code).filter(Technician.specialty.ilike(f"%{specialty}%"))
    )


def available_technicians(db: Session, apartment_code: Optional[str]) -> List[Technician]:
    return _newest_first(_scoped(db, apartment_code).filter(Technician.status == "available"))


def create_technician(
    db: Session,
    apartment_code: Optional[str],
    name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    specialty: Optional[str],
    status: Optional[str] = None,
) -> Technician:
    if missing(name, email, phone, specialty, apartment_code):
        raise ValidationError("Name, email, phone, specialty, and apartment code are required")
    code = require_apartment_code(apartment_code)

    if _email_taken(db, email, code):
        logger.warning("Duplicate technician email in apartment %s", code)
        raise ConflictError(EMAIL_CONFLICT)

    technician = Technician(
        name=name,
        email=email,
        phone=phone,
        specialty=specialty,
        status=status or "available",
        apartment_code=code,
    )
    db.add(technician)
    commit(db, EMAIL_CONFLICT)
    db.refresh(technician)
    logger.info("Technician %s added to %s", technician.id, code)
    return technician


def update_technician(
    db: Session,
    technician_id: int,
    apartment_code: Optional[str],
    **fields: Optional[str],
) -> Technician:
    """Apply the supplied (non-None) fields."""
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown technician fields: {', '.join(sorted(unknown))}")
    code = require_apartment_code(apartment_code)

    technician = get_technician(db, technician_id, code)

    email = fields.get("email")
    if email and _email_taken(db, email, code, exclude_id=technician.id):
        raise ConflictError(EMAIL_CONFLICT)

    for key, value in fields.items():
        if value is not None:
            setattr(technician, key, value)
    commit(db, EMAIL_CONFLICT)
    db.refresh(technician)
    logger.info("Technician %s updated in %s", technician.id, code)
    return technician


def update_technician_status(
    db: Session,
    technician_id: int,
    status: Optional[str],
    apartment_code: Optional[str],
) -> Technician:
    if status not in TECHNICIAN_STATUSES:
        raise ValidationError("Valid status is required (available, busy, offline)")
    code = require_apartment_code(apartment_code)

    technician = get_technician(db, technician_id, code)
    technician.status = status
    commit(db)
    db.refresh(technician)
    logger.info("Technician %s is now %s", technician.id, status)
    return technician


def delete_technician(db: Session, technician_id: int, apartment_code: Optional[str]) -> Technician:
    technician = get_technician(db, technician_id, apartment_code)
    db.delete(technician)
    commit(db)
    logger.info("Technician %s removed from %s", technician_id, technician.apartment_code)
    return technician
