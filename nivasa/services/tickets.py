from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..db import commit
from ..exceptions import NotFoundError, ValidationError
from ..logging import get_logger
from ..models import Complaint, ComplaintStatus, User
from ..models.ops import ALLOWED_TRANSITIONS, normalize_complaint_status
from .common import USER_NATURAL_ORDER, get_apartment, missing

logger = get_logger(__name__)


def _find_user_by_phone(db: Session, phone_number: str, apartment_code: Optional[str] = None) -> Optional[User]:
    q = db.query(User).filter(User.phone_number == phone_number)
    if apartment_code:
        q = q.filter(User.apartment_code == apartment_code)
    return q.order_by(*USER_NATURAL_ORDER).first()


def serialize_complaint(c: Complaint) -> dict:
    return {
        "id": c.id,
        "title": c.title,
        "description": c.description,
        "category": c.category,
        "priority": c.priority,
        "additionalInfo": c.additional_info,
        "phoneNumber": c.phone_number,
        "status": c.status,
        "assignedTo": c.assigned_to,
        "apartmentCode": c.apartment_code,
        "createdAt": c.created_at.isoformat() if c.created_at else None,
        "user": (
            {
                "id": c.user.id,
                "username": c.user.username,
                "phoneNumber": c.user.phone_number,
                "flatNumber": c.user.flat_number,
            }
            if c.user
            else None
        ),
    }


def create_complaint(
    db: Session,
    title: Optional[str],
    description: Optional[str],
    category: Optional[str],
    priority: Optional[str],
    phone_number: Optional[str],
    additional_info: Optional[str] = None,
    apartment_code: Optional[str] = None,
) -> Complaint:
    if missing(title, description, category, priority, phone_number):
        raise ValidationError("Missing required fields")

    user = _find_user_by_phone(db, phone_number, apartment_code)
    if user is None:
        raise ValidationError("User not found")

    complaint = Complaint(
        title=title,
        description=description,
        category=category,
        priority=priority,
        additional_info=additional_info,
        phone_number=phone_number,
        status=ComplaintStatus.OPEN.value,
        user_id=user.id,
        apartment_code=user.apartment_code,
    )
    db.add(complaint)
    commit(db)
    db.refresh(complaint)
    logger.info("Complaint %s created by user %s in %s", complaint.id, user.id, user.apartment_code)
    return complaint


def list_complaints(db: Session, apartment_code: Optional[str] = None) -> List[Complaint]:
    """Newest first; across all apartments when no code is given."""
    q = db.query(Complaint)
    if apartment_code:
        apartment = get_apartment(db, apartment_code)
        q = q.filter(Complaint.apartment_code == apartment.apartment_code)
    return q.order_by(Complaint.created_at.desc(), Complaint.id.desc()).all()


def complaint_stats(db: Session, apartment_code: Optional[str]) -> Dict[str, int]:
    apartment = get_apartment(db, apartment_code)
    rows = (
        db.query(Complaint.status, func.count(Complaint.id))
        .filter(Complaint.apartment_code == apartment.apartment_code)
        .group_by(Complaint.status)
        .all()
    )
    counts = {status: n for status, n in rows}
    return {
        "open": counts.get(ComplaintStatus.OPEN.value, 0),
        "inProgress": counts.get(ComplaintStatus.IN_PROGRESS.value, 0),
        "resolved": counts.get(ComplaintStatus.RESOLVED.value, 0),
    }


def update_complaint(
    db: Session,
    complaint_id: int,
    status: Optional[str],
    assigned_to: Optional[str] = None,
    apartment_code: Optional[str] = None,
) -> Complaint:
    new_status = normalize_complaint_status(status)

    complaint = db.query(Complaint).filter(Complaint.id == complaint_id).first()
    if complaint is None or (apartment_code and complaint.apartment_code != apartment_code):
        raise NotFoundError("Complaint not found")

    previous = complaint.status
    try:
        current = normalize_complaint_status(previous)
    except ValidationError:
        # free-text status from before the closed set; any target is fine
        current = None
    if current is not None and new_status not in ALLOWED_TRANSITIONS[current]:
        raise ValidationError(f"Cannot move complaint from {current.value} to {new_status.value}")

    complaint.status = new_status.value
    if assigned_to is not None:
        complaint.assigned_to = assigned_to
    commit(db)
    db.refresh(complaint)
    logger.info("Complaint %s: %s -> %s", complaint.id, previous, new_status.value)
    return complaint


def repair_orphaned_complaints(db: Session, apartment_code: Optional[str] = None) -> int:
    """Backfill the reporter of complaints saved without one, matching on phone.

    With ``apartment_code`` only that apartment is touched: its own orphans,
    plus unassigned complaints whose phone belongs to one of its members.
    Without it every apartment is repaired (the command-line script).
    """
    q = db.query(Complaint).filter(Complaint.user_id.is_(None))
    if apartment_code:
        q = q.filter(
            or_(Complaint.apartment_code == apartment_code, Complaint.apartment_code.is_(None))
        )
    orphans = q.all()
    updated = 0
    for complaint in orphans:
        if not complaint.phone_number:
            continue
        user = _find_user_by_phone(db, complaint.phone_number, complaint.apartment_code or apartment_code)
        if user is None:
            continue
        complaint.user_id = user.id
        if not complaint.apartment_code:
            complaint.apartment_code = user.apartment_code
        updated += 1
    if updated:
        commit(db)
    logger.info("Repaired %d of %d orphaned complaints", updated, len(orphans))
    return updated
