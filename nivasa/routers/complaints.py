from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import ensure_apartment_scope, get_current_user, require_roles
from ..models.user import User
from ..schemas.ops import ComplaintCreate, ComplaintUpdate
from ..services import tickets
from ..services.tickets import serialize_complaint

router = APIRouter(prefix="/api/auth", tags=["Complaints"])


@router.post("/new-complaint", status_code=status.HTTP_201_CREATED)
def new_complaint(
    payload: ComplaintCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    complaint = tickets.create_complaint(
        db,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        priority=payload.priority,
        phone_number=payload.phone_number,
        additional_info=payload.additional_info,
        # the reporter is looked up inside the caller's apartment only
        apartment_code=current_user.apartment_code,
    )
    return {"message": "Complaint created", "complaint": serialize_complaint(complaint)}


@router.get("/all-complaint")
def all_complaints(
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    code = ensure_apartment_scope(current_user, apartmentCode)
    rows = tickets.list_complaints(db, code)
    return {"complaints": [serialize_complaint(c) for c in rows]}


@router.get("/stats/{apartment_code}")
def stats(
    apartment_code: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_apartment_scope(current_user, apartment_code)
    return tickets.complaint_stats(db, apartment_code)


@router.put("/update-complaint/{complaint_id}")
def update_complaint(
    complaint_id: int,
    payload: ComplaintUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    complaint = tickets.update_complaint(
        db,
        complaint_id,
        status=payload.status,
        assigned_to=payload.assigned_to,
        apartment_code=admin.apartment_code,
    )
    return {"message": "Complaint updated", "complaint": serialize_complaint(complaint)}


@router.post("/fix-complaints-user")
def fix_complaints_user(
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    updated = tickets.repair_orphaned_complaints(db, apartment_code=admin.apartment_code)
    return {"message": f"Updated {updated} complaints with user info.", "updated": updated}
