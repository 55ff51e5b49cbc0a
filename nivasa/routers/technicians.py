from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import ensure_apartment_scope, get_current_user, require_roles
from ..models.user import User
from ..schemas.ops import TechnicianCreate, TechnicianOut, TechnicianStatusIn, TechnicianUpdate
from ..services import technicians

router = APIRouter(prefix="/api", tags=["Technicians"])


def _out(t) -> dict:
    return TechnicianOut.model_validate(t).model_dump(by_alias=True, mode="json")


def _out_list(rows) -> List[dict]:
    return [_out(t) for t in rows]


# Reads: any member of the apartment

@router.get("/all-technicians")
def all_technicians(
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    code = ensure_apartment_scope(current_user, apartmentCode)
    return _out_list(technicians.list_technicians(db, code))


@router.get("/technicians/status/available")
def available(
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    code = ensure_apartment_scope(current_user, apartmentCode)
    return _out_list(technicians.available_technicians(db, code))


@router.get("/technicians/specialty/{specialty}")
def by_specialty(
    specialty: str,
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    code = ensure_apartment_scope(current_user, apartmentCode)
    return _out_list(technicians.technicians_by_specialty(db, specialty, code))


@router.get("/technicians/{technician_id}")
def get_technician(
    technician_id: int,
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    code = ensure_apartment_scope(current_user, apartmentCode)
    return _out(technicians.get_technician(db, technician_id, code))


# Writes: admin of the apartment

@router.post("/add-technicians", status_code=status.HTTP_201_CREATED)
def add_technician(
    payload: TechnicianCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    code = ensure_apartment_scope(admin, payload.apartment_code)
    technician = technicians.create_technician(
        db,
        apartment_code=code,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        specialty=payload.specialty,
        status=payload.status,
    )
    return _out(technician)


@router.patch("/technicians/{technician_id}/status")
def update_status(
    technician_id: int,
    payload: TechnicianStatusIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    code = ensure_apartment_scope(admin, payload.apartment_code)
    return _out(
        technicians.update_technician_status(db, technician_id, payload.status, code)
    )


@router.put("/technicians/{technician_id}")
def update_technician(
    technician_id: int,
    payload: TechnicianUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    code = ensure_apartment_scope(admin, payload.apartment_code)
    fields = payload.model_dump(exclude={"apartment_code"}, exclude_none=True)
    return _out(technicians.update_technician(db, technician_id, code, **fields))


@router.delete("/technicians/{technician_id}")
def delete_technician(
    technician_id: int,
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    code = ensure_apartment_scope(admin, apartmentCode)
    deleted = technicians.delete_technician(db, technician_id, code)
    return {"message": "Technician deleted successfully", "deletedTechnician": _out(deleted)}
