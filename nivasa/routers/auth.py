# nivasa/routers/auth.py
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import ensure_apartment_scope, get_current_user, get_token_payload, require_roles
from ..models.user import User
from ..schemas.auth import (
    ApartmentCreate,
    ResidentUpdate,
    TokenPayload,
    UserCreate,
    UserLogin,
    UserOut,
    ValidateIn,
)
from ..security import create_access_token
from ..services import membership

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_response(user: User, message: Optional[str] = None) -> dict:
    body = membership.session_profile(user)
    if message:
        body["message"] = message
    body["accessToken"] = create_access_token(
        {"sub": user.id, "role": user.role, "apartmentCode": user.apartment_code}
    )
    body["tokenType"] = "bearer"
    return body


@router.post("/register-apartment", status_code=status.HTTP_201_CREATED)
def register_apartment(payload: ApartmentCreate, db: Session = Depends(get_db)):
    apartment = membership.register_apartment(db, payload.name)
    return {
        "message": "Apartment registered",
        "apartmentCode": apartment.apartment_code,
        "name": apartment.name,
    }


def _signup(role: str, payload: UserCreate, db: Session) -> dict:
    user = membership.signup(
        db,
        role=role,
        username=payload.username,
        phone_number=payload.phone_number,
        flat_number=payload.flat_number,
        password=payload.password,
        apartment_code=payload.apartment_code,
    )
    return {
        "message": f"{role} registered successfully",
        "user": UserOut.model_validate(user).model_dump(by_alias=True, mode="json"),
    }


@router.post("/signup-admin", status_code=status.HTTP_201_CREATED)
def signup_admin(payload: UserCreate, db: Session = Depends(get_db)):
    return _signup("admin", payload, db)


@router.post("/signup-resident", status_code=status.HTTP_201_CREATED)
def signup_resident(payload: UserCreate, db: Session = Depends(get_db)):
    return _signup("resident", payload, db)


@router.post("/login")
def login(payload: UserLogin, db: Session = Depends(get_db)):
    user = membership.login(db, payload.phone_number, payload.password, payload.apartment_code)
    return _session_response(user, message="Login successful")


@router.post("/validate")
def validate(
    payload: Optional[ValidateIn] = None,
    token_data: TokenPayload = Depends(get_token_payload),
    db: Session = Depends(get_db),
):
    phone_number = payload.phone_number if payload else None
    user = membership.validate(db, token_data.sub, phone_number)
    return _session_response(user)


@router.get("/check-flat-availability")
def check_flat_availability(
    flatNumber: Optional[str] = None,
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return membership.check_flat_availability(db, flatNumber, apartmentCode)


# ---------- Neighbors / residents ----------

@router.get("/neighbors/{apartment_code}")
def neighbors(
    apartment_code: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_apartment_scope(current_user, apartment_code)
    users = membership.list_neighbors(db, apartment_code)
    return {
        "neighbors": [
            UserOut.model_validate(u).model_dump(by_alias=True, mode="json") for u in users
        ]
    }


@router.put("/update-resident/{user_id}")
def update_resident(
    user_id: str,
    payload: ResidentUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    user = membership.update_resident(
        db,
        user_id,
        username=payload.username,
        phone_number=payload.phone_number,
        flat_number=payload.flat_number,
        apartment_code=admin.apartment_code,
    )
    return {
        "message": "Resident updated successfully",
        "user": UserOut.model_validate(user).model_dump(by_alias=True, mode="json"),
    }


@router.delete("/delete-resident/{user_id}")
def delete_resident(
    user_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    deleted = membership.delete_resident(db, user_id, apartment_code=admin.apartment_code)
    return {"message": "Resident deleted successfully", "deletedUser": deleted}
