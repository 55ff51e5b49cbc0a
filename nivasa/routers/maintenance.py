from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import ensure_apartment_scope, ensure_flat_scope, get_current_user, require_roles
from ..models.user import User
from ..schemas.ops import (
    BankDetails,
    BankDetailsIn,
    FeeAmountIn,
    PaymentCreate,
    PaymentOut,
    PaymentStatusIn,
)
from ..services import payments

router = APIRouter(prefix="/api/auth/maintenance", tags=["Maintenance"])


def _payment(p) -> dict:
    return PaymentOut.model_validate(p).model_dump(by_alias=True, mode="json")


def _bank(details: dict) -> dict:
    return BankDetails(**details).model_dump(by_alias=True)


# ---------- Fee amount ----------

@router.post("/amount")
def set_amount(
    payload: FeeAmountIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    code = ensure_apartment_scope(admin, payload.apartment_code)
    amount = payments.set_fee_amount(db, code, payload.amount)
    return {"message": "Maintenance amount updated", "maintenanceAmount": amount}


@router.get("/amount")
def get_amount(
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    code = ensure_apartment_scope(current_user, apartmentCode)
    return {"maintenanceAmount": payments.get_fee_amount(db, code)}


# ---------- Bank details ----------

@router.post("/bank-details")
def set_bank_details(
    payload: BankDetailsIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    code = ensure_apartment_scope(admin, payload.apartment_code)
    details = payments.set_bank_details(
        db, code, **payload.model_dump(exclude={"apartment_code"})
    )
    return {"message": "Bank details updated successfully", "bankDetails": _bank(details)}


@router.get("/bank-details")
def get_bank_details(
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    code = ensure_apartment_scope(current_user, apartmentCode)
    return {"bankDetails": _bank(payments.get_bank_details(db, code))}


# ---------- Payments ----------

@router.post("/payment", status_code=status.HTTP_201_CREATED)
def submit_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    code = ensure_apartment_scope(current_user, payload.apartment_code)
    ensure_flat_scope(current_user, payload.flat_number)
    payment = payments.submit_payment(
        db,
        apartment_code=code,
        flat_number=payload.flat_number,
        transaction_id=payload.transaction_id,
        months=payload.months,
    )
    return {"message": "Payment request submitted", "payment": _payment(payment)}


@router.get("/my-payments")
def my_payments(
    apartmentCode: Optional[str] = None,
    flatNumber: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    code = ensure_apartment_scope(current_user, apartmentCode)
    ensure_flat_scope(current_user, flatNumber)
    rows = payments.list_my_payments(db, code, flatNumber)
    return {"payments": [_payment(p) for p in rows]}


@router.get("/payments")
def all_payments(
    apartmentCode: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    code = ensure_apartment_scope(admin, apartmentCode)
    return {"payments": [_payment(p) for p in payments.list_payments(db, code)]}


@router.patch("/payment/{payment_id}/status")
def update_payment_status(
    payment_id: int,
    payload: PaymentStatusIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    payment = payments.update_payment_status(
        db, payment_id, payload.status, apartment_code=admin.apartment_code
    )
    return {"message": "Payment status updated", "payment": _payment(payment)}
