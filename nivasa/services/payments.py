"""
Maintenance fee and payment reconciliation.

The admin sets one fee amount and one set of receiving bank details per
apartment. Residents pay off-system and submit the transaction reference;
the amount recorded is the fee at submission time. The admin then approves
or rejects each claim.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..db import commit
from ..exceptions import NotFoundError, ValidationError
from ..logging import get_logger
from ..models import MaintenancePayment
from ..models.apartment import BANK_FIELDS
from ..models.ops import PAYMENT_STATUSES
from .common import get_apartment, missing, require_apartment_code

logger = get_logger(__name__)


def set_fee_amount(db: Session, apartment_code: Optional[str], amount: Optional[float]) -> float:
    if amount is None:
        raise ValidationError("Amount is required")
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a number")
    if amount < 0:
        raise ValidationError("Amount cannot be negative")

    apartment = get_apartment(db, apartment_code)
    apartment.maintenance_amount = amount
    commit(db)
    db.refresh(apartment)
    logger.info("Maintenance amount for %s set to %s", apartment.apartment_code, amount)
    return apartment.maintenance_amount


def get_fee_amount(db: Session, apartment_code: Optional[str]) -> Optional[float]:
    return get_apartment(db, apartment_code).maintenance_amount


def set_bank_details(db: Session, apartment_code: Optional[str], **details: Optional[str]) -> Dict[str, Optional[str]]:
    """Replace the receiving account record; omitted fields are cleared."""
    unknown = set(details) - set(BANK_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown bank detail fields: {', '.join(sorted(unknown))}")

    apartment = get_apartment(db, apartment_code)
    for field in BANK_FIELDS:
        setattr(apartment, field, details.get(field))
    commit(db)
    db.refresh(apartment)
    logger.info("Bank details updated for %s", apartment.apartment_code)
    return apartment.bank_details


def get_bank_details(db: Session, apartment_code: Optional[str]) -> Dict[str, Optional[str]]:
    return get_apartment(db, apartment_code).bank_details


def submit_payment(
    db: Session,
    apartment_code: Optional[str],
    flat_number: Optional[str],
    transaction_id: Optional[str],
    months: Optional[Sequence[str]] = None,
) -> MaintenancePayment:
    if missing(apartment_code, flat_number, transaction_id):
        raise ValidationError("All fields are required")

    apartment = get_apartment(db, apartment_code)
    amount = apartment.maintenance_amount
    if not amount:
        raise ValidationError("Maintenance amount not set by admin")

    payment = MaintenancePayment(
        apartment_code=apartment.apartment_code,
        flat_number=flat_number,
        amount=amount,
        transaction_id=transaction_id,
        status="pending",
        months=list(months or []),
    )
    db.add(payment)
    commit(db)
    db.refresh(payment)
    logger.info(
        "Payment %s submitted for flat %s in %s (%s)",
        payment.id,
        flat_number,
        apartment.apartment_code,
        amount,
    )
    return payment


def _newest_first(q) -> List[MaintenancePayment]:
    return q.order_by(MaintenancePayment.created_at.desc(), MaintenancePayment.id.desc()).all()


def list_my_payments(db: Session, apartment_code: Optional[str], flat_number: Optional[str]) -> List[MaintenancePayment]:
    if missing(apartment_code, flat_number):
        raise ValidationError("apartmentCode and flatNumber are required")
    return _newest_first(
        db.query(MaintenancePayment).filter(
            MaintenancePayment.apartment_code == apartment_code,
            MaintenancePayment.flat_number == flat_number,
        )
    )


def list_payments(db: Session, apartment_code: Optional[str]) -> List[MaintenancePayment]:
    code = require_apartment_code(apartment_code)
    return _newest_first(
        db.query(MaintenancePayment).filter(MaintenancePayment.apartment_code == code)
    )


def update_payment_status(
    db: Session,
    payment_id: int,
    status: Optional[str],
    apartment_code: Optional[str] = None,
) -> MaintenancePayment:
    if status not in PAYMENT_STATUSES:
        raise ValidationError("Invalid status")

    payment = db.query(MaintenancePayment).filter(MaintenancePayment.id == payment_id).first()
    if payment is None or (apartment_code and payment.apartment_code != apartment_code):
        raise NotFoundError("Payment not found")

    previous = payment.status
    payment.status = status
    commit(db)
    db.refresh(payment)
    logger.info("Payment %s: %s -> %s", payment.id, previous, status)
    return payment
