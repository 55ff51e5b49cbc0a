"""Lookups shared by the services."""
from __future__ import annotations

from typing import Optional, Type

from sqlalchemy.orm import Session

from ..exceptions import NivasaError, NotFoundError, ValidationError
from ..models import Apartment, User


# Storage order for users: earliest signup first.
USER_NATURAL_ORDER = (User.created_at.asc(), User.id.asc())


def require_apartment_code(apartment_code: Optional[str]) -> str:
    if not apartment_code or not str(apartment_code).strip():
        raise ValidationError("Apartment code is required")
    return str(apartment_code).strip()


def get_apartment(
    db: Session,
    apartment_code: Optional[str],
    message: str = "Apartment not found",
    error: Type[NivasaError] = NotFoundError,
) -> Apartment:
    code = require_apartment_code(apartment_code)
    apartment = db.query(Apartment).filter(Apartment.apartment_code == code).first()
    if apartment is None:
        raise error(message)
    return apartment


def missing(*values) -> bool:
    """True when any value is None or a blank string."""
    return any(v is None or (isinstance(v, str) and not v.strip()) for v in values)
