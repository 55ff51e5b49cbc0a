"""
Apartments, users and the one-admin-per-apartment rule.

An apartment is created with a short join code; admins and residents sign up
against that code and claim a flat. A flat can be held by one user per
apartment (enforced by the ``uq_users_flat_apartment`` constraint as well as
the pre-checks below). A phone number is unique per apartment only, so one
person may belong to several apartments.

Only one admin per apartment is intended. Admin signup is public, so a second
admin can appear; ``enforce_single_admin`` repairs that state by keeping the
earliest admin and demoting the rest. It runs after every admin signup and on
every neighbor listing.
"""
from __future__ import annotations

import random
import string
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..db import commit
from ..exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from ..logging import get_logger
from ..models import Apartment, User
from ..models.user import ROLES
from ..security import get_password_hash, verify_password
from .common import USER_NATURAL_ORDER, get_apartment, missing

logger = get_logger(__name__)

APARTMENT_CODE_ALPHABET = string.ascii_uppercase + string.digits


def _flat_taken(flat_number: str) -> str:
    return (
        f"Flat number {flat_number} is already registered in this apartment. "
        "Please choose a different flat number."
    )


def generate_apartment_code(length: Optional[int] = None) -> str:
    """Random uppercase alphanumeric join code. Not collision-free."""
    length = length or settings.APARTMENT_CODE_LENGTH
    return "".join(random.choices(APARTMENT_CODE_ALPHABET, k=length))


# ---------- Apartments ----------

def register_apartment(db: Session, name: Optional[str]) -> Apartment:
    if missing(name):
        raise ValidationError("Apartment name is required")

    apartment = Apartment(
        name=name.strip(),
        apartment_code=generate_apartment_code(),
        maintenance_amount=0,
    )
    db.add(apartment)
    # no retry: a colliding code is reported and the caller registers again
    commit(db, "Apartment code already exists, please try again")
    db.refresh(apartment)
    logger.info("Registered apartment %r with code %s", apartment.name, apartment.apartment_code)
    return apartment


# ---------- Signup / login ----------

def signup(
    db: Session,
    role: str,
    username: Optional[str],
    phone_number: Optional[str],
    flat_number: Optional[str],
    password: Optional[str],
    apartment_code: Optional[str],
) -> User:
    if role not in ROLES:
        raise ValidationError(f"Invalid role: {role}")
    if missing(username, phone_number, flat_number, password, apartment_code):
        raise ValidationError(
            "Username, phone number, flat number, password and apartment code are required"
        )

    apartment = get_apartment(
        db, apartment_code, message="Invalid apartment code", error=ValidationError
    )

    existing_user = (
        db.query(User)
        .filter(User.phone_number == phone_number, User.apartment_code == apartment.apartment_code)
        .first()
    )
    if existing_user:
        raise ConflictError("User already exists")

    existing_flat = (
        db.query(User)
        .filter(User.flat_number == flat_number, User.apartment_code == apartment.apartment_code)
        .first()
    )
    if existing_flat:
        logger.warning("Flat %s already taken in apartment %s", flat_number, apartment.apartment_code)
        raise ConflictError(_flat_taken(flat_number))

    user = User(
        username=username.strip(),
        phone_number=phone_number,
        flat_number=flat_number,
        hashed_password=get_password_hash(password),
        role=role,
        apartment_code=apartment.apartment_code,
    )
    db.add(user)
    # a concurrent signup for the same flat lands here via the storage constraint
    commit(db, _flat_taken(flat_number))
    db.refresh(user)
    logger.info("%s %s signed up for flat %s in %s", role, user.id, flat_number, apartment.apartment_code)

    if user.is_admin:
        enforce_single_admin(db, apartment.apartment_code)
        db.refresh(user)
    return user


def login(
    db: Session,
    phone_number: Optional[str],
    password: Optional[str],
    apartment_code: Optional[str] = None,
) -> User:
    """
    Resolve a user by phone and check the password.

    The phone lookup is global unless ``apartment_code`` is given. When the
    phone is registered in several apartments, the earliest registration wins.
    """
    if missing(phone_number, password):
        raise ValidationError("Phone number and password are required")

    q = db.query(User).filter(User.phone_number == phone_number)
    if apartment_code:
        q = q.filter(User.apartment_code == apartment_code)
    matches = q.order_by(*USER_NATURAL_ORDER).all()

    if not matches:
        raise ValidationError("User not found")
    if len(matches) > 1:
        logger.warning(
            "Ambiguous login: phone registered in %d apartments, using %s",
            len(matches),
            matches[0].apartment_code,
        )

    user = matches[0]
    if not verify_password(password, user.hashed_password):
        logger.warning("Invalid credentials for user %s", user.id)
        raise UnauthorizedError("Invalid credentials")
    return user


def validate(db: Session, user_id: str, phone_number: Optional[str] = None) -> User:
    """Re-hydrate a session: the user behind a token, still present."""
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    if phone_number and phone_number != user.phone_number:
        raise UnauthorizedError("Session does not match this phone number")
    return user


def session_profile(user: User) -> Dict[str, object]:
    apartment = user.apartment
    label = "Admin" if user.is_admin else "Resident"
    return {
        "role": user.role,
        "phone": user.phone_number,
        "username": user.username,
        "flatNumber": user.flat_number,
        "apartmentCode": user.apartment_code,
        "apartmentId": apartment.id if apartment else None,
        "name": f"{label} of {apartment.name if apartment else ''}",
    }


# ---------- Admin invariant ----------

def enforce_single_admin(db: Session, apartment_code: str) -> List[User]:
    """Keep the earliest admin of the apartment and demote the others.

    Returns the demoted users. Calling it again right away demotes nobody.
    """
    admins = (
        db.query(User)
        .filter(User.apartment_code == apartment_code, User.role == "admin")
        .order_by(*USER_NATURAL_ORDER)
        .all()
    )
    if len(admins) <= 1:
        return []

    keep, *demoted = admins
    for user in demoted:
        user.role = "resident"
    commit(db)
    logger.warning(
        "Apartment %s had %d admins; kept %s, demoted %s",
        apartment_code,
        len(admins),
        keep.id,
        ", ".join(u.id for u in demoted),
    )
    return demoted


# ---------- Neighbors / residents ----------

def list_neighbors(db: Session, apartment_code: Optional[str]) -> List[User]:
    apartment = get_apartment(db, apartment_code)

    def _fetch() -> List[User]:
        return (
            db.query(User)
            .filter(User.apartment_code == apartment.apartment_code)
            .order_by(*USER_NATURAL_ORDER)
            .all()
        )

    neighbors = _fetch()
    if sum(1 for u in neighbors if u.is_admin) > 1:
        enforce_single_admin(db, apartment.apartment_code)
        neighbors = _fetch()
    return neighbors


def check_flat_availability(
    db: Session,
    flat_number: Optional[str],
    apartment_code: Optional[str],
) -> Dict[str, object]:
    if missing(flat_number, apartment_code):
        raise ValidationError("Flat number and apartment code are required")

    apartment = get_apartment(db, apartment_code)
    taken = (
        db.query(User)
        .filter(User.flat_number == flat_number, User.apartment_code == apartment.apartment_code)
        .first()
    )
    is_available = taken is None
    return {
        "isAvailable": is_available,
        "flatNumber": flat_number,
        "apartmentCode": apartment.apartment_code,
        "message": (
            f"Flat number {flat_number} is available"
            if is_available
            else f"Flat number {flat_number} is already registered in this apartment"
        ),
    }


def _get_user_in_scope(db: Session, user_id: str, apartment_code: Optional[str]) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or (apartment_code and user.apartment_code != apartment_code):
        raise NotFoundError("User not found")
    return user


def update_resident(
    db: Session,
    user_id: str,
    username: Optional[str],
    phone_number: Optional[str],
    flat_number: Optional[str],
    apartment_code: Optional[str] = None,
) -> User:
    if missing(username, phone_number, flat_number):
        raise ValidationError("Username, phone number, and flat number are required")

    user = _get_user_in_scope(db, user_id, apartment_code)

    if flat_number != user.flat_number:
        other = (
            db.query(User)
            .filter(
                User.flat_number == flat_number,
                User.apartment_code == user.apartment_code,
                User.id != user.id,
            )
            .first()
        )
        if other:
            logger.warning("Flat %s already taken in apartment %s", flat_number, user.apartment_code)
            raise ConflictError(
                f"Flat number {flat_number} is already registered by another resident in this apartment."
            )

    if phone_number != user.phone_number:
        other = (
            db.query(User)
            .filter(
                User.phone_number == phone_number,
                User.apartment_code == user.apartment_code,
                User.id != user.id,
            )
            .first()
        )
        if other:
            raise ConflictError(
                f"Phone number {phone_number} is already registered in this apartment."
            )

    user.username = username.strip()
    user.phone_number = phone_number
    user.flat_number = flat_number
    commit(db, "Flat number already exists in this apartment")
    db.refresh(user)
    logger.info("Updated resident %s", user.id)
    return user


def delete_resident(db: Session, user_id: str, apartment_code: Optional[str] = None) -> Dict[str, object]:
    user = _get_user_in_scope(db, user_id, apartment_code)

    if user.is_admin:
        logger.warning("Refused to delete admin %s", user.id)
        raise ForbiddenError("Admin users cannot be deleted")

    summary = {"id": user.id, "username": user.username, "flatNumber": user.flat_number}
    db.delete(user)
    commit(db)
    logger.info("Deleted resident %s", user_id)
    return summary


# ---------- Data maintenance ----------

def backfill_usernames(db: Session) -> List[User]:
    """Give every user without a username ``User_<last 4 phone digits>``."""
    users = (
        db.query(User)
        .filter((User.username.is_(None)) | (User.username == ""))
        .order_by(*USER_NATURAL_ORDER)
        .all()
    )
    for user in users:
        user.username = f"User_{(user.phone_number or '')[-4:]}"
    if users:
        commit(db)
        logger.info("Backfilled usernames for %d users", len(users))
    return users


def users_report(db: Session) -> Dict[str, List[User]]:
    users = db.query(User).order_by(*USER_NATURAL_ORDER).all()
    return {
        "users": users,
        "without_username": [u for u in users if not u.username],
    }
