from __future__ import annotations

import os

from sqlalchemy.orm import Session

from nivasa.db import Base, engine, SessionLocal
from nivasa.exceptions import NivasaError
from nivasa.models import Apartment, User
from nivasa.services import membership


def seed_admin() -> None:
    """Create an apartment and its admin unless the admin phone is already registered."""
    Base.metadata.create_all(bind=engine)
    apartment_name = os.getenv("SEED_APARTMENT_NAME", "Demo Residency")
    admin_phone = os.getenv("ADMIN_PHONE", "9000000000")
    admin_password = os.getenv("ADMIN_PASSWORD", "Admin123!")
    admin_flat = os.getenv("ADMIN_FLAT", "A-101")

    db: Session = SessionLocal()
    try:
        existing = db.query(User).filter(User.phone_number == admin_phone, User.role == "admin").first()
        if existing:
            print("Admin already exists:", admin_phone, "in", existing.apartment_code)
            return

        code = os.getenv("SEED_APARTMENT_CODE")
        apartment = (
            db.query(Apartment).filter(Apartment.apartment_code == code).first() if code else None
        )
        if apartment is None:
            apartment = membership.register_apartment(db, apartment_name)

        membership.signup(
            db,
            role="admin",
            username=os.getenv("ADMIN_USERNAME", "Administrator"),
            phone_number=admin_phone,
            flat_number=admin_flat,
            password=admin_password,
            apartment_code=apartment.apartment_code,
        )
        print("Admin user created:", admin_phone, "apartment code:", apartment.apartment_code)
    except NivasaError as exc:
        print("Seeding failed:", exc.message)
        raise SystemExit(1)
    finally:
        db.close()


if __name__ == "__main__":
    seed_admin()
