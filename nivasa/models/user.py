from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from ..db import Base
from ..exceptions import ValidationError


ROLES = ("admin", "resident")


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # one user per flat within an apartment
        UniqueConstraint("flat_number", "apartment_code", name="uq_users_flat_apartment"),
    )

    id = Column(
        String,
        primary_key=True,
        index=True,
        default=lambda: str(uuid.uuid4()),
    )
    username = Column(String, nullable=True)
    # unique per apartment only: one phone may join several apartments
    phone_number = Column(String, nullable=False, index=True)
    flat_number = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)

    # Roles: "admin", "resident"
    role = Column(String, nullable=False, default="resident")

    apartment_code = Column(
        String,
        ForeignKey("apartments.apartment_code"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    apartment = relationship("Apartment", back_populates="users", lazy="joined")

    @validates("role")
    def normalize_role(self, key, value: str | None) -> str:
        """
        Store roles lowercase; anything outside admin/resident is rejected.
        """
        if not value:
            return "resident"

        value = value.strip().lower()
        if value not in ROLES:
            raise ValidationError(f"Invalid role: {value}")
        return value

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
