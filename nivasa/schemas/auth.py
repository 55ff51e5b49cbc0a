# nivasa/schemas/auth.py
from __future__ import annotations
from datetime import datetime
from typing import Optional

from .base import CamelModel

# Required fields are checked by the services so every client gets the same
# {"error": ...} message; the request models only shape the payload.

class ApartmentCreate(CamelModel):
    name: Optional[str] = None

class UserCreate(CamelModel):
    username: Optional[str] = None
    phone_number: Optional[str] = None
    flat_number: Optional[str] = None
    password: Optional[str] = None
    apartment_code: Optional[str] = None

class UserLogin(CamelModel):
    phone_number: Optional[str] = None
    password: Optional[str] = None
    # narrows the lookup when one phone belongs to several apartments
    apartment_code: Optional[str] = None

class ValidateIn(CamelModel):
    phone_number: Optional[str] = None

class ResidentUpdate(CamelModel):
    username: Optional[str] = None
    phone_number: Optional[str] = None
    flat_number: Optional[str] = None

class UserOut(CamelModel):
    id: str
    username: Optional[str] = None
    phone_number: str
    flat_number: str
    role: str
    apartment_code: str
    created_at: Optional[datetime] = None

class TokenPayload(CamelModel):
    sub: str
    role: str
    apartment_code: str
    exp: int
