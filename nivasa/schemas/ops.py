# nivasa/schemas/ops.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import CamelModel


# ---------- Complaints ----------

class ComplaintCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    phone_number: Optional[str] = None
    additional_info: Optional[str] = None

class ComplaintUpdate(CamelModel):
    status: Optional[str] = None
    assigned_to: Optional[str] = None


# ---------- Technicians ----------

class TechnicianCreate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    specialty: Optional[str] = None
    status: Optional[str] = None
    apartment_code: Optional[str] = None

class TechnicianUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    specialty: Optional[str] = None
    status: Optional[str] = None
    apartment_code: Optional[str] = None

class TechnicianStatusIn(CamelModel):
    status: Optional[str] = None
    apartment_code: Optional[str] = None

class TechnicianOut(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    specialty: str
    status: str
    apartment_code: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------- Maintenance ----------

class FeeAmountIn(CamelModel):
    apartment_code: Optional[str] = None
    amount: Optional[float] = None

class BankDetails(CamelModel):
    account_holder: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    bank_name: Optional[str] = None
    branch: Optional[str] = None
    upi_id: Optional[str] = None

class BankDetailsIn(BankDetails):
    apartment_code: Optional[str] = None

class PaymentCreate(CamelModel):
    apartment_code: Optional[str] = None
    flat_number: Optional[str] = None
    transaction_id: Optional[str] = None
    months: List[str] = Field(default_factory=list)

class PaymentStatusIn(CamelModel):
    status: Optional[str] = None

class PaymentOut(CamelModel):
    id: int
    apartment_code: str
    flat_number: str
    amount: float
    transaction_id: str
    status: str
    months: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
