# nivasa/models/__init__.py

from .apartment import Apartment
from .user import User

from .ops import (
    Complaint,
    ComplaintStatus,
    Technician,
    MaintenancePayment,
)

__all__ = [
    "Apartment",
    "User",
    "Complaint",
    "ComplaintStatus",
    "Technician",
    "MaintenancePayment",
]
