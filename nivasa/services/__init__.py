# nivasa/services/__init__.py
# Request-scoped operations over a SQLAlchemy Session. No HTTP here.

from . import membership, payments, technicians, tickets

__all__ = ["membership", "payments", "technicians", "tickets"]
