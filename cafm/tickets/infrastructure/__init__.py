"""
Ticket Infrastructure Layer
============================

Infrastructure implementations for the ticket module.

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
"""

from cafm.tickets.infrastructure.models import TechnicianModel, TicketModel
from cafm.tickets.infrastructure.repositories import (
    SQLAlchemyTechnicianRepository,
    SQLAlchemyTicketRepository,
)

__all__ = [
    "TechnicianModel",
    "TicketModel",
    "SQLAlchemyTechnicianRepository",
    "SQLAlchemyTicketRepository",
]
