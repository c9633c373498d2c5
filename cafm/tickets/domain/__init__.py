"""
Ticket Domain Layer
===================

Contains:
- Entities: Ticket, Technician, CallerIdentity
- Assignment: Pluggable technician selection policies
- Access: Role-based permission rules

This layer is framework-agnostic and contains pure business logic.
"""

from cafm.tickets.domain.access import TicketAccessPolicy
from cafm.tickets.domain.assignment import (
    IAssignmentPolicy,
    RandomAssignmentPolicy,
    RoundRobinAssignmentPolicy,
    build_assignment_policy,
)
from cafm.tickets.domain.entities import (
    SLA_DAYS,
    CallerIdentity,
    Technician,
    Ticket,
)

__all__ = [
    "TicketAccessPolicy",
    "IAssignmentPolicy",
    "RandomAssignmentPolicy",
    "RoundRobinAssignmentPolicy",
    "build_assignment_policy",
    "SLA_DAYS",
    "CallerIdentity",
    "Technician",
    "Ticket",
]
