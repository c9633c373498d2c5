"""
Ticket Application Layer
=========================

Application layer for the ticket workflow.

Contains:
- Services: Business logic orchestration
- DTOs: Data transfer objects for API serialization
"""

from cafm.tickets.application.dto import (
    AssignTicketRequest,
    CreateTicketRequest,
    KeywordSuggestionInfo,
    TechnicianCreateRequest,
    TechnicianResponse,
    TicketFilterParams,
    TicketListResponse,
    TicketResponse,
    UpdateTicketRequest,
)
from cafm.tickets.application.services import (
    ITechnicianRepository,
    ITicketRepository,
    TechnicianService,
    TicketPage,
    TicketService,
)

__all__ = [
    # DTOs
    "AssignTicketRequest",
    "CreateTicketRequest",
    "KeywordSuggestionInfo",
    "TechnicianCreateRequest",
    "TechnicianResponse",
    "TicketFilterParams",
    "TicketListResponse",
    "TicketResponse",
    "UpdateTicketRequest",
    # Services
    "TicketPage",
    "TicketService",
    "TechnicianService",
    # Repository Interfaces
    "ITicketRepository",
    "ITechnicianRepository",
]
