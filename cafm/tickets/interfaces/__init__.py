"""
Ticket Interfaces Layer
========================

Interface adapters (controllers) for the ticket workflow.

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from cafm.tickets.interfaces.controllers import technicians_router, tickets_router

__all__ = ["tickets_router", "technicians_router"]
