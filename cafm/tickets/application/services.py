"""
Ticket Application Services
============================

Application services orchestrate the ticket workflow and coordinate between
domain entities, keyword routing and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories, routing), not
  concrete implementations
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from cafm.config import Priority, TicketStatus
from cafm.core import (
    PermissionDeniedException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from cafm.routing.application import IKeywordRoutingService
from cafm.routing.domain import KeywordSuggestion
from cafm.shared.infrastructure.logging import get_logger, timed_operation
from cafm.tickets.application.dto import (
    CreateTicketRequest,
    TechnicianCreateRequest,
    TicketFilterParams,
    UpdateTicketRequest,
)
from cafm.tickets.domain import (
    CallerIdentity,
    IAssignmentPolicy,
    Technician,
    Ticket,
    TicketAccessPolicy,
)

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID."""

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """Persist a new ticket and return it with its ID."""

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        """Persist changes to an existing ticket."""

    @abstractmethod
    async def assign(self, ticket: Ticket) -> Ticket:
        """
        Persist only the assignment fields of a stored ticket.

        A failure is raised as RepositoryException and leaves the caller's
        unit of work usable, so the ticket itself is still saved.
        """

    @abstractmethod
    async def delete(self, ticket_id: str) -> bool:
        """Delete ticket; False if it did not exist."""

    @abstractmethod
    async def list(
        self,
        filters: Dict[str, Any],
        sort_by: str = "created_at",
        descending: bool = True,
        limit: int = 10,
        offset: int = 0
    ) -> List[Ticket]:
        """List tickets with filters."""

    @abstractmethod
    async def count(self, filters: Dict[str, Any]) -> int:
        """Count tickets matching filters."""


class ITechnicianRepository(ABC):
    """Interface for technician data access."""

    @abstractmethod
    async def get_by_user_id(self, user_id: str) -> Optional[Technician]:
        """Get technician by identity-provider user ID."""

    @abstractmethod
    async def create(self, technician: Technician) -> Technician:
        """Register technician."""

    @abstractmethod
    async def list(self, role: Optional[str] = None, active_only: bool = False) -> List[Technician]:
        """List technicians, optionally by role."""


# ========== Results ==========

@dataclass
class TicketPage:
    """One page of a ticket listing."""
    tickets: List[Ticket]
    total_count: int
    page_number: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages


# ========== Application Services ==========

class TicketService:
    """
    Service for the ticket lifecycle.

    Ticket creation runs keyword routing, persists the ticket and then
    attempts auto-assignment, in that order.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        technician_repository: ITechnicianRepository,
        routing_service: IKeywordRoutingService,
        assignment_policy: IAssignmentPolicy,
        auto_assign: bool = True
    ):
        self._tickets = ticket_repository
        self._technicians = technician_repository
        self._routing = routing_service
        self._assignment = assignment_policy
        self._auto_assign = auto_assign
        self._access = TicketAccessPolicy(routing_service.taxonomy)

    async def create_ticket(self, request: CreateTicketRequest, caller: CallerIdentity) -> Ticket:
        """
        Create a ticket, routing it by its text.

        Args:
            request: Validated ticket fields
            caller: User raising the ticket

        Returns:
            The stored ticket, assigned when a technician was available
        """
        with timed_operation(logger, "keyword_routing", slow_ms=50):
            decision = self._routing.route(request.title, request.description)

        ticket = await self._tickets.create(Ticket(
            id=None,
            title=request.title,
            description=request.description,
            location=request.location,
            priority=Priority(request.priority),
            category=decision.category,
            extracted_keywords=decision.keywords_text,
            created_by_user_id=caller.user_id
        ))

        if self._auto_assign:
            ticket = await self._auto_assign_ticket(ticket, decision.role)

        logger.info(
            "Ticket created",
            extra={
                "ticket_id": ticket.id,
                "user_id": caller.user_id,
                "category": ticket.category.value,
                "keywords": ticket.extracted_keywords,
                "assigned_to": ticket.assigned_to_user_id
            }
        )
        return ticket

    async def get_ticket(self, ticket_id: str, caller: CallerIdentity) -> Ticket:
        """
        Fetch one ticket the caller may see.

        Raises:
            ResourceNotFoundException: Unknown ticket
            PermissionDeniedException: Ticket not visible to the caller
        """
        ticket = await self._get_existing(ticket_id)
        if not self._access.can_view(caller, ticket):
            raise PermissionDeniedException("view ticket", caller.user_id)
        return ticket

    async def list_tickets(self, params: TicketFilterParams, caller: CallerIdentity) -> TicketPage:
        """List tickets visible to the caller."""
        filters = self._filters_from(params)
        filters.update(self._access.visibility_filters(caller))
        return await self._page(filters, params)

    async def list_assigned_to(self, params: TicketFilterParams, caller: CallerIdentity) -> TicketPage:
        """List tickets assigned to the caller."""
        filters = self._filters_from(params)
        filters["assigned_to_user_id"] = caller.user_id
        return await self._page(filters, params)

    async def list_created_by(self, params: TicketFilterParams, caller: CallerIdentity) -> TicketPage:
        """List tickets raised by the caller."""
        filters = self._filters_from(params)
        filters["created_by_user_id"] = caller.user_id
        return await self._page(filters, params)

    async def update_ticket(
        self,
        ticket_id: str,
        request: UpdateTicketRequest,
        caller: CallerIdentity
    ) -> Ticket:
        """
        Apply a partial update.

        Category and keywords stay as routed at creation.
        """
        ticket = await self._get_existing(ticket_id)
        if not self._access.can_modify(caller, ticket):
            raise PermissionDeniedException("modify ticket", caller.user_id)

        if request.title:
            ticket.title = request.title
        if request.description:
            ticket.description = request.description
        if request.location:
            ticket.location = request.location
        if request.priority is not None:
            ticket.priority = Priority(request.priority)
        if request.status is not None:
            ticket.change_status(TicketStatus(request.status))
        if request.assigned_to_user_id:
            await self._require_active_technician(request.assigned_to_user_id)
            ticket.assign(request.assigned_to_user_id)

        ticket = await self._tickets.update(ticket)
        logger.info("Ticket updated", extra={"ticket_id": ticket_id, "user_id": caller.user_id})
        return ticket

    async def assign_ticket(self, ticket_id: str, user_id: str, caller: CallerIdentity) -> Ticket:
        """Manually assign a ticket and mark it in progress."""
        if not self._access.can_manage(caller):
            raise PermissionDeniedException("assign tickets", caller.user_id)

        ticket = await self._get_existing(ticket_id)
        await self._require_active_technician(user_id)

        ticket.assign(user_id)
        ticket.change_status(TicketStatus.IN_PROGRESS)
        ticket = await self._tickets.update(ticket)

        logger.info("Ticket assigned", extra={"ticket_id": ticket_id, "assigned_to": user_id})
        return ticket

    async def delete_ticket(self, ticket_id: str, caller: CallerIdentity) -> None:
        if not self._access.can_manage(caller):
            raise PermissionDeniedException("delete tickets", caller.user_id)

        if not await self._tickets.delete(ticket_id):
            raise ResourceNotFoundException("Ticket", ticket_id)

        logger.info("Ticket deleted", extra={"ticket_id": ticket_id, "user_id": caller.user_id})

    def get_suggestions(self, user_input: str) -> List[KeywordSuggestion]:
        """Keyword autocomplete for the ticket form."""
        return self._routing.get_suggestions(user_input)

    async def _auto_assign_ticket(self, ticket: Ticket, role: str) -> Ticket:
        """
        Best-effort assignment to an active technician of ``role``.

        A storage failure is logged and the unassigned ticket is returned.
        """
        try:
            candidates = await self._technicians.list(role=role, active_only=True)
            chosen = self._assignment.choose(role, candidates)
            if chosen is None:
                logger.info("No active technician for role", extra={"ticket_id": ticket.id, "role": role})
                return ticket

            assigned = replace(ticket)
            assigned.assign(chosen.user_id)
            assigned = await self._tickets.assign(assigned)
        except RepositoryException as e:
            logger.warning(
                "Auto-assignment failed",
                extra={"ticket_id": ticket.id, "role": role, "error": str(e)}
            )
            return ticket

        logger.info(
            "Ticket auto-assigned",
            extra={"ticket_id": ticket.id, "role": role, "assigned_to": chosen.user_id}
        )
        return assigned

    async def _get_existing(self, ticket_id: str) -> Ticket:
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def _require_active_technician(self, user_id: str) -> Technician:
        technician = await self._technicians.get_by_user_id(user_id)
        if technician is None:
            raise ResourceNotFoundException("Technician", user_id)
        if not technician.is_active:
            raise ValidationException(f"Technician '{user_id}' is not active")
        return technician

    async def _page(self, filters: Dict[str, Any], params: TicketFilterParams) -> TicketPage:
        total = await self._tickets.count(filters)
        tickets = await self._tickets.list(
            filters,
            sort_by=params.sort_by,
            descending=params.sort_direction == "desc",
            limit=params.page_size,
            offset=(params.page_number - 1) * params.page_size
        )
        return TicketPage(
            tickets=tickets,
            total_count=total,
            page_number=params.page_number,
            page_size=params.page_size
        )

    @staticmethod
    def _filters_from(params: TicketFilterParams) -> Dict[str, Any]:
        fields = (
            "search", "status", "category", "priority",
            "assigned_to_user_id", "created_by_user_id", "created_from", "created_to",
        )
        return {
            name: getattr(params, name)
            for name in fields
            if getattr(params, name) not in (None, "")
        }


class TechnicianService:
    """Service for the technician roster used by auto-assignment."""

    def __init__(self, technician_repository: ITechnicianRepository):
        self._technicians = technician_repository

    async def register(self, request: TechnicianCreateRequest, caller: CallerIdentity) -> Technician:
        """
        Register a technician.

        Raises:
            PermissionDeniedException: Caller is not a manager
            ValidationException: user_id already registered
        """
        if not TicketAccessPolicy.is_manager(caller):
            raise PermissionDeniedException("register technicians", caller.user_id)

        if await self._technicians.get_by_user_id(request.user_id) is not None:
            raise ValidationException(f"Technician '{request.user_id}' already exists")

        technician = await self._technicians.create(Technician(
            user_id=request.user_id,
            email=request.email,
            full_name=request.full_name,
            role=request.role,
            is_active=request.is_active
        ))
        logger.info("Technician registered", extra={"user_id": technician.user_id, "role": technician.role})
        return technician

    async def list(self, role: Optional[str] = None, active_only: bool = False) -> List[Technician]:
        return await self._technicians.list(role=role, active_only=active_only)
