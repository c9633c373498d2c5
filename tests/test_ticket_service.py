"""Tests for the ticket workflow services against in-memory repositories."""

import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional

import pytest

from cafm.config import TicketCategory, TicketStatus, UserRole
from cafm.core import (
    PermissionDeniedException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from cafm.tickets.application import (
    CreateTicketRequest,
    ITechnicianRepository,
    ITicketRepository,
    TechnicianCreateRequest,
    TechnicianService,
    TicketFilterParams,
    TicketService,
    UpdateTicketRequest,
)
from cafm.tickets.domain import CallerIdentity, RoundRobinAssignmentPolicy, Technician, Ticket

ADMIN = CallerIdentity("admin-1", UserRole.ADMIN)
ALICE = CallerIdentity("alice")
BOB = CallerIdentity("bob")
PLUMBER = CallerIdentity("plumber-1", UserRole.PLUMBER)

LEAK = CreateTicketRequest(
    title="Leaking pipe in kitchen",
    description="There is a water leak near the sink",
    location="Building A",
    priority=3,
)


class InMemoryTicketRepository(ITicketRepository):
    def __init__(self):
        self.tickets: Dict[str, Ticket] = {}

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        return replace(ticket) if ticket else None

    async def create(self, ticket: Ticket) -> Ticket:
        stored = replace(ticket, id=str(uuid.uuid4()))
        self.tickets[stored.id] = stored
        return replace(stored)

    async def update(self, ticket: Ticket) -> Ticket:
        if ticket.id not in self.tickets:
            raise RepositoryException(f"Ticket {ticket.id} not found")
        self.tickets[ticket.id] = replace(ticket)
        return replace(ticket)

    async def assign(self, ticket: Ticket) -> Ticket:
        stored = self.tickets.get(ticket.id)
        if stored is None:
            raise RepositoryException(f"Ticket {ticket.id} not found")
        stored.assigned_to_user_id = ticket.assigned_to_user_id
        stored.assigned_at = ticket.assigned_at
        return replace(stored)

    async def delete(self, ticket_id: str) -> bool:
        return self.tickets.pop(ticket_id, None) is not None

    async def list(self, filters, sort_by="created_at", descending=True, limit=10, offset=0) -> List[Ticket]:
        matched = [t for t in self.tickets.values() if self._matches(t, filters)]
        return matched[offset:offset + limit]

    async def count(self, filters) -> int:
        return len([t for t in self.tickets.values() if self._matches(t, filters)])

    @staticmethod
    def _matches(ticket: Ticket, filters: Dict[str, Any]) -> bool:
        if "created_by_user_id" in filters and ticket.created_by_user_id != filters["created_by_user_id"]:
            return False
        if "assigned_to_user_id" in filters and ticket.assigned_to_user_id != filters["assigned_to_user_id"]:
            return False
        if "status" in filters and ticket.status.value != filters["status"]:
            return False
        if "category_in" in filters and ticket.category not in filters["category_in"]:
            return False
        if "assignee_or_unassigned" in filters and ticket.assigned_to_user_id not in (
            None, filters["assignee_or_unassigned"]
        ):
            return False
        return True


class InMemoryTechnicianRepository(ITechnicianRepository):
    def __init__(self, *technicians: Technician):
        self.technicians = {t.user_id: t for t in technicians}

    async def get_by_user_id(self, user_id: str) -> Optional[Technician]:
        return self.technicians.get(user_id)

    async def create(self, technician: Technician) -> Technician:
        self.technicians[technician.user_id] = technician
        return technician

    async def list(self, role=None, active_only=False) -> List[Technician]:
        return [
            t for t in self.technicians.values()
            if (role is None or t.role == role) and (not active_only or t.is_active)
        ]


class UnavailableTechnicianRepository(InMemoryTechnicianRepository):
    async def list(self, role=None, active_only=False) -> List[Technician]:
        raise RepositoryException("connection lost")


def technician(user_id: str, role: str = "Plumber", is_active: bool = True) -> Technician:
    return Technician(
        user_id=user_id,
        email=f"{user_id}@example.com",
        full_name=user_id.title(),
        role=role,
        is_active=is_active,
    )


@pytest.fixture
def tickets():
    return InMemoryTicketRepository()


@pytest.fixture
def technicians():
    return InMemoryTechnicianRepository(
        technician("plumber-1"),
        technician("manager-1", role="AssetManager"),
    )


@pytest.fixture
def service(tickets, technicians, routing):
    return TicketService(tickets, technicians, routing, RoundRobinAssignmentPolicy())


# ========== create_ticket ==========

@pytest.mark.asyncio
async def test_create_routes_and_auto_assigns(service, tickets):
    ticket = await service.create_ticket(LEAK, ALICE)

    assert ticket.category == TicketCategory.PLUMBING
    assert ticket.extracted_keywords == "water, leak, pipe, sink"
    assert ticket.status == TicketStatus.OPEN
    assert ticket.created_by_user_id == "alice"
    assert ticket.assigned_to_user_id == "plumber-1"
    assert ticket.assigned_at is not None
    assert tickets.tickets[ticket.id].assigned_to_user_id == "plumber-1"


@pytest.mark.asyncio
async def test_general_ticket_goes_to_asset_manager(service):
    request = CreateTicketRequest(title="Hello", description="Nothing here", location="Lobby")
    ticket = await service.create_ticket(request, ALICE)

    assert ticket.category == TicketCategory.GENERAL
    assert ticket.extracted_keywords == ""
    assert ticket.assigned_to_user_id == "manager-1"


@pytest.mark.asyncio
async def test_create_without_technician_stays_unassigned(tickets, routing):
    service = TicketService(
        tickets,
        InMemoryTechnicianRepository(technician("plumber-9", is_active=False)),
        routing,
        RoundRobinAssignmentPolicy(),
    )
    ticket = await service.create_ticket(LEAK, ALICE)

    assert ticket.id in tickets.tickets
    assert ticket.assigned_to_user_id is None
    assert ticket.assigned_at is None


@pytest.mark.asyncio
async def test_create_with_auto_assign_disabled(tickets, technicians, routing):
    service = TicketService(tickets, technicians, routing, RoundRobinAssignmentPolicy(), auto_assign=False)
    ticket = await service.create_ticket(LEAK, ALICE)
    assert ticket.assigned_to_user_id is None


@pytest.mark.asyncio
async def test_assignment_failure_does_not_lose_ticket(tickets, routing):
    service = TicketService(tickets, UnavailableTechnicianRepository(), routing, RoundRobinAssignmentPolicy())
    ticket = await service.create_ticket(LEAK, ALICE)

    assert ticket.category == TicketCategory.PLUMBING
    assert ticket.assigned_to_user_id is None
    assert ticket.id in tickets.tickets


# ========== get / list ==========

@pytest.mark.asyncio
async def test_get_ticket_permissions(service):
    ticket = await service.create_ticket(LEAK, ALICE)

    assert (await service.get_ticket(ticket.id, ALICE)).id == ticket.id
    assert (await service.get_ticket(ticket.id, PLUMBER)).id == ticket.id
    assert (await service.get_ticket(ticket.id, ADMIN)).id == ticket.id
    with pytest.raises(PermissionDeniedException):
        await service.get_ticket(ticket.id, BOB)


@pytest.mark.asyncio
async def test_get_unknown_ticket(service):
    with pytest.raises(ResourceNotFoundException):
        await service.get_ticket("missing", ADMIN)


@pytest.mark.asyncio
async def test_list_applies_visibility(service):
    await service.create_ticket(LEAK, ALICE)
    await service.create_ticket(LEAK, BOB)
    params = TicketFilterParams()

    assert (await service.list_tickets(params, ADMIN)).total_count == 2

    alice_page = await service.list_tickets(params, ALICE)
    assert alice_page.total_count == 1
    assert alice_page.tickets[0].created_by_user_id == "alice"

    # Visibility wins over a caller-supplied creator filter
    bob_page = await service.list_tickets(TicketFilterParams(created_by_user_id="alice"), BOB)
    assert [t.created_by_user_id for t in bob_page.tickets] == ["bob"]

    assert (await service.list_tickets(params, PLUMBER)).total_count == 2


@pytest.mark.asyncio
async def test_list_assigned_and_created(service):
    await service.create_ticket(LEAK, ALICE)

    assert (await service.list_assigned_to(TicketFilterParams(), PLUMBER)).total_count == 1
    assert (await service.list_created_by(TicketFilterParams(), ALICE)).total_count == 1
    assert (await service.list_created_by(TicketFilterParams(), BOB)).total_count == 0


@pytest.mark.asyncio
async def test_page_metadata(service):
    for _ in range(3):
        await service.create_ticket(LEAK, ALICE)

    page = await service.list_tickets(TicketFilterParams(page_number=2, page_size=2), ALICE)
    assert page.total_count == 3
    assert page.total_pages == 2
    assert len(page.tickets) == 1
    assert page.has_previous_page
    assert not page.has_next_page


# ========== update / assign / delete ==========

@pytest.mark.asyncio
async def test_creator_updates_open_ticket(service):
    ticket = await service.create_ticket(LEAK, ALICE)
    updated = await service.update_ticket(ticket.id, UpdateTicketRequest(location="Building B"), ALICE)

    assert updated.location == "Building B"
    # Category is not re-routed on update
    assert updated.category == TicketCategory.PLUMBING


@pytest.mark.asyncio
async def test_creator_cannot_update_after_work_starts(service):
    ticket = await service.create_ticket(LEAK, ALICE)
    await service.update_ticket(ticket.id, UpdateTicketRequest(status="in_progress"), PLUMBER)

    with pytest.raises(PermissionDeniedException):
        await service.update_ticket(ticket.id, UpdateTicketRequest(title="Still leaking"), ALICE)


@pytest.mark.asyncio
async def test_assignee_completes_ticket(service):
    ticket = await service.create_ticket(LEAK, ALICE)
    updated = await service.update_ticket(ticket.id, UpdateTicketRequest(status="completed"), PLUMBER)

    assert updated.status == TicketStatus.COMPLETED
    assert updated.completed_at is not None
    assert not updated.is_overdue()


@pytest.mark.asyncio
async def test_assign_requires_manager(service):
    ticket = await service.create_ticket(LEAK, ALICE)
    with pytest.raises(PermissionDeniedException):
        await service.assign_ticket(ticket.id, "plumber-1", ALICE)


@pytest.mark.asyncio
async def test_manager_assigns_ticket(service, technicians):
    await technicians.create(technician("plumber-2"))
    ticket = await service.create_ticket(LEAK, ALICE)

    assigned = await service.assign_ticket(ticket.id, "plumber-2", ADMIN)
    assert assigned.assigned_to_user_id == "plumber-2"
    assert assigned.status == TicketStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_assign_to_unknown_or_inactive_technician(service, technicians):
    await technicians.create(technician("plumber-3", is_active=False))
    ticket = await service.create_ticket(LEAK, ALICE)

    with pytest.raises(ResourceNotFoundException):
        await service.assign_ticket(ticket.id, "nobody", ADMIN)
    with pytest.raises(ValidationException):
        await service.assign_ticket(ticket.id, "plumber-3", ADMIN)


@pytest.mark.asyncio
async def test_delete_ticket(service, tickets):
    ticket = await service.create_ticket(LEAK, ALICE)

    with pytest.raises(PermissionDeniedException):
        await service.delete_ticket(ticket.id, ALICE)

    await service.delete_ticket(ticket.id, ADMIN)
    assert ticket.id not in tickets.tickets

    with pytest.raises(ResourceNotFoundException):
        await service.delete_ticket(ticket.id, ADMIN)


def test_suggestions_pass_through(service):
    assert [s.keyword for s in service.get_suggestions("leak")] == ["leak"]


# ========== TechnicianService ==========

@pytest.mark.asyncio
async def test_register_technician(technicians):
    service = TechnicianService(technicians)
    request = TechnicianCreateRequest(
        user_id="sparky", email="sparky@example.com", full_name="Sparky", role="Electrician"
    )

    with pytest.raises(PermissionDeniedException):
        await service.register(request, PLUMBER)

    registered = await service.register(request, ADMIN)
    assert registered.role == "Electrician"
    assert [t.user_id for t in await service.list(role="Electrician")] == ["sparky"]

    with pytest.raises(ValidationException):
        await service.register(request, ADMIN)
