"""
Ticket Controllers (API Routes)
================================

FastAPI routes for the ticket workflow and the technician roster.

Controllers delegate to application services. The caller's identity is
asserted by the upstream gateway through the X-User-Id and X-User-Role
headers.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafm.config import UserRole
from cafm.infrastructure.database import get_session
from cafm.routing.application import IKeywordRoutingService
from cafm.shared.infrastructure.logging import get_logger
from cafm.tickets.application import (
    AssignTicketRequest,
    CreateTicketRequest,
    KeywordSuggestionInfo,
    TechnicianCreateRequest,
    TechnicianResponse,
    TechnicianService,
    TicketFilterParams,
    TicketListResponse,
    TicketPage,
    TicketResponse,
    TicketService,
    UpdateTicketRequest,
)
from cafm.tickets.domain import CallerIdentity, IAssignmentPolicy
from cafm.tickets.infrastructure import (
    SQLAlchemyTechnicianRepository,
    SQLAlchemyTicketRepository,
)

logger = get_logger(__name__)


# ========== Example payloads for Swagger ==========

CREATE_TICKET_EXAMPLE = {
    "title": "Leaking pipe in kitchen",
    "description": "There is a water leak near the sink",
    "location": "Building A, 2nd floor kitchen",
    "priority": 3
}

SUGGESTIONS_RESPONSE_EXAMPLE = [
    {"keyword": "water", "category": "Plumbing", "relevance": 100}
]


# ========== Dependencies ==========

async def get_current_user(
    x_user_id: Optional[str] = Header(None, description="Caller user ID"),
    x_user_role: Optional[str] = Header(None, description="Caller role, defaults to EndUser")
) -> CallerIdentity:
    """Build the caller identity from gateway headers."""
    if not x_user_id:
        logger.info("Rejected request without caller identity")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header"
        )
    role = UserRole.parse(x_user_role) if x_user_role else UserRole.END_USER
    return CallerIdentity(user_id=x_user_id, role=role)


def get_routing_service(request: Request) -> IKeywordRoutingService:
    """Shared routing service built at application start."""
    return request.app.state.routing_service


def get_assignment_policy(request: Request) -> IAssignmentPolicy:
    """Shared assignment policy built at application start."""
    return request.app.state.assignment_policy


def get_ticket_service(
    request: Request,
    db: AsyncSession = Depends(get_session),
    routing: IKeywordRoutingService = Depends(get_routing_service),
    policy: IAssignmentPolicy = Depends(get_assignment_policy)
) -> TicketService:
    """Per-request ticket service bound to the request's DB session."""
    return TicketService(
        SQLAlchemyTicketRepository(db),
        SQLAlchemyTechnicianRepository(db),
        routing,
        policy,
        auto_assign=request.app.state.settings.auto_assign_enabled
    )


def get_technician_service(db: AsyncSession = Depends(get_session)) -> TechnicianService:
    return TechnicianService(SQLAlchemyTechnicianRepository(db))


def _page_response(page: TicketPage) -> TicketListResponse:
    return TicketListResponse(
        tickets=[TicketResponse.from_domain(t) for t in page.tickets],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
        has_previous_page=page.has_previous_page,
        has_next_page=page.has_next_page
    )


# ========== Ticket Routes ==========

router = APIRouter(
    prefix="/tickets",
    tags=["Tickets"],
    dependencies=[Depends(get_current_user)]
)


@router.post(
    "",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a maintenance ticket",
    description="""
    Create a ticket. The title and description are routed by keyword:
    - **category** is the service category with the most matching keywords
      (General when nothing matches)
    - **extracted_keywords** lists every known keyword found in the text

    The ticket is then auto-assigned to an active technician whose role
    handles the category, when one exists.
    """,
    responses={
        201: {"description": "Ticket created"},
        401: {"description": "Missing caller identity"}
    }
)
async def create_ticket(
    payload: CreateTicketRequest,
    caller: CallerIdentity = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.create_ticket(payload, caller)
    return TicketResponse.from_domain(ticket)


@router.get(
    "",
    response_model=TicketListResponse,
    summary="List tickets visible to the caller",
    description="""
    Paginated, filterable ticket list. Managers (Admin, AssetManager) see all
    tickets; technicians see tickets in their categories that are unassigned
    or assigned to them; everyone else sees the tickets they created.
    """
)
async def list_tickets(
    params: Annotated[TicketFilterParams, Query()],
    caller: CallerIdentity = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    page = await service.list_tickets(params, caller)
    return _page_response(page)


@router.get(
    "/suggestions",
    response_model=List[KeywordSuggestionInfo],
    summary="Keyword autocomplete",
    description="""
    Up to 10 known keywords ranked against partial input:
    exact match 100, prefix 80, substring 60, input contains keyword 40.
    Inputs shorter than two characters return an empty list; long inputs
    are ranked like any other.
    """,
    responses={
        200: {
            "description": "Ranked suggestions",
            "content": {"application/json": {"example": SUGGESTIONS_RESPONSE_EXAMPLE}}
        }
    }
)
async def get_keyword_suggestions(
    user_input: str = Query("", alias="input"),
    routing: IKeywordRoutingService = Depends(get_routing_service)
):
    return [KeywordSuggestionInfo.from_domain(s) for s in routing.get_suggestions(user_input)]


@router.get(
    "/my-assigned",
    response_model=TicketListResponse,
    summary="Tickets assigned to the caller"
)
async def list_my_assigned_tickets(
    params: Annotated[TicketFilterParams, Query()],
    caller: CallerIdentity = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    page = await service.list_assigned_to(params, caller)
    return _page_response(page)


@router.get(
    "/my-created",
    response_model=TicketListResponse,
    summary="Tickets raised by the caller"
)
async def list_my_created_tickets(
    params: Annotated[TicketFilterParams, Query()],
    caller: CallerIdentity = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    page = await service.list_created_by(params, caller)
    return _page_response(page)


@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Get a ticket",
    responses={
        403: {"description": "Ticket not visible to the caller"},
        404: {"description": "Ticket not found"}
    }
)
async def get_ticket(
    ticket_id: str,
    caller: CallerIdentity = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.get_ticket(ticket_id, caller)
    return TicketResponse.from_domain(ticket)


@router.put(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Update a ticket",
    description="""
    Partial update. Managers and the assignee may always edit; the creator
    may edit while the ticket is still open. Moving to in_progress,
    completed or closed stamps the matching timestamp once.
    """
)
async def update_ticket(
    ticket_id: str,
    payload: UpdateTicketRequest,
    caller: CallerIdentity = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.update_ticket(ticket_id, payload, caller)
    return TicketResponse.from_domain(ticket)


@router.post(
    "/{ticket_id}/assign",
    response_model=TicketResponse,
    summary="Assign a ticket to a technician",
    description="Managers only. Sets the assignee and moves the ticket to in_progress."
)
async def assign_ticket(
    ticket_id: str,
    payload: AssignTicketRequest,
    caller: CallerIdentity = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.assign_ticket(ticket_id, payload.assigned_to_user_id, caller)
    return TicketResponse.from_domain(ticket)


@router.delete(
    "/{ticket_id}",
    summary="Delete a ticket",
    description="Managers only."
)
async def delete_ticket(
    ticket_id: str,
    caller: CallerIdentity = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    await service.delete_ticket(ticket_id, caller)
    return {"message": "Ticket deleted successfully"}


# ========== Technician Routes ==========

technicians = APIRouter(
    prefix="/technicians",
    tags=["Technicians"],
    dependencies=[Depends(get_current_user)]
)


@technicians.post(
    "",
    response_model=TechnicianResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a technician",
    description="Managers only. Registered, active technicians receive auto-assigned tickets for their role."
)
async def register_technician(
    payload: TechnicianCreateRequest,
    caller: CallerIdentity = Depends(get_current_user),
    service: TechnicianService = Depends(get_technician_service)
):
    technician = await service.register(payload, caller)
    return TechnicianResponse.from_domain(technician)


@technicians.get(
    "",
    response_model=List[TechnicianResponse],
    summary="List technicians"
)
async def list_technicians(
    role: Optional[str] = Query(None, description="Filter by role"),
    active_only: bool = Query(False),
    service: TechnicianService = Depends(get_technician_service)
):
    return [TechnicianResponse.from_domain(t) for t in await service.list(role=role, active_only=active_only)]


# Export routers for inclusion in main app
tickets_router = router
technicians_router = technicians
