"""
Ticket Application DTOs
========================

Data Transfer Objects for the ticket API layer.

Pydantic models for request/response validation.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from cafm.config import settings
from cafm.routing.domain import KeywordSuggestion
from cafm.tickets.domain import Technician, Ticket


# ========== Type Aliases for Literals ==========
TicketCategoryStr = Literal[
    "General", "Plumbing", "Electrical", "Cleaning",
    "AssetManagement", "HVAC", "Security", "IT"
]
TicketStatusStr = Literal["open", "in_progress", "completed", "closed", "cancelled"]
TechnicianRoleStr = Literal["Plumber", "Electrician", "Cleaner", "AssetManager"]
SortFieldStr = Literal["created_at", "title", "priority", "status", "category"]
SortDirectionStr = Literal["asc", "desc"]


# ========== Request DTOs ==========

class CreateTicketRequest(BaseModel):
    """Request model for raising a maintenance ticket."""
    title: str = Field(..., min_length=1, max_length=200, description="Short summary")
    description: str = Field(..., min_length=1, max_length=2000, description="What is wrong")
    location: str = Field(..., min_length=1, max_length=300, description="Where the problem is")
    priority: int = Field(default=2, ge=1, le=4, description="1=Low, 2=Medium, 3=High, 4=Critical")


class UpdateTicketRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    location: Optional[str] = Field(None, min_length=1, max_length=300)
    priority: Optional[int] = Field(None, ge=1, le=4)
    status: Optional[TicketStatusStr] = None
    assigned_to_user_id: Optional[str] = Field(None, min_length=1)


class AssignTicketRequest(BaseModel):
    """Request model for manual assignment."""
    assigned_to_user_id: str = Field(..., min_length=1, description="Technician user ID")


class TicketFilterParams(BaseModel):
    """Query parameters for ticket listings."""
    search: Optional[str] = Field(None, description="Substring of title, description or location")
    status: Optional[TicketStatusStr] = None
    category: Optional[TicketCategoryStr] = None
    priority: Optional[int] = Field(None, ge=1, le=4)
    assigned_to_user_id: Optional[str] = None
    created_by_user_id: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    page_number: int = Field(default=1, ge=1)
    page_size: int = Field(default=settings.default_page_size, ge=1)
    sort_by: SortFieldStr = "created_at"
    sort_direction: SortDirectionStr = "desc"

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Cap page size at the configured maximum."""
        if v > settings.max_page_size:
            raise ValueError(f"page_size must be at most {settings.max_page_size}")
        return v


class TechnicianCreateRequest(BaseModel):
    """Request model for registering a technician."""
    user_id: str = Field(..., min_length=1, max_length=255, description="Identity-provider user ID")
    email: str = Field(..., min_length=3, max_length=255)
    full_name: str = Field(..., min_length=1, max_length=200)
    role: TechnicianRoleStr
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Minimal shape check."""
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


# ========== Response DTOs ==========

class TicketResponse(BaseModel):
    """Response model for a single ticket."""
    id: str
    title: str
    description: str
    location: str
    priority: int
    priority_text: str
    status: TicketStatusStr
    category: TicketCategoryStr
    extracted_keywords: str
    keywords: List[str]
    created_at: datetime
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    is_overdue: bool
    created_by_user_id: str
    assigned_to_user_id: Optional[str] = None

    @classmethod
    def from_domain(cls, ticket: Ticket) -> "TicketResponse":
        """Create from domain entity."""
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            location=ticket.location,
            priority=int(ticket.priority),
            priority_text=ticket.priority_text,
            status=ticket.status.value,
            category=ticket.category.value,
            extracted_keywords=ticket.extracted_keywords,
            keywords=ticket.keyword_list,
            created_at=ticket.created_at,
            assigned_at=ticket.assigned_at,
            completed_at=ticket.completed_at,
            closed_at=ticket.closed_at,
            is_overdue=ticket.is_overdue(),
            created_by_user_id=ticket.created_by_user_id,
            assigned_to_user_id=ticket.assigned_to_user_id
        )


class TicketListResponse(BaseModel):
    """Paginated ticket listing."""
    tickets: List[TicketResponse]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool


class KeywordSuggestionInfo(BaseModel):
    """Autocomplete entry."""
    keyword: str
    category: TicketCategoryStr
    relevance: int = Field(..., ge=0, le=100)

    @classmethod
    def from_domain(cls, suggestion: KeywordSuggestion) -> "KeywordSuggestionInfo":
        return cls(
            keyword=suggestion.keyword,
            category=suggestion.category.value,
            relevance=suggestion.relevance
        )


class TechnicianResponse(BaseModel):
    """Response model for a technician."""
    user_id: str
    email: str
    full_name: str
    role: str
    is_active: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, technician: Technician) -> "TechnicianResponse":
        return cls(
            user_id=technician.user_id,
            email=technician.email,
            full_name=technician.full_name,
            role=technician.role,
            is_active=technician.is_active,
            created_at=technician.created_at
        )
