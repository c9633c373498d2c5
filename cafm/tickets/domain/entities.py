"""
Ticket Domain Entities
======================

Pure Python domain entities for the ticket workflow.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from cafm.config import Priority, TicketCategory, TicketStatus, UserRole

# Days allowed before an unfinished ticket counts as overdue
SLA_DAYS = {
    Priority.CRITICAL: 1,
    Priority.HIGH: 3,
    Priority.MEDIUM: 7,
    Priority.LOW: 14,
}

FINISHED_STATUSES = frozenset({TicketStatus.COMPLETED, TicketStatus.CLOSED, TicketStatus.CANCELLED})


@dataclass
class Ticket:
    """
    Maintenance request raised by an end user.

    Category and extracted keywords are written once, by keyword routing,
    when the ticket is created.
    """

    id: Optional[str]  # UUID, None for new tickets
    title: str
    description: str
    location: str
    created_by_user_id: str
    priority: Priority = Priority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN
    category: TicketCategory = TicketCategory.GENERAL
    extracted_keywords: str = ""
    assigned_to_user_id: Optional[str] = None

    # Timestamps
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    @property
    def priority_text(self) -> str:
        return Priority(self.priority).text

    @property
    def keyword_list(self) -> List[str]:
        """Extracted keywords as a list."""
        return [k.strip() for k in self.extracted_keywords.split(",") if k.strip()]

    @property
    def sla_days(self) -> int:
        return SLA_DAYS.get(Priority(self.priority), 7)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Check if an unfinished ticket has outlived its priority's SLA."""
        if self.status in FINISHED_STATUSES:
            return False
        now = now or datetime.now(timezone.utc)
        return self.created_at + timedelta(days=self.sla_days) < now

    def assign(self, user_id: str, at: Optional[datetime] = None) -> None:
        """Hand the ticket to a technician."""
        self.assigned_to_user_id = user_id
        self.assigned_at = at or datetime.now(timezone.utc)

    def change_status(self, status: TicketStatus, at: Optional[datetime] = None) -> None:
        """
        Move to a new status.

        The first transition into in_progress, completed or closed records
        the matching timestamp; later transitions keep the original one.
        """
        at = at or datetime.now(timezone.utc)
        self.status = status

        if status == TicketStatus.IN_PROGRESS and self.assigned_at is None:
            self.assigned_at = at
        elif status == TicketStatus.COMPLETED and self.completed_at is None:
            self.completed_at = at
        elif status == TicketStatus.CLOSED and self.closed_at is None:
            self.closed_at = at


@dataclass
class Technician:
    """
    Staff member who can receive ticket assignments.

    ``user_id`` is the identity issued by the external authentication
    system, the same value callers send in X-User-Id.
    """
    user_id: str
    email: str
    full_name: str
    role: str
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller, as asserted by the upstream gateway."""
    user_id: str
    role: UserRole = UserRole.END_USER
