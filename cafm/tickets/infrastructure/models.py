"""
Ticket Infrastructure Models
=============================

SQLAlchemy ORM models for the ticket module.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cafm.config import Priority, TicketCategory, TicketStatus
from cafm.infrastructure.database import Base


class TicketModel(Base):
    """
    Database model for Ticket entity.

    Maps to the 'tickets' table.
    """
    __tablename__ = "tickets"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Request content
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(300), nullable=False)

    # Workflow attributes
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=int(Priority.MEDIUM), index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=TicketStatus.OPEN.value, index=True)

    # Keyword routing output
    category: Mapped[str] = mapped_column(String(50), nullable=False, default=TicketCategory.GENERAL.value, index=True)
    extracted_keywords: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # Ownership
    created_by_user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    assigned_to_user_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True
    )
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class TechnicianModel(Base):
    """
    Database model for Technician entity.

    Maps to the 'technicians' table.
    """
    __tablename__ = "technicians"

    # Identity-provider user ID
    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
