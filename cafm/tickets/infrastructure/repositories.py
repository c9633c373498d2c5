"""
Ticket Infrastructure Repositories
====================================

Concrete implementations of repository interfaces using SQLAlchemy.

Rows are mapped to domain entities on the way out, so the application
layer never sees ORM objects.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cafm.config import Priority, TicketCategory, TicketStatus
from cafm.core import RepositoryException
from cafm.tickets.application.services import ITechnicianRepository, ITicketRepository
from cafm.tickets.domain import Technician, Ticket
from cafm.tickets.infrastructure.models import TechnicianModel, TicketModel

_SORT_COLUMNS = {
    "created_at": TicketModel.created_at,
    "title": TicketModel.title,
    "priority": TicketModel.priority,
    "status": TicketModel.status,
    "category": TicketModel.category,
}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_uuid(ticket_id: str) -> Optional[UUID]:
    try:
        return UUID(str(ticket_id))
    except ValueError:
        return None


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    Handles persistence of Ticket entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        model = await self._get_model(ticket_id)
        return self._to_entity(model) if model else None

    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            id=uuid4(),
            title=ticket.title,
            description=ticket.description,
            location=ticket.location,
            priority=int(ticket.priority),
            status=ticket.status.value,
            category=ticket.category.value,
            extracted_keywords=ticket.extracted_keywords,
            created_by_user_id=ticket.created_by_user_id,
            assigned_to_user_id=ticket.assigned_to_user_id,
            created_at=ticket.created_at,
            assigned_at=ticket.assigned_at,
            completed_at=ticket.completed_at,
            closed_at=ticket.closed_at
        )

        self._session.add(model)
        try:
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to create ticket: {e}") from e

        return self._to_entity(model)

    async def update(self, ticket: Ticket) -> Ticket:
        try:
            model = await self._require_model(ticket.id)

            model.title = ticket.title
            model.description = ticket.description
            model.location = ticket.location
            model.priority = int(ticket.priority)
            model.status = ticket.status.value
            model.category = ticket.category.value
            model.extracted_keywords = ticket.extracted_keywords
            model.assigned_to_user_id = ticket.assigned_to_user_id
            model.assigned_at = ticket.assigned_at
            model.completed_at = ticket.completed_at
            model.closed_at = ticket.closed_at

            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to update ticket {ticket.id}: {e}") from e

        return self._to_entity(model)

    async def assign(self, ticket: Ticket) -> Ticket:
        """Write the assignment inside a savepoint; a failure rolls back only the savepoint."""
        try:
            async with self._session.begin_nested():
                model = await self._require_model(ticket.id)
                model.assigned_to_user_id = ticket.assigned_to_user_id
                model.assigned_at = ticket.assigned_at
                await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to assign ticket {ticket.id}: {e}") from e

        return self._to_entity(model)

    async def delete(self, ticket_id: str) -> bool:
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            return False

        result = await self._session.execute(delete(TicketModel).where(TicketModel.id == ticket_uuid))
        return result.rowcount > 0

    async def list(
        self,
        filters: Dict[str, Any],
        sort_by: str = "created_at",
        descending: bool = True,
        limit: int = 10,
        offset: int = 0
    ) -> List[Ticket]:
        """List tickets with filters."""
        column = _SORT_COLUMNS.get(sort_by, TicketModel.created_at)
        order = column.desc() if descending else column.asc()

        stmt = (
            select(TicketModel)
            .where(*self._conditions(filters))
            .order_by(order, TicketModel.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def count(self, filters: Dict[str, Any]) -> int:
        stmt = select(func.count(TicketModel.id)).where(*self._conditions(filters))
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def _get_model(self, ticket_id: Optional[str]) -> Optional[TicketModel]:
        ticket_uuid = _parse_uuid(ticket_id) if ticket_id else None
        if ticket_uuid is None:
            return None

        stmt = select(TicketModel).where(TicketModel.id == ticket_uuid)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _require_model(self, ticket_id: Optional[str]) -> TicketModel:
        model = await self._get_model(ticket_id)
        if model is None:
            raise RepositoryException(f"Ticket {ticket_id} not found")
        return model

    @staticmethod
    def _conditions(filters: Dict[str, Any]) -> list:
        conditions = []

        if "search" in filters:
            pattern = f"%{filters['search']}%"
            conditions.append(or_(
                TicketModel.title.ilike(pattern),
                TicketModel.description.ilike(pattern),
                TicketModel.location.ilike(pattern)
            ))

        if "status" in filters:
            conditions.append(TicketModel.status == str(getattr(filters["status"], "value", filters["status"])))

        if "category" in filters:
            conditions.append(TicketModel.category == str(getattr(filters["category"], "value", filters["category"])))

        if "category_in" in filters:
            categories = [getattr(c, "value", c) for c in filters["category_in"]]
            conditions.append(TicketModel.category.in_(categories))

        if "priority" in filters:
            conditions.append(TicketModel.priority == int(filters["priority"]))

        if "assigned_to_user_id" in filters:
            conditions.append(TicketModel.assigned_to_user_id == filters["assigned_to_user_id"])

        if "created_by_user_id" in filters:
            conditions.append(TicketModel.created_by_user_id == filters["created_by_user_id"])

        if "assignee_or_unassigned" in filters:
            conditions.append(or_(
                TicketModel.assigned_to_user_id == filters["assignee_or_unassigned"],
                TicketModel.assigned_to_user_id.is_(None)
            ))

        if "created_from" in filters:
            conditions.append(TicketModel.created_at >= filters["created_from"])

        if "created_to" in filters:
            conditions.append(TicketModel.created_at <= filters["created_to"])

        return conditions

    @staticmethod
    def _to_entity(model: TicketModel) -> Ticket:
        return Ticket(
            id=str(model.id),
            title=model.title,
            description=model.description,
            location=model.location,
            priority=Priority(model.priority),
            status=TicketStatus(model.status),
            category=TicketCategory(model.category),
            extracted_keywords=model.extracted_keywords or "",
            created_by_user_id=model.created_by_user_id,
            assigned_to_user_id=model.assigned_to_user_id,
            created_at=_as_utc(model.created_at),
            assigned_at=_as_utc(model.assigned_at),
            completed_at=_as_utc(model.completed_at),
            closed_at=_as_utc(model.closed_at)
        )


class SQLAlchemyTechnicianRepository(ITechnicianRepository):
    """SQLAlchemy implementation for the technician roster."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_user_id(self, user_id: str) -> Optional[Technician]:
        stmt = select(TechnicianModel).where(TechnicianModel.user_id == user_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, technician: Technician) -> Technician:
        model = TechnicianModel(
            user_id=technician.user_id,
            email=technician.email,
            full_name=technician.full_name,
            role=technician.role,
            is_active=technician.is_active,
            created_at=technician.created_at
        )

        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise RepositoryException(f"Technician {technician.user_id} conflicts with an existing record") from e

        return self._to_entity(model)

    async def list(self, role: Optional[str] = None, active_only: bool = False) -> List[Technician]:
        stmt = select(TechnicianModel)
        if role is not None:
            stmt = stmt.where(TechnicianModel.role == role)
        if active_only:
            stmt = stmt.where(TechnicianModel.is_active.is_(True))
        stmt = stmt.order_by(TechnicianModel.user_id)

        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to list technicians: {e}") from e

        return [self._to_entity(model) for model in result.scalars().all()]

    @staticmethod
    def _to_entity(model: TechnicianModel) -> Technician:
        return Technician(
            user_id=model.user_id,
            email=model.email,
            full_name=model.full_name,
            role=model.role,
            is_active=model.is_active,
            created_at=_as_utc(model.created_at)
        )
