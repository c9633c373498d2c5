"""
Ticket Access Rules
===================

Who may see, change, assign and delete tickets.

Technician visibility is derived from the routing taxonomy: a technician
sees the categories whose responsible role is their own.
"""

from typing import Any, Dict

from cafm.config import MANAGER_ROLES, TicketStatus, UserRole
from cafm.routing.domain import CategoryTaxonomy
from cafm.tickets.domain.entities import CallerIdentity, Ticket


class TicketAccessPolicy:
    """Role-based permission checks for the ticket workflow."""

    def __init__(self, taxonomy: CategoryTaxonomy):
        self._taxonomy = taxonomy

    @staticmethod
    def is_manager(caller: CallerIdentity) -> bool:
        return caller.role in MANAGER_ROLES

    def is_technician(self, caller: CallerIdentity) -> bool:
        """Non-manager role that some category routes to."""
        if self.is_manager(caller) or caller.role == UserRole.END_USER:
            return False
        return bool(self._taxonomy.categories_for_role(caller.role.value))

    def can_view(self, caller: CallerIdentity, ticket: Ticket) -> bool:
        if self.is_manager(caller):
            return True
        if ticket.created_by_user_id == caller.user_id:
            return True
        if ticket.assigned_to_user_id == caller.user_id:
            return True
        return self.is_technician(caller) and self._taxonomy.role_for(ticket.category) == caller.role.value

    def can_modify(self, caller: CallerIdentity, ticket: Ticket) -> bool:
        if self.is_manager(caller):
            return True
        if ticket.assigned_to_user_id == caller.user_id:
            return True
        # Creators may edit only until work starts
        return ticket.created_by_user_id == caller.user_id and ticket.status == TicketStatus.OPEN

    def can_manage(self, caller: CallerIdentity) -> bool:
        """Assign, delete and register technicians."""
        return self.is_manager(caller)

    def visibility_filters(self, caller: CallerIdentity) -> Dict[str, Any]:
        """
        Repository filters restricting a ticket listing to what the caller may see.

        Managers see everything; technicians see tickets in their categories
        that are unassigned or assigned to them; everyone else sees only the
        tickets they created.
        """
        if self.is_manager(caller):
            return {}
        if self.is_technician(caller):
            return {
                "category_in": self._taxonomy.categories_for_role(caller.role.value),
                "assignee_or_unassigned": caller.user_id,
            }
        return {"created_by_user_id": caller.user_id}
