"""
Tickets Module
==============

Bounded Context for the maintenance ticket workflow.

Responsibilities:
- Create tickets, routing them by keyword into a category
- Auto-assign new tickets to an active technician of the routed role
- List, update, assign and delete tickets under role-based access rules
- Keep the technician roster used for assignment
"""
