"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (keyword routing and
ticket workflow).

Architecture Pattern: Modular Monolith
- Each module (routing, tickets) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add routing or ticket business logic to the shared kernel.
"""
