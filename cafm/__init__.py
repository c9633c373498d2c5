"""
CAFM Ticketing Service
======================

Computer-Aided Facility Management ticketing: maintenance requests are
classified by a keyword routing engine and auto-assigned to technicians.

Modules:
- routing: Keyword classification, keyword extraction and autocomplete
- tickets: Ticket lifecycle, persistence and technician assignment
"""

__version__ = "1.0.0"
