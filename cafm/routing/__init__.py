"""
Routing Module
==============

Bounded Context for keyword-based ticket routing.

Responsibilities:
- Classify ticket text into a service category
- Extract the known keywords present in ticket text
- Suggest keywords for autocomplete
- Resolve the technician role responsible for a category

The module is a pure in-process library: no persistence, no HTTP surface.
The ticket workflow consumes it through IKeywordRoutingService.
"""
