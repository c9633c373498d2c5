"""
Routing Application Layer
=========================

Contains:
- Services: KeywordRoutingService and its interface
"""

from cafm.routing.application.services import (
    MAX_SUGGESTIONS,
    IKeywordRoutingService,
    KeywordRoutingService,
)

__all__ = [
    "MAX_SUGGESTIONS",
    "IKeywordRoutingService",
    "KeywordRoutingService",
]
