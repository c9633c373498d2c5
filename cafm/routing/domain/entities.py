"""
Routing Value Objects
=====================

Transient results produced by the keyword routing engine. Nothing here is
persisted by the routing module itself.
"""

from dataclasses import dataclass
from typing import Tuple

from cafm.config import TicketCategory


@dataclass(frozen=True)
class KeywordSuggestion:
    """Autocomplete candidate for partial ticket text."""
    keyword: str
    category: TicketCategory
    relevance: int  # 0 to 100

    def __post_init__(self):
        """Validate relevance score."""
        if not 0 <= self.relevance <= 100:
            raise ValueError("Relevance must be between 0 and 100")


@dataclass(frozen=True)
class RoutingDecision:
    """
    Outcome of routing one ticket.

    Combines the winning category, every matched keyword and the role
    responsible for the category.
    """
    category: TicketCategory
    keywords: Tuple[str, ...]
    role: str

    @property
    def keywords_text(self) -> str:
        """Keywords in the comma-joined form stored on tickets."""
        return ", ".join(self.keywords)
